"""Exception taxonomy for the extraction engine."""
from __future__ import annotations

from typing import Optional


class ExtractorError(Exception):
    """Base class for errors surfaced to callers of the engine."""


class InvalidInputError(ExtractorError):
    """Target URL is missing or cannot be parsed.

    Never retried; the HTTP layer maps it to a 400 response.
    """


class FetchError(ExtractorError):
    """Every fetch attempt failed at the transport level."""

    def __init__(self, message: str, *, url: str = "", attempts: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.attempts = attempts

    @classmethod
    def exhausted(cls, url: str, attempts: int, cause: Optional[BaseException] = None) -> FetchError:
        """Build the error raised after the last attempt failed."""
        reason = f": {cause}" if cause else ""
        return cls(
            f"Failed to fetch content after {attempts} attempt(s){reason}",
            url=url,
            attempts=attempts,
        )
