"""Request profile pool rotated across fetch attempts."""
from __future__ import annotations

import itertools
import secrets
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Sequence, Tuple

DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)


@dataclass(frozen=True)
class RequestProfile:
    """Browser-like header set used for one fetch attempt."""

    user_agent: str
    accept_language: str = "en-US,en;q=0.9"
    referer: Optional[str] = None
    synthetic_cookie: Optional[str] = None  # cookie name, value minted per attempt
    accept: str = DEFAULT_ACCEPT

    def headers(self) -> Dict[str, str]:
        """Build request headers for this profile.

        Returns
        -------
        dict[str, str]
            Headers ready to pass to the HTTP client
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
            "DNT": "1",
            "Upgrade-Insecure-Requests": "1",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
        if self.referer:
            headers["Referer"] = self.referer
        if self.synthetic_cookie:
            headers["Cookie"] = f"{self.synthetic_cookie}={secrets.token_hex(8)}"
        return headers

    @property
    def is_mobile(self) -> bool:
        return "Mobile" in self.user_agent or "iPad" in self.user_agent


DEFAULT_PROFILES: Tuple[RequestProfile, ...] = (
    # Chrome on Windows via Google
    RequestProfile(
        user_agent=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        accept_language="en-US,en;q=0.9",
        referer="https://www.google.com/",
        synthetic_cookie="session",
    ),
    # iPhone Safari
    RequestProfile(
        user_agent=(
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
        ),
        accept_language="en-US,en;q=0.9",
        referer="https://www.google.com/",
        synthetic_cookie="session",
        accept="text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    ),
    # Chrome on macOS via Bing
    RequestProfile(
        user_agent=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        accept_language="en-GB,en;q=0.9",
        referer="https://www.bing.com/",
        synthetic_cookie="visitor",
    ),
    # Firefox on Windows, no referer
    RequestProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) Gecko/20100101 Firefox/124.0",
        accept_language="en-GB,en-US;q=0.8,en;q=0.6",
        accept="text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    ),
)


class ProfilePool:
    """Fixed pool of request profiles."""

    def __init__(self, profiles: Optional[Sequence[RequestProfile]] = None) -> None:
        """Initialize profile pool.

        Parameters
        ----------
        profiles : sequence of RequestProfile, optional
            Profiles in rotation order (defaults to ``DEFAULT_PROFILES``)
        """
        if profiles is None:
            profiles = DEFAULT_PROFILES
        self.profiles: Tuple[RequestProfile, ...] = tuple(profiles)
        if not self.profiles:
            raise ValueError("profile pool must not be empty")

    def rotation(self) -> Iterator[RequestProfile]:
        """Fresh round-robin iterator for one request.

        Each fetch owns its iterator, so concurrent requests never advance
        each other's position.
        """
        return itertools.cycle(self.profiles)

    def __len__(self) -> int:
        return len(self.profiles)
