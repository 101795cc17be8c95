"""Runtime configuration for the extraction engine."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[1]

LOGGER = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60 * 60 * 24
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BLOCKED_CACHE_TTL = 60 * 5

# Lower-cased substrings that identify anti-bot challenge pages.
DEFAULT_BLOCK_MARKERS: Tuple[str, ...] = (
    "captcha",
    "access denied",
    "blocked",
    "akamai",
    "perimeterx",
    "datadome",
    "just a moment...",
    "security check",
    "bot protection",
    "are you a robot",
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


@dataclass
class ExtractorConfig:
    """
    Settings shared by the fetcher, cache and orchestrator.

    Everything here is configuration, not runtime state: one instance is
    built at startup and handed to every component.
    """

    cache_ttl: int = DEFAULT_CACHE_TTL
    blocked_cache_ttl: int = DEFAULT_BLOCKED_CACHE_TTL  # results parsed from pages that looked blocked
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    request_timeout: float = 15.0
    retry_wait_min: float = 0.0
    retry_wait_max: float = 0.5
    min_body_length: int = 200
    block_markers: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_BLOCK_MARKERS)
    cache_backend: str = "memory"  # memory, file
    cache_dir: Path = field(default_factory=lambda: BASE_DIR / ".cache" / "extract")
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.retry_wait_max < self.retry_wait_min:
            self.retry_wait_max = self.retry_wait_min
        self.cache_dir = Path(self.cache_dir)

    @classmethod
    def from_env(cls) -> ExtractorConfig:
        """Build configuration from environment variables (and ``.env``)."""
        load_dotenv(BASE_DIR / ".env")
        return cls(
            cache_ttl=_env_int("EXTRACT_CACHE_TTL", DEFAULT_CACHE_TTL),
            blocked_cache_ttl=_env_int("EXTRACT_BLOCKED_CACHE_TTL", DEFAULT_BLOCKED_CACHE_TTL),
            max_attempts=_env_int("EXTRACT_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            request_timeout=_env_float("EXTRACT_TIMEOUT", 15.0),
            retry_wait_min=_env_float("EXTRACT_RETRY_WAIT_MIN", 0.0),
            retry_wait_max=_env_float("EXTRACT_RETRY_WAIT_MAX", 0.5),
            min_body_length=_env_int("EXTRACT_MIN_BODY_LENGTH", 200),
            cache_backend=os.getenv("EXTRACT_CACHE_BACKEND", "memory").strip().lower(),
            cache_dir=Path(os.getenv("EXTRACT_CACHE_DIR", str(BASE_DIR / ".cache" / "extract"))),
            log_level=os.getenv("EXTRACT_LOG_LEVEL", "INFO").upper(),
        )
