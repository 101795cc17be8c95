"""Anti-bot helpers for page fetching.

- Request profile pool rotated per attempt
- Block-page detection heuristics
"""

from .detection import BLOCK_STATUS_CODES, find_block_marker, looks_blocked
from .profiles import DEFAULT_PROFILES, ProfilePool, RequestProfile

__all__ = [
    "BLOCK_STATUS_CODES",
    "DEFAULT_PROFILES",
    "ProfilePool",
    "RequestProfile",
    "find_block_marker",
    "looks_blocked",
]
