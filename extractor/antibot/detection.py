"""Heuristics that tell an anti-bot challenge page from real content."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..config import DEFAULT_BLOCK_MARKERS

LOGGER = logging.getLogger(__name__)

BLOCK_STATUS_CODES = frozenset({403, 429, 503})


def find_block_marker(html: str, markers: Iterable[str] = DEFAULT_BLOCK_MARKERS) -> Optional[str]:
    """Return the first block-page marker present in ``html``, if any."""
    lowered = html.lower()
    for marker in markers:
        if marker.lower() in lowered:
            return marker
    return None


def looks_blocked(
    html: str,
    status_code: int = 200,
    *,
    markers: Iterable[str] = DEFAULT_BLOCK_MARKERS,
    min_body_length: int = 200,
) -> bool:
    """Guess whether a response is a bot-protection page.

    Parameters
    ----------
    html : str
        Response body
    status_code : int
        HTTP status of the final response
    markers : iterable of str
        Case-insensitive substrings seen on challenge pages
    min_body_length : int
        Bodies shorter than this (after stripping) count as templated stubs

    Returns
    -------
    bool
        True if another attempt with a different profile is worthwhile
    """
    if status_code in BLOCK_STATUS_CODES:
        LOGGER.debug("Blocked status code %d", status_code)
        return True

    body = (html or "").strip()
    if len(body) < min_body_length:
        LOGGER.debug("Suspiciously short body (%d chars)", len(body))
        return True

    marker = find_block_marker(body, markers)
    if marker:
        LOGGER.debug("Block marker found: %r", marker)
        return True
    return False
