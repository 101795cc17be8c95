"""URL helpers: cache keys, display domains and link resolution."""
from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from .errors import InvalidInputError

LOGGER = logging.getLogger(__name__)

_WWW_RE = re.compile(r"^www\d*\.", re.IGNORECASE)


def canonical_url(url: str) -> str:
    """Normalize a target URL for use as a cache key.

    Parameters
    ----------
    url : str
        Raw URL as supplied by the caller or reported after redirects

    Returns
    -------
    str
        URL with lower-cased scheme and host, no fragment and a non-empty path

    Raises
    ------
    InvalidInputError
        If the URL is missing or not an absolute http(s) URL; both cases
        carry the ``missing url`` message
    """
    raw = (url or "").strip()
    if not raw:
        raise InvalidInputError("missing url")
    try:
        parts = urlsplit(raw)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        LOGGER.info("Rejected unparsable url %r: %s", raw, exc)
        raise InvalidInputError("missing url") from exc

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not hostname:
        LOGGER.info("Rejected non-http(s) url %r", raw)
        raise InvalidInputError("missing url")

    netloc = hostname.lower()
    if port and not ((scheme == "http" and port == 80) or (scheme == "https" and port == 443)):
        netloc = f"{netloc}:{port}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def display_domain(url: str) -> str:
    """Hostname without a leading ``www``/``www2``... label."""
    try:
        hostname = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    return _WWW_RE.sub("", hostname.lower())


def absolutize(link: Optional[str], base_url: str) -> str:
    """Resolve ``link`` against ``base_url``; empty unless the result is http(s)."""
    link = (link or "").strip()
    if not link or link.lower().startswith(("data:", "javascript:", "blob:")):
        return ""
    try:
        resolved = urljoin(base_url, link)
        parts = urlsplit(resolved)
    except ValueError:
        return ""
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return ""
    return resolved
