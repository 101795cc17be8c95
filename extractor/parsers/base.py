"""Helpers shared by parser strategies."""
from __future__ import annotations

import re
import threading
from typing import Any, Callable, Iterable, Optional

from bs4 import BeautifulSoup, Tag

from ..models import PartialMetadata

# (html, final_url) -> PartialMetadata | None
Strategy = Callable[[str, str], Optional[PartialMetadata]]

_WHITESPACE_RE = re.compile(r"\s+")

# One parsed document per thread, reused by every strategy of a chain run.
_documents = threading.local()


def load_document(html: str) -> BeautifulSoup:
    """Parse ``html`` once per thread and share the tree between strategies.

    The returned tree is shared: callers must only read from it.
    """
    if getattr(_documents, "html", None) is html:
        return _documents.soup
    soup = BeautifulSoup(html, "html.parser")
    _documents.html = html
    _documents.soup = soup
    return soup


def release_document() -> None:
    """Drop this thread's cached tree."""
    _documents.html = None
    _documents.soup = None


def clean_text(value: Any) -> Optional[str]:
    """Collapse whitespace; return None for empty or non-scalar values."""
    if value is None or isinstance(value, (dict, list, tuple, bool)):
        return None
    text = _WHITESPACE_RE.sub(" ", str(value)).strip()
    return text or None


def first_text(values: Iterable[Any]) -> Optional[str]:
    for value in values:
        text = clean_text(value)
        if text:
            return text
    return None


def find_meta(soup: BeautifulSoup, *keys: str) -> Optional[str]:
    """Content of the first ``<meta>`` whose property/name/itemprop matches.

    Keys are tried in order, so earlier keys take priority over later ones
    regardless of where the tags sit in the document.
    """
    wanted = [key.lower() for key in keys]
    found = {}
    for tag in soup.find_all("meta"):
        content = tag.get("content")
        if not content:
            continue
        for attr in ("property", "name", "itemprop"):
            name = tag.get(attr)
            if isinstance(name, str) and name.strip().lower() in wanted:
                found.setdefault(name.strip().lower(), content)
    return first_text(found.get(key) for key in wanted)


def attr_text(tag: Tag, attr: str) -> Optional[str]:
    value = tag.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return clean_text(value)
