"""Last-resort heuristics over plain HTML."""
from __future__ import annotations

import re
from typing import Iterator, Optional

from bs4 import BeautifulSoup, Tag

from ..models import PartialMetadata
from .base import attr_text, clean_text, load_document

IMAGE_ATTRS = ("src", "data-src", "data-lazy", "data-lazy-src", "data-original", "data-old-hires")
REJECT_KEYWORDS = (
    "icon",
    "logo",
    "favicon",
    "placeholder",
    "error",
    "sprite",
    "spacer",
    "pixel",
    "blank",
)
PRODUCT_HINTS = ("product", "main", "gallery", "hero", "primary", "zoom")
MIN_IMAGE_DIMENSION = 100

SYMBOL_PRICE_RE = re.compile(r"(?:£|\$|€)\s?\d+(?:[.,]\d{3})*(?:[.,]\d{1,2})?")
CODE_PRICE_RE = re.compile(
    r"\b\d+(?:[.,]\d{1,2})?\s?(?:GBP|USD|EUR)\b"
    r"|\b(?:GBP|USD|EUR)\s?\d+(?:[.,]\d{1,2})?"
)

SKIP_TEXT_PARENTS = {"script", "style", "noscript", "template", "head", "title"}


def _dimension(tag: Tag, attr: str) -> Optional[int]:
    raw = tag.get(attr)
    if not isinstance(raw, str):
        return None
    match = re.match(r"\s*(\d+)", raw)
    return int(match.group(1)) if match else None


def _is_too_small(tag: Tag) -> bool:
    for attr in ("width", "height"):
        size = _dimension(tag, attr)
        if size is not None and size < MIN_IMAGE_DIMENSION:
            return True
    return False


def image_source(tag: Tag) -> Optional[str]:
    """First usable URL among the ``<img>`` source attributes."""
    for attr in IMAGE_ATTRS:
        value = attr_text(tag, attr)
        if value and not value.lower().startswith("data:"):
            return value
    return None


def looks_like_product_image(tag: Tag) -> bool:
    src = image_source(tag)
    if not src:
        return False
    haystack = " ".join(
        filter(None, (src, attr_text(tag, "class"), attr_text(tag, "id"), attr_text(tag, "alt")))
    ).lower()
    if any(keyword in haystack for keyword in REJECT_KEYWORDS):
        return False
    return not _is_too_small(tag)


def _has_product_hint(tag: Tag) -> bool:
    hints = " ".join(
        filter(None, (attr_text(tag, "class"), attr_text(tag, "id"), attr_text(tag, "alt")))
    ).lower()
    return any(hint in hints for hint in PRODUCT_HINTS)


def find_product_image(soup: BeautifulSoup) -> Optional[str]:
    """Pick the first product-like image, preferring ones tagged as such."""
    candidates = [tag for tag in soup.find_all("img") if looks_like_product_image(tag)]
    for tag in candidates:
        if _has_product_hint(tag):
            return image_source(tag)
    return image_source(candidates[0]) if candidates else None


def _visible_text(soup: BeautifulSoup) -> Iterator[str]:
    for node in soup.find_all(string=True):
        if node.parent is not None and node.parent.name in SKIP_TEXT_PARENTS:
            continue
        text = clean_text(node)
        if text:
            yield text


def find_price_text(soup: BeautifulSoup) -> Optional[str]:
    """First currency-tagged amount in the visible text."""
    texts = list(_visible_text(soup))
    for regex in (SYMBOL_PRICE_RE, CODE_PRICE_RE):
        for text in texts:
            match = regex.search(text)
            if match:
                return match.group(0)
    return None


def parse(html: str, final_url: str) -> Optional[PartialMetadata]:
    soup = load_document(html)
    result = PartialMetadata(
        image=find_product_image(soup),
        price=find_price_text(soup),
    )
    return None if result.is_empty() else result
