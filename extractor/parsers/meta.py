"""Meta tag / OpenGraph strategy."""
from __future__ import annotations

from typing import Optional

from ..models import PartialMetadata
from .base import clean_text, find_meta, load_document


def parse(html: str, final_url: str) -> Optional[PartialMetadata]:
    soup = load_document(html)

    title = find_meta(soup, "og:title", "twitter:title", "title")
    if not title and soup.title is not None:
        title = clean_text(soup.title.get_text())

    image = find_meta(
        soup, "og:image", "og:image:url", "og:image:secure_url", "twitter:image", "twitter:image:src"
    )
    if not image:
        link = soup.find("link", rel="image_src")
        if link is not None:
            image = clean_text(link.get("href"))

    price = find_meta(soup, "product:price:amount", "og:price:amount", "price")
    currency = find_meta(soup, "product:price:currency", "og:price:currency", "pricecurrency")

    result = PartialMetadata(
        title=title,
        image=image,
        price=price,
        currency=currency,
    )
    return None if result.is_empty() else result
