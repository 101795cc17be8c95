"""Structured data (schema.org JSON-LD) strategy."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

from ..models import PartialMetadata
from .base import clean_text, first_text, load_document

LOGGER = logging.getLogger(__name__)

LD_JSON_TYPE = "application/ld+json"


def _type_names(node: Dict[str, Any]) -> str:
    raw = node.get("@type", "")
    if isinstance(raw, list):
        return " ".join(str(item) for item in raw).lower()
    return str(raw).lower()


def iter_nodes(data: Any) -> Iterator[Dict[str, Any]]:
    """Yield candidate nodes from a single object, an array or a ``@graph``."""
    if isinstance(data, list):
        for item in data:
            yield from iter_nodes(item)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, (list, dict)):
            yield from iter_nodes(graph)


def load_blocks(html: str) -> List[Any]:
    """Decode every JSON-LD block; malformed blocks are skipped."""
    soup = load_document(html)
    blocks: List[Any] = []
    for script in soup.find_all("script"):
        script_type = (script.get("type") or "").strip().lower()
        if script_type != LD_JSON_TYPE:
            continue
        payload = (script.string or script.get_text() or "").strip()
        if not payload:
            continue
        try:
            blocks.append(json.loads(payload, strict=False))
        except ValueError as exc:
            LOGGER.debug("Skipping malformed JSON-LD block: %s", exc)
    return blocks


def pick_image(image: Any) -> Optional[str]:
    """First element of a list, ``.url`` of an object, else the value itself."""
    if isinstance(image, list):
        return pick_image(image[0]) if image else None
    if isinstance(image, dict):
        return first_text((image.get("url"), image.get("contentUrl")))
    return clean_text(image)


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def offer_price(offer: Any) -> PartialMetadata:
    """Price and currency from an Offer, AggregateOffer or priceSpecification."""
    offer = _first(offer)
    if not isinstance(offer, dict):
        return PartialMetadata()
    price_spec = _first(offer.get("priceSpecification"))
    price_spec = price_spec if isinstance(price_spec, dict) else {}
    return PartialMetadata(
        price=first_text((offer.get("price"), offer.get("lowPrice"), price_spec.get("price"))),
        currency=first_text((offer.get("priceCurrency"), price_spec.get("priceCurrency"))),
    )


def from_node(node: Dict[str, Any]) -> PartialMetadata:
    types = _type_names(node)
    if "product" in types:
        pricing = offer_price(node.get("offers"))
    else:
        # the node itself is the offer
        pricing = offer_price(node)
    return PartialMetadata(
        title=first_text((node.get("name"), node.get("headline"))),
        image=pick_image(node.get("image")),
        price=pricing.price,
        currency=pricing.currency,
    )


def parse(html: str, final_url: str) -> Optional[PartialMetadata]:
    """Extract product fields from JSON-LD.

    Product nodes are consulted before bare Offer nodes; within each group,
    document order decides and later nodes only fill fields still empty.
    """
    products: List[Dict[str, Any]] = []
    offers: List[Dict[str, Any]] = []
    for block in load_blocks(html):
        for node in iter_nodes(block):
            types = _type_names(node)
            if "product" in types:
                products.append(node)
            elif "offer" in types:
                offers.append(node)

    result = PartialMetadata()
    for node in products + offers:
        found = from_node(node)
        for name in result.missing_fields():
            setattr(result, name, getattr(found, name))
    return None if result.is_empty() else result
