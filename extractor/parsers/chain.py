"""Ordered strategy chain and the backfill merge."""
from __future__ import annotations

import logging
from dataclasses import fields
from typing import Iterable, List, Optional, Sequence

from ..models import PartialMetadata
from .base import Strategy, release_document

LOGGER = logging.getLogger(__name__)


def safe_parse(strategy: Strategy, html: str, final_url: str) -> Optional[PartialMetadata]:
    """Run one strategy; any failure counts as no contribution."""
    name = getattr(strategy, "__module__", repr(strategy))
    try:
        result = strategy(html, final_url)
    except Exception as exc:  # strategies must never break the chain
        LOGGER.debug("Strategy %s failed on %s: %s", name, final_url, exc, exc_info=True)
        return None
    if result is None or result.is_empty():
        return None
    return result


def merge_partials(partials: Iterable[Optional[PartialMetadata]]) -> PartialMetadata:
    """Backfill merge: per field, the first non-empty value wins.

    Parameters
    ----------
    partials : iterable of PartialMetadata or None
        Strategy outputs in priority order

    Returns
    -------
    PartialMetadata
        Combined metadata
    """
    merged = PartialMetadata()
    for partial in partials:
        if partial is None:
            continue
        for field in fields(PartialMetadata):
            if not getattr(merged, field.name) and getattr(partial, field.name):
                setattr(merged, field.name, getattr(partial, field.name))
    return merged


def run_chain(html: str, final_url: str, strategies: Sequence[Strategy]) -> PartialMetadata:
    """Run every strategy in order and merge their outputs."""
    results: List[Optional[PartialMetadata]] = []
    try:
        for strategy in strategies:
            partial = safe_parse(strategy, html, final_url)
            if partial is not None:
                LOGGER.debug("%s contributed %s", strategy.__module__, partial.to_dict())
            results.append(partial)
    finally:
        release_document()
    merged = merge_partials(results)
    if merged.missing_fields():
        LOGGER.info("Partial extraction for %s, missing: %s", final_url, ", ".join(merged.missing_fields()))
    return merged
