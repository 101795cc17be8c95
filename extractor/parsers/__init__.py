"""Parser chain: independent extraction strategies in priority order.

1. Structured data (JSON-LD)
2. Meta / OpenGraph tags
3. Site-specific heuristics
4. Generic HTML fallback

Every strategy is a pure ``(html, final_url) -> PartialMetadata | None``
function; :func:`run_chain` merges their outputs field by field.
"""

from typing import Tuple

from . import generic, jsonld, meta, sites
from .base import Strategy, load_document, release_document
from .chain import merge_partials, run_chain, safe_parse
from .sites import SITE_RULES, SiteRules, find_site

DEFAULT_CHAIN: Tuple[Strategy, ...] = (
    jsonld.parse,
    meta.parse,
    sites.parse,
    generic.parse,
)

__all__ = [
    "DEFAULT_CHAIN",
    "SITE_RULES",
    "SiteRules",
    "Strategy",
    "find_site",
    "load_document",
    "merge_partials",
    "release_document",
    "run_chain",
    "safe_parse",
]
