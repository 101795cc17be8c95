"""Site-specific heuristics keyed by hostname.

Each retailer gets a :class:`SiteRules` entry listing, per field, the
rules to try in order. Rules are declarative so the registry can be
extended without touching the lookup code:

- ``Selector``: CSS selector over the parsed document, reading text or
  the first non-empty attribute
- ``Pattern``: regular expression over the raw HTML
- ``ScriptJson``: JSON embedded in a ``<script>`` tag, read by dotted path
  or searched with a regular expression
- ``UrlSlug``: a title rebuilt from the product slug in the URL path
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from ..models import PartialMetadata
from .base import attr_text, clean_text, load_document

LOGGER = logging.getLogger(__name__)

IMAGE_URL_RE = r'"(?:image|url|src)"\s*:\s*"(https?:[^"]+?\.(?:jpe?g|png|webp)[^"]*)"'


def first_json_key(value: str) -> Optional[str]:
    """First key of a JSON object attribute (Amazon ``data-a-dynamic-image``)."""
    try:
        data = json.loads(value)
    except ValueError:
        return None
    if isinstance(data, dict) and data:
        return clean_text(next(iter(data)))
    return None


def largest_from_srcset(value: str) -> Optional[str]:
    """Last (usually widest) candidate of a ``srcset`` attribute."""
    candidates = [part.strip().split(" ")[0] for part in value.split(",") if part.strip()]
    return clean_text(candidates[-1]) if candidates else None


@dataclass(frozen=True)
class Selector:
    css: str
    attrs: Tuple[str, ...] = ()
    post: Optional[Callable[[str], Optional[str]]] = None

    def extract(self, html: str, soup: BeautifulSoup, final_url: str) -> Optional[str]:
        for element in soup.select(self.css):
            if self.attrs:
                values = [attr_text(element, attr) for attr in self.attrs]
            else:
                values = [attr_text(element, "content") or clean_text(element.get_text(" "))]
            for value in values:
                if value and self.post:
                    value = self.post(value)
                if value:
                    return value
        return None


@dataclass(frozen=True)
class Pattern:
    regex: str
    flags: int = re.IGNORECASE | re.DOTALL

    def extract(self, html: str, soup: BeautifulSoup, final_url: str) -> Optional[str]:
        match = re.search(self.regex, html, self.flags)
        if not match:
            return None
        return clean_text(match.group(1) if match.groups() else match.group(0))


@dataclass(frozen=True)
class ScriptJson:
    css: str
    path: Optional[str] = None
    pattern: Optional[str] = None

    def _load(self, soup: BeautifulSoup) -> Any:
        script = soup.select_one(self.css)
        if script is None:
            return None
        try:
            return json.loads(script.string or script.get_text())
        except ValueError:
            LOGGER.debug("Embedded JSON in %s is not valid", self.css)
            return None

    def extract(self, html: str, soup: BeautifulSoup, final_url: str) -> Optional[str]:
        data = self._load(soup)
        if data is None:
            return None
        if self.path:
            return clean_text(lookup_path(data, self.path))
        if self.pattern:
            match = re.search(self.pattern, json.dumps(data, ensure_ascii=False), re.IGNORECASE)
            return clean_text(match.group(1)) if match else None
        return None


@dataclass(frozen=True)
class UrlSlug:
    regex: str
    suffix: str = ""

    def extract(self, html: str, soup: BeautifulSoup, final_url: str) -> Optional[str]:
        match = re.search(self.regex, urlsplit(final_url).path, re.IGNORECASE)
        if not match:
            return None
        words = match.group(1).replace("-", " ").replace("_", " ").strip()
        if not words:
            return None
        return f"{words.title()}{self.suffix}"


Rule = Union[Selector, Pattern, ScriptJson, UrlSlug]


def lookup_path(data: Any, path: str) -> Any:
    """Follow a dotted path through dicts and lists (``media.images.0.url``)."""
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


@dataclass(frozen=True)
class SiteRules:
    """Extraction rules for one retailer."""

    name: str
    hosts: Tuple[str, ...]
    title: Tuple[Rule, ...] = field(default_factory=tuple)
    image: Tuple[Rule, ...] = field(default_factory=tuple)
    price: Tuple[Rule, ...] = field(default_factory=tuple)

    def matches(self, hostname: str) -> bool:
        hostname = hostname.lower()
        return any(host in hostname for host in self.hosts)


SITE_RULES: Tuple[SiteRules, ...] = (
    SiteRules(
        name="amazon",
        hosts=("amazon.",),
        title=(
            Selector("#productTitle"),
            Selector("#title"),
        ),
        image=(
            Selector("img[data-old-hires]", attrs=("data-old-hires",)),
            Selector("#landingImage", attrs=("data-a-dynamic-image",), post=first_json_key),
            Selector("img[data-a-dynamic-image]", attrs=("data-a-dynamic-image",), post=first_json_key),
            Pattern(r'"hiRes"\s*:\s*"(https?://[^"]+)"'),
            Pattern(r'"large"\s*:\s*"(https?://[^"]+)"'),
            Pattern(r'"mainImage"\s*:\s*"(https?://[^"]+)"'),
            Selector("#landingImage", attrs=("src",)),
            Selector("#imgBlkFront", attrs=("src",)),
        ),
        price=(
            Selector("#corePrice_feature_div .a-price .a-offscreen"),
            Selector("#corePriceDisplay_desktop_feature_div .a-price .a-offscreen"),
            Selector("#priceblock_ourprice"),
            Selector("#priceblock_dealprice"),
            Selector(".a-price .a-offscreen"),
            Pattern(r'data-price="([^"]+)"'),
            Pattern(r'"priceAmount"\s*:\s*"?([\d.,]+)'),
        ),
    ),
    SiteRules(
        name="zara",
        hosts=("zara.com",),
        title=(
            ScriptJson("script#product-state", path="detail.name"),
            Selector("h1.product-detail-info__header-name"),
            Selector("h1.product-detail-info__product-name"),
            Selector("h1.product-name"),
            UrlSlug(r"/([^/]+?)-p\d+\.html", suffix=" - Zara"),
        ),
        image=(
            ScriptJson("script#product-state", path="media.images.0.url"),
            ScriptJson("script#product-state", pattern=IMAGE_URL_RE),
            Selector("img.media-image__image", attrs=("src", "data-src")),
            Selector("img.product-detail-images__image", attrs=("src", "data-src")),
            Selector("picture.media-image source", attrs=("srcset",), post=largest_from_srcset),
            Selector("img.product-image", attrs=("src", "data-src")),
        ),
        price=(
            ScriptJson("script#product-state", path="detail.price.formatted"),
            Selector("span.money-amount__main"),
            Selector("span.price__amount"),
            Selector("span.price-amount"),
            Selector("[data-qa-qualifier='price-amount-current']"),
        ),
    ),
    SiteRules(
        name="hm",
        hosts=("hm.com",),
        title=(
            ScriptJson("script#__NEXT_DATA__", path="props.pageProps.product.displayName"),
            ScriptJson("script#__NEXT_DATA__", path="props.pageProps.product.name"),
            Selector("h1.product-item-headline"),
            Selector("h1.product-name"),
            Selector("h1.product-title"),
        ),
        image=(
            ScriptJson("script#__NEXT_DATA__", pattern=IMAGE_URL_RE),
            Selector(".product-detail-main-image-container img", attrs=("src", "data-src")),
            Selector("img.product-image", attrs=("src", "data-src")),
            Selector("img.main-image", attrs=("src", "data-src")),
        ),
        price=(
            ScriptJson(
                "script#__NEXT_DATA__",
                pattern=r'"price"\s*:\s*"?((?:GBP|EUR|USD)?\s*[\d.,]+)',
            ),
            Selector("span.price-value"),
            Selector("#product-price span"),
            Selector("span.product-price"),
        ),
    ),
    SiteRules(
        name="doverstreetmarket",
        hosts=("doverstreetmarket.com",),
        title=(
            Selector("h1.product-title"),
            Selector("h1.product-name"),
            Selector("h1.product__title"),
        ),
        image=(
            Selector("img.product-image", attrs=("src", "data-src")),
            Selector("img.main-image", attrs=("src", "data-src")),
            Selector(".product__media img", attrs=("src", "data-src")),
        ),
        price=(
            Selector("span.product-price"),
            Selector(".price-item--regular"),
            Selector("span.price"),
        ),
    ),
)


def find_site(hostname: str, registry: Sequence[SiteRules] = SITE_RULES) -> Optional[SiteRules]:
    """First registry entry whose host pattern occurs in ``hostname``."""
    for site in registry:
        if site.matches(hostname):
            return site
    return None


def _apply(rules: Sequence[Rule], html: str, soup: BeautifulSoup, final_url: str) -> Optional[str]:
    for rule in rules:
        try:
            value = rule.extract(html, soup, final_url)
        except Exception as exc:  # one broken rule must not hide the others
            LOGGER.debug("Rule %r failed: %s", rule, exc)
            continue
        if value:
            return value
    return None


def parse(
    html: str,
    final_url: str,
    registry: Sequence[SiteRules] = SITE_RULES,
) -> Optional[PartialMetadata]:
    site = find_site(urlsplit(final_url).hostname or "", registry)
    if site is None:
        return None

    soup = load_document(html)
    result = PartialMetadata(
        title=_apply(site.title, html, soup, final_url),
        image=_apply(site.image, html, soup, final_url),
        price=_apply(site.price, html, soup, final_url),
    )
    LOGGER.debug("Site rules %s produced %s", site.name, result.to_dict())
    return None if result.is_empty() else result
