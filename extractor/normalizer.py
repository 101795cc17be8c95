"""Turn merged parser output into a normalized ExtractionResult."""
from __future__ import annotations

import html
import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import urlsplit

from .errors import InvalidInputError
from .models import ExtractionResult, PartialMetadata, now_ms
from .urls import absolutize, canonical_url, display_domain

LOGGER = logging.getLogger(__name__)

CURRENCY_SYMBOLS: Dict[str, str] = {
    "GBP": "£",
    "EUR": "€",
    "USD": "$",
}
SYMBOL_CURRENCIES: Dict[str, str] = {symbol: code for code, symbol in CURRENCY_SYMBOLS.items()}

_AMOUNT_RE = re.compile(r"\d(?:[\d.,]|\s(?=\d{3}(?!\d)))*")
_CODE_RE = re.compile(r"\b([A-Z]{3})\b")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ImageUpgrade:
    """Thumbnail suffix rewrites for one retailer's image CDN."""

    hosts: Tuple[str, ...]
    patterns: Tuple[re.Pattern[str], ...]
    replacement: str

    def applies_to(self, *hostnames: str) -> bool:
        return any(host in name for name in hostnames for host in self.hosts)

    def apply(self, image: str) -> str:
        for pattern in self.patterns:
            upgraded, count = pattern.subn(self.replacement, image, count=1)
            if count:
                return upgraded
        return image


def _compile(*patterns: str) -> Tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


IMAGE_UPGRADES: Tuple[ImageUpgrade, ...] = (
    ImageUpgrade(
        hosts=("amazon.", "media-amazon.com", "images-amazon.com"),
        patterns=_compile(
            r"\._SX\d+_SY\d+_CR,\d+,\d+,\d+,\d+_\.jpg",
            r"\.__?AC_SX\d+_SY\d+(?:_QL\d+)?(?:_ML\d+)?__?\.jpg",
            r"\.__?AC_(?:[A-Z]{2}\d+(?:,\d+)*_)+(?:[A-Z0-9]+_)*\.jpg",
            r"\._(?:SX|SY|SL|QL|SS|US|UL|UX|UY)\d+_\.jpg",
            r"\._UF\d+,\d+_\.jpg",
        ),
        replacement="._AC_SL1500_.jpg",
    ),
)


def upgrade_image(image: str, page_url: str) -> str:
    """Rewrite known low-resolution thumbnail suffixes to the largest size.

    Parameters
    ----------
    image : str
        Absolute image URL
    page_url : str
        Final page URL; its host (or the image host) selects the rewrite table

    Returns
    -------
    str
        Upgraded URL, or ``image`` unchanged when no rule applies
    """
    page_host = (urlsplit(page_url).hostname or "").lower()
    image_host = (urlsplit(image).hostname or "").lower()
    for upgrade in IMAGE_UPGRADES:
        if upgrade.applies_to(page_host, image_host):
            upgraded = upgrade.apply(image)
            if upgraded != image:
                LOGGER.debug("Upgraded thumbnail %s -> %s", image, upgraded)
            return upgraded
    return image


def parse_amount(raw: str) -> Optional[float]:
    """Numeric value of the first amount in ``raw``.

    The last ``.`` or ``,`` is the decimal separator unless it is followed
    by exactly three digits and is the only separator of its kind, in which
    case separators are treated as thousands grouping.
    """
    match = _AMOUNT_RE.search(raw)
    if not match:
        return None
    token = re.sub(r"\s", "", match.group(0)).rstrip(".,")

    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            token = token.replace(".", "").replace(",", ".")
        else:
            token = token.replace(",", "")
    elif "," in token:
        head, _, tail = token.rpartition(",")
        if token.count(",") == 1 and len(tail) != 3:
            token = f"{head}.{tail}"
        else:
            token = token.replace(",", "")
    elif token.count(".") > 1:
        head, _, tail = token.rpartition(".")
        token = head.replace(".", "") + (tail if len(tail) == 3 else f".{tail}")

    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def format_amount(value: float) -> str:
    """Shortest decimal text for ``value`` without a trailing ``.0``."""
    text = repr(value)
    if "e" in text or "E" in text:
        text = f"{value:f}".rstrip("0").rstrip(".")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def detect_currency(raw: str, currency: Optional[str]) -> str:
    """Currency code from the captured signal, else from the raw price text."""
    code = (currency or "").strip().upper()
    if code:
        return SYMBOL_CURRENCIES.get(code, code)
    for symbol, symbol_code in SYMBOL_CURRENCIES.items():
        if symbol in raw:
            return symbol_code
    match = _CODE_RE.search(raw.upper())
    if match and match.group(1) in CURRENCY_SYMBOLS:
        return match.group(1)
    return ""


def clean_price(raw: Optional[str], currency: Optional[str] = None) -> Tuple[str, str]:
    """Normalize a price string and prefix its currency symbol.

    Parameters
    ----------
    raw : str, optional
        Price text as found in the page (``"£16.99"``, ``"16,99 EUR"``, ``"16.99"``)
    currency : str, optional
        Currency code captured alongside the price

    Returns
    -------
    tuple[str, str]
        Display price (``"£16.99"``) and currency code; both empty when the
        price cannot be parsed
    """
    if raw is None:
        return "", ""
    raw = str(raw)
    value = parse_amount(re.sub(r"[^\d.,\s]", " ", raw))
    if value is None:
        return "", ""
    code = detect_currency(raw, currency)
    symbol = CURRENCY_SYMBOLS.get(code, "")
    return f"{symbol}{format_amount(value)}", code


def _canonical_or_raw(url: str) -> str:
    try:
        return canonical_url(url)
    except InvalidInputError:
        return url


def clean_title(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return _WHITESPACE_RE.sub(" ", html.unescape(str(raw))).strip()


def normalize(
    merged: PartialMetadata,
    final_url: str,
    *,
    timestamp: Optional[int] = None,
) -> ExtractionResult:
    """Build the final card from merged parser output.

    Parameters
    ----------
    merged : PartialMetadata
        Backfilled output of the parser chain
    final_url : str
        URL of the page actually served (after redirects)
    timestamp : int, optional
        Epoch milliseconds to stamp the result with (defaults to now)

    Returns
    -------
    ExtractionResult
        Result honouring the output invariants; never raises for bad input
    """
    domain = display_domain(final_url)

    image = absolutize(merged.image, final_url)
    if image:
        image = upgrade_image(image, final_url)
    elif merged.image:
        LOGGER.debug("Dropped unusable image reference %r", merged.image)

    price, currency = clean_price(merged.price, merged.currency)
    if merged.price and not price:
        LOGGER.debug("Dropped unparsable price %r", merged.price)

    title = clean_title(merged.title) or domain

    return ExtractionResult(
        title=title,
        image=image,
        price=price,
        currency=currency,
        domain=domain,
        url=_canonical_or_raw(final_url),
        timestamp=timestamp if timestamp is not None else now_ms(),
    )
