"""Data shapes shared across the extraction pipeline."""
from __future__ import annotations

import time
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

PUBLIC_FIELDS = ("title", "image", "price", "domain", "url", "timestamp")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ExtractionResult(BaseModel):
    """Normalized card data for one product URL.

    Built once per request by the orchestrator, then cached and returned
    unchanged.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    image: str = ""
    price: str = ""
    currency: str = ""
    domain: str
    url: str
    timestamp: int = Field(default_factory=now_ms)

    def to_public(self) -> Dict[str, Any]:
        """Wire body for the HTTP contract (currency is folded into price)."""
        return self.model_dump(include=set(PUBLIC_FIELDS))


@dataclass
class PartialMetadata:
    """Output of a single parser strategy before normalization."""

    title: Optional[str] = None
    image: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    def missing_fields(self) -> List[str]:
        """Names of fields that a lower-priority strategy could still fill."""
        return [f.name for f in fields(self) if not getattr(self, f.name)]

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class CacheEntry(BaseModel):
    """Cached extraction result together with its expiry time."""

    key: str
    value: ExtractionResult
    expires_at: float

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at
