"""End-to-end extraction pipeline: cache, fetch, parse, normalize."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .cache import ResultCache, build_cache
from .config import ExtractorConfig
from .errors import FetchError
from .fetcher import Fetcher
from .models import ExtractionResult
from .normalizer import normalize
from .parsers import DEFAULT_CHAIN, Strategy, run_chain
from .urls import canonical_url

LOGGER = logging.getLogger(__name__)


class ExtractionState(str, Enum):
    """States of a single extraction run."""

    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    FETCHING = "fetching"
    PARSING = "parsing"
    NORMALIZING = "normalizing"
    CACHE_WRITE = "cache_write"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    ExtractionState.IDLE: {ExtractionState.CACHE_CHECK},
    ExtractionState.CACHE_CHECK: {ExtractionState.CACHE_HIT, ExtractionState.FETCHING},
    ExtractionState.CACHE_HIT: {ExtractionState.DONE},
    ExtractionState.FETCHING: {ExtractionState.PARSING, ExtractionState.FAILED},
    ExtractionState.PARSING: {ExtractionState.NORMALIZING},
    ExtractionState.NORMALIZING: {ExtractionState.CACHE_WRITE},
    ExtractionState.CACHE_WRITE: {ExtractionState.DONE},
    ExtractionState.DONE: set(),
    ExtractionState.FAILED: set(),
}


@dataclass
class ExtractionRun:
    """Bookkeeping for one request; never shared between requests."""

    url: str
    cache_key: str = ""
    state: ExtractionState = ExtractionState.IDLE
    history: List[ExtractionState] = field(default_factory=lambda: [ExtractionState.IDLE])
    final_url: Optional[str] = None
    attempts: int = 0
    blocked: bool = False
    result: Optional[ExtractionResult] = None
    error: Optional[str] = None

    def advance(self, state: ExtractionState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        LOGGER.debug("%s: %s -> %s", self.url, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    @property
    def from_cache(self) -> bool:
        return ExtractionState.CACHE_HIT in self.history


class ExtractionService:
    """Orchestrates cache lookup, fetching, parsing and normalization."""

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        *,
        cache: Optional[ResultCache] = None,
        fetcher: Optional[Fetcher] = None,
        strategies: Sequence[Strategy] = DEFAULT_CHAIN,
    ) -> None:
        """Initialize extraction service.

        Parameters
        ----------
        config : ExtractorConfig, optional
            Configuration (read from the environment if not provided)
        cache : ResultCache, optional
            Result cache (backend chosen by configuration if not provided)
        fetcher : Fetcher, optional
            Page fetcher
        strategies : sequence of Strategy
            Parser chain in priority order
        """
        self.config = config or ExtractorConfig.from_env()
        self.cache = cache if cache is not None else build_cache(self.config)
        self.fetcher = fetcher or Fetcher(self.config)
        self.strategies = tuple(strategies)

    def extract(self, url: str) -> ExtractionResult:
        """Extract card data for ``url``.

        Raises
        ------
        InvalidInputError
            If ``url`` is missing or not an http(s) URL
        FetchError
            If every fetch attempt failed at the transport level
        """
        return self.run(url).result

    def run(self, url: str) -> ExtractionRun:
        """Execute one extraction and return its full run record."""
        key = canonical_url(url)
        run = ExtractionRun(url=key, cache_key=key)

        run.advance(ExtractionState.CACHE_CHECK)
        cached = self._cache_get(key)
        if cached is not None:
            LOGGER.info("Cache hit for %s", key)
            run.advance(ExtractionState.CACHE_HIT)
            run.final_url = cached.url
            run.result = cached
            run.advance(ExtractionState.DONE)
            return run

        run.advance(ExtractionState.FETCHING)
        try:
            page = self.fetcher.fetch(key)
        except FetchError as exc:
            run.error = str(exc)
            run.advance(ExtractionState.FAILED)
            LOGGER.error("Extraction failed for %s: %s", key, exc)
            raise
        run.final_url = page.final_url
        run.attempts = page.attempt
        run.blocked = page.blocked

        run.advance(ExtractionState.PARSING)
        merged = run_chain(page.html, page.final_url, self.strategies)

        run.advance(ExtractionState.NORMALIZING)
        result = normalize(merged, page.final_url)
        ttl = self.config.cache_ttl
        if page.blocked:
            ttl = min(ttl, self.config.blocked_cache_ttl)
            LOGGER.warning(
                "Returning degraded result for %s (page looked blocked), caching for %ds", key, ttl
            )

        run.advance(ExtractionState.CACHE_WRITE)
        self._cache_put(key, result, ttl)
        if result.url != key:
            self._cache_put(result.url, result, ttl)

        run.result = result
        run.advance(ExtractionState.DONE)
        return run

    def _cache_get(self, key: str) -> Optional[ExtractionResult]:
        try:
            return self.cache.get(key)
        except Exception as exc:  # a broken cache degrades to a miss
            LOGGER.warning("Cache lookup failed for %s: %s", key, exc)
            return None

    def _cache_put(self, key: str, result: ExtractionResult, ttl: float) -> None:
        try:
            self.cache.put(key, result, ttl)
        except Exception as exc:
            LOGGER.warning("Cache write failed for %s: %s", key, exc)

