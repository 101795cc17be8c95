"""TTL cache for extraction results keyed by canonical URL."""
from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Dict, Optional, Protocol

from pydantic import ValidationError

from .config import ExtractorConfig
from .models import CacheEntry, ExtractionResult

LOGGER = logging.getLogger(__name__)

PURGE_EVERY = 256


class ResultCache(Protocol):
    """Storage contract used by the orchestrator."""

    def get(self, key: str) -> Optional[ExtractionResult]:
        ...

    def put(self, key: str, value: ExtractionResult, ttl: float) -> None:
        ...


class MemoryCache:
    """Process-local cache; atomic per key, last write wins.

    Expired entries are dropped lazily on read and swept every
    ``purge_every`` writes.
    """

    def __init__(self, purge_every: int = PURGE_EVERY) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._purge_every = max(1, purge_every)
        self._writes = 0

    def get(self, key: str) -> Optional[ExtractionResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: ExtractionResult, ttl: float) -> None:
        entry = CacheEntry(key=key, value=value, expires_at=time.time() + ttl)
        with self._lock:
            self._entries[key] = entry
            self._writes += 1
            due = self._writes % self._purge_every == 0
        if due:
            removed = self.purge_expired()
            if removed:
                LOGGER.debug("Purged %d expired cache entries", removed)

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = time.time()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileCache:
    """Cache persisted as one JSON document per key.

    Survives process restarts, which the in-memory backend does not. Files
    are replaced atomically so concurrent writers for one key simply
    overwrite each other.
    """

    def __init__(self, cache_dir: Path | str, purge_every: int = PURGE_EVERY) -> None:
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._purge_every = max(1, purge_every)
        self._writes = 0
        self._lock = threading.Lock()

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}.json"

    def get(self, key: str) -> Optional[ExtractionResult]:
        path = self._path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            LOGGER.warning("Cache read failed for %s: %s", key, exc)
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as exc:
            LOGGER.warning("Discarding corrupt cache file %s: %s", path.name, exc)
            path.unlink(missing_ok=True)
            return None

        if entry.key != key:
            return None
        if entry.is_expired():
            path.unlink(missing_ok=True)
            return None
        return entry.value

    def put(self, key: str, value: ExtractionResult, ttl: float) -> None:
        entry = CacheEntry(key=key, value=value, expires_at=time.time() + ttl)
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entry.model_dump(mode="json"), handle, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        with self._lock:
            self._writes += 1
            due = self._writes % self._purge_every == 0
        if due:
            removed = self.purge_expired()
            if removed:
                LOGGER.debug("Purged %d expired cache files", removed)

    def purge_expired(self) -> int:
        """Remove expired or unreadable cache files."""
        removed = 0
        now = time.time()
        for path in self.cache_dir.glob("*.json"):
            try:
                entry = CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
                expired = entry.is_expired(now)
            except (OSError, ValidationError):
                expired = True
            if expired:
                path.unlink(missing_ok=True)
                removed += 1
        return removed


def build_cache(config: ExtractorConfig) -> ResultCache:
    """Create the cache backend selected in configuration."""
    if config.cache_backend == "file":
        LOGGER.info("Using file cache at %s", config.cache_dir)
        return FileCache(config.cache_dir)
    if config.cache_backend != "memory":
        LOGGER.warning("Unknown cache backend %r, falling back to memory", config.cache_backend)
    return MemoryCache()
