"""Cache tiers sharing one contract: lookup, put, patch.

- MemoryCacheTier: process-local dict, scoped to one client session.
- JsonFileTier: one JSON file per key with atomic tempfile -> rename writes.
  DiskCacheTier (durable client tier) and ResearchStore (authoritative tier)
  both build on it.
"""

import hashlib
import logging
import re
import shutil
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from betscope.cache.models import CacheEntry, utc_now

logger = logging.getLogger(__name__)

Mutator = Callable[[CacheEntry], CacheEntry]
Clock = Callable[[], datetime]

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class CacheTier(Protocol):
    def lookup(self, key: str) -> CacheEntry | None:
        """Return a fresh entry for key, or None on miss/expiry."""
        ...

    def put(self, key: str, entry: CacheEntry) -> None:
        """Upsert: overwrite whatever row exists for key."""
        ...

    def patch(self, key: str, mutator: Mutator) -> CacheEntry | None:
        """Apply mutator to the current row (fresh or not); None if no row exists."""
        ...


class MemoryCacheTier:
    """Process-local tier. Stores copies so callers cannot mutate cached state."""

    def __init__(self, clock: Clock = utc_now):
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def read_raw(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        return entry.model_copy(deep=True) if entry else None

    def lookup(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry.model_copy(deep=True)

    def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry.model_copy(deep=True)

    def patch(self, key: str, mutator: Mutator) -> CacheEntry | None:
        current = self.read_raw(key)
        if current is None:
            return None
        updated = mutator(current)
        self.put(key, updated)
        return updated

    def clear(self) -> None:
        self._entries.clear()


class JsonFileTier:
    """Directory of JSON rows, one file per key."""

    def __init__(self, directory: Path, clock: Clock = utc_now):
        self.directory = directory
        self._clock = clock

    def _path_for(self, key: str) -> Path:
        safe = _UNSAFE_KEY_CHARS.sub("_", key)
        if safe != key:
            # Disambiguate keys that sanitize to the same filename
            safe = f"{safe}-{hashlib.sha1(key.encode('utf-8')).hexdigest()[:8]}"
        return self.directory / f"{safe}.json"

    def read_raw(self, key: str) -> CacheEntry | None:
        """Return the stored row regardless of freshness."""
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Unreadable cache row {path}: {e}")
            return None

    def lookup(self, key: str) -> CacheEntry | None:
        entry = self.read_raw(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            logger.debug(f"Cache row for {key} expired at {entry.expires_at.isoformat()}")
            return None
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)

        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=path.parent,
                delete=False,
                suffix=".json",
                encoding="utf-8",
            ) as temp_file:
                temp_file.write(entry.model_dump_json(indent=2))
                temp_path = Path(temp_file.name)

            # Atomic rename (overwrites destination)
            shutil.move(str(temp_path), str(path))
            logger.debug(f"Saved cache row to {path}")

        except Exception as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            logger.error(f"Failed to save cache row for {key}: {e}")
            raise

    def patch(self, key: str, mutator: Mutator) -> CacheEntry | None:
        # Read-modify-write with no version check: concurrent writers race
        # and the last write wins.
        current = self.read_raw(key)
        if current is None:
            return None
        updated = mutator(current)
        self.put(key, updated)
        return updated


class DiskCacheTier(JsonFileTier):
    """Durable client tier: survives a client restart."""

    pass
