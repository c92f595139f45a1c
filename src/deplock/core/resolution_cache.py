"""Incremental resolution cache.

Remembers which version a given set of constraints resolved to, so repeated
runs can skip querying the version source. Entries are keyed by a
dependency requirement string and expire after a maximum age.

The cache is a JSON document on disk::

    {"version": "1", "entries": {"<spec>": {"resolved": "1.2.3",
                                            "timestamp": 1700000000.0,
                                            "hash": null}}}

A missing cache file is an empty cache. Any other read or parse failure
propagates.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = "1"


@dataclass(frozen=True)
class CachedResolution:
    resolved_version: str
    timestamp: float
    hash: str | None = None


@dataclass(frozen=True)
class ResolutionCacheStats:
    total_entries: int
    oldest_timestamp: float
    newest_timestamp: float


class ResolutionCache:
    """Spec-string to resolved-version cache with time-based expiry.

    Args:
        path: JSON file backing the cache.
        max_age: Seconds after which an entry is no longer valid.
        clock: Returns the current time in seconds; injectable for tests.
    """

    def __init__(
        self,
        path: Path,
        max_age: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = path
        self._max_age = max_age
        self._clock = clock
        self._entries: dict[str, CachedResolution] = {}
        self.dirty = False
        self._load()

    @staticmethod
    def spec_key(name: str, constraints: list[str]) -> str:
        """Build a cache key from a package name and its constraint texts."""
        return f"{name}|{'|'.join(sorted(constraints))}"

    def get(self, spec: str) -> CachedResolution | None:
        return self._entries.get(spec)

    def put(self, spec: str, resolved_version: str, hash: str | None = None) -> None:
        self._entries[spec] = CachedResolution(
            resolved_version=resolved_version,
            timestamp=self._clock(),
            hash=hash,
        )
        self.dirty = True

    def is_valid(self, spec: str) -> bool:
        """True if *spec* has an entry younger than the maximum age."""
        entry = self._entries.get(spec)
        if entry is None:
            return False
        return self._clock() - entry.timestamp < self._max_age

    def invalidate(self, spec: str) -> None:
        if self._entries.pop(spec, None) is not None:
            self.dirty = True

    def invalidate_all(self) -> None:
        self._entries.clear()
        self.dirty = True

    def clean_old(self) -> int:
        """Drop entries older than the maximum age; return how many were dropped."""
        now = self._clock()
        stale = [k for k, e in self._entries.items() if now - e.timestamp > self._max_age]
        for key in stale:
            self.invalidate(key)
        return len(stale)

    def stats(self) -> ResolutionCacheStats:
        stamps = [e.timestamp for e in self._entries.values()]
        return ResolutionCacheStats(
            total_entries=len(stamps),
            oldest_timestamp=min(stamps) if stamps else 0.0,
            newest_timestamp=max(stamps) if stamps else 0.0,
        )

    def __len__(self) -> int:
        return len(self._entries)

    # -- Persistence --------------------------------------------------------

    def _load(self) -> None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        data: dict[str, Any] = json.loads(text)
        for spec, raw in data.get("entries", {}).items():
            self._entries[spec] = CachedResolution(
                resolved_version=raw["resolved"],
                timestamp=float(raw["timestamp"]),
                hash=raw.get("hash"),
            )
        logger.debug("Loaded %d resolution cache entries", len(self._entries))

    def save(self) -> None:
        """Write the cache atomically if anything changed since loading."""
        if not self.dirty:
            return
        document = {
            "version": CACHE_FORMAT_VERSION,
            "entries": {
                spec: {
                    "resolved": e.resolved_version,
                    "timestamp": e.timestamp,
                    "hash": e.hash,
                }
                for spec, e in sorted(self._entries.items())
            },
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".resolution-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        self.dirty = False
        logger.debug("Saved resolution cache (%d entries)", len(self._entries))
