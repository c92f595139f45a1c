"""Lockfile core class: entry management, hashing and serialization.

The ``Lockfile`` maps package names to ``LockfileEntry`` records. It is
loaded once per session, mutated in memory, and saved atomically at the
end of the session.

Determinism guarantee: ``to_json()`` sorts entries by name and all
dictionary keys, and carries no timestamp of its own, so two lockfiles with
the same content produce byte-identical output and diffs across runs stay
meaningful.

On-disk format::

    {
      "dependencies": [
        {"dependencies": ["tls"], "hash": "<sha256>", "name": "http",
         "provenance": {...}, "source": "git+https://...#v2.1.0",
         "version": "2.1.0"}
      ],
      "generated_by": "deplock",
      "lockfile_version": "1"
    }

References
----------
.. [npm-lock] npm documentation. "package-lock.json." File format
   guaranteeing deterministic installs across environments.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from deplock.core.lockfile.models import LockfileEntry

logger = logging.getLogger(__name__)


class Lockfile:
    """Persisted record of the resolution, for reproducible builds.

    Thread safety: single writer. Serialize all mutation on one instance.

    Example::

        lf = Lockfile.load(Path("deplock.lock"))
        lf.add_entry(LockfileEntry(
            name="http",
            version="2.1.0",
            hash=Lockfile.compute_hash(b"..."),
            source="git+https://example.com/http.git#v2.1.0",
        ))
        lf.save(Path("deplock.lock"))
    """

    LOCKFILE_VERSION: str = "1"
    HASH_ALGORITHM: str = "sha256"

    def __init__(self) -> None:
        self._entries: dict[str, LockfileEntry] = {}

    # -- Entry management ---------------------------------------------------

    def add_entry(self, entry: LockfileEntry) -> None:
        """Add an entry, replacing any existing entry with the same name."""
        self._entries[entry.name] = entry

    def get(self, name: str) -> LockfileEntry | None:
        return self._entries.get(name)

    def remove(self, name: str) -> bool:
        """Remove the entry for *name*; return False if there was none."""
        return self._entries.pop(name, None) is not None

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        """Sorted list of package names."""
        return sorted(self._entries)

    @property
    def entries(self) -> list[LockfileEntry]:
        """Entries sorted by name."""
        return [self._entries[name] for name in self.names]

    def hashes(self) -> set[str]:
        """The live digest set, used as the keep set for cache cleaning."""
        return {e.hash for e in self._entries.values() if e.hash}

    # -- Hashing ------------------------------------------------------------

    @staticmethod
    def compute_hash(content: str | bytes) -> str:
        """Lowercase hex SHA-256 of *content*."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        return hashlib.sha256(content).hexdigest()

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict; entries are sorted by name."""
        deps: list[dict[str, Any]] = []
        for entry in self.entries:
            item: dict[str, Any] = {
                "name": entry.name,
                "version": entry.version,
                "hash": entry.hash,
                "source": entry.source,
            }
            if entry.dependencies:
                item["dependencies"] = list(entry.dependencies)
            if entry.provenance is not None:
                item["provenance"] = entry.provenance.to_dict()
            deps.append(item)

        return {
            "lockfile_version": self.LOCKFILE_VERSION,
            "generated_by": "deplock",
            "dependencies": deps,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True) + "\n"

    def save(self, path: Path) -> None:
        """Write the lockfile atomically.

        The document is written to a temporary file in the target directory
        and renamed over *path*, so readers never observe a partial file.
        Parent directories are created if needed.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(self.to_json())
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info("Lockfile saved to %s (%d entries)", path, len(self))
