"""Lockfile operations: deserialization, validation, diffing and drift.

These functions are attached to the ``Lockfile`` class at import time (in
``__init__.py``) to keep each source file focused while presenting a single
unified API to callers.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from deplock.core.dependency.graph import DependencyGraph, DependencyNode
from deplock.core.lockfile.models import LockfileEntry, Provenance, _HASH_RE
from deplock.exceptions import LockfileError


def _from_dict(cls: type, data: Any) -> Any:
    """Deserialize a lockfile from a dict (parsed JSON).

    Fields missing from an entry take their defaults; ``name`` is
    mandatory.

    Raises:
        LockfileError: If the document shape is wrong or a name repeats.
    """
    if not isinstance(data, dict):
        raise LockfileError("Lockfile document must be a JSON object")
    raw_entries = data.get("dependencies", [])
    if not isinstance(raw_entries, list):
        raise LockfileError("Lockfile 'dependencies' must be a list")

    lf = cls()
    for raw in raw_entries:
        if not isinstance(raw, dict) or not raw.get("name"):
            raise LockfileError(f"Lockfile entry without a name: {raw!r}")
        name = raw["name"]
        if name in lf:
            raise LockfileError(f"Duplicate lockfile entry: {name!r}")

        provenance = None
        if isinstance(raw.get("provenance"), dict):
            prov = raw["provenance"]
            provenance = Provenance(
                origin=prov.get("origin"),
                digest=prov.get("digest"),
                fetched_at=prov.get("fetched_at"),
                size_bytes=prov.get("size_bytes"),
            )

        lf.add_entry(LockfileEntry(
            name=name,
            version=raw.get("version", ""),
            hash=raw.get("hash", ""),
            source=raw.get("source", ""),
            dependencies=list(raw.get("dependencies", [])),
            provenance=provenance,
        ))
    return lf


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        json.JSONDecodeError: If the string is not valid JSON.
        LockfileError: If the document shape is wrong.
    """
    return cls.from_dict(json.loads(json_str))


def _load(cls: type, path: Path) -> Any:
    """Read a lockfile from disk; a missing file yields an empty lockfile.

    Any other I/O or parse failure propagates.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return cls()
    return cls.from_json(text)


def _to_graph(self: Any) -> DependencyGraph:
    """Build the name-keyed dependency graph recorded in the lockfile."""
    graph = DependencyGraph()
    for entry in self.entries:
        graph.add_to_graph(DependencyNode(entry.name, entry.version, list(entry.dependencies)))
    return graph


def _validate(self: Any) -> list[str]:
    """Check the lockfile for internal consistency.

    1. Every dependency name must itself have an entry.
    2. The dependency graph must be acyclic.
    3. Every hash must be a 64-character lowercase hex digest.
    4. Every entry must have a non-empty version.

    Returns:
        Validation error messages. Empty means the lockfile is valid.
    """
    errors: list[str] = []

    for entry in self.entries:
        for dep in entry.dependencies:
            if dep not in self:
                errors.append(
                    f"Package {entry.name!r} depends on {dep!r} which is "
                    f"not in the lockfile"
                )

    cycle = self.to_graph().detect_circular_dependencies()
    if cycle is not None:
        errors.append(f"Circular dependency detected: {cycle}")

    for entry in self.entries:
        if not _HASH_RE.match(entry.hash):
            errors.append(f"Package {entry.name!r} has invalid hash: {entry.hash!r}")
        if not entry.version:
            errors.append(f"Package {entry.name!r} has empty version string")

    return errors


def _diff(self: Any, other: Any) -> dict[str, Any]:
    """Compare two lockfiles.

    - **added**: names present in ``other`` but not in ``self``.
    - **removed**: names present in ``self`` but not in ``other``.
    - **changed**: per-field changes to version, hash, source or
      dependencies for names present in both.
    """
    self_names = set(self.names)
    other_names = set(other.names)

    changes: list[dict[str, Any]] = []
    for name in sorted(self_names & other_names):
        old = self.get(name)
        new = other.get(name)
        for attr in ("version", "hash", "source", "dependencies"):
            before = getattr(old, attr)
            after = getattr(new, attr)
            if before != after:
                changes.append({"name": name, "field": attr, "old": before, "new": after})

    return {
        "added": sorted(other_names - self_names),
        "removed": sorted(self_names - other_names),
        "changed": changes,
    }


def is_stale(manifest_path: Path, lockfile_path: Path) -> bool:
    """True if the manifest was modified after the lockfile was written.

    A missing lockfile next to an existing manifest is stale; a missing
    manifest never is. Read-only: nothing is touched on disk.
    """
    try:
        manifest_mtime = Path(manifest_path).stat().st_mtime
    except FileNotFoundError:
        return False
    try:
        lock_mtime = Path(lockfile_path).stat().st_mtime
    except FileNotFoundError:
        return True
    return manifest_mtime > lock_mtime
