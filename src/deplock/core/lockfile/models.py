"""Lockfile data models: LockfileEntry and Provenance.

Pure data holders with no business logic, safe to import from anywhere
without circular-dependency concerns.

.. [SLSA] Google (2023). "Supply chain Levels for Software Artifacts."
   Provenance fields follow the origin/digest/timestamp shape of SLSA.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Content hash format: 64 lowercase hex characters (SHA-256).
_HASH_RE = re.compile(r"^[0-9a-f]{64}$")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Provenance:
    """Where and when an artifact was obtained, for supply-chain audit.

    Attributes:
        origin: Source URL or identifier the artifact was fetched from.
        digest: Content digest of the fetched artifact.
        fetched_at: ISO-8601 UTC timestamp of the fetch.
        size_bytes: Artifact size in bytes.
    """

    origin: str | None = None
    digest: str | None = None
    fetched_at: str | None = None
    size_bytes: int | None = None

    @classmethod
    def now(
        cls,
        origin: str,
        digest: str,
        size_bytes: int | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> Provenance:
        """Stamp a provenance record with the current UTC time."""
        return cls(
            origin=origin,
            digest=digest,
            fetched_at=clock().isoformat(timespec="seconds"),
            size_bytes=size_bytes,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.origin is not None:
            data["origin"] = self.origin
        if self.digest is not None:
            data["digest"] = self.digest
        if self.fetched_at is not None:
            data["fetched_at"] = self.fetched_at
        if self.size_bytes is not None:
            data["size_bytes"] = self.size_bytes
        return data


@dataclass
class LockfileEntry:
    """The fully resolved state of one dependency.

    Attributes:
        name: Package name, unique within a lockfile.
        version: Resolved version (or commit id for unversioned git sources).
        hash: Content digest of the cached artifact, the cache key.
        source: Formatted source string, e.g. ``git+URL#REF``.
        dependencies: Names of the packages this one depends on.
        provenance: Optional fetch provenance.
    """

    name: str
    version: str
    hash: str
    source: str
    dependencies: list[str] = field(default_factory=list)
    provenance: Provenance | None = None
