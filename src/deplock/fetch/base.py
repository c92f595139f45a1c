"""Abstract base class for dependency fetchers.

All fetchers implement the ``Fetcher`` ABC so the session can dispatch on
source kind without knowing transport details.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from deplock.core.manifest.models import Dependency


@dataclass(frozen=True)
class FetchResult:
    """What a fetcher hands back to the core.

    Attributes:
        path: Directory holding the fetched artifact tree.
        hash: Canonical content hash of that tree (the cache key).
        origin: URL or path the artifact was obtained from.
        size_bytes: Total size of the artifact tree.
        commit: Commit id for git-backed sources.
    """

    path: Path
    hash: str
    origin: str
    size_bytes: int
    commit: str | None = None


class Fetcher(ABC):
    """Retrieves one dependency into a working directory."""

    @abstractmethod
    def fetch(self, dep: Dependency, workdir: Path) -> FetchResult:
        """Fetch *dep* below *workdir*.

        *workdir* is private to this call; the fetcher may create anything
        inside it.

        Raises:
            FetchError: If the artifact cannot be retrieved.
        """
