"""Fetcher for dependencies that live on the local filesystem."""

from __future__ import annotations

import logging
from pathlib import Path

from deplock.core.manifest.models import Dependency, LocalSource
from deplock.exceptions import FetchError
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.hashing import directory_size, hash_directory

logger = logging.getLogger(__name__)


class LocalFetcher(Fetcher):
    """Hashes a local directory in place; nothing is copied.

    Args:
        base_dir: Directory that relative paths are resolved against,
            normally the manifest's directory.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def fetch(self, dep: Dependency, workdir: Path) -> FetchResult:
        if not isinstance(dep.source, LocalSource):
            raise FetchError(f"LocalFetcher cannot fetch {dep.source!r}", dep.name)

        path = Path(dep.source.path).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        if not path.is_dir():
            raise FetchError(f"Local dependency path not found: {path}", dep.name)

        digest = hash_directory(path)
        logger.debug("Hashed local dependency %s at %s: %s", dep.name, path, digest[:12])
        return FetchResult(
            path=path,
            hash=digest,
            origin=str(path),
            size_bytes=directory_size(path),
        )
