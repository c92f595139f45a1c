"""Dispatch fetches to the fetcher registered for each source kind."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

import httpx

from deplock.core.manifest.models import (
    ArchiveSource,
    Dependency,
    GitSource,
    HostedSource,
    LocalSource,
    RegistrySource,
)
from deplock.exceptions import FetchError
from deplock.fetch.archive import ArchiveFetcher
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.git import GitFetcher, Runner
from deplock.fetch.hosted import HostedFetcher
from deplock.fetch.local import LocalFetcher

logger = logging.getLogger(__name__)


class FetcherRouter(Fetcher):
    """A ``Fetcher`` that picks a concrete fetcher by source type.

    Registry sources have no fetcher: no registry protocol exists, so they
    fail with ``FetchError``.
    """

    def __init__(self, fetchers: dict[type, Fetcher]) -> None:
        self._fetchers = dict(fetchers)

    @classmethod
    def default(
        cls,
        base_dir: Path | None = None,
        client: httpx.Client | None = None,
        runner: Runner = subprocess.run,
    ) -> FetcherRouter:
        git = GitFetcher(runner=runner)
        return cls({
            GitSource: git,
            HostedSource: HostedFetcher(git),
            ArchiveSource: ArchiveFetcher(client),
            LocalSource: LocalFetcher(base_dir),
        })

    def fetch(self, dep: Dependency, workdir: Path) -> FetchResult:
        fetcher = self._fetchers.get(type(dep.source))
        if fetcher is None:
            if isinstance(dep.source, RegistrySource):
                raise FetchError(
                    f"Registry sources are not supported yet: {dep.name}", dep.name
                )
            raise FetchError(f"No fetcher for {type(dep.source).__name__}", dep.name)
        logger.debug("Fetching %s with %s", dep.name, type(fetcher).__name__)
        return fetcher.fetch(dep, workdir)
