"""Fetcher for git repositories.

Transport goes through an injected ``subprocess.run``-compatible runner so
tests never touch the network. The clone's ``.git`` directory is removed
after the commit id is read: the artifact is the working tree only.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

from deplock.core.manifest.models import Dependency, GitSource
from deplock.exceptions import FetchError
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.hashing import directory_size, hash_directory

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class GitFetcher(Fetcher):
    """Clones a repository and checks out the requested ref.

    Args:
        runner: ``subprocess.run``-compatible callable.
    """

    def __init__(self, runner: Runner = subprocess.run) -> None:
        self._runner = runner

    def fetch(self, dep: Dependency, workdir: Path) -> FetchResult:
        if not isinstance(dep.source, GitSource):
            raise FetchError(f"GitFetcher cannot fetch {dep.source!r}", dep.name)
        return self.fetch_git(dep.name, dep.source.url, dep.source.ref, workdir)

    def fetch_git(self, name: str, url: str, ref: str, workdir: Path) -> FetchResult:
        """Clone *url* at *ref* into ``workdir/checkout``."""
        workdir.mkdir(parents=True, exist_ok=True)
        checkout = workdir / "checkout"

        self._git(name, ["git", "clone", "--quiet", url, str(checkout)])
        self._git(name, ["git", "-C", str(checkout), "checkout", "--quiet", ref])
        commit = self._git(name, ["git", "-C", str(checkout), "rev-parse", "HEAD"]).strip()
        shutil.rmtree(checkout / ".git", ignore_errors=True)

        digest = hash_directory(checkout)
        logger.debug("Fetched %s from %s@%s (%s): %s", name, url, ref, commit[:12], digest[:12])
        return FetchResult(
            path=checkout,
            hash=digest,
            origin=url,
            size_bytes=directory_size(checkout),
            commit=commit,
        )

    def _git(self, name: str, argv: list[str]) -> str:
        try:
            result = self._runner(argv, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise FetchError("git executable not found", name) from exc
        if result.returncode != 0:
            raise FetchError(
                f"{' '.join(argv[:4])} failed: {result.stderr.strip()}",
                name,
            )
        return result.stdout
