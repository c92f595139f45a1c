"""Fetcher for ``gh/OWNER/REPO[@REF]`` dependencies.

Hosted repositories are plain git remotes; this fetcher maps the shorthand
onto a clone URL and delegates to ``GitFetcher``.
"""

from __future__ import annotations

from pathlib import Path

from deplock.core.manifest.models import DEFAULT_HOSTED_REF, Dependency, HostedSource
from deplock.exceptions import FetchError
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.git import GitFetcher

DEFAULT_BASE_URL = "https://github.com"


def hosted_git_url(source: HostedSource, base_url: str = DEFAULT_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{source.owner}/{source.repo}.git"


class HostedFetcher(Fetcher):
    def __init__(self, git: GitFetcher | None = None, base_url: str = DEFAULT_BASE_URL) -> None:
        self._git = git or GitFetcher()
        self.base_url = base_url

    def fetch(self, dep: Dependency, workdir: Path) -> FetchResult:
        if not isinstance(dep.source, HostedSource):
            raise FetchError(f"HostedFetcher cannot fetch {dep.source!r}", dep.name)
        url = hosted_git_url(dep.source, self.base_url)
        return self._git.fetch_git(dep.name, url, dep.source.ref or DEFAULT_HOSTED_REF, workdir)
