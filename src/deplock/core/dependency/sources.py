"""Version sources: where the resolver gets candidate versions from.

The resolver never invents versions; it asks a ``VersionSource`` for the
candidate set of each package name. Two sources are provided:

- ``StaticVersionSource``: an in-memory mapping, optionally loaded from a
  YAML file (``{name: [versions...]}``).
- ``GitTagVersionSource``: semver-shaped tags listed by ``git ls-remote``.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from deplock.core.dependency.semver import SemanticVersion
from deplock.exceptions import FetchError, VersionParseError

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class VersionSource(ABC):
    """Abstract provider of candidate versions for a package name."""

    @abstractmethod
    def available_versions(self, name: str) -> list[SemanticVersion]:
        """Return every known version of *name* (any order, may be empty)."""

    def ref_for(self, name: str, version: SemanticVersion) -> str | None:
        """The source ref (e.g. a git tag) that carries *version*, if known."""
        return None

    def declare(self, name: str, url: str) -> None:
        """Record where *name* lives. Sources that do not need it ignore it."""


class StaticVersionSource(VersionSource):
    """Candidate versions from an in-memory mapping.

    Example::

        source = StaticVersionSource({"http": ["1.0.0", "1.2.0", "2.0.0"]})
    """

    def __init__(
        self, versions: Mapping[str, Iterable[str | SemanticVersion]] | None = None
    ) -> None:
        self._versions: dict[str, list[SemanticVersion]] = {}
        for name, values in (versions or {}).items():
            for value in values:
                self.add(name, value)

    def add(self, name: str, version: str | SemanticVersion) -> None:
        if isinstance(version, str):
            version = SemanticVersion.parse(version)
        known = self._versions.setdefault(name, [])
        if version not in known:
            known.append(version)

    def available_versions(self, name: str) -> list[SemanticVersion]:
        return list(self._versions.get(name, []))

    @classmethod
    def from_yaml(cls, path: Path) -> StaticVersionSource:
        """Load a ``{name: [version, ...]}`` mapping from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            VersionParseError: If the document is not a mapping of lists or
                any version is malformed.
        """
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise VersionParseError(f"Version list {path} must be a mapping", str(path))
        versions: dict[str, list[str]] = {}
        for name, values in data.items():
            if not isinstance(values, list):
                raise VersionParseError(
                    f"Versions of {name!r} in {path} must be a list", str(path)
                )
            versions[str(name)] = [str(v) for v in values]
        return cls(versions)


class GitTagVersionSource(VersionSource):
    """Candidate versions read from the tags of a git remote.

    Tags named ``1.2.3`` or ``v1.2.3`` become candidates; other tags are
    ignored. Peeled refs (``^{}``) are folded into their tag.

    Args:
        urls: Mapping of package name to git remote URL.
        runner: ``subprocess.run``-compatible callable, injectable for tests.
    """

    def __init__(self, urls: Mapping[str, str], runner: Runner = subprocess.run) -> None:
        self._urls = dict(urls)
        self._runner = runner
        self._tags: dict[str, dict[SemanticVersion, str]] = {}

    def declare(self, name: str, url: str) -> None:
        self._urls.setdefault(name, url)

    def available_versions(self, name: str) -> list[SemanticVersion]:
        if name in self._tags:
            return list(self._tags[name])
        url = self._urls.get(name)
        if url is None:
            return []

        result = self._runner(
            ["git", "ls-remote", "--tags", url],
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise FetchError(
                f"git ls-remote failed for {url}: {result.stderr.strip()}",
                package_name=name,
            )

        tags = parse_tag_listing(result.stdout)
        logger.debug("Found %d version tags for %s", len(tags), name)
        self._tags[name] = tags
        return list(tags)

    def ref_for(self, name: str, version: SemanticVersion) -> str | None:
        if name not in self._tags:
            self.available_versions(name)
        return self._tags.get(name, {}).get(version)


def parse_tag_listing(listing: str) -> dict[SemanticVersion, str]:
    """Extract semantic versions from ``git ls-remote --tags`` output.

    Returns:
        Version to tag name, in listing order. When two tags denote the
        same version (``1.0.0`` and ``v1.0.0``) the first one wins.
    """
    found: dict[SemanticVersion, str] = {}
    for line in listing.splitlines():
        _, _, ref = line.partition("\t")
        if not ref.startswith("refs/tags/"):
            continue
        tag = ref[len("refs/tags/"):].removesuffix("^{}")
        try:
            version = SemanticVersion.parse(tag.removeprefix("v"))
        except VersionParseError:
            continue
        found.setdefault(version, tag)
    return found
