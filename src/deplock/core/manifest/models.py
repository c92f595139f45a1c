"""Dependency declarations as yielded by the manifest reader.

A dependency is a ``(name, source, constraint?)`` tuple. The source is one
of five closed variants; ``format_source`` renders the canonical string
stored in lockfile entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from deplock.core.dependency.constraints import VersionConstraint
from deplock.exceptions import ManifestError

HOSTED_PREFIX = "gh/"
DEFAULT_HOSTED_REF = "main"


@dataclass(frozen=True)
class GitSource:
    url: str
    ref: str = "HEAD"


@dataclass(frozen=True)
class ArchiveSource:
    """A downloadable tar or zip archive.

    Attributes:
        url: Download location.
        hash: Optional SHA-256 of the archive bytes, verified on download.
    """

    url: str
    hash: str | None = None


@dataclass(frozen=True)
class LocalSource:
    path: str


@dataclass(frozen=True)
class RegistrySource:
    name: str
    version: str


@dataclass(frozen=True)
class HostedSource:
    """A repository on the hosting service, written ``gh/OWNER/REPO[@REF]``."""

    owner: str
    repo: str
    ref: str | None = None


Source = GitSource | ArchiveSource | LocalSource | RegistrySource | HostedSource


@dataclass(frozen=True)
class Dependency:
    """One declared dependency.

    Attributes:
        name: Package name, unique within a manifest.
        source: Where the artifact comes from.
        constraint: Optional version constraint. Dependencies without one
            are pinned by their source (git ref, archive URL, path).
    """

    name: str
    source: Source
    constraint: VersionConstraint | None = field(default=None)


@dataclass(frozen=True)
class Manifest:
    name: str
    dependencies: tuple[Dependency, ...] = ()


def format_source(source: Source) -> str:
    """Render the canonical source string for lockfile entries.

    Examples::

        git+https://example.com/http.git#v2.1.0
        archive+https://example.com/tls-0.4.2.tar.gz
        path:../vendor/log
        registry:http@2.1.0
        gh/acme/http@main
    """
    if isinstance(source, GitSource):
        return f"git+{source.url}#{source.ref}"
    if isinstance(source, ArchiveSource):
        return f"archive+{source.url}"
    if isinstance(source, LocalSource):
        return f"path:{source.path}"
    if isinstance(source, RegistrySource):
        return f"registry:{source.name}@{source.version}"
    if isinstance(source, HostedSource):
        return f"{HOSTED_PREFIX}{source.owner}/{source.repo}@{source.ref or DEFAULT_HOSTED_REF}"
    raise TypeError(f"Unknown source type: {type(source).__name__}")


def parse_hosted_shorthand(text: str) -> HostedSource:
    """Parse ``gh/OWNER/REPO`` or ``gh/OWNER/REPO@REF``.

    Raises:
        ManifestError: If the prefix is missing, owner or repo is empty, or
            the path has extra segments.
    """
    text = text.strip()
    if not text.startswith(HOSTED_PREFIX):
        raise ManifestError(f"Hosted shorthand must start with {HOSTED_PREFIX!r}: {text!r}")
    repo_part, sep, ref = text[len(HOSTED_PREFIX):].partition("@")
    parts = repo_part.split("/")
    if len(parts) != 2 or not all(parts):
        raise ManifestError(f"Hosted shorthand must be gh/OWNER/REPO[@REF]: {text!r}")
    if sep and not ref:
        raise ManifestError(f"Empty ref in hosted shorthand: {text!r}")
    return HostedSource(owner=parts[0], repo=parts[1], ref=ref or None)
