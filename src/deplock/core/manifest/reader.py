"""Manifest reader: YAML declarations to ``Dependency`` tuples.

Manifest format::

    name: my-project
    dependencies:
      http:
        git: https://example.com/http.git
        ref: v2.1.0
        constraint: ^2.0.0
      tls:
        archive: https://example.com/tls-0.4.2.tar.gz
        hash: 3b1f...
      log:
        path: ../vendor/log
      json:
        version: 1.4.0
      cli: gh/acme/cli@v0.3.3

Exactly one source key (``git``, ``archive``, ``path``, ``version``, ``gh``)
is required per entry. A bare string value must be hosted shorthand.
Dependencies are returned in file order.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from deplock.core.dependency.constraints import VersionConstraint
from deplock.core.manifest.models import (
    ArchiveSource,
    Dependency,
    GitSource,
    LocalSource,
    Manifest,
    RegistrySource,
    Source,
    parse_hosted_shorthand,
)
from deplock.exceptions import ManifestError, VersionParseError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "deplock.yaml"

_SOURCE_KEYS = ("git", "archive", "path", "version", "gh")


def load_manifest(path: Path) -> Manifest:
    """Read a manifest file.

    The project name defaults to the manifest's directory name.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ManifestError: If the document shape is invalid.
        VersionParseError: If a constraint is malformed.
    """
    path = Path(path)
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ManifestError(f"Invalid YAML in {path}: {exc}", str(path)) from exc
    default_name = path.resolve().parent.name
    return parse_manifest(data, default_name=default_name, origin=str(path))


def read_manifest(path: Path) -> list[Dependency]:
    """Read only the dependency declarations of a manifest file."""
    return list(load_manifest(path).dependencies)


def parse_manifest(data: Any, default_name: str = "project", origin: str = "") -> Manifest:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a mapping", origin)

    raw_deps = data.get("dependencies") or {}
    if not isinstance(raw_deps, dict):
        raise ManifestError("'dependencies' must be a mapping of name to source", origin)

    deps = [_parse_entry(str(name), raw, origin) for name, raw in raw_deps.items()]
    logger.debug("Read %d dependencies from %s", len(deps), origin or "<manifest>")
    return Manifest(name=str(data.get("name") or default_name), dependencies=tuple(deps))


def _parse_entry(name: str, raw: Any, origin: str) -> Dependency:
    if isinstance(raw, str):
        return Dependency(name=name, source=parse_hosted_shorthand(raw))
    if not isinstance(raw, dict):
        raise ManifestError(f"Dependency {name!r} must be a mapping or gh/ shorthand", origin)

    present = [key for key in _SOURCE_KEYS if key in raw]
    if len(present) != 1:
        raise ManifestError(
            f"Dependency {name!r} needs exactly one of {', '.join(_SOURCE_KEYS)}; "
            f"found {present or 'none'}",
            origin,
        )

    constraint = None
    if raw.get("constraint") is not None:
        text = str(raw["constraint"])
        try:
            constraint = VersionConstraint.parse(text)
        except VersionParseError as exc:
            raise VersionParseError(f"Dependency {name!r} in {origin}: {exc}", text) from exc

    return Dependency(
        name=name, source=_parse_source(name, present[0], raw, origin), constraint=constraint
    )


def _parse_source(name: str, kind: str, raw: dict[str, Any], origin: str) -> Source:
    value = str(raw[kind])
    if kind == "git":
        return GitSource(url=value, ref=str(raw.get("ref", "HEAD")))
    if kind == "archive":
        digest = raw.get("hash")
        return ArchiveSource(url=value, hash=str(digest).lower() if digest else None)
    if kind == "path":
        return LocalSource(path=value)
    if kind == "version":
        try:
            VersionConstraint.parse(value)
        except VersionParseError as exc:
            raise VersionParseError(f"Dependency {name!r} in {origin}: {exc}", value) from exc
        return RegistrySource(name=name, version=value)
    hosted = parse_hosted_shorthand(value)
    if raw.get("ref") is not None:
        return replace(hosted, ref=str(raw["ref"]))
    return hosted
