"""Manifest boundary: dependency declarations and their source variants."""

from deplock.core.manifest.models import (
    ArchiveSource,
    Dependency,
    GitSource,
    HostedSource,
    LocalSource,
    Manifest,
    RegistrySource,
    Source,
    format_source,
    parse_hosted_shorthand,
)
from deplock.core.manifest.reader import (
    MANIFEST_NAME,
    load_manifest,
    parse_manifest,
    read_manifest,
)

__all__ = [
    "ArchiveSource",
    "Dependency",
    "GitSource",
    "HostedSource",
    "LocalSource",
    "MANIFEST_NAME",
    "Manifest",
    "RegistrySource",
    "Source",
    "format_source",
    "load_manifest",
    "parse_hosted_shorthand",
    "parse_manifest",
    "read_manifest",
]
