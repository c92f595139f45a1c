"""Shared CLI plumbing: settings resolution and version-source selection."""

from __future__ import annotations

from pathlib import Path

import click

from deplock.config import Settings
from deplock.core.dependency import GitTagVersionSource, StaticVersionSource, VersionSource


def get_settings(ctx: click.Context, **overrides: object) -> Settings:
    """Settings from the group context with per-command overrides applied."""
    settings: Settings = ctx.find_object(Settings) or Settings.from_env()
    return settings.with_overrides(**overrides)


def version_source_for(versions_file: str | None) -> VersionSource:
    """A static source from *versions_file* if given, else git tags."""
    if versions_file:
        return StaticVersionSource.from_yaml(Path(versions_file))
    return GitTagVersionSource({})
