"""Shared fixtures for lockfile tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from deplock.core.lockfile import Lockfile, LockfileEntry, Provenance


def _entry(
    name: str = "http",
    version: str = "1.0.0",
    content: str = "artifact content",
    source: str = "git+https://example.com/http.git#v1.0.0",
    dependencies: list[str] | None = None,
    provenance: Provenance | None = None,
) -> LockfileEntry:
    return LockfileEntry(
        name=name,
        version=version,
        hash=Lockfile.compute_hash(content + name),
        source=source,
        dependencies=dependencies or [],
        provenance=provenance,
    )


@pytest.fixture
def make_entry() -> Callable[..., LockfileEntry]:
    """Factory for LockfileEntry instances with a computed hash."""
    return _entry


@pytest.fixture
def make_lockfile() -> Callable[..., Lockfile]:
    """Factory building a Lockfile pre-populated with the given entries."""

    def _make(*entries: LockfileEntry) -> Lockfile:
        lf = Lockfile()
        for entry in entries:
            lf.add_entry(entry)
        return lf

    return _make
