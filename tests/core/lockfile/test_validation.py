"""Tests for lockfile validation, diffing and manifest drift."""

from __future__ import annotations

import os
from pathlib import Path

from deplock.core.lockfile import is_stale


class TestValidate:
    """Tests for ``Lockfile.validate``."""

    def test_valid(self, make_entry, make_lockfile) -> None:
        lf = make_lockfile(make_entry("http", dependencies=["tls"]), make_entry("tls"))
        assert lf.validate() == []

    def test_dangling_dependency(self, make_entry, make_lockfile) -> None:
        errors = make_lockfile(make_entry("http", dependencies=["tls"])).validate()
        assert len(errors) == 1
        assert "'tls' which is not in the lockfile" in errors[0]

    def test_cycle(self, make_entry, make_lockfile) -> None:
        lf = make_lockfile(make_entry("a", dependencies=["b"]), make_entry("b", dependencies=["a"]))
        errors = lf.validate()
        assert errors == ["Circular dependency detected: a -> b -> a"]

    def test_bad_hash_and_empty_version(self, make_entry, make_lockfile) -> None:
        entry = make_entry("http", version="")
        entry.hash = "ABC"
        errors = make_lockfile(entry).validate()
        assert len(errors) == 2
        assert any("invalid hash" in e for e in errors)
        assert any("empty version" in e for e in errors)


class TestDiff:
    """Tests for ``Lockfile.diff``."""

    def test_added_removed_changed(self, make_entry, make_lockfile) -> None:
        old = make_lockfile(make_entry("a"), make_entry("b", version="1.0.0"))
        new = make_lockfile(make_entry("b", version="1.1.0"), make_entry("c"))
        diff = old.diff(new)
        assert diff["added"] == ["c"]
        assert diff["removed"] == ["a"]
        assert diff["changed"] == [
            {"name": "b", "field": "version", "old": "1.0.0", "new": "1.1.0"}
        ]

    def test_identical(self, make_entry, make_lockfile) -> None:
        lf = make_lockfile(make_entry("a"))
        assert lf.diff(lf) == {"added": [], "removed": [], "changed": []}


class TestIsStale:
    """Tests for the manifest/lockfile drift check."""

    def test_missing_lockfile_is_stale(self, tmp_path: Path) -> None:
        manifest = tmp_path / "deplock.yaml"
        manifest.write_text("dependencies: {}\n")
        assert is_stale(manifest, tmp_path / "deplock.lock")

    def test_missing_manifest_never_stale(self, tmp_path: Path) -> None:
        assert not is_stale(tmp_path / "deplock.yaml", tmp_path / "deplock.lock")

    def test_mtime_comparison(self, tmp_path: Path) -> None:
        manifest = tmp_path / "deplock.yaml"
        lockfile = tmp_path / "deplock.lock"
        manifest.write_text("dependencies: {}\n")
        lockfile.write_text("{}\n")
        os.utime(manifest, (1000, 1000))
        os.utime(lockfile, (2000, 2000))
        assert not is_stale(manifest, lockfile)
        os.utime(manifest, (3000, 3000))
        assert is_stale(manifest, lockfile)
