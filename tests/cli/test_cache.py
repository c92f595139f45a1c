"""Tests for ``deplock cache clean`` and ``deplock cache verify``."""

from __future__ import annotations

import json

from deplock.core.cache import ContentStore
from deplock.core.lockfile import Lockfile


class TestCacheClean:
    def test_removes_unreferenced(self, invoke, locked, write_tree, tmp_path) -> None:
        store = ContentStore(locked.cache_dir)
        orphan = "ab" * 32
        store.store(orphan, write_tree(tmp_path / "orphan", {"x": "y"}))

        result = invoke("cache", "clean", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["removed"] == [orphan]
        assert sorted(data["kept"]) == sorted(Lockfile.load(locked.lockfile).hashes())
        assert not store.is_cached(orphan)

    def test_human_output(self, invoke, locked) -> None:
        result = invoke("cache", "clean")
        assert result.exit_code == 0
        assert "Removed 0 cache entries" in result.output


class TestCacheVerify:
    def test_all_verified(self, invoke, locked) -> None:
        result = invoke("cache", "verify")
        assert result.exit_code == 0
        assert "2 verified, 0 missing, 0 modified" in result.output

    def test_modified_artifact(self, invoke, locked) -> None:
        entry = Lockfile.load(locked.lockfile).get("log")
        slot = ContentStore(locked.cache_dir).path_for(entry.hash)
        (slot / "log.txt").write_text("tampered\n")
        result = invoke("cache", "verify", "--json")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["mismatched"] == ["log"]
        assert data["ok"] is False

    def test_corrupt_lockfile(self, invoke, workspace) -> None:
        workspace.lockfile.write_text("[]")
        for command in ("clean", "verify"):
            result = invoke("cache", command)
            assert result.exit_code == 2
            assert "Invalid lockfile" in result.output
