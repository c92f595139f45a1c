"""Tests for ``deplock tree`` and ``deplock why``."""

from __future__ import annotations

import json

import pytest


class TestTree:
    def test_requires_lockfile(self, invoke) -> None:
        result = invoke("tree")
        assert result.exit_code == 2
        assert "run 'deplock lock' first" in result.output

    @pytest.mark.parametrize("args", [("tree",), ("why", "log")])
    def test_corrupt_lockfile(self, invoke, workspace, args: tuple[str, ...]) -> None:
        workspace.lockfile.write_text("{")
        result = invoke(*args)
        assert result.exit_code == 2
        assert "Invalid lockfile" in result.output

    def test_renders_from_top_level(self, invoke, locked) -> None:
        result = invoke("tree")
        assert result.exit_code == 0
        assert "app @ unversioned" in result.output
        assert "└── log @ 1.2.3" in result.output
        assert "max depth 1" in result.output

    def test_rooted_at_package(self, invoke, locked) -> None:
        result = invoke("tree", "log")
        assert result.exit_code == 0
        assert "log @ 1.2.3" in result.output
        assert "app" not in result.output.split("\n")[0]

    def test_unknown_package(self, invoke, locked) -> None:
        assert invoke("tree", "nope").exit_code == 1


class TestWhy:
    def test_transitive_chain(self, invoke, locked) -> None:
        result = invoke("why", "log")
        assert result.exit_code == 0
        assert "app -> log" in result.output

    def test_top_level(self, invoke, locked) -> None:
        result = invoke("why", "app")
        assert result.exit_code == 0
        assert "top-level dependency" in result.output

    def test_json(self, invoke, locked) -> None:
        result = invoke("why", "log", "--json")
        data = json.loads(result.stdout)
        assert data == {"package": "log", "paths": [["app", "log"]], "dependents": ["app"]}

    def test_not_locked(self, invoke, locked) -> None:
        assert invoke("why", "nope").exit_code == 1
