"""Tests for ``deplock lock``.

Verifies:
    - A missing or invalid manifest exits with code 2.
    - Locking writes a deterministic lockfile with resolved versions.
    - Transitive manifests contribute dependencies and constraints.
    - Conflicting requirements exit with code 1 and list each pair.
"""

from __future__ import annotations

import json

from deplock.core.lockfile import Lockfile


class TestLockInputErrors:
    """Tests for missing and malformed manifests."""

    def test_missing_manifest_exits_2(self, invoke, workspace) -> None:
        workspace.manifest.unlink()
        result = invoke("lock")
        assert result.exit_code == 2
        assert "Manifest not found" in result.output

    def test_invalid_manifest_exits_2(self, invoke, workspace) -> None:
        workspace.manifest.write_text("dependencies:\n  log: 42\n")
        result = invoke("lock")
        assert result.exit_code == 2
        assert "Invalid manifest" in result.output

    def test_bad_constraint_exits_2(self, invoke, workspace) -> None:
        workspace.manifest.write_text(
            "dependencies:\n  log:\n    path: vendor/log\n    constraint: '>>1'\n"
        )
        assert invoke("lock").exit_code == 2

    def test_bad_registry_version_exits_2(self, invoke, workspace) -> None:
        workspace.manifest.write_text("dependencies:\n  json:\n    version: latest\n")
        result = invoke("lock")
        assert result.exit_code == 2
        assert "Invalid manifest" in result.output
        assert "latest" in result.output

    def test_invalid_dependency_manifest_exits_2(self, invoke, workspace) -> None:
        (workspace.root / "vendor" / "app" / "deplock.yaml").write_text("dependencies: [log]\n")
        result = invoke("lock", "--versions", str(workspace.versions))
        assert result.exit_code == 2
        assert "Invalid manifest" in result.output
        assert not workspace.lockfile.exists()

    def test_corrupt_lockfile_exits_2(self, invoke, workspace) -> None:
        workspace.lockfile.write_text('{"dependencies": 5}')
        result = invoke("lock", "--versions", str(workspace.versions))
        assert result.exit_code == 2
        assert "Invalid lockfile" in result.output
        assert workspace.lockfile.read_text() == '{"dependencies": 5}'

    def test_unparseable_lockfile_exits_2(self, invoke, workspace) -> None:
        workspace.lockfile.write_text("not json")
        result = invoke("lock", "--versions", str(workspace.versions))
        assert result.exit_code == 2
        assert "Invalid lockfile" in result.output


class TestLockSuccess:
    """Tests for successful locking."""

    def test_writes_lockfile(self, invoke, workspace) -> None:
        result = invoke("lock", "--versions", str(workspace.versions))
        assert result.exit_code == 0, result.output
        assert "Lockfile written to" in result.output

        lf = Lockfile.load(workspace.lockfile)
        assert lf.names == ["app", "log"]
        assert lf.get("log").version == "1.2.3"
        assert lf.get("app").version == "unversioned"
        assert lf.get("app").dependencies == ["log"]
        assert lf.validate() == []

    def test_json_output(self, invoke, workspace) -> None:
        result = invoke("lock", "--versions", str(workspace.versions), "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["installed"] == {"app": "unversioned", "log": "1.2.3"}
        assert data["fetched"] == ["app", "log"]

    def test_relock_is_byte_identical(self, invoke, workspace) -> None:
        invoke("lock", "--versions", str(workspace.versions))
        first = workspace.lockfile.read_text()
        assert invoke("lock", "--versions", str(workspace.versions), "-j", "1").exit_code == 0
        assert workspace.lockfile.read_text() == first


class TestLockFailures:
    """Tests for resolution failures."""

    def test_pairwise_conflict_exits_1(self, invoke, workspace) -> None:
        workspace.manifest.write_text(
            "dependencies:\n"
            "  app:\n    path: vendor/app\n"
            "  log:\n    path: vendor/log\n    constraint: '=1.3.0'\n"
        )
        result = invoke("lock", "--versions", str(workspace.versions), "--json")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert len(data["conflicts"]) == 1
        assert "log" in data["conflicts"][0]
        assert not workspace.lockfile.exists()

    def test_unsatisfiable_exits_1(self, invoke, workspace) -> None:
        workspace.versions.write_text("log: [0.9.0]\n")
        result = invoke("lock", "--versions", str(workspace.versions))
        assert result.exit_code == 1
        assert "Resolution failed" in result.output

    def test_missing_local_path_exits_1(self, invoke, workspace) -> None:
        workspace.manifest.write_text("dependencies:\n  gone:\n    path: vendor/gone\n")
        result = invoke("lock")
        assert result.exit_code == 1
        assert "not found" in result.output
