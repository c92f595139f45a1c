"""Tests for ``deplock audit``."""

from __future__ import annotations

import json


class TestAudit:
    """Tests for policy auditing of manifest dependencies."""

    def test_no_policy_passes(self, invoke) -> None:
        result = invoke("audit")
        assert result.exit_code == 0
        assert "PASSED" in result.output

    def test_deny_fails(self, invoke, workspace) -> None:
        policy = workspace.root / "policy.json"
        policy.write_text(json.dumps({"deny": ["log"]}))
        result = invoke("audit", "--policy", str(policy), "--json")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert (data["total"], data["passed"], data["failed"]) == (2, 1, 1)
        assert data["violations"] == [
            {"package": "log", "message": "Package 'log' matches deny pattern: log"}
        ]

    def test_allow_list(self, invoke, workspace) -> None:
        policy = workspace.root / "policy.json"
        policy.write_text(json.dumps({"allow": ["app", "log"]}))
        assert invoke("audit", "-p", str(policy)).exit_code == 0

    def test_malformed_policy_exits_2(self, invoke, workspace) -> None:
        policy = workspace.root / "policy.json"
        policy.write_text("{oops")
        result = invoke("audit", "--policy", str(policy))
        assert result.exit_code == 2
        assert "Invalid policy" in result.output

    def test_missing_manifest_exits_2(self, invoke, workspace) -> None:
        workspace.manifest.unlink()
        assert invoke("audit").exit_code == 2
