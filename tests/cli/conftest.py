"""Shared fixtures for CLI tests.

``workspace`` lays out a project with two local dependencies: ``app``,
which itself depends on ``log``, and ``log``, constrained from both the
project manifest and ``app``'s manifest. Candidate versions come from a
``versions.yaml`` file so no network or git is needed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from deplock.cli.main import cli

MANIFEST = """\
name: demo
dependencies:
  app:
    path: vendor/app
  log:
    path: vendor/log
    constraint: ^1.0.0
"""

APP_MANIFEST = """\
dependencies:
  log:
    path: vendor/log
    constraint: ~1.2.0
"""

VERSIONS = """\
log: [1.0.0, 1.2.3, 1.3.0, 2.0.0]
"""


@dataclass
class Workspace:
    root: Path
    manifest: Path
    lockfile: Path
    cache_dir: Path
    versions: Path


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, write_tree) -> Workspace:
    root = tmp_path / "project"
    write_tree(root, {
        "deplock.yaml": MANIFEST,
        "versions.yaml": VERSIONS,
        "vendor/app/deplock.yaml": APP_MANIFEST,
        "vendor/app/app.txt": "app\n",
        "vendor/log/log.txt": "log\n",
    })
    return Workspace(
        root=root,
        manifest=root / "deplock.yaml",
        lockfile=root / "deplock.lock",
        cache_dir=tmp_path / "cache",
        versions=root / "versions.yaml",
    )


@pytest.fixture
def invoke(runner: CliRunner, workspace: Workspace) -> Callable[..., Result]:
    """Run ``deplock`` with the workspace's cache, manifest and lockfile."""

    def _invoke(*args: str) -> Result:
        return runner.invoke(cli, [
            "--cache-dir", str(workspace.cache_dir),
            "--manifest", str(workspace.manifest),
            "--lockfile", str(workspace.lockfile),
            *args,
        ])

    return _invoke


@pytest.fixture
def locked(invoke, workspace: Workspace) -> Workspace:
    """The workspace after a successful ``deplock lock``."""
    result = invoke("lock", "--versions", str(workspace.versions))
    assert result.exit_code == 0, result.output
    return workspace
