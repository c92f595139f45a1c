"""Shared fixtures for deplock tests."""

from __future__ import annotations

import hashlib
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from deplock.config import Settings


@pytest.fixture
def write_tree() -> Callable[[Path, dict[str, str]], Path]:
    """Return a helper that writes ``{relative path: text}`` under a root."""

    def _write(root: Path, files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted entirely inside the test's temporary directory."""
    return Settings(
        cache_dir=tmp_path / "cache",
        manifest_path=tmp_path / "project" / "deplock.yaml",
        lockfile_path=tmp_path / "project" / "deplock.lock",
        policy_path=tmp_path / "project" / "deplock-policy.json",
        jobs=2,
        resolution_ttl=3600.0,
    )


class FakeGit:
    """A ``subprocess.run`` stand-in that serves repositories from memory.

    ``repos`` maps clone URL to ``{ref: {relative path: text}}``. ``clone``
    records the URL; ``checkout`` writes the files for the ref; ``rev-parse``
    returns a commit id derived from the URL and ref. ``ls-remote`` lists
    every ref of the repository as a tag.
    """

    def __init__(self, repos: dict[str, dict[str, dict[str, str]]]) -> None:
        self.repos = repos
        self.calls: list[list[str]] = []
        self._cloned: dict[str, str] = {}
        self._checked_out: dict[str, str] = {}

    def __call__(self, argv: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(argv))
        if argv[1] == "clone":
            url, dest = argv[-2], argv[-1]
            if url not in self.repos:
                return subprocess.CompletedProcess(argv, 128, "", f"repository {url} not found")
            Path(dest).mkdir(parents=True)
            (Path(dest) / ".git").mkdir()
            (Path(dest) / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
            self._cloned[dest] = url
            return subprocess.CompletedProcess(argv, 0, "", "")
        if argv[1] == "-C" and argv[3] == "checkout":
            dest, ref = argv[2], argv[-1]
            files = self.repos[self._cloned[dest]].get(ref)
            if files is None:
                return subprocess.CompletedProcess(argv, 1, "", f"pathspec '{ref}' did not match")
            for rel, content in files.items():
                path = Path(dest) / rel
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content)
            self._checked_out[dest] = ref
            return subprocess.CompletedProcess(argv, 0, "", "")
        if argv[1] == "-C" and argv[3] == "rev-parse":
            dest = argv[2]
            commit = hashlib.sha1(f"{self._cloned[dest]}@{self._checked_out[dest]}".encode()).hexdigest()
            return subprocess.CompletedProcess(argv, 0, commit + "\n", "")
        if argv[1] == "ls-remote":
            url = argv[-1]
            if url not in self.repos:
                return subprocess.CompletedProcess(argv, 128, "", "not found")
            lines = [f"{'0' * 40}\trefs/tags/{ref}" for ref in self.repos[url]]
            return subprocess.CompletedProcess(argv, 0, "\n".join(lines) + "\n", "")
        raise AssertionError(f"unexpected git call: {argv}")


@pytest.fixture
def fake_git() -> Callable[[dict[str, dict[str, dict[str, str]]]], FakeGit]:
    """Factory for ``FakeGit`` runners."""
    return FakeGit
