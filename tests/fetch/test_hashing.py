"""Tests for the canonical content hash."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from deplock.fetch import hash_bytes, hash_directory, hash_file
from deplock.fetch.hashing import directory_size


class TestHashBytes:
    def test_sha256(self, tmp_path: Path) -> None:
        path = tmp_path / "blob"
        path.write_bytes(b"payload")
        expected = hashlib.sha256(b"payload").hexdigest()
        assert hash_bytes(b"payload") == expected
        assert hash_file(path) == expected


class TestHashDirectory:
    """Tests for ``hash_directory``."""

    def test_same_tree_same_hash(self, tmp_path: Path, write_tree) -> None:
        files = {"README": "hi\n", "src/lib.txt": "code\n"}
        a = write_tree(tmp_path / "a", files)
        b = write_tree(tmp_path / "b", dict(reversed(list(files.items()))))
        assert hash_directory(a) == hash_directory(b)

    def test_content_changes_hash(self, tmp_path: Path, write_tree) -> None:
        a = write_tree(tmp_path / "a", {"README": "hi\n"})
        b = write_tree(tmp_path / "b", {"README": "bye\n"})
        assert hash_directory(a) != hash_directory(b)

    def test_path_changes_hash(self, tmp_path: Path, write_tree) -> None:
        a = write_tree(tmp_path / "a", {"one": "x"})
        b = write_tree(tmp_path / "b", {"two": "x"})
        assert hash_directory(a) != hash_directory(b)

    def test_executable_bit_changes_hash(self, tmp_path: Path, write_tree) -> None:
        a = write_tree(tmp_path / "a", {"run.sh": "echo\n"})
        b = write_tree(tmp_path / "b", {"run.sh": "echo\n"})
        (b / "run.sh").chmod(0o755)
        (a / "run.sh").chmod(0o644)
        assert hash_directory(a) != hash_directory(b)

    def test_git_directory_ignored(self, tmp_path: Path, write_tree) -> None:
        a = write_tree(tmp_path / "a", {"README": "hi\n"})
        b = write_tree(tmp_path / "b", {"README": "hi\n", ".git/HEAD": "ref\n"})
        assert hash_directory(a) == hash_directory(b)

    def test_empty_directories_ignored(self, tmp_path: Path, write_tree) -> None:
        a = write_tree(tmp_path / "a", {"README": "hi\n"})
        b = write_tree(tmp_path / "b", {"README": "hi\n"})
        (b / "empty").mkdir()
        assert hash_directory(a) == hash_directory(b)

    def test_symlink_loop_terminates(self, tmp_path: Path, write_tree) -> None:
        root = write_tree(tmp_path / "a", {"pkg/README": "hi\n"})
        (root / "pkg" / "loop").symlink_to("..", target_is_directory=True)
        first = hash_directory(root)
        assert first == hash_directory(root)
        assert directory_size(root) == len("hi\n") + len("..")

    def test_symlink_recorded_by_target(self, tmp_path: Path, write_tree) -> None:
        a = write_tree(tmp_path / "a", {"README": "hi\n", "other": "hi\n"})
        b = write_tree(tmp_path / "b", {"README": "hi\n", "other": "hi\n"})
        (a / "link").symlink_to("README")
        (b / "link").symlink_to("other")
        assert hash_directory(a) != hash_directory(b)

    def test_symlink_is_not_a_copy(self, tmp_path: Path, write_tree) -> None:
        linked = write_tree(tmp_path / "a", {"README": "hi\n"})
        (linked / "COPY").symlink_to("README")
        copied = write_tree(tmp_path / "b", {"README": "hi\n", "COPY": "hi\n"})
        assert hash_directory(linked) != hash_directory(copied)

    def test_not_a_directory(self, tmp_path: Path) -> None:
        with pytest.raises(NotADirectoryError):
            hash_directory(tmp_path / "missing")

    def test_size(self, tmp_path: Path, write_tree) -> None:
        root = write_tree(tmp_path / "a", {"a": "12345", "b/c": "678", ".git/x": "ignored"})
        assert directory_size(root) == 8
