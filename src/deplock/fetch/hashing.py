"""Content hashing primitives.

``hash_directory`` defines the canonical content hash used as the cache
key for every source kind. Entries are taken in sorted order of their
relative POSIX path. For each regular file the digest absorbs::

    <relative path> NUL <"x" if executable else "-"> NUL <size> NUL <bytes>

and for each symbolic link, whether it points at a file or a directory::

    <relative path> NUL "l" NUL <link target> NUL

Links are recorded, never followed, so a link loop cannot stall the walk
and a tree copied with its links intact hashes the same. Directory entries
themselves, timestamps, ownership and the ``.git`` directory are not part
of the hash, so the same tree hashes identically wherever and whenever it
was fetched.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

_CHUNK = 1024 * 1024

IGNORED_DIRS = frozenset({".git"})


def hash_bytes(data: bytes) -> str:
    """Lowercase hex SHA-256 of *data*."""
    return hashlib.sha256(data).hexdigest()


def hash_file(path: Path) -> str:
    """Lowercase hex SHA-256 of a file's bytes, read in chunks."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _files(root: Path) -> list[tuple[str, Path]]:
    """Regular files and symbolic links under *root*, sorted by relative path."""
    found: list[tuple[str, Path]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in IGNORED_DIRS]
        # os.walk lists links to directories as directories without entering them.
        links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        for filename in filenames + links:
            full = Path(dirpath) / filename
            found.append((full.relative_to(root).as_posix(), full))
    return sorted(found)


def hash_directory(root: Path) -> str:
    """Canonical content hash of the tree under *root*.

    Raises:
        NotADirectoryError: If *root* is not a directory.
        OSError: If a file cannot be read.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(str(root))

    digest = hashlib.sha256()
    for rel, full in _files(root):
        if full.is_symlink():
            target = os.readlink(full)
            digest.update(rel.encode("utf-8") + b"\0l\0" + target.encode("utf-8") + b"\0")
            continue
        stat = full.stat()
        executable = bool(stat.st_mode & 0o111)
        digest.update(rel.encode("utf-8"))
        digest.update(b"\0" + (b"x" if executable else b"-") + b"\0")
        digest.update(str(stat.st_size).encode("ascii") + b"\0")
        with full.open("rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK), b""):
                digest.update(chunk)
    return digest.hexdigest()


def directory_size(root: Path) -> int:
    """Total bytes of the files that ``hash_directory`` covers."""
    return sum(full.lstat().st_size for _, full in _files(Path(root)))
