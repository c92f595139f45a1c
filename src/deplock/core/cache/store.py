"""Content-addressed store for fetched dependency artifacts.

Layout::

    <root>/deps/<hash[0:2]>/<hash[2:4]>/<hash>/...

The two-level fan-out keyed by the first four hex characters keeps any one
directory small. Keys are lowercase hex SHA-256 digests; anything else is
rejected before it can be turned into a path.

Concurrency: ``store`` and ``retrieve`` need no locking across processes.
Identical digests denote identical content, so a second ``store`` of the
same digest is a no-op, and different digests touch disjoint paths. A
``store`` copies into a temporary sibling and renames it into place, so a
slot is either absent or complete. ``clean`` must not run while a fetch
session uses the same root; callers serialize that externally.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path

from deplock.core.cache.models import CleanReport, IntegrityReport
from deplock.exceptions import InvalidDigestError, NotCachedError

logger = logging.getLogger(__name__)

_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")
_TEMP_PREFIX = ".tmp-"
_READ_CHUNK = 1024 * 1024


def is_valid_digest(digest: str) -> bool:
    """True if *digest* is a 64-character lowercase hex string."""
    return bool(_DIGEST_RE.match(digest))


def _tree_size(path: Path) -> int:
    total = 0
    for dirpath, _, filenames in os.walk(path):
        for filename in filenames:
            try:
                total += os.lstat(os.path.join(dirpath, filename)).st_size
            except OSError:
                continue
    return total


class ContentStore:
    """Immutable artifact directories keyed by content digest.

    Args:
        root: Cache root. ``deps/`` is created beneath it on first store.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @property
    def deps_dir(self) -> Path:
        return self.root / "deps"

    def path_for(self, digest: str) -> Path:
        """Return the slot path for *digest*.

        Raises:
            InvalidDigestError: If *digest* is not a lowercase hex SHA-256.
        """
        if not is_valid_digest(digest):
            raise InvalidDigestError(digest)
        return self.deps_dir / digest[0:2] / digest[2:4] / digest

    def is_cached(self, digest: str) -> bool:
        """Directory-existence check only; the content is not validated."""
        return self.path_for(digest).is_dir()

    def store(self, digest: str, source_dir: Path) -> Path:
        """Copy *source_dir* into the slot for *digest*.

        Safe to call repeatedly: if the slot already exists nothing is
        copied. Symbolic links are copied as links.

        Returns:
            The slot path.

        Raises:
            InvalidDigestError: If *digest* is malformed.
            OSError: If the copy fails (propagated unchanged).
        """
        slot = self.path_for(digest)
        if slot.is_dir():
            logger.debug("Already cached: %s", digest[:12])
            return slot

        slot.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=_TEMP_PREFIX, dir=slot.parent))
        try:
            shutil.copytree(source_dir, staging, symlinks=True, dirs_exist_ok=True)
            try:
                os.rename(staging, slot)
            except OSError:
                if not slot.is_dir():
                    raise
                # Another writer stored the same digest first.
                shutil.rmtree(staging, ignore_errors=True)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.debug("Cached dependency: %s", digest[:12])
        return slot

    def retrieve(self, digest: str, dest_dir: Path) -> Path:
        """Copy the cached artifact for *digest* into *dest_dir*.

        Existing files in *dest_dir* are overwritten; others are left alone.

        Raises:
            NotCachedError: If *digest* has no cache entry.
        """
        slot = self.path_for(digest)
        if not slot.is_dir():
            raise NotCachedError(digest)
        shutil.copytree(slot, dest_dir, symlinks=True, dirs_exist_ok=True)
        logger.debug("Retrieved from cache: %s -> %s", digest[:12], dest_dir)
        return Path(dest_dir)

    def list_hashes(self) -> list[str]:
        """Every digest with a well-formed slot, sorted."""
        return sorted(digest for digest, _ in self._slots())

    def size_of(self, digest: str) -> int:
        """Total bytes stored for *digest*.

        Raises:
            NotCachedError: If *digest* has no cache entry.
        """
        slot = self.path_for(digest)
        if not slot.is_dir():
            raise NotCachedError(digest)
        return _tree_size(slot)

    def clean(self, keep_hashes: Iterable[str]) -> CleanReport:
        """Mark-and-sweep: delete every stored digest not in *keep_hashes*.

        Leftover staging directories from interrupted stores are removed as
        well, and fan-out directories emptied by the sweep are pruned.

        Args:
            keep_hashes: Live digests, normally ``Lockfile.hashes()``.

        Returns:
            A ``CleanReport`` describing what was removed.
        """
        keep = set(keep_hashes)
        report = CleanReport()

        for digest, slot in self._slots():
            if digest in keep:
                report.kept.append(digest)
                continue
            report.freed_bytes += _tree_size(slot)
            shutil.rmtree(slot)
            report.removed.append(digest)
            logger.debug("Removed unreferenced cache entry: %s", digest[:12])

        if self.deps_dir.is_dir():
            for staging in self.deps_dir.glob(f"*/*/{_TEMP_PREFIX}*"):
                shutil.rmtree(staging, ignore_errors=True)
            self._prune_empty_fanout()

        report.removed.sort()
        report.kept.sort()
        logger.info(
            "Cache clean: removed %d entries (%d bytes), kept %d",
            len(report.removed),
            report.freed_bytes,
            len(report.kept),
        )
        return report

    def scan_integrity(self) -> IntegrityReport:
        """Read every stored file and report what cannot be read.

        This is a primitive for an external doctor command. Nothing is
        repaired or deleted.
        """
        report = IntegrityReport()
        if not self.deps_dir.is_dir():
            return report

        for first in sorted(self.deps_dir.iterdir()):
            for second in sorted(first.iterdir()) if first.is_dir() else [first]:
                for slot in sorted(second.iterdir()) if second.is_dir() else [second]:
                    if not self._is_slot(slot):
                        report.malformed_slots.append(self._relative(slot))

        def _on_error(exc: OSError) -> None:
            report.corrupted.append(self._relative(Path(exc.filename)))
            logger.warning("Unreadable cache directory: %s", exc.filename)

        for dirpath, _, filenames in os.walk(self.deps_dir, onerror=_on_error):
            for filename in filenames:
                path = Path(dirpath) / filename
                report.total_files += 1
                if path.is_symlink():
                    continue
                try:
                    report.total_bytes += path.stat().st_size
                    with path.open("rb") as fh:
                        while fh.read(_READ_CHUNK):
                            pass
                except OSError:
                    report.corrupted.append(self._relative(path))
                    logger.warning("Corrupted cache file: %s", path)

        report.corrupted.sort()
        return report

    # -- Internals ----------------------------------------------------------

    def _is_slot(self, path: Path) -> bool:
        rel = path.relative_to(self.deps_dir).parts
        return (
            len(rel) == 3
            and path.is_dir()
            and is_valid_digest(rel[2])
            and rel[0] == rel[2][0:2]
            and rel[1] == rel[2][2:4]
        )

    def _slots(self) -> list[tuple[str, Path]]:
        if not self.deps_dir.is_dir():
            return []
        return [
            (slot.name, slot)
            for slot in self.deps_dir.glob("*/*/*")
            if self._is_slot(slot)
        ]

    def _prune_empty_fanout(self) -> None:
        for second in self.deps_dir.glob("*/*"):
            if second.is_dir() and not any(second.iterdir()):
                second.rmdir()
        for first in self.deps_dir.glob("*"):
            if first.is_dir() and not any(first.iterdir()):
                first.rmdir()

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)
