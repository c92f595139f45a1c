"""Result records for content-addressed cache maintenance."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CleanReport:
    """Outcome of a mark-and-sweep pass.

    Attributes:
        removed: Digests deleted from the store, sorted.
        kept: Digests that were in the keep set and remain cached, sorted.
        freed_bytes: Total size of the deleted entries.
    """

    removed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    freed_bytes: int = 0


@dataclass
class IntegrityReport:
    """Outcome of an integrity scan over the cache root.

    Corruption is only reported here; nothing is repaired.

    Attributes:
        total_files: Number of regular files found under the store.
        total_bytes: Sum of their sizes.
        corrupted: Relative paths of files or directories that could not
            be read.
        malformed_slots: Relative paths of directories under ``deps/`` that
            do not follow the ``ab/cd/<digest>`` layout.
    """

    total_files: int = 0
    total_bytes: int = 0
    corrupted: list[str] = field(default_factory=list)
    malformed_slots: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.corrupted and not self.malformed_slots
