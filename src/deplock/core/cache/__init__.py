"""Content-addressed artifact cache.

Artifacts are immutable directories stored under
``<root>/deps/<hash[0:2]>/<hash[2:4]>/<hash>``. See ``store.ContentStore``.
"""

from deplock.core.cache.models import CleanReport, IntegrityReport
from deplock.core.cache.store import ContentStore, is_valid_digest

__all__ = [
    "CleanReport",
    "ContentStore",
    "IntegrityReport",
    "is_valid_digest",
]
