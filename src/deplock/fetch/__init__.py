"""Fetchers: retrieve dependency artifacts and report their content identity.

Every fetcher returns a ``FetchResult`` whose ``hash`` is the canonical
directory content hash (see ``deplock.fetch.hashing``), so cache keys are
comparable across source kinds.
"""

from deplock.fetch.archive import ArchiveFetcher
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.git import GitFetcher
from deplock.fetch.hashing import hash_bytes, hash_directory, hash_file
from deplock.fetch.hosted import HostedFetcher
from deplock.fetch.local import LocalFetcher
from deplock.fetch.router import FetcherRouter

__all__ = [
    "ArchiveFetcher",
    "FetchResult",
    "Fetcher",
    "FetcherRouter",
    "GitFetcher",
    "HostedFetcher",
    "LocalFetcher",
    "hash_bytes",
    "hash_directory",
    "hash_file",
]
