"""Fetcher for tar and zip archives downloaded over HTTP.

The download is streamed to disk while its SHA-256 is computed. If the
dependency declares a hash and the bytes do not match, the partial file is
deleted *before* ``HashMismatchError`` is raised. Verified archives are
extracted; a single top-level directory (as produced by most hosting
services) is unwrapped so the artifact tree starts at the project root.
"""

from __future__ import annotations

import hashlib
import logging
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

import httpx

from deplock.core.manifest.models import ArchiveSource, Dependency
from deplock.exceptions import FetchError, HashMismatchError
from deplock.fetch.base import Fetcher, FetchResult
from deplock.fetch.hashing import directory_size, hash_directory

logger = logging.getLogger(__name__)

# Timeout for archive downloads (seconds).
DEFAULT_TIMEOUT: float = 60.0

# User-Agent sent with every request.
USER_AGENT: str = "deplock/0.1"

_CHUNK = 64 * 1024


class ArchiveFetcher(Fetcher):
    """Downloads, verifies and extracts archive dependencies.

    Args:
        client: Optional ``httpx.Client``. Tests pass one built on
            ``httpx.MockTransport``. When omitted a client is created with
            the default timeout and user agent.
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(
            timeout=DEFAULT_TIMEOUT,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, dep: Dependency, workdir: Path) -> FetchResult:
        source = dep.source
        if not isinstance(source, ArchiveSource):
            raise FetchError(f"ArchiveFetcher cannot fetch {source!r}", dep.name)

        workdir.mkdir(parents=True, exist_ok=True)
        download = workdir / _archive_filename(source.url)
        self.download(dep.name, source.url, download, expected=source.hash)

        extract_dir = workdir / "extracted"
        extract_archive(download, extract_dir, package_name=dep.name)
        download.unlink()
        root = _unwrap_single_dir(extract_dir)

        digest = hash_directory(root)
        logger.debug("Fetched archive %s from %s: %s", dep.name, source.url, digest[:12])
        return FetchResult(
            path=root,
            hash=digest,
            origin=source.url,
            size_bytes=directory_size(root),
        )

    def download(
        self,
        package_name: str,
        url: str,
        dest: Path,
        expected: str | None = None,
    ) -> str:
        """Stream *url* into *dest* and return the SHA-256 of its bytes.

        Raises:
            HashMismatchError: If *expected* is given and differs. *dest* has
                been deleted by then.
            FetchError: On HTTP errors or transport failures. Any partial
                file is deleted.
        """
        hasher = hashlib.sha256()
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise FetchError(
                        f"Download of {url} failed: HTTP {response.status_code}",
                        package_name,
                    )
                with dest.open("wb") as fh:
                    for chunk in response.iter_bytes(chunk_size=_CHUNK):
                        fh.write(chunk)
                        hasher.update(chunk)
        except httpx.HTTPError as exc:
            dest.unlink(missing_ok=True)
            raise FetchError(f"Download of {url} failed: {exc}", package_name) from exc
        except FetchError:
            dest.unlink(missing_ok=True)
            raise

        actual = hasher.hexdigest()
        if expected and actual != expected.lower():
            dest.unlink(missing_ok=True)
            logger.warning("Hash mismatch for %s; deleted %s", package_name, dest)
            raise HashMismatchError(package_name, expected.lower(), actual)
        return actual


def extract_archive(archive: Path, dest: Path, package_name: str = "") -> None:
    """Extract a tar (any compression) or zip archive into *dest*.

    Members with absolute paths or ``..`` components are rejected.

    Raises:
        FetchError: If the archive format is unknown or a member is unsafe.
    """
    dest.mkdir(parents=True, exist_ok=True)
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            for name in zf.namelist():
                _check_member(name, package_name)
            zf.extractall(dest)
        return
    if tarfile.is_tarfile(archive):
        with tarfile.open(archive) as tf:
            members = tf.getmembers()
            for member in members:
                _check_member(member.name, package_name)
                if member.issym() or member.islnk():
                    _check_member(member.linkname, package_name)
            if hasattr(tarfile, "data_filter"):
                tf.extractall(dest, members=members, filter="data")
            else:
                tf.extractall(dest, members=members)
        return
    raise FetchError(f"Unsupported archive format: {archive.name}", package_name)


def _check_member(name: str, package_name: str) -> None:
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts:
        raise FetchError(f"Unsafe path in archive: {name!r}", package_name)


def _unwrap_single_dir(root: Path) -> Path:
    entries = list(root.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return root


def _archive_filename(url: str) -> str:
    name = PurePosixPath(httpx.URL(url).path).name
    return name or "archive"
