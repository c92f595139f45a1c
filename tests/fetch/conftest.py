"""Fixtures for fetcher tests: in-memory archives and mock HTTP clients."""

from __future__ import annotations

import io
import tarfile
import zipfile
from collections.abc import Callable

import httpx
import pytest


def build_tar(files: dict[str, str], mode: str = "w:gz") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=mode) as tf:
        for name, text in files.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def build_zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, text in files.items():
            zf.writestr(name, text)
    return buffer.getvalue()


@pytest.fixture
def tar_bytes() -> Callable[..., bytes]:
    return build_tar


@pytest.fixture
def zip_bytes() -> Callable[[dict[str, str]], bytes]:
    return build_zip


@pytest.fixture
def http_client() -> Callable[[dict[str, bytes]], httpx.Client]:
    """Build an ``httpx.Client`` serving ``{url: body}``; other URLs get 404."""

    def _make(routes: dict[str, bytes]) -> httpx.Client:
        def handler(request: httpx.Request) -> httpx.Response:
            body = routes.get(str(request.url))
            if body is None:
                return httpx.Response(404, content=b"not found")
            return httpx.Response(200, content=body)

        return httpx.Client(transport=httpx.MockTransport(handler))

    return _make
