from __future__ import annotations

import pathlib
from typing import Callable

import httpx
import pytest

import wad.conf
import wad.s3


@pytest.fixture
def credentials() -> wad.conf.Credentials:
    return wad.conf.Credentials(access_key_id="AKIDEXAMPLE", secret_key="secret")


@pytest.fixture
def store(credentials: wad.conf.Credentials) -> wad.conf.StoreConf:
    return wad.conf.StoreConf(bucket_name="bucket", credentials=credentials)


class Recorder:
    """An httpx MockTransport handler that records requests."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def make_client(store: wad.conf.StoreConf):
    def _make_client(
        responder: Callable[[httpx.Request], httpx.Response],
        store: wad.conf.StoreConf = store,
    ) -> tuple[wad.s3.Client, Recorder]:
        recorder = Recorder(responder)
        return wad.s3.Client(store, transport=httpx.MockTransport(recorder)), recorder

    return _make_client


@pytest.fixture
def project(tmp_path: pathlib.Path) -> pathlib.Path:
    (tmp_path / "deps").mkdir()
    (tmp_path / "deps" / "lib.py").write_text("x = 1\n")
    (tmp_path / "uv.lock").write_text("lock v1\n")
    return tmp_path


class BrokenStream(httpx.SyncByteStream):
    """A response body that is cut off after the first chunk."""

    def __iter__(self):
        yield b"partial"
        raise httpx.RemoteProtocolError(
            "peer closed connection without sending complete message body"
        )


@pytest.fixture
def broken_stream() -> Callable[[httpx.Request], httpx.Response]:
    def _broken_stream(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, stream=BrokenStream())
        return httpx.Response(200)

    return _broken_stream
