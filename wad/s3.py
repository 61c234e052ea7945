from __future__ import annotations

import pathlib
import ssl
import time
from typing import IO, TYPE_CHECKING, Mapping

import certifi
import httpx
import msgspec

import wad.auth
import wad.errors
import wad.file
import wad.logger
import wad.request

if TYPE_CHECKING:
    import wad.conf


class ObjectResponse(msgspec.Struct, frozen=True):
    status_code: int
    headers: Mapping[str, str] = {}
    body: bytes = b""

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300

    def raise_for_status(self) -> None:
        if not self.success:
            raise wad.errors.HTTPStatusError(
                f"Object store responded with HTTP {self.status_code}",
                status_code=self.status_code,
                body=self.body,
            )


def _ssl_context() -> ssl.SSLContext:
    return ssl.create_default_context(cafile=certifi.where())


def _content(body: wad.request.Body | None) -> bytes | IO[bytes] | None:
    match body:
        case wad.request.Buffer(data=data):
            return data
        case wad.request.Stream(source=source):
            return source
        case _:
            return None


class Client:
    """A signed GET/PUT client for an S3-compatible object store.

    Transport and decoding failures raise RequestError. Non-2xx responses are returned
    as-is and classified by ObjectResponse.success. There is no retry.
    """

    def __init__(
        self,
        store: wad.conf.StoreConf,
        logger: wad.logger.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 60.0,
    ):
        if not store.credentials:
            raise wad.errors.ConfigurationError(
                "Please configure S3 credentials with WAD_S3_CREDENTIALS="
            )

        self.store = store
        self.logger = logger or wad.logger.Null()
        self.authorization = wad.auth.Authorization(store.credentials)
        self._http = httpx.Client(
            transport=transport, verify=_ssl_context(), timeout=timeout
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _send(
        self, signed: wad.request.SignedRequest, sink: IO[bytes] | None = None
    ) -> ObjectResponse:
        self.logger.debug(f"{signed.method} signed_url={signed.url}")
        start = time.monotonic()
        request = self._http.build_request(
            signed.method, signed.url, headers=signed.headers, content=_content(signed.body)
        )

        try:
            response = self._http.send(request, stream=True)
            try:
                if sink is not None and response.is_success:
                    # Raw bytes keep the artifact byte-exact under any Content-Encoding
                    for chunk in response.iter_raw():
                        sink.write(chunk)
                    body = b""
                else:
                    body = response.read()
            finally:
                response.close()
        except httpx.RequestError as exc:
            raise wad.errors.RequestError(
                f"{signed.method} {signed.url} failed: {str(exc) or type(exc).__name__}"
            ) from exc

        self.logger.debug(
            f"{signed.method} {signed.url} responded with HTTP {response.status_code}"
            f" in {time.monotonic() - start:.2f}s"
        )
        return ObjectResponse(
            status_code=response.status_code, headers=dict(response.headers), body=body
        )

    def get(self, object_key: str, sink: IO[bytes] | None = None) -> ObjectResponse:
        """Get an object.

        If a sink is given, a successful response body is written to it
        in chunks instead of being buffered in memory.
        """
        signed = wad.request.build(self.store, self.authorization, "GET", object_key)
        return self._send(signed, sink=sink)

    def put(
        self,
        object_key: str,
        body: wad.request.Body,
        content_type: str | None = None,
    ) -> ObjectResponse:
        """Put an object from a buffer or a stream."""
        signed = wad.request.build(
            self.store,
            self.authorization,
            "PUT",
            object_key,
            body=body,
            content_type=content_type,
        )
        return self._send(signed)

    def download(self, object_key: str, destination: pathlib.Path) -> ObjectResponse:
        """Stream an object into a file.

        The destination is removed if the download fails so a partial
        file is never left behind.
        """
        wad.file.make_parent_dirs(destination)
        try:
            with destination.open("wb") as sink:
                response = self.get(object_key, sink=sink)
        except BaseException:
            wad.file.remove(destination)
            raise

        if not response.success:
            wad.file.remove(destination)

        return response

    def upload(
        self, object_key: str, source: pathlib.Path, content_type: str | None = None
    ) -> ObjectResponse:
        """Put a file as a stream, without reading it into memory."""
        with source.open("rb") as stream:
            return self.put(
                object_key,
                wad.request.Stream(source=stream, length=source.stat().st_size),
                content_type=content_type,
            )
