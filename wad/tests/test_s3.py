import io
import pathlib

import httpx
import pytest

import wad.auth
import wad.conf
import wad.errors
import wad.request
import wad.s3


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, stream=httpx.ByteStream(b"artifact bytes"))


def _not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, content=b"<Error><Code>NoSuchKey</Code></Error>")


def _reset(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection reset by peer", request=request)


def _gzip_labelled(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip")
    )


@pytest.mark.parametrize(
    "region, endpoint_url, expected",
    [
        ("us-east-1", None, "https://s3.amazonaws.com"),
        ("eu-west-1", None, "https://s3-eu-west-1.amazonaws.com"),
        ("eu-west-1", "http://127.0.0.1:9000/", "http://127.0.0.1:9000"),
    ],
)
def test_base_url(region, endpoint_url, expected):
    store = wad.conf.StoreConf(bucket_name="b", region=region, endpoint_url=endpoint_url)
    assert store.base_url == expected


def test_requires_credentials():
    with pytest.raises(wad.errors.ConfigurationError, match="credentials"):
        wad.s3.Client(wad.conf.StoreConf(bucket_name="bucket"))


def test_get(make_client, store):
    client, recorder = make_client(_ok)
    response = client.get("abc.tar.bz2")

    assert response.success
    assert response.body == b"artifact bytes"

    (request,) = recorder.requests
    assert request.method == "GET"
    assert str(request.url) == "https://s3.amazonaws.com/bucket/abc.tar.bz2"

    # The server recomputes the signature from the same canonical string
    message = wad.request.canonical_string(
        "GET", None, request.headers["Date"], "/bucket/abc.tar.bz2"
    )
    authorization = wad.auth.Authorization(store.credentials)
    assert request.headers["Authorization"] == authorization.header(message)
    assert request.headers["Authorization"].startswith("AWS AKIDEXAMPLE:")


def test_get_into_sink(make_client):
    client, _ = make_client(_ok)
    sink = io.BytesIO()
    response = client.get("abc.tar.bz2", sink=sink)

    assert response.success
    assert response.body == b""
    assert sink.getvalue() == b"artifact bytes"


def test_get_into_sink_writes_raw_bytes(make_client):
    client, _ = make_client(_gzip_labelled)
    sink = io.BytesIO()

    assert client.get("abc.tar.bz2", sink=sink).success
    assert sink.getvalue() == b"not gzip"


def test_get_error_body_not_written_to_sink(make_client):
    client, _ = make_client(_not_found)
    sink = io.BytesIO()
    response = client.get("abc.tar.bz2", sink=sink)

    assert not response.success
    assert response.status_code == 404
    assert b"NoSuchKey" in response.body
    assert sink.getvalue() == b""

    with pytest.raises(wad.errors.HTTPStatusError) as exc_info:
        response.raise_for_status()
    assert exc_info.value.status_code == 404


def test_transport_error(make_client):
    client, _ = make_client(_reset)
    with pytest.raises(wad.errors.RequestError, match="Connection reset"):
        client.get("abc.tar.bz2")


def test_decoding_error(make_client):
    client, _ = make_client(_gzip_labelled)
    with pytest.raises(wad.errors.RequestError, match="GET"):
        client.get("abc.tar.bz2")


def test_put_buffer(make_client, store):
    client, recorder = make_client(_ok)
    response = client.put(
        "/abc.tar.bz2", wad.request.Buffer(b"packed"), content_type="application/x-download"
    )
    assert response.success

    (request,) = recorder.requests
    assert request.method == "PUT"
    assert request.content == b"packed"
    assert request.headers["Content-Length"] == "6"
    assert request.headers["Content-Type"] == "application/x-download"

    message = wad.request.canonical_string(
        "PUT", "application/x-download", request.headers["Date"], "/bucket/abc.tar.bz2"
    )
    authorization = wad.auth.Authorization(store.credentials)
    assert request.headers["Authorization"] == authorization.header(message)


def test_upload(make_client, tmp_path: pathlib.Path):
    client, recorder = make_client(_ok)
    source = tmp_path / "abc.tar.bz2"
    source.write_bytes(b"x" * 200_000)

    assert client.upload("abc.tar.bz2", source).success

    (request,) = recorder.requests
    assert request.headers["Content-Length"] == "200000"
    assert "Transfer-Encoding" not in request.headers
    assert request.content == b"x" * 200_000


def test_download(make_client, tmp_path: pathlib.Path):
    client, _ = make_client(_ok)
    destination = tmp_path / "tmp" / "abc.tar.bz2"

    assert client.download("abc.tar.bz2", destination).success
    assert destination.read_bytes() == b"artifact bytes"


def test_download_miss_leaves_no_file(make_client, tmp_path: pathlib.Path):
    client, _ = make_client(_not_found)
    destination = tmp_path / "abc.tar.bz2"

    assert not client.download("abc.tar.bz2", destination).success
    assert not destination.exists()


def test_download_transport_error_leaves_no_file(make_client, tmp_path: pathlib.Path):
    client, _ = make_client(_reset)
    destination = tmp_path / "abc.tar.bz2"

    with pytest.raises(wad.errors.RequestError):
        client.download("abc.tar.bz2", destination)
    assert not destination.exists()


def test_download_broken_stream_leaves_no_file(make_client, broken_stream, tmp_path):
    client, _ = make_client(broken_stream)
    destination = tmp_path / "abc.tar.bz2"

    with pytest.raises(wad.errors.RequestError, match="peer closed connection"):
        client.download("abc.tar.bz2", destination)
    assert not destination.exists()


def test_endpoint_url(make_client, credentials):
    store = wad.conf.StoreConf(
        bucket_name="bucket", credentials=credentials, endpoint_url="http://127.0.0.1:9000"
    )
    client, recorder = make_client(_ok, store=store)
    client.get("key")
    assert str(recorder.requests[0].url) == "http://127.0.0.1:9000/bucket/key"
