"""Building signed requests for the object store.

The canonical string is recomputed by the server. Any difference in
field order, whitespace or the empty Content-MD5 line invalidates the
signature.
"""

from __future__ import annotations

import email.utils
import importlib.metadata
import os
from typing import IO, TYPE_CHECKING, Final, TypeAlias

import msgspec

import wad.errors

if TYPE_CHECKING:
    import wad.auth
    import wad.conf


def _user_agent() -> str:
    try:
        return f"wad/{importlib.metadata.version('wad')}"
    except importlib.metadata.PackageNotFoundError:
        return "wad"


USER_AGENT: Final = _user_agent()


class Buffer(msgspec.Struct, frozen=True, tag=True):
    """An in-memory request body."""

    data: bytes


class Stream(msgspec.Struct, frozen=True, tag=True):
    """A request body read from a binary file-like object.

    When length is None, the size is taken from the underlying file if
    it has one. Otherwise the body is sent with chunked encoding.
    """

    source: IO[bytes]
    length: int | None = None


Body: TypeAlias = Buffer | Stream


class SignedRequest(msgspec.Struct, frozen=True):
    method: str
    url: str
    headers: dict[str, str]
    body: Body | None = None


def canonical_path(bucket_name: str | None, object_key: str) -> str:
    """Return the canonicalized resource for an object key."""
    if not bucket_name:
        raise wad.errors.ConfigurationError(
            "Please configure a bucket name with WAD_S3_BUCKET_NAME="
        )

    return f"/{bucket_name}/{object_key.lstrip('/')}"


def canonical_string(verb: str, content_type: str | None, timestamp: str, path: str) -> str:
    return "\n".join([verb.upper(), "", content_type or "", timestamp, path])


def timestamp(now: float | None = None) -> str:
    """An RFC 2822 date in GMT, as used by the Date header."""
    return email.utils.formatdate(now, usegmt=True)


def build_headers(
    authorization: wad.auth.Authorization,
    timestamp: str,
    message: str,
    content_type: str | None = None,
) -> dict[str, str]:
    headers = {
        "Authorization": authorization.header(message),
        "Date": timestamp,
        "User-Agent": USER_AGENT,
    }
    if content_type:
        headers["Content-Type"] = content_type

    return headers


def content_length(body: Body | None) -> int | None:
    """The size of a body, or None if it can't be known up front."""
    match body:
        case None:
            return None
        case Buffer(data=data):
            return len(data)
        case Stream(length=int() as length):
            return length
        case Stream(source=source):
            try:
                return os.fstat(source.fileno()).st_size - source.tell()
            except (AttributeError, OSError, ValueError):
                return None


def build(
    store: wad.conf.StoreConf,
    authorization: wad.auth.Authorization,
    verb: str,
    object_key: str,
    *,
    body: Body | None = None,
    content_type: str | None = None,
    now: float | None = None,
) -> SignedRequest:
    """Build a signed request for an object."""
    path = canonical_path(store.bucket_name, object_key)
    date = timestamp(now)
    message = canonical_string(verb, content_type, date, path)
    headers = build_headers(authorization, date, message, content_type)

    if (length := content_length(body)) is not None:
        headers["Content-Length"] = str(length)

    return SignedRequest(
        method=verb.upper(), url=f"{store.base_url}{path}", headers=headers, body=body
    )
