"""Signatures for AWS signature version 2 requests."""

from __future__ import annotations

import base64
import hashlib
import hmac

import wad.conf


class Authorization:
    """Computes the Authorization header for a request message from a
    pair of credentials.
    """

    def __init__(self, credentials: wad.conf.Credentials):
        self.access_key_id = credentials.access_key_id
        self._secret_key = credentials.secret_key.encode()

    def hmac_sha1(self, message: bytes | str) -> bytes:
        if isinstance(message, str):
            message = message.encode()

        return hmac.new(self._secret_key, message, hashlib.sha1).digest()

    def sign(self, message: bytes | str) -> str:
        """Return the base64 signature of a canonical request message."""
        return base64.b64encode(self.hmac_sha1(message)).decode().strip()

    def header(self, message: bytes | str) -> str:
        """Return the value of the Authorization header for a message."""
        return f"AWS {self.access_key_id}:{self.sign(message)}"
