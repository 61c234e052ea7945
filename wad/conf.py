"""Wad configuration loading.

Configuration is read once from the environment at startup and handed
explicitly to the components that need it.
"""

from __future__ import annotations

import os
import pathlib
from typing import Final, Mapping

import msgspec

import wad.errors

DEFAULT_REGION: Final = "us-east-1"
DEFAULT_FILES: Final = ("uv.lock",)
DEFAULT_CACHE_PATHS: Final = (".venv",)
DEFAULT_WITHOUT: Final = "dev"


class Credentials(msgspec.Struct, frozen=True):
    access_key_id: str
    secret_key: str


class StoreConf(msgspec.Struct, frozen=True):
    bucket_name: str | None = None
    region: str = DEFAULT_REGION
    credentials: Credentials | None = None
    endpoint_url: str | None = None

    @property
    def host(self) -> str:
        if self.region == "us-east-1":
            return "s3.amazonaws.com"
        else:
            return f"s3-{self.region}.amazonaws.com"

    @property
    def base_url(self) -> str:
        return self.endpoint_url.rstrip("/") if self.endpoint_url else f"https://{self.host}"

    @property
    def enabled(self) -> bool:
        return bool(self.bucket_name and self.credentials)


class Conf(msgspec.Struct, frozen=True, kw_only=True):
    store: StoreConf = msgspec.field(default_factory=StoreConf)
    environment_variables: list[str] = []
    files: list[str] = msgspec.field(default_factory=lambda: list(DEFAULT_FILES))
    cache_paths: list[str] = msgspec.field(default_factory=lambda: list(DEFAULT_CACHE_PATHS))
    install_command: str | None = None
    without: str = DEFAULT_WITHOUT
    verbose: bool = False
    root: pathlib.Path = msgspec.field(default_factory=pathlib.Path.cwd)

    @property
    def tmp_dir(self) -> pathlib.Path:
        return self.root / "tmp"


def _first(environ: Mapping[str, str], *keys: str) -> str | None:
    return next((environ[key] for key in keys if environ.get(key)), None)


def _list(val: str | None, default: tuple[str, ...] | list[str]) -> list[str]:
    if val is None:
        return list(default)

    return [item.strip() for item in val.split(",") if item.strip()]


def _bool(environ: Mapping[str, str], key: str) -> bool:
    env_setting = environ.get(key)
    if env_setting is None:
        return False

    if env_setting.lower().strip() in ("yes", "true", "1", "no", "false", "0", ""):
        return env_setting.lower().strip() in ("yes", "true", "1")
    else:
        raise wad.errors.EnvCast(f'Unable to cast env {key} value "{env_setting}" as bool.')


def parse_credentials(val: str | None) -> Credentials | None:
    """Parse an "access_key_id:secret_key" pair."""
    if not val:
        return None

    access_key_id, sep, secret_key = val.partition(":")
    if not sep or not access_key_id or not secret_key:
        raise wad.errors.ConfigurationError(
            "S3 credentials must be formatted as WAD_S3_CREDENTIALS=access_key_id:secret_key"
        )

    return Credentials(access_key_id=access_key_id, secret_key=secret_key)


def load(environ: Mapping[str, str] | None = None, root: pathlib.Path | None = None) -> Conf:
    """Load configuration from environment variables."""
    environ = os.environ if environ is None else environ

    store = StoreConf(
        bucket_name=_first(environ, "WAD_S3_BUCKET_NAME", "S3_BUCKET_NAME"),
        region=environ.get("WAD_AWS_REGION") or DEFAULT_REGION,
        credentials=parse_credentials(_first(environ, "WAD_S3_CREDENTIALS", "S3_CREDENTIALS")),
        endpoint_url=environ.get("WAD_S3_ENDPOINT") or None,
    )
    return Conf(
        store=store,
        environment_variables=_list(environ.get("WAD_ENVIRONMENT_VARIABLES"), []),
        files=_list(environ.get("WAD_FILES"), DEFAULT_FILES),
        cache_paths=_list(environ.get("WAD_CACHE_PATH"), DEFAULT_CACHE_PATHS),
        install_command=environ.get("WAD_INSTALL_COMMAND") or None,
        without=environ.get("WAD_BUNDLE_WITHOUT") or DEFAULT_WITHOUT,
        verbose=_bool(environ, "WAD_VERBOSE"),
        root=root or pathlib.Path.cwd(),
    )
