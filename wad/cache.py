"""Fetch-or-build-and-store orchestration of a build artifact."""

from __future__ import annotations

import enum
import pathlib
from typing import TYPE_CHECKING, Final, Iterable

import wad.archive
import wad.errors
import wad.file
import wad.install
import wad.key
import wad.logger
import wad.s3

if TYPE_CHECKING:
    import wad.conf

CONTENT_TYPE: Final = "application/x-download"


class ArtifactState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONFIG_CHECKED = "config_checked"
    FETCHING = "fetching"
    FETCHED = "fetched"
    MISSING = "missing"
    UNPACKING = "unpacking"
    READY = "ready"
    INSTALLING = "installing"
    BUILT = "built"
    PACKING = "packing"
    PACKED = "packed"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


class ArtifactCache:
    """Restores a packed artifact from the object store or builds and stores it.

    Store errors never fail a run since a fresh install is always a safe
    fallback. Install and unpack failures are fatal.
    """

    def __init__(
        self,
        conf: wad.conf.Conf,
        logger: wad.logger.Logger | None = None,
        *,
        client: wad.s3.Client | None = None,
        archiver: wad.archive.Archiver | None = None,
        installer: wad.install.Installer | None = None,
    ):
        self.conf = conf
        self.logger = logger or wad.logger.Logger(verbose=conf.verbose)
        self.archiver = archiver or wad.archive.Archiver(conf.root)
        self.installer = installer or wad.install.Installer(
            conf.root, command=conf.install_command, without=conf.without
        )
        if client is None and conf.store.enabled:
            client = wad.s3.Client(conf.store, self.logger)

        self.client = client
        self.state = ArtifactState.UNINITIALIZED
        self._key: str | None = None

    @property
    def enabled(self) -> bool:
        return self.client is not None and self.conf.store.enabled

    @property
    def key(self) -> str:
        """The cache key, computed once per run."""
        if self._key is None:
            self._key = wad.key.compute(
                wad.key.fingerprint(),
                self.conf.environment_variables,
                self.conf.files,
                root=self.conf.root,
            )

        return self._key

    @property
    def object_key(self) -> str:
        return f"{self.key}.tar.bz2"

    @property
    def artifact_path(self) -> pathlib.Path:
        return self.conf.tmp_dir / self.object_key

    def _check_config(self) -> bool:
        self.state = ArtifactState.CONFIG_CHECKED
        if not self.enabled:
            self.logger.info(
                "No S3 credentials defined. Set WAD_S3_CREDENTIALS= and "
                "WAD_S3_BUCKET_NAME= for caching."
            )

        return self.enabled

    def _require_client(self) -> wad.s3.Client:
        if self.client is None:
            raise wad.errors.ConfigurationError(
                "Please configure S3 credentials with WAD_S3_CREDENTIALS="
            )

        return self.client

    def fetch(self) -> bool:
        """Download the artifact. Returns False on a cache miss."""
        client = self._require_client()

        self.state = ArtifactState.FETCHING
        if wad.file.remove(self.artifact_path):
            self.logger.info("Removed stale artifact from filesystem")

        self.logger.info(f"Trying to fetch {self.object_key} from S3")
        with self.logger.step("Fetch"):
            try:
                response = client.download(self.object_key, self.artifact_path)
            except wad.errors.RequestError as exc:
                self.logger.warn(f"Could not reach S3: {exc}")
                self.state = ArtifactState.MISSING
                return False
            except OSError as exc:
                self.logger.warn(f"Could not write {self.artifact_path.name}: {exc}")
                self.state = ArtifactState.MISSING
                return False

        if not response.success:
            self.logger.info(f"No artifact in S3 (HTTP {response.status_code})")
            self.state = ArtifactState.MISSING
            return False

        self.state = ArtifactState.FETCHED
        return True

    def unpack(self) -> None:
        self.state = ArtifactState.UNPACKING
        self.logger.info(f"Unpacking artifact with tar ({self.artifact_path.name})")
        with self.logger.step("Unpack"):
            result = self.archiver.unpack(self.artifact_path)

        if not result.exited_zero:
            self.state = ArtifactState.FAILED
            raise wad.errors.ExternalProcessError(
                f"Unpacking {self.artifact_path.name} failed with exit code"
                f" {result.returncode}: {result.stderr.strip()}",
                step="unpack",
                stderr=result.stderr,
            )

        self.state = ArtifactState.READY

    def install(self) -> None:
        self.state = ArtifactState.INSTALLING
        self.logger.info(f"Installing with `{self.installer.command}`")
        with self.logger.step("Install"):
            result = self.installer.install()

        if not result.exited_zero:
            self.state = ArtifactState.FAILED
            raise wad.errors.ExternalProcessError(
                f"Install command `{self.installer.command}` failed with exit code"
                f" {result.returncode}. Please review the logs.",
                step="install",
                stderr=result.stderr,
            )

        self.state = ArtifactState.BUILT

    def pack(self, paths: Iterable[str]) -> bool:
        """Create the artifact from the paths that exist. Returns False if
        nothing was packed.
        """
        self.state = ArtifactState.PACKING
        paths = list(paths)
        existing = [path for path in paths if (self.conf.root / path).exists()]
        for path in paths:
            if path not in existing:
                self.logger.info(f"Skipping missing cache path {path}")

        if not existing:
            self.logger.info("No cache paths exist, skipping upload")
            return False

        self.logger.info(f"Creating artifact with tar ({self.artifact_path.name})")
        wad.file.make_parent_dirs(self.artifact_path)
        with self.logger.step("Pack"):
            result = self.archiver.pack(self.artifact_path, existing)

        if not result.exited_zero:
            wad.file.remove(self.artifact_path)
            self.logger.error(
                f"Creating artifact failed with exit code {result.returncode}:"
                f" {result.stderr.strip()}"
            )
            return False

        self.state = ArtifactState.PACKED
        return True

    def put(self) -> bool:
        """Upload the packed artifact. Store failures are logged, never raised."""
        client = self._require_client()

        self.state = ArtifactState.UPLOADING
        self.logger.info("Trying to write artifact to S3")
        with self.logger.step("Upload"):
            try:
                response = client.upload(
                    self.object_key, self.artifact_path, content_type=CONTENT_TYPE
                )
            except wad.errors.RequestError as exc:
                response = None
                self.logger.warn(f"Could not reach S3: {exc}")

        self.state = ArtifactState.DONE
        if response is None or not response.success:
            if response is not None:
                self.logger.warn(f"S3 responded with HTTP {response.status_code}")

            self.logger.warn("Failed to write to S3, debug with `wad -v`")
            return False

        self.logger.success("Wrote artifact to S3")
        return True

    def setup(self) -> None:
        """Restore the artifact, or install and store a fresh one."""
        if not self._check_config():
            self.install()
            self.state = ArtifactState.DONE
        elif self.fetch():
            self.unpack()
        else:
            self.install()
            if self.pack(self.conf.cache_paths):
                self.put()

            self.state = ArtifactState.DONE

    def download(self) -> bool:
        """Fetch and unpack the artifact without installing on a miss."""
        if not self._check_config() or not self.fetch():
            return False

        self.unpack()
        return True

    def upload(self, paths: Iterable[str] | None = None) -> bool:
        """Pack and store the artifact without fetching or installing.

        An artifact already on disk was either fetched from or written to
        the store earlier in this job, so it is not uploaded again.
        """
        if not self._check_config():
            return False

        if self.artifact_path.exists():
            self.logger.info(f"{self.artifact_path.name} already present, skipping upload")
            self.state = ArtifactState.DONE
            return True

        paths = list(paths or []) or self.conf.cache_paths
        if not self.pack(paths):
            self.state = ArtifactState.DONE
            return False

        return self.put()
