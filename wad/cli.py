from __future__ import annotations

import argparse
import sys

import msgspec

import wad.cache
import wad.conf
import wad.errors
import wad.logger


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wad",
        description="Fetch a cached build artifact from S3, or install and store a fresh one.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log signed URLs and step timing."
    )

    # Allow -v after a subcommand too
    verbose = argparse.ArgumentParser(add_help=False)
    verbose.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser(
        "download", help="Fetch and unpack the artifact only.", parents=[verbose]
    )
    upload = subparsers.add_parser(
        "upload", help="Pack and store the artifact only.", parents=[verbose]
    )
    upload.add_argument("paths", help="Directories to pack.", nargs="*")
    return parser


def _run(args: argparse.Namespace, conf: wad.conf.Conf) -> None:
    logger = wad.logger.Logger(verbose=conf.verbose)
    artifact_cache = wad.cache.ArtifactCache(conf, logger)
    try:
        match args.command:
            case "download":
                if not artifact_cache.download():
                    logger.error("No artifact downloaded")
                    sys.exit(1)
            case "upload":
                artifact_cache.upload(args.paths)
            case _:
                artifact_cache.setup()
    finally:
        if artifact_cache.client:
            artifact_cache.client.close()


def wad_entry(argv: list[str] | None = None) -> None:
    """The entrypoint into the wad CLI."""
    args = _parser().parse_args(argv)

    with wad.errors.catch_and_exit(verbose=args.verbose):
        conf = wad.conf.load()
        if args.verbose:
            conf = msgspec.structs.replace(conf, verbose=True)

    # WAD_VERBOSE also shows tracebacks of failed steps
    with wad.errors.catch_and_exit(verbose=conf.verbose):
        _run(args, conf)
