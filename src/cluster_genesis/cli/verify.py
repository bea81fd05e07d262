"""
Genesis verification command.

Usage::

    cluster-genesis-verify ./ledger --expected-genesis-hash 5f2a...
    cluster-genesis-verify ./ledger/genesis.tar.bz2

The argument is a genesis archive or a ledger directory holding one. The
recomputed genesis hash is printed on success.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from cluster_genesis.config import MAX_GENESIS_ARCHIVE_UNPACKED_SIZE
from cluster_genesis.genesis import GenesisVerifier
from cluster_genesis.genesis.archive import GENESIS_ARCHIVE_NAME

from .common import HANDLED_ERRORS, report_error, setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for `cluster-genesis-verify`."""
    parser = argparse.ArgumentParser(
        prog="cluster-genesis-verify",
        description="Check a genesis archive against its expected hash",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("artifact", type=Path, help="Genesis archive or ledger directory")
    parser.add_argument(
        "--expected-genesis-hash",
        metavar="HEX",
        help="Fail unless the genesis hashes to this value",
    )
    parser.add_argument(
        "--max-genesis-archive-unpacked-size",
        type=int,
        default=MAX_GENESIS_ARCHIVE_UNPACKED_SIZE,
        metavar="BYTES",
        help=f"Largest accepted genesis (default: {MAX_GENESIS_ARCHIVE_UNPACKED_SIZE})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored logging output")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.no_color)

    path: Path = args.artifact
    if path.is_dir():
        path = path / GENESIS_ARCHIVE_NAME

    try:
        verifier = GenesisVerifier(args.max_genesis_archive_unpacked_size)
        _, actual = verifier.verify_artifact(path, args.expected_genesis_hash)
    except HANDLED_ERRORS as e:
        return report_error(e)

    print(actual.hex())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
