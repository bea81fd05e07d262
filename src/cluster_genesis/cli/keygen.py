"""
Keypair generation command.

Usage::

    cluster-keygen new -o ~/faucet.json
    cluster-keygen new --no-passphrase -so ledger-keys/identity.json
    cluster-keygen new --no-passphrase -fso ledger-keys/identity.json
    cluster-keygen pubkey ledger-keys/identity.json

Without `--no-passphrase` the passphrase is read from the
CLUSTER_KEYGEN_PASSPHRASE environment variable or prompted for twice.
"""

from __future__ import annotations

import argparse
import getpass
import os
from pathlib import Path
from typing import Sequence

from cluster_genesis.errors import KeyFileExistsError, KeyMaterialError
from cluster_genesis.keys import KeypairGenerator, read_pubkey, save

from .common import HANDLED_ERRORS, report_error, setup_logging

PASSPHRASE_ENV_VAR = "CLUSTER_KEYGEN_PASSPHRASE"

DEFAULT_KEYPAIR_PATH = Path.home() / ".config" / "cluster-genesis" / "id.json"


def read_passphrase(environ: dict[str, str] | None = None) -> str:
    """
    Get the passphrase from the environment, or prompt for it twice.

    Raises:
        KeyMaterialError: The two prompted passphrases differ, or are empty.
    """
    environ = environ if environ is not None else dict(os.environ)
    if PASSPHRASE_ENV_VAR in environ:
        passphrase = environ[PASSPHRASE_ENV_VAR]
    else:
        passphrase = getpass.getpass("Passphrase: ")
    if not passphrase:
        raise KeyMaterialError("empty passphrase; use --no-passphrase to skip encryption")
    if PASSPHRASE_ENV_VAR not in environ and getpass.getpass("Confirm passphrase: ") != passphrase:
        raise KeyMaterialError("passphrases do not match")
    return passphrase


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for `cluster-keygen`."""
    parser = argparse.ArgumentParser(
        prog="cluster-keygen",
        description="Generate and inspect cluster keypairs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored logging output")
    subcommands = parser.add_subparsers(dest="command", required=True)

    new = subcommands.add_parser("new", help="Generate a new keypair file")
    new.add_argument(
        "-o",
        "--outfile",
        type=Path,
        default=DEFAULT_KEYPAIR_PATH,
        help=f"Path to the keypair file (default: {DEFAULT_KEYPAIR_PATH})",
    )
    new.add_argument(
        "-f", "--force", action="store_true", help="Overwrite the keypair file if it exists"
    )
    new.add_argument(
        "-s", "--silent", action="store_true", help="Do not print the public key"
    )
    new.add_argument(
        "--no-passphrase",
        action="store_true",
        help="Store the secret key unencrypted",
    )

    pubkey = subcommands.add_parser("pubkey", help="Print the public key of a keypair file")
    pubkey.add_argument("keypair", help="Keypair file")

    return parser


def run_new(args: argparse.Namespace, generator: KeypairGenerator) -> int:
    """Generate and save a keypair."""
    outfile: Path = args.outfile
    if outfile.exists() and not args.force:
        # Fail before prompting for a passphrase.
        raise KeyFileExistsError(outfile)

    passphrase = None if args.no_passphrase else read_passphrase()
    material = generator.generate(passphrase)
    save(material, outfile, force=args.force)

    if not args.silent:
        print(f"Wrote new keypair to {outfile}")
        print(f"pubkey: {material.pubkey_hex}")
    return 0


def main(argv: Sequence[str] | None = None, generator: KeypairGenerator | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    silent = getattr(args, "silent", False)
    setup_logging(args.verbose, args.no_color, quiet=silent)

    try:
        if args.command == "new":
            return run_new(args, generator if generator is not None else KeypairGenerator())
        print(read_pubkey(args.keypair).hex())
        return 0
    except HANDLED_ERRORS as e:
        return report_error(e)


if __name__ == "__main__":
    raise SystemExit(main())
