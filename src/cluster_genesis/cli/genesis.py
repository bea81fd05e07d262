"""
Genesis construction command.

Usage::

    cluster-genesis \\
        --bootstrap-validator identity.json vote.json stake.json \\
        --ledger ./ledger \\
        --faucet-pubkey faucet.json --faucet-lamports 500000000000000000 \\
        --cluster-type development --hashes-per-tick auto \\
        --enable-warmup-epochs

Public keys may be given as keypair files or as hex strings. Every flag can
also be set in a YAML file passed with `--config`; flags on the command
line take precedence. The genesis hash is printed on success.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Sequence

from cluster_genesis.config import (
    DEFAULT_BOOTSTRAP_VALIDATOR_LAMPORTS,
    DEFAULT_BOOTSTRAP_VALIDATOR_STAKE_LAMPORTS,
    MAX_GENESIS_ARCHIVE_UNPACKED_SIZE,
)
from cluster_genesis.genesis import (
    FixedTickRate,
    GenesisBuilder,
    GenesisParameters,
    InflationPreset,
    TickRateCalibrator,
    build_from_parameters,
    parse_tick_rate,
)
from cluster_genesis.genesis.parameters import merge_parameters
from cluster_genesis.keys import read_pubkey

from .common import HANDLED_ERRORS, report_error, setup_logging

# Flags whose destination is also the GenesisParameters field name.
_PARAMETER_FLAGS = (
    "faucet_lamports",
    "bootstrap_validator_lamports",
    "bootstrap_validator_stake_lamports",
    "cluster_type",
    "slots_per_epoch",
    "creation_time",
    "lamports_per_byte_year",
    "rent_exemption_threshold_bps",
    "rent_burn_percentage",
    "fee_burn_percentage",
    "target_lamports_per_signature",
    "target_signatures_per_slot",
    "inflation",
)

# CLI destination -> ClusterPolicy field.
_POLICY_FLAGS = {
    "ticks_per_slot": "ticks_per_slot",
    "target_tick_duration": "target_tick_duration_us",
    "max_genesis_archive_unpacked_size": "max_genesis_archive_unpacked_size",
}


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for `cluster-genesis`."""
    parser = argparse.ArgumentParser(
        prog="cluster-genesis",
        description="Create a genesis ledger for a new cluster",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "-b",
        "--bootstrap-validator",
        nargs=3,
        metavar=("IDENTITY", "VOTE", "STAKE"),
        help="The bootstrap validator's identity, vote and stake keypair files or pubkeys",
    )
    parser.add_argument(
        "-l", "--ledger", type=Path, required=True, help="Ledger directory to create"
    )
    parser.add_argument("--config", type=Path, help="YAML file with genesis parameters")
    parser.add_argument("--faucet-pubkey", help="Faucet keypair file or pubkey")
    parser.add_argument(
        "-t", "--faucet-lamports", type=int, help="Number of lamports to assign to the faucet"
    )
    parser.add_argument(
        "--bootstrap-stake-authorized-pubkey",
        help="Stake authority of the bootstrap stake account (default: the identity)",
    )
    parser.add_argument(
        "--bootstrap-validator-lamports",
        type=int,
        help=f"Balance of the bootstrap identity (default: {DEFAULT_BOOTSTRAP_VALIDATOR_LAMPORTS})",
    )
    parser.add_argument(
        "--bootstrap-validator-stake-lamports",
        type=int,
        help=(
            "Balance of the bootstrap stake account "
            f"(default: {DEFAULT_BOOTSTRAP_VALIDATOR_STAKE_LAMPORTS})"
        ),
    )
    parser.add_argument(
        "--cluster-type",
        help="development, devnet, testnet or mainnet-beta (default: mainnet-beta)",
    )
    parser.add_argument(
        "--hashes-per-tick",
        help="Hashes per tick, or 'auto' to derive it from the cluster type (default: auto)",
    )
    parser.add_argument(
        "--enable-warmup-epochs",
        action="store_true",
        default=None,
        help="Start with short epochs that double until they reach --slots-per-epoch",
    )
    parser.add_argument("--slots-per-epoch", type=int, help="Steady-state slots per epoch")
    parser.add_argument("--ticks-per-slot", type=int, help="Ticks in every slot")
    parser.add_argument(
        "--target-tick-duration", type=int, metavar="MICROS", help="Target tick duration"
    )
    parser.add_argument(
        "--max-genesis-archive-unpacked-size",
        type=int,
        metavar="BYTES",
        help=f"Largest accepted genesis (default: {MAX_GENESIS_ARCHIVE_UNPACKED_SIZE})",
    )
    parser.add_argument("--lamports-per-byte-year", type=int)
    parser.add_argument(
        "--rent-exemption-threshold-bps",
        type=int,
        help="Years of rent, in basis points, that make an account rent exempt",
    )
    parser.add_argument("--rent-burn-percentage", type=int)
    parser.add_argument("--fee-burn-percentage", type=int)
    parser.add_argument("--target-lamports-per-signature", type=int)
    parser.add_argument("--target-signatures-per-slot", type=int)
    parser.add_argument("--inflation", choices=[preset.value for preset in InflationPreset])
    parser.add_argument(
        "--creation-time",
        type=int,
        metavar="UNIX",
        help="Creation time to record (default: now); pin it for reproducible builds",
    )
    parser.add_argument(
        "--overwrite", action="store_true", help="Write into a non-empty ledger directory"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored logging output")
    return parser


def parameters_from_args(args: argparse.Namespace) -> GenesisParameters:
    """
    Build the genesis parameters from parsed arguments.

    Raises:
        FileNotFoundError: A public key file does not exist.
        CorruptKeyFileError: A public key file cannot be parsed.
        pydantic.ValidationError: The combined parameters are invalid.
    """
    overrides: dict[str, Any] = {
        name: getattr(args, name) for name in _PARAMETER_FLAGS if getattr(args, name) is not None
    }
    if args.hashes_per_tick is not None:
        mode = parse_tick_rate(args.hashes_per_tick)
        overrides["hashes_per_tick"] = (
            mode.hashes_per_tick if isinstance(mode, FixedTickRate) else "auto"
        )
    if args.enable_warmup_epochs is not None:
        overrides["enable_warmup_epochs"] = True
    if args.bootstrap_validator is not None:
        overrides["bootstrap_validator"] = [read_pubkey(path) for path in args.bootstrap_validator]
    if args.faucet_pubkey is not None:
        overrides["faucet_pubkey"] = read_pubkey(args.faucet_pubkey)
    if args.bootstrap_stake_authorized_pubkey is not None:
        overrides["bootstrap_stake_authorized_pubkey"] = read_pubkey(
            args.bootstrap_stake_authorized_pubkey
        )

    policy = {
        field: getattr(args, flag)
        for flag, field in _POLICY_FLAGS.items()
        if getattr(args, flag) is not None
    }
    if policy:
        overrides["policy"] = policy

    if args.config is not None:
        return GenesisParameters.from_yaml_file(args.config, **overrides)
    return GenesisParameters.model_validate(merge_parameters({}, overrides))


def main(argv: Sequence[str] | None = None, calibrator: TickRateCalibrator | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.no_color)

    if args.bootstrap_validator is None and args.config is None:
        parser.error("--bootstrap-validator is required unless given in --config")

    try:
        params = parameters_from_args(args)
        artifact = build_from_parameters(params, calibrator)
        GenesisBuilder(params.policy).write(artifact, args.ledger, overwrite=args.overwrite)
    except HANDLED_ERRORS as e:
        return report_error(e)

    print(artifact.content_hash.hex())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
