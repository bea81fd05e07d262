"""
Genesis construction.

`GenesisBuilder` turns validated inputs into a `GenesisArtifact`: the
configuration, its canonical bytes, their content hash and the archive
that carries them. Inputs are checked in a fixed order and the first
violation is reported:

1. every public key is unique
2. the bootstrap validator's accounts reference each other
3. the total supply fits in 64 bits
4. the cluster type is recognized

Only then is anything encoded. Identical inputs (including the creation
time) always produce identical bytes and therefore the same hash.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from cluster_genesis.config import DEFAULT_POLICY, ClusterPolicy
from cluster_genesis.errors import (
    ArchiveTooLargeError,
    InvalidAccountDeclarationError,
    LedgerDirectoryNotEmptyError,
    SupplyOverflowError,
)
from cluster_genesis.fs import atomic_write_bytes
from cluster_genesis.types import Bytes32, Uint64

from . import archive
from .accounts import (
    AccountDeclaration,
    AccountRole,
    Accounts,
    BootstrapValidatorTriple,
    stake_config_account,
)
from .canonical import content_hash, encode_genesis
from .cluster_type import ClusterType
from .config import BootstrapValidatorKeys, GenesisConfig
from .economics import FeeRateGovernor, Inflation, Rent
from .epoch_schedule import EpochSchedule, compute
from .manifest import GenesisManifest
from .parameters import GenesisParameters
from .tick_rate import PohConfig, TickRateCalibrator

logger = logging.getLogger(__name__)

MAX_SUPPLY = Uint64.max_value()
"""Largest total supply the ledger can represent."""


@dataclass(frozen=True, slots=True)
class GenesisArtifact:
    """
    A built genesis, ready to be written to a ledger directory.

    Attributes:
        config: The genesis configuration.
        canonical_bytes: Its canonical encoding.
        content_hash: SHA-256 of `canonical_bytes`.
        archive: The tar+bzip2 archive holding `canonical_bytes`.
    """

    config: GenesisConfig
    canonical_bytes: bytes
    content_hash: Bytes32
    archive: bytes

    @property
    def unpacked_size(self) -> int:
        """Bytes a node must accept to unpack this genesis."""
        return len(self.canonical_bytes)

    def manifest(self) -> GenesisManifest:
        """Summary written next to the archive."""
        return GenesisManifest(
            genesis_hash=self.content_hash.hex(),
            unpacked_size=self.unpacked_size,
            archive_sha256=hashlib.sha256(self.archive).hexdigest(),
            cluster_type=self.config.cluster.value,
            creation_time=int(self.config.creation_time),
        )


class GenesisBuilder:
    """Validates genesis inputs and assembles the artifact."""

    def __init__(self, policy: ClusterPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def build(
        self,
        declarations: Iterable[AccountDeclaration],
        bootstrap_validator: BootstrapValidatorTriple,
        epoch_schedule: EpochSchedule,
        poh_config: PohConfig,
        cluster_type: ClusterType | str,
        max_unpacked_size: int | None = None,
        *,
        creation_time: int,
        rent: Rent | None = None,
        fee_rate_governor: FeeRateGovernor | None = None,
        inflation: Inflation | None = None,
    ) -> GenesisArtifact:
        """
        Build a genesis artifact.

        Args:
            declarations: Accounts other than the bootstrap validator's
                (faucet, primordial accounts).
            bootstrap_validator: The bootstrap validator's identity, vote and
                stake accounts.
            epoch_schedule: Epoch schedule of the cluster.
            poh_config: Resolved tick rate.
            cluster_type: Cluster type or its name.
            max_unpacked_size: Bound on the canonical size; the policy bound
                when omitted.
            creation_time: Unix timestamp recorded in the genesis.
            rent: Rent parameters; also sizes the stake config account.
            fee_rate_governor: Fee parameters.
            inflation: Inflation schedule.

        Raises:
            InvalidAccountDeclarationError: A public key appears twice.
            BootstrapTripleMismatchError: The bootstrap accounts do not
                reference each other.
            SupplyOverflowError: Balances sum past 2**64 - 1.
            UnrecognizedClusterTypeError: `cluster_type` is not recognized.
            ArchiveTooLargeError: The genesis exceeds `max_unpacked_size`.
        """
        rent = rent if rent is not None else Rent.default()
        fee_rate_governor = (
            fee_rate_governor if fee_rate_governor is not None else FeeRateGovernor.new()
        )
        inflation = inflation if inflation is not None else Inflation.full()
        if max_unpacked_size is None:
            max_unpacked_size = self.policy.max_genesis_archive_unpacked_size

        accounts = [
            *declarations,
            *bootstrap_validator.accounts(),
            stake_config_account(rent),
        ]

        self._check_unique(accounts)
        bootstrap_validator.validate_references()
        total = self._check_supply(accounts)
        cluster = ClusterType.parse(cluster_type)

        config = GenesisConfig(
            creation_time=creation_time,
            cluster_type=cluster.code,
            poh_config=poh_config,
            epoch_schedule=epoch_schedule,
            fee_rate_governor=fee_rate_governor,
            rent=rent,
            inflation=inflation,
            bootstrap_validator=BootstrapValidatorKeys(
                identity_pubkey=bootstrap_validator.identity.pubkey,
                vote_pubkey=bootstrap_validator.vote.pubkey,
                stake_pubkey=bootstrap_validator.stake.pubkey,
            ),
            accounts=Accounts(data=sorted(accounts, key=lambda account: bytes(account.pubkey))),
        )

        canonical_bytes = encode_genesis(config)
        if len(canonical_bytes) > max_unpacked_size:
            raise ArchiveTooLargeError(len(canonical_bytes), max_unpacked_size)

        artifact = GenesisArtifact(
            config=config,
            canonical_bytes=canonical_bytes,
            content_hash=content_hash(canonical_bytes),
            archive=archive.pack(canonical_bytes, mtime=creation_time),
        )
        logger.info(
            "Built %s genesis %s: %d accounts, %d lamports, %d bytes",
            cluster.value,
            artifact.content_hash.hex(),
            len(accounts),
            total,
            artifact.unpacked_size,
        )
        return artifact

    @staticmethod
    def _check_unique(accounts: list[AccountDeclaration]) -> None:
        seen: dict[Bytes32, AccountRole] = {}
        for account in accounts:
            if account.pubkey in seen:
                raise InvalidAccountDeclarationError(
                    f"public key {account.pubkey.hex()} is declared more than once "
                    f"({seen[account.pubkey].name.lower()} and {account.account_role.name.lower()})"
                )
            seen[account.pubkey] = account.account_role

    @staticmethod
    def _check_supply(accounts: list[AccountDeclaration]) -> int:
        total = sum(int(account.lamports) for account in accounts)
        if total > int(MAX_SUPPLY):
            raise SupplyOverflowError(total, int(MAX_SUPPLY))
        return total

    def write(
        self, artifact: GenesisArtifact, ledger_dir: Path, *, overwrite: bool = False
    ) -> Path:
        """
        Write the artifact into a new ledger directory.

        Writes `genesis.bin`, `genesis.tar.bz2` and `genesis.manifest.yaml`,
        each through a temporary file and an atomic rename.

        Returns:
            Path of the archive.

        Raises:
            LedgerDirectoryNotEmptyError: `ledger_dir` has entries and
                `overwrite` is not set.
        """
        ledger_dir = Path(ledger_dir)
        if ledger_dir.exists():
            entries = sorted(entry.name for entry in ledger_dir.iterdir())
            if entries and not overwrite:
                raise LedgerDirectoryNotEmptyError(ledger_dir, entries)
            if entries:
                logger.warning("Overwriting genesis in non-empty ledger directory %s", ledger_dir)
        ledger_dir.mkdir(parents=True, exist_ok=True)

        atomic_write_bytes(ledger_dir / archive.GENESIS_FILE_NAME, artifact.canonical_bytes)
        archive_path = atomic_write_bytes(
            ledger_dir / archive.GENESIS_ARCHIVE_NAME, artifact.archive
        )
        artifact.manifest().write(ledger_dir / archive.GENESIS_MANIFEST_NAME)

        logger.info("Wrote genesis archive %s (%d bytes)", archive_path, len(artifact.archive))
        return archive_path


def _check_parameter_balances(params: GenesisParameters) -> None:
    """
    Apply the uniqueness and supply checks to the raw parameters.

    Runs before any account is built, so a balance too large for 64 bits is
    reported as a supply overflow rather than as an encoding failure.
    """
    identity, vote, stake = params.bootstrap_validator
    declared: list[tuple[Bytes32, str]] = [
        (identity, "bootstrap identity"),
        (vote, "bootstrap vote"),
        (stake, "bootstrap stake"),
    ]
    if params.faucet_pubkey is not None:
        declared.append((params.faucet_pubkey, "faucet"))
    declared.extend((account.pubkey, "primordial") for account in params.primordial_accounts)

    seen: dict[Bytes32, str] = {}
    for pubkey, role in declared:
        if pubkey in seen:
            raise InvalidAccountDeclarationError(
                f"public key {pubkey.hex()} is declared more than once ({seen[pubkey]} and {role})"
            )
        seen[pubkey] = role

    total = (
        params.faucet_lamports
        + params.bootstrap_validator_lamports
        + params.bootstrap_validator_stake_lamports
        + sum(account.lamports for account in params.primordial_accounts)
    )
    if total > int(MAX_SUPPLY):
        raise SupplyOverflowError(total, int(MAX_SUPPLY))


def build_from_parameters(
    params: GenesisParameters,
    calibrator: TickRateCalibrator | None = None,
    *,
    now: int | None = None,
) -> GenesisArtifact:
    """
    Run the whole genesis pipeline from one parameter value.

    Args:
        params: Validated operator parameters.
        calibrator: Resolves the tick rate; built from `params.policy` when omitted.
        now: Creation time to use when `params.creation_time` is unset;
            the current time when omitted.
    """
    policy = params.policy
    _check_parameter_balances(params)
    cluster = ClusterType.parse(params.cluster_type)
    calibrator = calibrator if calibrator is not None else TickRateCalibrator.from_policy(policy)

    rent = params.rent()
    identity, vote, stake = params.bootstrap_validator
    triple = BootstrapValidatorTriple.create(
        identity,
        vote,
        stake,
        lamports=params.bootstrap_validator_lamports,
        stake_lamports=params.bootstrap_validator_stake_lamports,
        rent=rent,
        authorized=params.bootstrap_stake_authorized_pubkey,
    )

    declarations: list[AccountDeclaration] = []
    if params.faucet_pubkey is not None:
        declarations.append(
            AccountDeclaration.system_account(
                params.faucet_pubkey, params.faucet_lamports, AccountRole.FAUCET
            )
        )
    declarations.extend(
        AccountDeclaration.system_account(account.pubkey, account.lamports)
        for account in params.primordial_accounts
    )

    epoch_schedule = compute(
        warmup=params.enable_warmup_epochs,
        target_slots_per_epoch=params.resolved_slots_per_epoch(cluster),
        minimum_slots_floor=policy.minimum_slots_per_epoch,
    )
    poh_config = calibrator.resolve(
        params.tick_rate_mode,
        cluster,
        ticks_per_slot=policy.ticks_per_slot,
        target_tick_duration_us=policy.target_tick_duration_us,
    )

    if params.creation_time is not None:
        creation_time = params.creation_time
    else:
        creation_time = now if now is not None else int(time.time())

    return GenesisBuilder(policy).build(
        declarations,
        triple,
        epoch_schedule,
        poh_config,
        cluster,
        creation_time=creation_time,
        rent=rent,
        fee_rate_governor=params.fee_rate_governor(),
        inflation=params.inflation.to_inflation(),
    )
