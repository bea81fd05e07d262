"""
Genesis configuration: the root of trust of a cluster.

Everything a node needs to agree on before processing its first slot is in
`GenesisConfig`. It is built once, encoded, hashed and archived; every node
that joins later must reproduce the exact same bytes.
"""

from __future__ import annotations

from pydantic import field_validator, model_validator
from typing_extensions import Self

from cluster_genesis.errors import InvalidAccountDeclarationError
from cluster_genesis.types import Bytes32, Container, Uint8, Uint64

from .accounts import AccountDeclaration, Accounts, BootstrapValidatorTriple
from .cluster_type import ClusterType
from .economics import FeeRateGovernor, Inflation, Rent
from .epoch_schedule import EpochSchedule
from .tick_rate import PohConfig


class BootstrapValidatorKeys(Container):
    """Public keys of the bootstrap validator's accounts."""

    identity_pubkey: Bytes32
    vote_pubkey: Bytes32
    stake_pubkey: Bytes32


class GenesisConfig(Container):
    """
    The initial state of a cluster.

    `accounts` holds every genesis account, including the bootstrap
    validator's three, in strictly ascending public key order.
    """

    creation_time: Uint64
    """Unix timestamp (seconds) the genesis was created at."""

    cluster_type: Uint8
    """`ClusterType.code` of the cluster."""

    poh_config: PohConfig
    epoch_schedule: EpochSchedule
    fee_rate_governor: FeeRateGovernor
    rent: Rent
    inflation: Inflation
    bootstrap_validator: BootstrapValidatorKeys
    accounts: Accounts

    @field_validator("cluster_type")
    @classmethod
    def _validate_cluster_type(cls, v: Uint8) -> Uint8:
        ClusterType.from_code(int(v))
        return v

    @model_validator(mode="after")
    def _validate_accounts(self) -> Self:
        previous: Bytes32 | None = None
        for account in self.accounts:
            if previous is not None and bytes(account.pubkey) <= bytes(previous):
                raise ValueError("genesis accounts are not in strictly ascending pubkey order")
            previous = account.pubkey

        keys = self.bootstrap_validator
        for pubkey in (keys.identity_pubkey, keys.vote_pubkey, keys.stake_pubkey):
            if self.find_account(pubkey) is None:
                raise ValueError(f"bootstrap validator account {pubkey.hex()} is missing")
        return self

    @property
    def cluster(self) -> ClusterType:
        """The cluster type as an enum member."""
        return ClusterType.from_code(int(self.cluster_type))

    @property
    def ticks_per_slot(self) -> int:
        """Ticks in every slot."""
        return int(self.poh_config.ticks_per_slot)

    def find_account(self, pubkey: Bytes32) -> AccountDeclaration | None:
        """Look up the account with `pubkey`, if present."""
        for account in self.accounts:
            if account.pubkey == pubkey:
                return account
        return None

    def total_lamports(self) -> int:
        """Sum of every genesis balance."""
        return sum(int(account.lamports) for account in self.accounts)

    def bootstrap_triple(self) -> BootstrapValidatorTriple:
        """
        Reassemble the bootstrap validator's accounts.

        Raises:
            InvalidAccountDeclarationError: One of the accounts is missing.
        """
        found = []
        keys = self.bootstrap_validator
        for pubkey in (keys.identity_pubkey, keys.vote_pubkey, keys.stake_pubkey):
            account = self.find_account(pubkey)
            if account is None:
                raise InvalidAccountDeclarationError(
                    f"bootstrap validator account {pubkey.hex()} is missing"
                )
            found.append(account)
        identity, vote, stake = found
        return BootstrapValidatorTriple(identity=identity, vote=vote, stake=stake)
