"""
Accounts declared at genesis.

Every account present when the cluster starts is described by an
`AccountDeclaration`. The bootstrap validator contributes three of them (its
identity, vote and stake accounts) whose data must reference each other;
`BootstrapValidatorTriple` builds and checks that triple.
"""

from __future__ import annotations

import hashlib
from enum import IntEnum

from pydantic import field_validator
from typing_extensions import Final, Self

from cluster_genesis.errors import BootstrapTripleMismatchError, InvalidAccountDeclarationError
from cluster_genesis.types import (
    ZERO_HASH,
    BaseByteList,
    Bytes32,
    Container,
    SSZError,
    SSZList,
    Uint8,
    Uint64,
)

from .economics import Rent


def _program_id(name: str) -> Bytes32:
    return Bytes32(hashlib.sha256(f"cluster-genesis/program/{name}".encode()).digest())


SYSTEM_PROGRAM_ID: Final = ZERO_HASH
"""Owner of plain balance accounts."""

VOTE_PROGRAM_ID: Final = _program_id("vote")
"""Owner of vote accounts."""

STAKE_PROGRAM_ID: Final = _program_id("stake")
"""Owner of stake accounts."""

CONFIG_PROGRAM_ID: Final = _program_id("config")
"""Owner of configuration accounts."""

STAKE_CONFIG_ID: Final = _program_id("stake-config")
"""Address of the stake program's configuration account."""

MAX_ACCOUNT_DATA_LENGTH: Final = 10 * 1024
"""Largest data payload a genesis account may carry."""

MAX_GENESIS_ACCOUNTS: Final = 1 << 20
"""Upper bound on the number of accounts in a genesis."""

BOOTSTRAP_ACTIVATION_EPOCH: Final = 2**64 - 1
"""Activation epoch of bootstrap stake: active from genesis, never warming up."""

DEFAULT_VOTE_COMMISSION: Final = 100
"""Commission (percent) of the bootstrap validator's vote account."""

DEFAULT_WARMUP_COOLDOWN_RATE_BPS: Final = 2_500
"""Fraction of total stake, in basis points, that may activate or deactivate per epoch."""

DEFAULT_SLASH_PENALTY: Final = 12
"""Percentage of stake lost on a slashable offence."""


class AccountRole(IntEnum):
    """Why an account exists at genesis."""

    FAUCET = 0
    BOOTSTRAP_IDENTITY = 1
    BOOTSTRAP_VOTE = 2
    BOOTSTRAP_STAKE = 3
    OTHER = 4


class AccountData(BaseByteList):
    """Opaque account data, owned and interpreted by the account's program."""

    LIMIT = MAX_ACCOUNT_DATA_LENGTH


class AccountDeclaration(Container):
    """One account present in the genesis ledger."""

    pubkey: Bytes32
    lamports: Uint64
    owner: Bytes32
    role: Uint8
    data: AccountData

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: Uint8) -> Uint8:
        if int(v) not in {role.value for role in AccountRole}:
            raise ValueError(f"unknown account role {int(v)}")
        return v

    @classmethod
    def system_account(
        cls, pubkey: Bytes32, lamports: int, role: AccountRole = AccountRole.OTHER
    ) -> Self:
        """A plain balance account owned by the system program."""
        return cls(
            pubkey=pubkey,
            lamports=lamports,
            owner=SYSTEM_PROGRAM_ID,
            role=int(role),
            data=AccountData(data=b""),
        )

    @property
    def account_role(self) -> AccountRole:
        """The role as an enum member."""
        return AccountRole(int(self.role))


class Accounts(SSZList[AccountDeclaration]):
    """All accounts of a genesis, sorted by public key."""

    ELEMENT_TYPE = AccountDeclaration
    LIMIT = MAX_GENESIS_ACCOUNTS


class VoteState(Container):
    """Data of a vote account at genesis."""

    node_pubkey: Bytes32
    authorized_voter: Bytes32
    authorized_withdrawer: Bytes32
    commission: Uint8


class StakeState(Container):
    """Data of a delegated stake account at genesis."""

    authorized_staker: Bytes32
    authorized_withdrawer: Bytes32
    voter_pubkey: Bytes32
    stake: Uint64
    activation_epoch: Uint64
    deactivation_epoch: Uint64
    rent_exempt_reserve: Uint64


class StakeConfig(Container):
    """Data of the stake program's configuration account."""

    warmup_cooldown_rate_bps: Uint64
    slash_penalty: Uint8

    @classmethod
    def default(cls) -> Self:
        """Configuration with the cluster defaults."""
        return cls(
            warmup_cooldown_rate_bps=DEFAULT_WARMUP_COOLDOWN_RATE_BPS,
            slash_penalty=DEFAULT_SLASH_PENALTY,
        )


def stake_config_account(rent: Rent) -> AccountDeclaration:
    """
    The stake program's configuration account.

    It holds the rent-exempt minimum for its data (at least one lamport).
    """
    data = StakeConfig.default().encode_bytes()
    return AccountDeclaration(
        pubkey=STAKE_CONFIG_ID,
        lamports=max(rent.minimum_balance(len(data)), 1),
        owner=CONFIG_PROGRAM_ID,
        role=int(AccountRole.OTHER),
        data=AccountData(data=data),
    )


class BootstrapValidatorTriple(Container):
    """
    The identity, vote and stake accounts of the bootstrap validator.

    The vote account names the identity as its node, and the stake account
    delegates to the vote account.
    """

    identity: AccountDeclaration
    vote: AccountDeclaration
    stake: AccountDeclaration

    @classmethod
    def create(
        cls,
        identity: Bytes32,
        vote: Bytes32,
        stake: Bytes32,
        lamports: int,
        stake_lamports: int,
        rent: Rent,
        authorized: Bytes32 | None = None,
        commission: int = DEFAULT_VOTE_COMMISSION,
    ) -> Self:
        """
        Build a consistent triple.

        Args:
            identity: Public key of the validator's identity account.
            vote: Public key of its vote account.
            stake: Public key of its stake account.
            lamports: Balance of the identity account.
            stake_lamports: Balance of the stake account. Everything above
                the stake account's rent reserve is delegated.
            rent: Rent used to size the reserves.
            authorized: Staker and withdrawer authority; defaults to the identity.
            commission: Vote account commission in percent.

        Raises:
            InvalidAccountDeclarationError: `stake_lamports` does not cover the
                stake account's rent reserve, or `commission` exceeds 100.
        """
        if not 0 <= commission <= 100:
            raise InvalidAccountDeclarationError(
                f"vote commission must be in [0, 100], got {commission}"
            )
        authority = authorized if authorized is not None else identity

        vote_data = VoteState(
            node_pubkey=identity,
            authorized_voter=identity,
            authorized_withdrawer=identity,
            commission=commission,
        ).encode_bytes()
        vote_lamports = max(rent.minimum_balance(len(vote_data)), 1)

        stake_reserve = rent.minimum_balance(StakeState.get_byte_length())
        if stake_lamports <= stake_reserve:
            raise InvalidAccountDeclarationError(
                f"bootstrap stake of {stake_lamports} lamports does not exceed "
                f"the stake account rent reserve of {stake_reserve}"
            )
        stake_data = StakeState(
            authorized_staker=authority,
            authorized_withdrawer=authority,
            voter_pubkey=vote,
            stake=stake_lamports - stake_reserve,
            activation_epoch=BOOTSTRAP_ACTIVATION_EPOCH,
            deactivation_epoch=BOOTSTRAP_ACTIVATION_EPOCH,
            rent_exempt_reserve=stake_reserve,
        ).encode_bytes()

        return cls(
            identity=AccountDeclaration.system_account(
                identity, lamports, AccountRole.BOOTSTRAP_IDENTITY
            ),
            vote=AccountDeclaration(
                pubkey=vote,
                lamports=vote_lamports,
                owner=VOTE_PROGRAM_ID,
                role=int(AccountRole.BOOTSTRAP_VOTE),
                data=AccountData(data=vote_data),
            ),
            stake=AccountDeclaration(
                pubkey=stake,
                lamports=stake_lamports,
                owner=STAKE_PROGRAM_ID,
                role=int(AccountRole.BOOTSTRAP_STAKE),
                data=AccountData(data=stake_data),
            ),
        )

    def vote_state(self) -> VoteState:
        """
        Decode the vote account's data.

        Raises:
            InvalidAccountDeclarationError: The data is not a vote state.
        """
        try:
            return VoteState.decode_bytes(bytes(self.vote.data))
        except SSZError as e:
            raise InvalidAccountDeclarationError(
                f"bootstrap vote account data is not a vote state: {e.message}"
            ) from e

    def stake_state(self) -> StakeState:
        """
        Decode the stake account's data.

        Raises:
            InvalidAccountDeclarationError: The data is not a stake state.
        """
        try:
            return StakeState.decode_bytes(bytes(self.stake.data))
        except SSZError as e:
            raise InvalidAccountDeclarationError(
                f"bootstrap stake account data is not a stake state: {e.message}"
            ) from e

    def validate_references(self) -> None:
        """
        Check that the three accounts reference each other.

        Raises:
            BootstrapTripleMismatchError: A recorded key or owner is wrong.
            InvalidAccountDeclarationError: Vote or stake data cannot be decoded.
        """
        expected_owners = (
            ("identity.owner", self.identity.owner, SYSTEM_PROGRAM_ID),
            ("vote.owner", self.vote.owner, VOTE_PROGRAM_ID),
            ("stake.owner", self.stake.owner, STAKE_PROGRAM_ID),
        )
        for field, actual, expected in expected_owners:
            if actual != expected:
                raise BootstrapTripleMismatchError(
                    field, expected=expected.hex(), actual=actual.hex()
                )

        vote_state = self.vote_state()
        if vote_state.node_pubkey != self.identity.pubkey:
            raise BootstrapTripleMismatchError(
                "vote.node_pubkey",
                expected=self.identity.pubkey.hex(),
                actual=vote_state.node_pubkey.hex(),
            )

        stake_state = self.stake_state()
        if stake_state.voter_pubkey != self.vote.pubkey:
            raise BootstrapTripleMismatchError(
                "stake.voter_pubkey",
                expected=self.vote.pubkey.hex(),
                actual=stake_state.voter_pubkey.hex(),
            )

    def accounts(self) -> tuple[AccountDeclaration, AccountDeclaration, AccountDeclaration]:
        """The three declarations in identity, vote, stake order."""
        return (self.identity, self.vote, self.stake)
