"""Tests for genesis account declarations and the bootstrap validator triple."""

import pytest
from pydantic import ValidationError

from cluster_genesis.errors import BootstrapTripleMismatchError, InvalidAccountDeclarationError
from cluster_genesis.genesis import (
    AccountData,
    AccountDeclaration,
    AccountRole,
    BootstrapValidatorTriple,
    Rent,
    StakeState,
    VoteState,
)
from cluster_genesis.genesis.accounts import (
    BOOTSTRAP_ACTIVATION_EPOCH,
    MAX_ACCOUNT_DATA_LENGTH,
    STAKE_CONFIG_ID,
    STAKE_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    VOTE_PROGRAM_ID,
    StakeConfig,
    stake_config_account,
)
from tests.cluster_genesis.helpers import make_triple, pubkey


class TestAccountDeclaration:
    def test_system_account(self) -> None:
        account = AccountDeclaration.system_account(pubkey(9), 42, AccountRole.FAUCET)
        assert account.owner == SYSTEM_PROGRAM_ID
        assert account.account_role is AccountRole.FAUCET
        assert bytes(account.data) == b""

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AccountDeclaration(
                pubkey=pubkey(9),
                lamports=1,
                owner=SYSTEM_PROGRAM_ID,
                role=9,
                data=AccountData(data=b""),
            )

    def test_data_limit(self) -> None:
        with pytest.raises(ValidationError):
            AccountData(data=b"\x00" * (MAX_ACCOUNT_DATA_LENGTH + 1))

    def test_program_ids_are_distinct(self) -> None:
        ids = {SYSTEM_PROGRAM_ID, VOTE_PROGRAM_ID, STAKE_PROGRAM_ID, STAKE_CONFIG_ID}
        assert len(ids) == 4


class TestStakeConfig:
    def test_rent_exempt_balance(self) -> None:
        rent = Rent.default()
        account = stake_config_account(rent)
        data_length = len(StakeConfig.default().encode_bytes())

        assert account.pubkey == STAKE_CONFIG_ID
        assert account.lamports == rent.minimum_balance(data_length)

    def test_at_least_one_lamport(self) -> None:
        rent = Rent(lamports_per_byte_year=0, exemption_threshold_bps=0, burn_percent=0)
        assert stake_config_account(rent).lamports == 1


class TestBootstrapValidatorTriple:
    def test_create_links_accounts(self) -> None:
        triple = make_triple()
        triple.validate_references()

        assert triple.vote_state().node_pubkey == pubkey(1)
        assert triple.stake_state().voter_pubkey == pubkey(2)
        assert [account.account_role for account in triple.accounts()] == [
            AccountRole.BOOTSTRAP_IDENTITY,
            AccountRole.BOOTSTRAP_VOTE,
            AccountRole.BOOTSTRAP_STAKE,
        ]

    def test_stake_above_reserve_is_delegated(self) -> None:
        rent = Rent.default()
        triple = make_triple(rent)
        stake = triple.stake_state()

        reserve = rent.minimum_balance(StakeState.get_byte_length())
        assert stake.rent_exempt_reserve == reserve
        assert stake.stake == 500_000_000 - reserve
        assert stake.activation_epoch == BOOTSTRAP_ACTIVATION_EPOCH

    def test_authority_defaults_to_identity(self) -> None:
        assert make_triple().stake_state().authorized_staker == pubkey(1)

    def test_explicit_authority(self) -> None:
        triple = BootstrapValidatorTriple.create(
            pubkey(1), pubkey(2), pubkey(3), 1, 500_000_000, Rent.default(), authorized=pubkey(8)
        )
        assert triple.stake_state().authorized_withdrawer == pubkey(8)

    def test_stake_below_reserve_rejected(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError):
            BootstrapValidatorTriple.create(pubkey(1), pubkey(2), pubkey(3), 1, 1, Rent.default())

    def test_commission_over_100_rejected(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError):
            BootstrapValidatorTriple.create(
                pubkey(1), pubkey(2), pubkey(3), 1, 500_000_000, Rent.default(), commission=101
            )

    def test_vote_for_other_node_rejected(self) -> None:
        triple = make_triple()
        foreign_vote = triple.vote.model_copy(
            update={
                "data": AccountData(
                    data=VoteState(
                        node_pubkey=pubkey(7),
                        authorized_voter=pubkey(7),
                        authorized_withdrawer=pubkey(7),
                        commission=100,
                    ).encode_bytes()
                )
            }
        )
        mismatched = BootstrapValidatorTriple(
            identity=triple.identity, vote=foreign_vote, stake=triple.stake
        )

        with pytest.raises(BootstrapTripleMismatchError) as exc_info:
            mismatched.validate_references()
        assert exc_info.value.field == "vote.node_pubkey"
        assert exc_info.value.actual == pubkey(7).hex()

    def test_stake_delegated_elsewhere_rejected(self) -> None:
        other = BootstrapValidatorTriple.create(
            pubkey(1), pubkey(6), pubkey(3), 1, 500_000_000, Rent.default()
        )
        triple = make_triple()
        mismatched = BootstrapValidatorTriple(
            identity=triple.identity, vote=triple.vote, stake=other.stake
        )

        with pytest.raises(BootstrapTripleMismatchError) as exc_info:
            mismatched.validate_references()
        assert exc_info.value.field == "stake.voter_pubkey"

    def test_wrong_owner_rejected(self) -> None:
        triple = make_triple()
        mismatched = BootstrapValidatorTriple(
            identity=triple.identity,
            vote=triple.vote.model_copy(update={"owner": SYSTEM_PROGRAM_ID}),
            stake=triple.stake,
        )
        with pytest.raises(BootstrapTripleMismatchError, match="vote.owner"):
            mismatched.validate_references()

    def test_undecodable_vote_data(self) -> None:
        triple = make_triple()
        garbage = triple.vote.model_copy(update={"data": AccountData(data=b"\x01\x02")})
        mismatched = BootstrapValidatorTriple(
            identity=triple.identity, vote=garbage, stake=triple.stake
        )
        with pytest.raises(InvalidAccountDeclarationError):
            mismatched.validate_references()
