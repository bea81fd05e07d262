"""Tests for genesis construction."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from hypothesis import given
from hypothesis import strategies as st

from cluster_genesis.errors import (
    ArchiveCorruptError,
    ArchiveTooLargeError,
    BootstrapTripleMismatchError,
    GenesisHashMismatchError,
    InvalidAccountDeclarationError,
    LedgerDirectoryNotEmptyError,
    SupplyOverflowError,
    UnrecognizedClusterTypeError,
)
from cluster_genesis.genesis import (
    AccountDeclaration,
    AccountRole,
    BootstrapValidatorTriple,
    ClusterType,
    GenesisBuilder,
    GenesisVerifier,
    PohConfig,
    Rent,
    content_hash,
    decode_genesis,
    genesis_hash,
    verify,
)
from cluster_genesis.genesis.accounts import STAKE_CONFIG_ID
from cluster_genesis.genesis.archive import (
    GENESIS_ARCHIVE_NAME,
    GENESIS_FILE_NAME,
    GENESIS_MANIFEST_NAME,
    pack,
    unpack,
)
from cluster_genesis.genesis.builder import MAX_SUPPLY
from cluster_genesis.genesis.epoch_schedule import compute
from tests.cluster_genesis.helpers import (
    DEFAULT_CREATION_TIME,
    make_artifact,
    make_triple,
    pubkey,
)

POH = PohConfig(target_tick_duration_us=6250, hashes_per_tick=12_500, ticks_per_slot=64)
SCHEDULE = compute(warmup=True, target_slots_per_epoch=8192)


def build(
    declarations: list[AccountDeclaration],
    triple: BootstrapValidatorTriple | None = None,
    cluster_type: ClusterType | str = ClusterType.DEVELOPMENT,
    max_unpacked_size: int | None = None,
):
    return GenesisBuilder().build(
        declarations,
        triple if triple is not None else make_triple(),
        SCHEDULE,
        POH,
        cluster_type,
        max_unpacked_size,
        creation_time=DEFAULT_CREATION_TIME,
    )


def faucet(lamports: int = 1_000, key: int = 4) -> AccountDeclaration:
    return AccountDeclaration.system_account(pubkey(key), lamports, AccountRole.FAUCET)


class TestDeterminism:
    def test_identical_inputs_identical_bytes(self) -> None:
        first = make_artifact()
        second = make_artifact()

        assert first.canonical_bytes == second.canonical_bytes
        assert first.content_hash == second.content_hash
        assert first.archive == second.archive

    def test_declaration_order_does_not_matter(self) -> None:
        accounts = [faucet(key=4), faucet(key=200), faucet(key=9)]
        assert build(accounts).canonical_bytes == build(accounts[::-1]).canonical_bytes

    @pytest.mark.parametrize(
        "override",
        [
            {"creation_time": DEFAULT_CREATION_TIME + 1},
            {"faucet_lamports": 500_000_000_000_000_001},
            {"hashes_per_tick": 12_501},
            {"enable_warmup_epochs": False},
            {"cluster_type": "devnet"},
            {"inflation": "none"},
        ],
    )
    def test_any_change_changes_hash(self, override: dict) -> None:
        assert make_artifact(**override).content_hash != make_artifact().content_hash

    def test_hash_matches_canonical_bytes(self) -> None:
        artifact = make_artifact()
        assert genesis_hash(artifact.config) == artifact.content_hash
        assert decode_genesis(artifact.canonical_bytes) == artifact.config
        assert unpack(artifact.archive, artifact.unpacked_size) == artifact.canonical_bytes


class TestContents:
    def test_accounts_sorted_and_complete(self) -> None:
        config = make_artifact().config
        keys = [bytes(account.pubkey) for account in config.accounts]

        assert keys == sorted(keys)
        for key in (pubkey(1), pubkey(2), pubkey(3), pubkey(4), STAKE_CONFIG_ID):
            assert config.find_account(key) is not None

    def test_faucet_balance(self) -> None:
        config = make_artifact().config
        faucet_account = config.find_account(pubkey(4))
        assert faucet_account is not None
        assert faucet_account.lamports == 500_000_000_000_000_000
        assert faucet_account.account_role is AccountRole.FAUCET

    def test_bootstrap_triple_recovered(self) -> None:
        config = make_artifact().config
        config.bootstrap_triple().validate_references()
        assert config.cluster is ClusterType.DEVELOPMENT
        assert config.ticks_per_slot == 64

    def test_primordial_accounts(self) -> None:
        artifact = make_artifact(primordial_accounts=[{"pubkey": pubkey(50).hex(), "lamports": 7}])
        account = artifact.config.find_account(pubkey(50))
        assert account is not None
        assert account.lamports == 7


class TestValidation:
    def test_duplicate_pubkey(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError, match="more than once"):
            build([faucet(key=1)])

    def test_duplicate_reported_before_unknown_cluster(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError):
            build([faucet(key=1)], cluster_type="moonnet")

    def test_triple_mismatch(self) -> None:
        triple = make_triple()
        other = BootstrapValidatorTriple.create(
            pubkey(1), pubkey(6), pubkey(3), 1, 500_000_000, Rent.default()
        )
        mismatched = BootstrapValidatorTriple(
            identity=triple.identity, vote=triple.vote, stake=other.stake
        )
        with pytest.raises(BootstrapTripleMismatchError):
            build([], mismatched)

    def test_supply_overflow(self) -> None:
        with pytest.raises(SupplyOverflowError) as exc_info:
            build([faucet(int(MAX_SUPPLY))])
        assert exc_info.value.total > exc_info.value.maximum

    def test_unknown_cluster_type(self) -> None:
        with pytest.raises(UnrecognizedClusterTypeError):
            build([], cluster_type="moonnet")

    def test_unknown_cluster_type_from_parameters(self) -> None:
        with pytest.raises(UnrecognizedClusterTypeError):
            make_artifact(cluster_type="moonnet")

    def test_duplicate_bootstrap_keys_from_parameters(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError, match="more than once"):
            make_artifact(bootstrap_validator=(pubkey(1), pubkey(1), pubkey(3)))

    def test_faucet_reusing_bootstrap_key_from_parameters(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError, match="faucet"):
            make_artifact(faucet_pubkey=pubkey(2))

    def test_duplicate_reported_before_supply_overflow(self) -> None:
        with pytest.raises(InvalidAccountDeclarationError):
            make_artifact(faucet_pubkey=pubkey(1), faucet_lamports=2**64)

    @pytest.mark.parametrize("faucet_lamports", [2**64, int(MAX_SUPPLY)])
    def test_supply_overflow_from_parameters(self, faucet_lamports: int) -> None:
        with pytest.raises(SupplyOverflowError) as exc_info:
            make_artifact(faucet_lamports=faucet_lamports)
        assert exc_info.value.total > exc_info.value.maximum

    def test_primordial_balances_count_toward_supply(self) -> None:
        primordial = [
            {"pubkey": pubkey(5).hex(), "lamports": 2**63},
            {"pubkey": pubkey(6).hex(), "lamports": 2**63},
        ]
        with pytest.raises(SupplyOverflowError):
            make_artifact(primordial_accounts=primordial)


class TestSizeBound:
    def test_bound_is_inclusive(self) -> None:
        size = build([faucet()]).unpacked_size
        assert build([faucet()], max_unpacked_size=size).unpacked_size == size

    def test_one_byte_over(self) -> None:
        size = build([faucet()]).unpacked_size
        with pytest.raises(ArchiveTooLargeError) as exc_info:
            build([faucet()], max_unpacked_size=size - 1)
        assert exc_info.value.unpacked_size == size


class TestWrite:
    def test_writes_ledger(self, tmp_path: Path) -> None:
        artifact = make_artifact()
        ledger = tmp_path / "ledger"
        archive_path = GenesisBuilder().write(artifact, ledger)

        assert archive_path == ledger / GENESIS_ARCHIVE_NAME
        assert (ledger / GENESIS_FILE_NAME).read_bytes() == artifact.canonical_bytes
        assert archive_path.read_bytes() == artifact.archive

        manifest = yaml.safe_load((ledger / GENESIS_MANIFEST_NAME).read_text())
        assert manifest["genesisHash"] == artifact.content_hash.hex()
        assert manifest["unpackedSize"] == artifact.unpacked_size
        assert manifest["clusterType"] == "development"

    def test_non_empty_ledger_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "rocksdb").mkdir()
        with pytest.raises(LedgerDirectoryNotEmptyError) as exc_info:
            GenesisBuilder().write(make_artifact(), tmp_path)
        assert exc_info.value.entries == ["rocksdb"]
        assert not (tmp_path / GENESIS_ARCHIVE_NAME).exists()

    def test_overwrite(self, tmp_path: Path) -> None:
        GenesisBuilder().write(make_artifact(), tmp_path)
        replacement = make_artifact(creation_time=DEFAULT_CREATION_TIME + 60)
        GenesisBuilder().write(replacement, tmp_path, overwrite=True)
        assert (tmp_path / GENESIS_FILE_NAME).read_bytes() == replacement.canonical_bytes


TAMPER_BASE = make_artifact()


class TestTamperSensitivity:
    @given(
        index=st.integers(min_value=0, max_value=len(TAMPER_BASE.canonical_bytes) - 1),
        bit=st.integers(min_value=0, max_value=7),
    )
    def test_flipped_bit_is_detected(
        self, tmp_path_factory: pytest.TempPathFactory, index: int, bit: int
    ) -> None:
        mutated = bytearray(TAMPER_BASE.canonical_bytes)
        mutated[index] ^= 1 << bit
        mutated_bytes = bytes(mutated)

        assert content_hash(mutated_bytes) != TAMPER_BASE.content_hash

        # Repacked without a manifest, so only the expected hash can catch it.
        path = tmp_path_factory.mktemp("tampered") / GENESIS_ARCHIVE_NAME
        path.write_bytes(pack(mutated_bytes, mtime=DEFAULT_CREATION_TIME))

        try:
            GenesisVerifier().decode(mutated_bytes)
            expected_error: type[Exception] = GenesisHashMismatchError
        except ArchiveCorruptError:
            expected_error = ArchiveCorruptError

        with pytest.raises(expected_error):
            verify(path, TAMPER_BASE.content_hash.hex())
