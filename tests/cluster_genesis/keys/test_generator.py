"""Tests for keypair generation and keypair files."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from cluster_genesis.errors import (
    CorruptKeyFileError,
    DecryptionFailedError,
    EntropyUnavailableError,
    KeyFileExistsError,
)
from cluster_genesis.keys import KeypairGenerator, load, read_pubkey, save
from tests.cluster_genesis.helpers import counting_entropy

# Cheap KDF cost so the tests stay fast.
TEST_SCRYPT_N = 2**4


@pytest.fixture
def generator() -> KeypairGenerator:
    return KeypairGenerator(counting_entropy(), scrypt_n=TEST_SCRYPT_N)


class TestGenerate:
    def test_deterministic_with_injected_entropy(self) -> None:
        """The same entropy always yields the same keypair."""
        first = KeypairGenerator(counting_entropy(7)).generate()
        second = KeypairGenerator(counting_entropy(7)).generate()
        assert first.public_key == second.public_key

    def test_successive_keys_differ(self, generator: KeypairGenerator) -> None:
        assert generator.generate().public_key != generator.generate().public_key

    def test_passphrase_seals_secret(self, generator: KeypairGenerator) -> None:
        material = generator.generate("hunter2")
        assert material.is_encrypted
        assert material.encryption is not None
        assert material.encryption.n == TEST_SCRYPT_N

    def test_entropy_failure(self) -> None:
        def broken(num_bytes: int) -> bytes:
            raise OSError("no entropy")

        with pytest.raises(EntropyUnavailableError):
            KeypairGenerator(broken).generate()

    def test_short_entropy(self) -> None:
        with pytest.raises(EntropyUnavailableError):
            KeypairGenerator(lambda n: b"\x00" * (n - 1)).generate()


class TestSaveLoad:
    def test_plaintext_round_trip(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        material = generator.generate()
        path = save(material, tmp_path / "id.json")
        loaded = load(path)
        assert loaded.public_key == material.public_key
        assert loaded.secret_key == material.secret_key

    def test_encrypted_round_trip(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        material = generator.generate("hunter2")
        path = save(material, tmp_path / "id.json")

        document = json.loads(path.read_text())
        assert document["secretKey"] is None
        assert material.secret_key.hex() not in path.read_text()

        loaded = load(path, "hunter2")
        assert loaded.secret_key == material.secret_key

    def test_file_mode_is_owner_only(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = save(generator.generate(), tmp_path / "id.json")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_refuses_to_overwrite(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = save(generator.generate(), tmp_path / "id.json")
        original = path.read_bytes()

        with pytest.raises(KeyFileExistsError):
            save(generator.generate(), path)
        assert path.read_bytes() == original

    def test_force_overwrites(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = save(generator.generate(), tmp_path / "id.json")
        replacement = generator.generate()
        save(replacement, path, force=True)
        assert load(path).public_key == replacement.public_key

    def test_no_temporary_files_left(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        save(generator.generate(), tmp_path / "id.json")
        assert [entry.name for entry in tmp_path.iterdir()] == ["id.json"]


class TestDecryptionFailures:
    def test_wrong_passphrase(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        material = generator.generate("hunter2")
        path = save(material, tmp_path / "id.json")

        with pytest.raises(DecryptionFailedError) as exc_info:
            load(path, "hunter3")

        # Neither the secret nor the ciphertext may leak into the message.
        message = str(exc_info.value)
        assert material.secret_key.hex() not in message
        assert material.encryption is not None
        assert material.encryption.ciphertext.hex() not in message

    def test_missing_passphrase(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = save(generator.generate("hunter2"), tmp_path / "id.json")
        with pytest.raises(DecryptionFailedError):
            load(path)

    def test_swapped_public_key(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        """The public key is authenticated, so replacing it breaks decryption."""
        path = save(generator.generate("hunter2"), tmp_path / "id.json")
        document = json.loads(path.read_text())
        document["publicKey"] = generator.generate().pubkey_hex
        path.write_text(json.dumps(document))

        with pytest.raises(DecryptionFailedError):
            load(path, "hunter2")


class TestCorruptFiles:
    def test_not_json(self, tmp_path: Path) -> None:
        path = tmp_path / "id.json"
        path.write_text("{not json")
        with pytest.raises(CorruptKeyFileError):
            load(path)

    def test_both_secret_forms(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = save(generator.generate("hunter2"), tmp_path / "id.json")
        document = json.loads(path.read_text())
        document["secretKey"] = "00" * 32
        path.write_text(json.dumps(document))
        with pytest.raises(CorruptKeyFileError):
            load(path, "hunter2")

    def test_mismatched_plaintext_key(self, generator: KeypairGenerator, tmp_path: Path) -> None:
        path = save(generator.generate(), tmp_path / "id.json")
        document = json.loads(path.read_text())
        document["publicKey"] = generator.generate().pubkey_hex
        path.write_text(json.dumps(document))
        with pytest.raises(CorruptKeyFileError, match="does not match"):
            load(path)

    def test_short_key(self, tmp_path: Path) -> None:
        path = tmp_path / "id.json"
        path.write_text(
            json.dumps(
                {
                    "format": "cluster-genesis-keypair",
                    "version": 1,
                    "publicKey": "00" * 31,
                    "secretKey": "00" * 32,
                }
            )
        )
        with pytest.raises(CorruptKeyFileError):
            load(path)

    def test_binary_file(self, tmp_path: Path) -> None:
        path = tmp_path / "id.json"
        path.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(CorruptKeyFileError):
            load(path)


class TestReadPubkey:
    def test_from_encrypted_file_without_passphrase(
        self, generator: KeypairGenerator, tmp_path: Path
    ) -> None:
        material = generator.generate("hunter2")
        path = save(material, tmp_path / "id.json")
        assert read_pubkey(path) == material.public_key

    def test_from_hex(self, generator: KeypairGenerator) -> None:
        material = generator.generate()
        assert read_pubkey(material.pubkey_hex) == material.public_key
        assert read_pubkey("0x" + material.pubkey_hex) == material.public_key

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_pubkey(tmp_path / "missing.json")
