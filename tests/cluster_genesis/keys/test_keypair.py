"""Tests for Ed25519 key material."""

import pytest

from cluster_genesis.keys import KeyMaterial, public_key_from_seed, verify_signature
from cluster_genesis.types import Bytes64

SEED = bytes(range(32))


class TestKeyMaterial:
    def test_public_key_is_function_of_seed(self) -> None:
        assert KeyMaterial.from_seed(SEED).public_key == public_key_from_seed(SEED)
        assert KeyMaterial.from_seed(SEED) == KeyMaterial.from_seed(SEED)

    def test_different_seeds_different_keys(self) -> None:
        assert public_key_from_seed(SEED) != public_key_from_seed(bytes(32))

    def test_wrong_seed_length(self) -> None:
        with pytest.raises(ValueError):
            KeyMaterial.from_seed(b"\x00" * 31)

    def test_secret_not_in_repr(self) -> None:
        material = KeyMaterial.from_seed(SEED)
        assert SEED.hex() not in repr(material)
        assert material.pubkey_hex in repr(material)

    def test_not_encrypted_by_default(self) -> None:
        assert not KeyMaterial.from_seed(SEED).is_encrypted


class TestSignatures:
    def test_sign_and_verify(self) -> None:
        material = KeyMaterial.from_seed(SEED)
        signature = material.sign(b"genesis")
        assert isinstance(signature, Bytes64)
        assert verify_signature(material.public_key, b"genesis", signature)

    def test_wrong_message_fails(self) -> None:
        material = KeyMaterial.from_seed(SEED)
        signature = material.sign(b"genesis")
        assert not verify_signature(material.public_key, b"other", signature)

    def test_wrong_key_fails(self) -> None:
        signature = KeyMaterial.from_seed(SEED).sign(b"genesis")
        other = KeyMaterial.from_seed(bytes(32))
        assert not verify_signature(other.public_key, b"genesis", signature)

    def test_malformed_key_fails(self) -> None:
        signature = KeyMaterial.from_seed(SEED).sign(b"genesis")
        assert not verify_signature(b"\x00" * 31, b"genesis", signature)
