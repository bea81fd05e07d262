"""
Ed25519 key material for cluster identities.

Every identity a cluster starts with (faucet, bootstrap validator identity,
vote account, stake account) is an Ed25519 keypair. The secret is stored as
its 32-byte seed; the public key is a pure function of that seed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from cluster_genesis.types import Bytes32, Bytes64

from .encryption import EncryptedSecret

__all__ = [
    "KeyMaterial",
    "public_key_from_seed",
    "verify_signature",
]


def public_key_from_seed(seed: bytes) -> Bytes32:
    """Derive the 32-byte Ed25519 public key of a 32-byte seed."""
    private_key = Ed25519PrivateKey.from_private_bytes(seed)
    return Bytes32(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
    )


@dataclass(frozen=True, slots=True)
class KeyMaterial:
    """
    An Ed25519 keypair, optionally carrying its encrypted-at-rest form.

    Attributes:
        public_key: 32-byte Ed25519 public key.
        secret_key: 32-byte seed. Never shown in `repr`.
        encryption: The sealed seed, present when the keypair is protected
            by a passphrase. Saving such a keypair writes only this form.
    """

    public_key: Bytes32
    secret_key: Bytes32 = field(repr=False)
    encryption: EncryptedSecret | None = field(default=None, repr=False)

    @classmethod
    def from_seed(cls, seed: bytes, encryption: EncryptedSecret | None = None) -> KeyMaterial:
        """
        Build key material from a raw 32-byte seed.

        Raises:
            ValueError: If `seed` is not 32 bytes.
        """
        if len(seed) != Bytes32.LENGTH:
            raise ValueError(f"Expected {Bytes32.LENGTH} bytes, got {len(seed)}")
        return cls(
            public_key=public_key_from_seed(seed),
            secret_key=Bytes32(seed),
            encryption=encryption,
        )

    @property
    def is_encrypted(self) -> bool:
        """Whether this keypair is persisted under a passphrase."""
        return self.encryption is not None

    @property
    def pubkey_hex(self) -> str:
        """The public key as lowercase hex."""
        return self.public_key.hex()

    def sign(self, message: bytes) -> Bytes64:
        """Sign `message`, returning the 64-byte Ed25519 signature."""
        private_key = Ed25519PrivateKey.from_private_bytes(bytes(self.secret_key))
        return Bytes64(private_key.sign(message))


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """
    Verify an Ed25519 signature.

    Returns:
        True if the signature is valid, False otherwise (including malformed keys).
    """
    try:
        Ed25519PublicKey.from_public_bytes(bytes(public_key)).verify(bytes(signature), message)
    except (InvalidSignature, ValueError):
        return False
    return True
