"""
Passphrase encryption for keypair secrets at rest.

A passphrase is stretched with scrypt into a 256-bit key, which seals the
32-byte Ed25519 seed with ChaCha20-Poly1305. The public key is bound in as
associated data, so a file whose public key was swapped fails to open.

All KDF parameters live in the file next to the ciphertext; a file written
with today's cost still opens after the default is raised.
"""

from __future__ import annotations

import os
from typing import Literal

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import field_validator
from typing_extensions import Final

from cluster_genesis.errors import CorruptKeyFileError, DecryptionFailedError
from cluster_genesis.types import Bytes12, Bytes16, Bytes48, StrictBaseModel

ALGORITHM: Final = "scrypt-chacha20poly1305"
"""Identifier written to the `algorithm` field of encrypted keypair files."""

DEFAULT_SCRYPT_N: Final = 2**15
"""scrypt CPU/memory cost (about 32 MiB of memory per derivation)."""

DEFAULT_SCRYPT_R: Final = 8
"""scrypt block size."""

DEFAULT_SCRYPT_P: Final = 1
"""scrypt parallelization."""

MAX_SCRYPT_N: Final = 2**20
"""Largest cost accepted from a file, so a hostile file cannot exhaust memory."""

KEY_LENGTH: Final = 32
"""ChaCha20-Poly1305 key size in bytes."""


class EncryptedSecret(StrictBaseModel):
    """The sealed seed together with everything needed to open it."""

    algorithm: Literal["scrypt-chacha20poly1305"] = ALGORITHM
    salt: Bytes16
    nonce: Bytes12
    n: int
    r: int
    p: int
    ciphertext: Bytes48

    @field_validator("n")
    @classmethod
    def _validate_n(cls, v: int) -> int:
        if v < 2 or v & (v - 1) or v > MAX_SCRYPT_N:
            raise ValueError(f"scrypt n must be a power of two in [2, {MAX_SCRYPT_N}], got {v}")
        return v

    @field_validator("r", "p")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"scrypt parameters must be positive, got {v}")
        return v


def derive_key(passphrase: str, salt: bytes, *, n: int, r: int, p: int) -> bytes:
    """Stretch `passphrase` into a symmetric key."""
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=n, r=r, p=p)
    return kdf.derive(passphrase.encode("utf-8"))


def seal(
    secret: bytes,
    passphrase: str,
    associated_data: bytes,
    *,
    n: int = DEFAULT_SCRYPT_N,
    r: int = DEFAULT_SCRYPT_R,
    p: int = DEFAULT_SCRYPT_P,
) -> EncryptedSecret:
    """
    Encrypt a 32-byte secret under `passphrase`.

    A fresh salt and nonce are drawn for every call, so sealing the same
    secret twice never produces the same ciphertext.
    """
    salt = os.urandom(Bytes16.LENGTH)
    nonce = os.urandom(Bytes12.LENGTH)
    key = derive_key(passphrase, salt, n=n, r=r, p=p)
    ciphertext = ChaCha20Poly1305(key).encrypt(nonce, secret, associated_data)
    return EncryptedSecret(
        salt=Bytes16(salt),
        nonce=Bytes12(nonce),
        n=n,
        r=r,
        p=p,
        ciphertext=Bytes48(ciphertext),
    )


def open_sealed(encrypted: EncryptedSecret, passphrase: str, associated_data: bytes) -> bytes:
    """
    Decrypt a sealed secret.

    Raises:
        DecryptionFailedError: The passphrase is wrong or the file was altered.
        CorruptKeyFileError: The stored KDF parameters are unusable.
    """
    try:
        key = derive_key(
            passphrase, bytes(encrypted.salt), n=encrypted.n, r=encrypted.r, p=encrypted.p
        )
    except ValueError as e:
        raise CorruptKeyFileError(f"unusable scrypt parameters: {e}") from e

    try:
        return ChaCha20Poly1305(key).decrypt(
            bytes(encrypted.nonce), bytes(encrypted.ciphertext), associated_data
        )
    except InvalidTag:
        # The message must not carry any secret material.
        raise DecryptionFailedError("wrong passphrase or tampered keypair file") from None
