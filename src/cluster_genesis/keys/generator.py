"""
Keypair generation and keypair files.

A keypair file is a small self-describing JSON document:

    {
      "format": "cluster-genesis-keypair",
      "version": 1,
      "publicKey": "<hex>",
      "secretKey": "<hex>" | null,
      "encryption": null | {...}
    }

Exactly one of `secretKey` and `encryption` is present. The public key is
always stored in the clear, so tooling that only needs the public key never
asks for a passphrase.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Callable, Literal

from pydantic import ValidationError, model_validator
from typing_extensions import Final, Self

from cluster_genesis.errors import (
    CorruptKeyFileError,
    DecryptionFailedError,
    EntropyUnavailableError,
    KeyFileExistsError,
)
from cluster_genesis.fs import atomic_write_bytes
from cluster_genesis.types import Bytes32, SSZError, StrictBaseModel

from .encryption import DEFAULT_SCRYPT_N, EncryptedSecret, open_sealed, seal
from .keypair import KeyMaterial, public_key_from_seed

logger = logging.getLogger(__name__)

KEYPAIR_FILE_FORMAT: Final = "cluster-genesis-keypair"
"""Marker identifying a keypair file."""

KEYPAIR_FILE_VERSION: Final = 1
"""Current keypair file layout version."""

KEYPAIR_FILE_MODE: Final = 0o600
"""Keypair files are readable and writable by their owner only."""

EntropySource = Callable[[int], bytes]
"""Returns the requested number of secure random bytes."""


class KeypairFile(StrictBaseModel):
    """On-disk layout of a keypair."""

    format: Literal["cluster-genesis-keypair"] = KEYPAIR_FILE_FORMAT
    version: Literal[1] = KEYPAIR_FILE_VERSION
    public_key: Bytes32
    secret_key: Bytes32 | None = None
    encryption: EncryptedSecret | None = None

    @model_validator(mode="after")
    def _exactly_one_secret(self) -> Self:
        if (self.secret_key is None) == (self.encryption is None):
            raise ValueError("exactly one of secretKey and encryption must be present")
        return self

    @classmethod
    def from_material(cls, material: KeyMaterial) -> KeypairFile:
        """Choose the on-disk form of `material`: sealed if it has one, else plain."""
        if material.encryption is not None:
            return cls(public_key=material.public_key, encryption=material.encryption)
        return cls(public_key=material.public_key, secret_key=material.secret_key)


class KeypairGenerator:
    """
    Creates fresh Ed25519 keypairs.

    The entropy source is injected so tests can make key generation
    reproducible; production code uses the operating system CSPRNG.
    """

    def __init__(
        self,
        entropy_source: EntropySource = secrets.token_bytes,
        *,
        scrypt_n: int = DEFAULT_SCRYPT_N,
    ) -> None:
        self.entropy_source = entropy_source
        self.scrypt_n = scrypt_n

    def generate(self, passphrase: str | None = None) -> KeyMaterial:
        """
        Draw a seed and derive a keypair from it.

        Args:
            passphrase: When given (and non-empty), the seed is sealed under it
                and only the sealed form is ever written to disk.

        Raises:
            EntropyUnavailableError: The entropy source failed or returned
                the wrong number of bytes.
        """
        try:
            seed = self.entropy_source(Bytes32.LENGTH)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailableError(f"secure randomness unavailable: {e}") from e

        if not isinstance(seed, (bytes, bytearray)):
            raise EntropyUnavailableError(
                f"entropy source returned {type(seed).__name__}, expected bytes"
            )
        if len(seed) != Bytes32.LENGTH:
            raise EntropyUnavailableError(
                f"entropy source returned {len(seed)} bytes, expected {Bytes32.LENGTH}"
            )

        seed = bytes(seed)
        encryption = None
        if passphrase:
            encryption = seal(
                seed, passphrase, bytes(public_key_from_seed(seed)), n=self.scrypt_n
            )
        return KeyMaterial.from_seed(seed, encryption=encryption)


def generate(
    entropy_source: EntropySource = secrets.token_bytes,
    passphrase: str | None = None,
) -> KeyMaterial:
    """Generate a keypair with the default KDF cost."""
    return KeypairGenerator(entropy_source).generate(passphrase)


def save(material: KeyMaterial, path: Path, *, force: bool = False) -> Path:
    """
    Persist `material` as exactly one keypair file.

    The file is written to a temporary sibling with mode 0600 and atomically
    renamed into place, so a crash never leaves a truncated keypair behind.

    Raises:
        KeyFileExistsError: `path` exists and `force` is not set.
    """
    path = Path(path)
    if path.exists() and not force:
        raise KeyFileExistsError(path)

    document = KeypairFile.from_material(material).model_dump_json(by_alias=True, indent=2)
    atomic_write_bytes(path, (document + "\n").encode("utf-8"), mode=KEYPAIR_FILE_MODE)

    logger.info(
        "Wrote %s keypair %s to %s",
        "encrypted" if material.is_encrypted else "plaintext",
        material.pubkey_hex,
        path,
    )
    return path


def _read_keypair_file(path: Path) -> KeypairFile:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CorruptKeyFileError("not a text file", path=path) from e

    try:
        return KeypairFile.model_validate_json(text)
    except ValidationError as e:
        errors = e.errors(include_input=False, include_url=False)
        first = errors[0] if errors else {"loc": (), "msg": str(e)}
        where = ".".join(str(part) for part in first["loc"]) or "document"
        raise CorruptKeyFileError(f"{where}: {first['msg']}", path=path) from None
    except SSZError as e:
        raise CorruptKeyFileError(e.message, path=path) from None


def load(path: Path, passphrase: str | None = None) -> KeyMaterial:
    """
    Read a keypair file.

    Raises:
        DecryptionFailedError: The file is encrypted and the passphrase is
            missing or wrong.
        CorruptKeyFileError: The file is malformed, or its public key does
            not belong to its secret.
    """
    document = _read_keypair_file(path)

    if document.encryption is not None:
        if not passphrase:
            raise DecryptionFailedError(f"{path} is encrypted; a passphrase is required")
        seed = open_sealed(document.encryption, passphrase, bytes(document.public_key))
    else:
        assert document.secret_key is not None
        seed = bytes(document.secret_key)

    material = KeyMaterial.from_seed(seed, encryption=document.encryption)
    if material.public_key != document.public_key:
        raise CorruptKeyFileError("public key does not match secret key", path=path)

    logger.debug("Loaded keypair %s from %s", material.pubkey_hex, path)
    return material


def read_pubkey(source: Path | str) -> Bytes32:
    """
    Resolve a public key without touching the secret.

    `source` is either a keypair file or a bare 64-character hex public key.

    Raises:
        CorruptKeyFileError: The file exists but cannot be parsed.
        FileNotFoundError: `source` is neither an existing file nor a hex key.
    """
    candidate = str(source)
    if not Path(candidate).exists() and len(candidate.removeprefix("0x")) == 2 * Bytes32.LENGTH:
        try:
            return Bytes32(bytes.fromhex(candidate.removeprefix("0x")))
        except ValueError:
            pass

    return _read_keypair_file(Path(candidate)).public_key
