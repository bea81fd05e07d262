"""Ed25519 identities: generation, signing and passphrase-protected keypair files."""

from .encryption import EncryptedSecret
from .generator import (
    KeypairFile,
    KeypairGenerator,
    generate,
    load,
    read_pubkey,
    save,
)
from .keypair import KeyMaterial, public_key_from_seed, verify_signature

__all__ = [
    "EncryptedSecret",
    "KeyMaterial",
    "KeypairFile",
    "KeypairGenerator",
    "generate",
    "load",
    "public_key_from_seed",
    "read_pubkey",
    "save",
    "verify_signature",
]
