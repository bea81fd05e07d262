"""
Canonical encoding of a genesis configuration.

This is the only place genesis bytes are produced or parsed. The content
hash and the archive are both derived from `encode_genesis`, so a node that
unpacks the archive and re-hashes it checks exactly the bytes that were
hashed at build time.

The encoding is platform independent: integers are fixed-width little
endian, fields appear in declaration order, accounts are sorted by public
key, and nothing depends on locale, time zone or dictionary order.
"""

from __future__ import annotations

import hashlib

from cluster_genesis.types import Bytes32

from .config import GenesisConfig


def encode_genesis(config: GenesisConfig) -> bytes:
    """Encode `config` into its canonical bytes."""
    return config.encode_bytes()


def decode_genesis(data: bytes) -> GenesisConfig:
    """
    Parse canonical bytes back into a configuration.

    Raises:
        SSZError: The bytes are not a well-formed encoding.
        pydantic.ValidationError: The decoded values violate a genesis invariant.
    """
    return GenesisConfig.decode_bytes(data)


def content_hash(canonical_bytes: bytes) -> Bytes32:
    """SHA-256 of canonical genesis bytes."""
    return Bytes32(hashlib.sha256(canonical_bytes).digest())


def genesis_hash(config: GenesisConfig) -> Bytes32:
    """Content hash of `config`."""
    return content_hash(encode_genesis(config))
