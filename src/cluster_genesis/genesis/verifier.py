"""
Genesis verification.

Run by every node before it trusts a genesis it was handed: unpack the
archive under a size bound, decode the configuration, recompute the
content hash and compare it with the hash the node was told to expect.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from cluster_genesis.config import MAX_GENESIS_ARCHIVE_UNPACKED_SIZE
from cluster_genesis.errors import (
    ArchiveCorruptError,
    ArchiveTooLargeError,
    ClusterGenesisError,
    GenesisHashMismatchError,
)
from cluster_genesis.fs import atomic_write_bytes
from cluster_genesis.types import Bytes32, SSZError

from . import archive
from .canonical import content_hash, decode_genesis
from .config import GenesisConfig
from .manifest import GenesisManifest

logger = logging.getLogger(__name__)


def _normalize_hash(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.hex()
    return value.strip().lower().removeprefix("0x")


def _check_expected(actual: Bytes32, expected_hash: str | bytes | None) -> None:
    if expected_hash is not None and _normalize_hash(expected_hash) != actual.hex():
        raise GenesisHashMismatchError(actual.hex(), _normalize_hash(expected_hash))


class GenesisVerifier:
    """Loads a stored genesis and checks it against an expected hash."""

    def __init__(self, max_unpacked_size: int = MAX_GENESIS_ARCHIVE_UNPACKED_SIZE) -> None:
        self.max_unpacked_size = max_unpacked_size

    def decode(self, canonical_bytes: bytes) -> GenesisConfig:
        """
        Decode canonical bytes, checking the genesis invariants.

        Raises:
            ArchiveTooLargeError: The bytes exceed the size bound.
            ArchiveCorruptError: The bytes are not a valid genesis.
        """
        if len(canonical_bytes) > self.max_unpacked_size:
            raise ArchiveTooLargeError(len(canonical_bytes), self.max_unpacked_size)
        try:
            config = decode_genesis(canonical_bytes)
            config.bootstrap_triple().validate_references()
        except SSZError as e:
            raise ArchiveCorruptError(f"genesis does not decode: {e.message}") from e
        except ValidationError as e:
            raise ArchiveCorruptError(
                f"genesis violates its invariants: {e.error_count()} error(s), first: "
                f"{e.errors(include_url=False)[0]['msg']}"
            ) from e
        except ClusterGenesisError as e:
            raise ArchiveCorruptError(f"genesis is inconsistent: {e.message}") from e
        return config

    def verify_artifact(
        self, archive_path: Path, expected_hash: str | bytes | None = None
    ) -> tuple[GenesisConfig, Bytes32]:
        """
        Verify an archive file and return its configuration and hash.

        A `genesis.manifest.yaml` next to the archive, if present, must agree
        with the recomputed hash.

        Raises:
            ArchiveTooLargeError: The unpacked genesis exceeds the bound.
            ArchiveCorruptError: The archive or its manifest is malformed or
                inconsistent.
            GenesisHashMismatchError: The hash differs from `expected_hash`.
        """
        archive_path = Path(archive_path)
        config, canonical_bytes = self._load_archive(archive_path, expected_hash)
        actual = content_hash(canonical_bytes)

        logger.info("Verified genesis %s from %s", actual.hex(), archive_path)
        return config, actual

    def verify(
        self, artifact_path: Path, expected_hash: str | bytes | None = None
    ) -> GenesisConfig:
        """
        Verify a stored genesis and return its configuration.

        `artifact_path` is either an archive file or a ledger directory
        containing `genesis.tar.bz2`.
        """
        path = Path(artifact_path)
        if path.is_dir():
            path = path / archive.GENESIS_ARCHIVE_NAME
        return self.verify_artifact(path, expected_hash)[0]

    def open_genesis(
        self, ledger_dir: Path, expected_hash: str | bytes | None = None
    ) -> GenesisConfig:
        """
        Load the genesis of a ledger directory, as a starting node does.

        The unpacked `genesis.bin` is used when it decodes; otherwise the
        archive is unpacked (hardened) and `genesis.bin` is rewritten from it.

        Raises:
            ArchiveCorruptError: Neither form yields a valid genesis.
            GenesisHashMismatchError: The hash differs from `expected_hash`.
        """
        ledger_dir = Path(ledger_dir)
        genesis_path = ledger_dir / archive.GENESIS_FILE_NAME

        try:
            canonical_bytes = genesis_path.read_bytes()
            config = self.decode(canonical_bytes)
        except (OSError, ArchiveCorruptError, ArchiveTooLargeError) as e:
            logger.warning(
                "Failed to load genesis at %s: %s. Unpacking the genesis archive instead.",
                genesis_path,
                e,
            )
            config, canonical_bytes = self._load_archive(
                ledger_dir / archive.GENESIS_ARCHIVE_NAME, expected_hash
            )
            atomic_write_bytes(genesis_path, canonical_bytes)

        _check_expected(content_hash(canonical_bytes), expected_hash)
        return config

    def _load_archive(
        self, archive_path: Path, expected_hash: str | bytes | None
    ) -> tuple[GenesisConfig, bytes]:
        """
        Unpack and decode an archive, then check its hash.

        The expected hash is compared before the manifest, so tampered content
        is reported as a hash mismatch even when a manifest sits alongside.
        """
        try:
            archive_bytes = archive_path.read_bytes()
        except OSError as e:
            raise ArchiveCorruptError(f"cannot read genesis archive {archive_path}: {e}") from e

        canonical_bytes = archive.unpack(archive_bytes, self.max_unpacked_size)
        config = self.decode(canonical_bytes)
        actual = content_hash(canonical_bytes)
        _check_expected(actual, expected_hash)

        manifest_path = archive_path.with_name(archive.GENESIS_MANIFEST_NAME)
        if manifest_path.exists():
            self._check_manifest(manifest_path, actual, archive_bytes)
        return config, canonical_bytes

    @staticmethod
    def _check_manifest(manifest_path: Path, actual: Bytes32, archive_bytes: bytes) -> None:
        try:
            manifest = GenesisManifest.from_yaml_file(manifest_path)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise ArchiveCorruptError(f"unreadable genesis manifest {manifest_path}: {e}") from e

        if _normalize_hash(manifest.genesis_hash) != actual.hex():
            raise ArchiveCorruptError(
                f"genesis manifest {manifest_path} records hash {manifest.genesis_hash}, "
                f"archive hashes to {actual.hex()}"
            )
        if manifest.archive_sha256 != hashlib.sha256(archive_bytes).hexdigest():
            raise ArchiveCorruptError(
                f"genesis manifest {manifest_path} does not describe this archive"
            )


def verify(
    artifact_path: Path,
    expected_hash: str | bytes | None = None,
    max_unpacked_size: int = MAX_GENESIS_ARCHIVE_UNPACKED_SIZE,
) -> GenesisConfig:
    """Verify a stored genesis with a one-off verifier."""
    return GenesisVerifier(max_unpacked_size).verify(artifact_path, expected_hash)


def open_genesis(
    ledger_dir: Path,
    expected_hash: str | bytes | None = None,
    max_unpacked_size: int = MAX_GENESIS_ARCHIVE_UNPACKED_SIZE,
) -> GenesisConfig:
    """Load the genesis of a ledger directory with a one-off verifier."""
    return GenesisVerifier(max_unpacked_size).open_genesis(ledger_dir, expected_hash)
