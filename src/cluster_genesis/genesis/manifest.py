"""
Genesis hash manifest.

A small YAML file written next to the archive so operators (and the
verifier) can read the genesis hash without unpacking anything.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from cluster_genesis.fs import atomic_write_bytes
from cluster_genesis.types import StrictBaseModel


class GenesisManifest(StrictBaseModel):
    """Summary of a genesis archive."""

    genesis_hash: str
    """Hex SHA-256 of the canonical genesis bytes."""

    unpacked_size: int
    """Size of the canonical genesis bytes."""

    archive_sha256: str
    """Hex SHA-256 of the archive file itself."""

    cluster_type: str
    creation_time: int

    def write(self, path: Path) -> Path:
        """Atomically write the manifest as YAML."""
        document = yaml.safe_dump(self.model_dump(by_alias=True, mode="json"), sort_keys=False)
        return atomic_write_bytes(path, document.encode("utf-8"))

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> GenesisManifest:
        """
        Load a manifest from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)
