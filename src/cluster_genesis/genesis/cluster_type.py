"""Cluster types a genesis can be built for."""

from __future__ import annotations

from enum import Enum

from cluster_genesis.errors import UnrecognizedClusterTypeError


class ClusterType(str, Enum):
    """
    The kind of cluster a genesis bootstraps.

    Only development clusters derive timing from the building host; every
    public cluster uses fixed, host-independent values.
    """

    DEVELOPMENT = "development"
    DEVNET = "devnet"
    TESTNET = "testnet"
    MAINNET_BETA = "mainnet-beta"

    @property
    def code(self) -> int:
        """Stable numeric code used in the canonical encoding."""
        return list(ClusterType).index(self)

    @property
    def is_public(self) -> bool:
        """Whether nodes outside the operator's control are expected to join."""
        return self is not ClusterType.DEVELOPMENT

    @classmethod
    def parse(cls, value: str | ClusterType) -> ClusterType:
        """
        Resolve a cluster type from its name.

        Raises:
            UnrecognizedClusterTypeError: `value` names no cluster type.
        """
        if isinstance(value, ClusterType):
            return value
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(member.value for member in cls)
            raise UnrecognizedClusterTypeError(
                f"unrecognized cluster type {value!r} (expected one of: {names})"
            ) from None

    @classmethod
    def from_code(cls, code: int) -> ClusterType:
        """
        Resolve a cluster type from its numeric code.

        Raises:
            UnrecognizedClusterTypeError: `code` is out of range.
        """
        members = list(cls)
        if not 0 <= code < len(members):
            raise UnrecognizedClusterTypeError(f"unrecognized cluster type code {code}")
        return members[code]
