"""Genesis construction and verification."""

from .accounts import (
    AccountData,
    AccountDeclaration,
    AccountRole,
    Accounts,
    BootstrapValidatorTriple,
    StakeState,
    VoteState,
)
from .builder import GenesisArtifact, GenesisBuilder, build_from_parameters
from .canonical import content_hash, decode_genesis, encode_genesis, genesis_hash
from .cluster_type import ClusterType
from .config import BootstrapValidatorKeys, GenesisConfig
from .economics import FeeRateGovernor, Inflation, InflationPreset, Rent
from .epoch_schedule import EpochSchedule
from .parameters import GenesisParameters, PrimordialAccount
from .tick_rate import (
    AutoTickRate,
    FixedTickRate,
    HashBenchmark,
    PohConfig,
    Sha256ChainBenchmark,
    TickRateCalibrator,
    parse_tick_rate,
)
from .verifier import GenesisVerifier, open_genesis, verify

__all__ = [
    "AccountData",
    "AccountDeclaration",
    "AccountRole",
    "Accounts",
    "AutoTickRate",
    "BootstrapValidatorKeys",
    "BootstrapValidatorTriple",
    "ClusterType",
    "EpochSchedule",
    "FeeRateGovernor",
    "FixedTickRate",
    "GenesisArtifact",
    "GenesisBuilder",
    "GenesisConfig",
    "GenesisParameters",
    "GenesisVerifier",
    "HashBenchmark",
    "Inflation",
    "InflationPreset",
    "PohConfig",
    "PrimordialAccount",
    "Rent",
    "Sha256ChainBenchmark",
    "StakeState",
    "TickRateCalibrator",
    "VoteState",
    "build_from_parameters",
    "content_hash",
    "decode_genesis",
    "encode_genesis",
    "genesis_hash",
    "open_genesis",
    "parse_tick_rate",
    "verify",
]
