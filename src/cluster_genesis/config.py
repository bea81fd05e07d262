"""
Cluster policy constants.

These are the defaults a genesis is built with when the operator does not
say otherwise. Every one of them can be overridden through
`GenesisParameters` (command line flags or a YAML file); nothing here is
read from the environment.
"""

from typing_extensions import Final

from cluster_genesis.types import StrictBaseModel

# --- Units ---

LAMPORTS_PER_SOL: Final = 1_000_000_000
"""Number of base units (lamports) in one whole token."""

# --- Timing ---

DEFAULT_TICKS_PER_SECOND: Final = 160
"""Target number of ticks per wall-clock second."""

DEFAULT_TICKS_PER_SLOT: Final = 64
"""Number of ticks in a slot (400ms at the default tick rate)."""

DEFAULT_TARGET_TICK_DURATION_US: Final = 1_000_000 // DEFAULT_TICKS_PER_SECOND
"""Target duration of one tick in microseconds (6.25ms)."""

DEFAULT_HASHES_PER_SECOND: Final = 2_000_000
"""Reference hash rate public clusters are calibrated against."""

DEFAULT_HASHES_PER_TICK: Final = DEFAULT_HASHES_PER_SECOND // DEFAULT_TICKS_PER_SECOND
"""Hashes per tick used by public clusters regardless of the building host."""

# --- Epochs ---

DEFAULT_SLOTS_PER_EPOCH: Final = 432_000
"""Steady-state slots per epoch for public clusters (about two days)."""

DEFAULT_DEV_SLOTS_PER_EPOCH: Final = 8_192
"""Steady-state slots per epoch for development clusters."""

MINIMUM_SLOTS_PER_EPOCH: Final = 32
"""Slots in the first warmup epoch."""

# --- Genesis archive ---

MAX_GENESIS_ARCHIVE_UNPACKED_SIZE: Final = 10 * 1024 * 1024
"""Default bound on the unpacked genesis size every joining node must accept."""

# --- Economics ---

DEFAULT_LAMPORTS_PER_BYTE_YEAR: Final = LAMPORTS_PER_SOL // 100 * 365 // (1024 * 1024)
"""Rent charged per byte of account data per year."""

DEFAULT_RENT_EXEMPTION_THRESHOLD_BPS: Final = 20_000
"""Years of rent (in basis points of a year) a balance must cover to be rent exempt."""

DEFAULT_RENT_BURN_PERCENT: Final = 50
"""Percentage of collected rent that is burned."""

DEFAULT_TARGET_LAMPORTS_PER_SIGNATURE: Final = 10_000
"""Signature fee when the cluster runs at its target signature rate."""

DEFAULT_TARGET_SIGNATURES_PER_SLOT: Final = 20_000
"""Signature throughput the fee governor steers towards."""

DEFAULT_FEE_BURN_PERCENT: Final = 50
"""Percentage of collected fees that is burned."""

DEFAULT_BOOTSTRAP_VALIDATOR_LAMPORTS: Final = 500 * LAMPORTS_PER_SOL
"""Balance of the bootstrap validator's identity account."""

DEFAULT_BOOTSTRAP_VALIDATOR_STAKE_LAMPORTS: Final = LAMPORTS_PER_SOL // 2
"""Balance of the bootstrap validator's stake account."""

# --- Calibration ---

DEFAULT_CALIBRATION_SAMPLE_HASHES: Final = 1_000_000
"""Hashes per benchmark sample."""

DEFAULT_CALIBRATION_BUDGET_SECONDS: Final = 30.0
"""Hard wall-clock budget for the whole calibration."""

DEFAULT_CALIBRATION_TOLERANCE: Final = 0.25
"""Accepted relative spread between the fastest and slowest sample in a round."""

DEFAULT_CALIBRATION_UTILIZATION: Final = 0.5
"""Fraction of the measured peak hash rate a development cluster is set to use."""


class ClusterPolicy(StrictBaseModel):
    """
    The cluster-policy choices a genesis is built with.

    These are policy, not protocol: a development cluster and a public
    cluster differ only in which values are chosen here.
    """

    # Timing
    ticks_per_slot: int = DEFAULT_TICKS_PER_SLOT
    target_tick_duration_us: int = DEFAULT_TARGET_TICK_DURATION_US
    public_hashes_per_tick: int = DEFAULT_HASHES_PER_TICK

    # Epochs
    slots_per_epoch: int = DEFAULT_SLOTS_PER_EPOCH
    dev_slots_per_epoch: int = DEFAULT_DEV_SLOTS_PER_EPOCH
    minimum_slots_per_epoch: int = MINIMUM_SLOTS_PER_EPOCH

    # Archive
    max_genesis_archive_unpacked_size: int = MAX_GENESIS_ARCHIVE_UNPACKED_SIZE

    # Calibration
    calibration_sample_hashes: int = DEFAULT_CALIBRATION_SAMPLE_HASHES
    calibration_budget_seconds: float = DEFAULT_CALIBRATION_BUDGET_SECONDS
    calibration_tolerance: float = DEFAULT_CALIBRATION_TOLERANCE
    calibration_utilization: float = DEFAULT_CALIBRATION_UTILIZATION


DEFAULT_POLICY: Final = ClusterPolicy()
"""The policy used when nothing is overridden."""
