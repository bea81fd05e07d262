"""
Economic parameters fixed at genesis: signature fees, rent and inflation.

Every rate is an integer (lamports, percentages or basis points) so the
canonical encoding never contains a floating point value.
"""

from __future__ import annotations

from enum import Enum

from pydantic import field_validator
from typing_extensions import Self

from cluster_genesis.config import (
    DEFAULT_FEE_BURN_PERCENT,
    DEFAULT_LAMPORTS_PER_BYTE_YEAR,
    DEFAULT_RENT_BURN_PERCENT,
    DEFAULT_RENT_EXEMPTION_THRESHOLD_BPS,
    DEFAULT_TARGET_LAMPORTS_PER_SIGNATURE,
    DEFAULT_TARGET_SIGNATURES_PER_SLOT,
)
from cluster_genesis.types import Container, Uint8, Uint64

BASIS_POINTS: int = 10_000
"""Basis points in one whole (100%)."""

ACCOUNT_STORAGE_OVERHEAD: int = 128
"""Bytes of bookkeeping charged for every account on top of its data."""


def _check_percent(v: Uint8) -> Uint8:
    if int(v) > 100:
        raise ValueError(f"percentage must be in [0, 100], got {int(v)}")
    return v


class FeeRateGovernor(Container):
    """
    Signature fee schedule.

    The fee floats between `min_lamports_per_signature` and
    `max_lamports_per_signature` depending on how close the cluster runs to
    `target_signatures_per_slot`.
    """

    target_lamports_per_signature: Uint64
    target_signatures_per_slot: Uint64
    min_lamports_per_signature: Uint64
    max_lamports_per_signature: Uint64
    burn_percent: Uint8

    validate_burn = field_validator("burn_percent")(_check_percent)

    @classmethod
    def new(
        cls,
        target_lamports_per_signature: int = DEFAULT_TARGET_LAMPORTS_PER_SIGNATURE,
        target_signatures_per_slot: int = DEFAULT_TARGET_SIGNATURES_PER_SLOT,
        burn_percent: int = DEFAULT_FEE_BURN_PERCENT,
    ) -> Self:
        """Derive the fee bounds from the target fee (half and ten times the target)."""
        return cls(
            target_lamports_per_signature=target_lamports_per_signature,
            target_signatures_per_slot=target_signatures_per_slot,
            min_lamports_per_signature=target_lamports_per_signature // 2,
            max_lamports_per_signature=target_lamports_per_signature * 10,
            burn_percent=burn_percent,
        )


class Rent(Container):
    """Storage rent charged for account data."""

    lamports_per_byte_year: Uint64
    exemption_threshold_bps: Uint64
    """Years of rent, in basis points of a year, that make an account rent exempt."""

    burn_percent: Uint8

    validate_burn = field_validator("burn_percent")(_check_percent)

    @classmethod
    def default(cls) -> Self:
        """Rent with the cluster defaults."""
        return cls(
            lamports_per_byte_year=DEFAULT_LAMPORTS_PER_BYTE_YEAR,
            exemption_threshold_bps=DEFAULT_RENT_EXEMPTION_THRESHOLD_BPS,
            burn_percent=DEFAULT_RENT_BURN_PERCENT,
        )

    def minimum_balance(self, data_len: int) -> int:
        """Smallest balance that keeps an account with `data_len` bytes of data rent exempt."""
        bytes_charged = ACCOUNT_STORAGE_OVERHEAD + data_len
        return (
            bytes_charged
            * int(self.lamports_per_byte_year)
            * int(self.exemption_threshold_bps)
            // BASIS_POINTS
        )


class Inflation(Container):
    """
    Inflation schedule.

    The rate starts at `initial_bps` and shrinks by `taper_bps` of itself
    every year until it reaches `terminal_bps`. A `foundation_bps` share of
    the issuance goes to the foundation for the first `foundation_term_years`.
    """

    initial_bps: Uint64
    terminal_bps: Uint64
    taper_bps: Uint64
    foundation_bps: Uint64
    foundation_term_years: Uint64

    @classmethod
    def full(cls) -> Self:
        """The full schedule: 8% tapering by 15% a year to 1.5%."""
        return cls(
            initial_bps=800,
            terminal_bps=150,
            taper_bps=1_500,
            foundation_bps=500,
            foundation_term_years=7,
        )

    @classmethod
    def pico(cls) -> Self:
        """A fixed, negligible rate (0.01%) for clusters that exercise the reward path."""
        return cls(
            initial_bps=1,
            terminal_bps=1,
            taper_bps=0,
            foundation_bps=0,
            foundation_term_years=0,
        )

    @classmethod
    def none(cls) -> Self:
        """No inflation at all."""
        return cls(
            initial_bps=0,
            terminal_bps=0,
            taper_bps=0,
            foundation_bps=0,
            foundation_term_years=0,
        )


class InflationPreset(str, Enum):
    """Inflation presets selectable at genesis."""

    FULL = "full"
    PICO = "pico"
    NONE = "none"

    def to_inflation(self) -> Inflation:
        """Build the schedule this preset names."""
        match self:
            case InflationPreset.FULL:
                return Inflation.full()
            case InflationPreset.PICO:
                return Inflation.pico()
            case InflationPreset.NONE:
                return Inflation.none()
