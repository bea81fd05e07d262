"""
Tick rate resolution.

A cluster's clock is a hash chain: a tick is `hashes_per_tick` sequential
SHA-256 hashes, and `ticks_per_slot` ticks make a slot. The hash count is
either given explicitly or, for development clusters, calibrated against the
building host so that a tick takes about `target_tick_duration_us`.

Calibration is a self-benchmark, so the benchmark is injected: production
uses `Sha256ChainBenchmark`, tests substitute a stub with a fixed result.
"""

from __future__ import annotations

import hashlib
import logging
import statistics
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from pydantic import field_validator

from cluster_genesis.config import (
    DEFAULT_POLICY,
    DEFAULT_TARGET_TICK_DURATION_US,
    DEFAULT_TICKS_PER_SLOT,
    ClusterPolicy,
)
from cluster_genesis.errors import (
    CalibrationError,
    CalibrationTimeoutError,
    CalibrationUnstableError,
    InvalidTickRateError,
)
from cluster_genesis.types import Container, Uint64

from .cluster_type import ClusterType

logger = logging.getLogger(__name__)

MICROS_PER_SECOND = 1_000_000


class PohConfig(Container):
    """Timing of the cluster clock, fixed for the lifetime of the cluster."""

    target_tick_duration_us: Uint64
    hashes_per_tick: Uint64
    ticks_per_slot: Uint64

    @field_validator("target_tick_duration_us", "hashes_per_tick", "ticks_per_slot")
    @classmethod
    def _validate_positive(cls, v: Uint64) -> Uint64:
        if int(v) == 0:
            raise ValueError("must be positive")
        return v

    @property
    def target_slot_duration_us(self) -> int:
        """Target wall-clock length of a slot in microseconds."""
        return int(self.target_tick_duration_us) * int(self.ticks_per_slot)


@dataclass(frozen=True, slots=True)
class FixedTickRate:
    """Use exactly this many hashes per tick."""

    hashes_per_tick: int


@dataclass(frozen=True, slots=True)
class AutoTickRate:
    """Derive hashes per tick from the cluster type (and the host, for development)."""


TickRateMode = FixedTickRate | AutoTickRate


def parse_tick_rate(value: str) -> TickRateMode:
    """
    Parse a `--hashes-per-tick` argument.

    Raises:
        InvalidTickRateError: `value` is neither "auto" nor a positive integer.
    """
    text = value.strip().lower()
    if text == "auto":
        return AutoTickRate()
    try:
        hashes_per_tick = int(text)
    except ValueError:
        raise InvalidTickRateError(
            f"invalid value for --hashes-per-tick: {value!r} (expected 'auto' or an integer)"
        ) from None
    if hashes_per_tick <= 0:
        raise InvalidTickRateError(
            f"invalid value for --hashes-per-tick: {hashes_per_tick} (must be positive)"
        )
    return FixedTickRate(hashes_per_tick)


class HashBenchmark(Protocol):
    """Measures how long the host takes to compute a hash chain."""

    def measure(self, num_hashes: int) -> float:
        """Return the seconds taken to compute `num_hashes` sequential hashes."""
        ...


class Sha256ChainBenchmark:
    """Times an iterated SHA-256 chain, the same work a tick performs."""

    def __init__(self, seed: bytes = b"\x00" * 32, clock: Callable[[], float] = time.perf_counter):
        self.seed = seed
        self.clock = clock

    def measure(self, num_hashes: int) -> float:
        digest = self.seed
        sha256 = hashlib.sha256
        start = self.clock()
        for _ in range(num_hashes):
            digest = sha256(digest).digest()
        return self.clock() - start


class TickRateCalibrator:
    """
    Resolves a tick-rate mode into a concrete `PohConfig`.

    Auto mode on a development cluster runs the benchmark in rounds of
    `samples` measurements. A round is accepted when its relative spread,
    `(max - min) / median`, is within `tolerance`; otherwise another round is
    measured, up to `max_attempts`. The whole calibration must finish within
    `budget_seconds`.
    """

    def __init__(
        self,
        benchmark: HashBenchmark | None = None,
        *,
        sample_hashes: int = DEFAULT_POLICY.calibration_sample_hashes,
        budget_seconds: float = DEFAULT_POLICY.calibration_budget_seconds,
        tolerance: float = DEFAULT_POLICY.calibration_tolerance,
        utilization: float = DEFAULT_POLICY.calibration_utilization,
        public_hashes_per_tick: int = DEFAULT_POLICY.public_hashes_per_tick,
        samples: int = 3,
        max_attempts: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if sample_hashes <= 0 or samples <= 0 or max_attempts <= 0:
            raise ValueError("sample_hashes, samples and max_attempts must be positive")
        if not 0 < utilization <= 1:
            raise ValueError(f"utilization must be in (0, 1], got {utilization}")
        self.benchmark: HashBenchmark = benchmark or Sha256ChainBenchmark()
        self.sample_hashes = sample_hashes
        self.budget_seconds = budget_seconds
        self.tolerance = tolerance
        self.utilization = utilization
        self.public_hashes_per_tick = public_hashes_per_tick
        self.samples = samples
        self.max_attempts = max_attempts
        self.clock = clock

    @classmethod
    def from_policy(
        cls, policy: ClusterPolicy, benchmark: HashBenchmark | None = None
    ) -> TickRateCalibrator:
        """Build a calibrator with the calibration settings of `policy`."""
        return cls(
            benchmark,
            sample_hashes=policy.calibration_sample_hashes,
            budget_seconds=policy.calibration_budget_seconds,
            tolerance=policy.calibration_tolerance,
            utilization=policy.calibration_utilization,
            public_hashes_per_tick=policy.public_hashes_per_tick,
        )

    def resolve(
        self,
        mode: TickRateMode,
        cluster_type: ClusterType,
        *,
        ticks_per_slot: int = DEFAULT_TICKS_PER_SLOT,
        target_tick_duration_us: int = DEFAULT_TARGET_TICK_DURATION_US,
    ) -> PohConfig:
        """
        Resolve `mode` for `cluster_type`.

        Raises:
            InvalidTickRateError: A fixed rate is not positive.
            CalibrationTimeoutError: The benchmark exceeded its budget.
            CalibrationUnstableError: Measurements never agreed within tolerance.
        """
        if ticks_per_slot <= 0:
            raise InvalidTickRateError(f"ticks per slot must be positive, got {ticks_per_slot}")
        if target_tick_duration_us <= 0:
            raise InvalidTickRateError(
                f"target tick duration must be positive, got {target_tick_duration_us}us"
            )

        match mode:
            case FixedTickRate(hashes_per_tick=hashes_per_tick):
                if hashes_per_tick <= 0:
                    raise InvalidTickRateError(
                        f"hashes per tick must be positive, got {hashes_per_tick}"
                    )
            case AutoTickRate() if cluster_type.is_public:
                hashes_per_tick = self.public_hashes_per_tick
                logger.info(
                    "Using fixed %d hashes per tick for %s cluster",
                    hashes_per_tick,
                    cluster_type.value,
                )
            case AutoTickRate():
                hashes_per_tick = self.calibrate(target_tick_duration_us)

        return PohConfig(
            target_tick_duration_us=target_tick_duration_us,
            hashes_per_tick=hashes_per_tick,
            ticks_per_slot=ticks_per_slot,
        )

    def calibrate(self, target_tick_duration_us: int) -> int:
        """
        Measure the host and derive hashes per tick.

        Returns:
            `utilization` of the hashes the host can compute in one target tick
            (never less than one).
        """
        deadline = self.clock() + self.budget_seconds
        spread = 0.0

        for attempt in range(1, self.max_attempts + 1):
            rates = [self._sample(deadline) for _ in range(self.samples)]
            median = statistics.median(rates)
            spread = (max(rates) - min(rates)) / median
            logger.debug(
                "Calibration round %d: median %.0f hashes/s, spread %.1f%%",
                attempt,
                median,
                spread * 100,
            )
            if spread <= self.tolerance:
                break
        else:
            raise CalibrationUnstableError(spread, self.tolerance, self.max_attempts)

        hashes_per_tick = max(
            1, int(median * target_tick_duration_us * self.utilization / MICROS_PER_SECOND)
        )
        logger.info(
            "Calibrated %d hashes per tick (%.0f hashes/s at %.0f%% utilization)",
            hashes_per_tick,
            median,
            self.utilization * 100,
        )
        return hashes_per_tick

    def _sample(self, deadline: float) -> float:
        """
        Run one measurement and return the observed hash rate.

        The measurement runs on a daemon thread. A benchmark still running at
        the deadline is abandoned and does not hold up interpreter exit.
        """
        remaining = deadline - self.clock()
        if remaining <= 0:
            raise CalibrationTimeoutError(self.budget_seconds)

        outcome: dict[str, Any] = {}

        def measure() -> None:
            try:
                outcome["elapsed"] = self.benchmark.measure(self.sample_hashes)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=measure, name="calibration", daemon=True)
        worker.start()
        worker.join(remaining)
        if worker.is_alive():
            raise CalibrationTimeoutError(self.budget_seconds)
        if "error" in outcome:
            raise outcome["error"]

        elapsed = outcome["elapsed"]

        if elapsed <= 0:
            raise CalibrationError(f"hash benchmark reported a non-positive duration ({elapsed})")
        if self.clock() > deadline:
            raise CalibrationTimeoutError(self.budget_seconds)
        return self.sample_hashes / elapsed
