"""Factories for test inputs."""

from __future__ import annotations

import itertools
from typing import Any, Callable, Iterable

from cluster_genesis.config import DEFAULT_POLICY
from cluster_genesis.genesis import (
    BootstrapValidatorTriple,
    GenesisArtifact,
    GenesisParameters,
    Rent,
    TickRateCalibrator,
    build_from_parameters,
)
from cluster_genesis.types import Bytes32

DEFAULT_CREATION_TIME = 1_700_000_000
"""Pinned creation time so builds are reproducible."""


def pubkey(n: int) -> Bytes32:
    """A distinct, recognizable public key for each `n` in [1, 255]."""
    return Bytes32(bytes([n]) * 32)


def counting_entropy(start: int = 0) -> Callable[[int], bytes]:
    """Entropy source yielding a different, predictable seed on each call."""
    counter = itertools.count(start)

    def entropy(num_bytes: int) -> bytes:
        return next(counter).to_bytes(num_bytes, "little")

    return entropy


class FixedDurationBenchmark:
    """Benchmark stub that reports the given durations in turn, cycling."""

    def __init__(self, durations: Iterable[float], on_measure: Callable[[], None] | None = None):
        self.durations = itertools.cycle(list(durations))
        self.on_measure = on_measure
        self.calls = 0

    def measure(self, num_hashes: int) -> float:
        self.calls += 1
        if self.on_measure is not None:
            self.on_measure()
        return next(self.durations)


def make_triple(rent: Rent | None = None) -> BootstrapValidatorTriple:
    """A consistent bootstrap triple with keys 1, 2 and 3."""
    return BootstrapValidatorTriple.create(
        pubkey(1),
        pubkey(2),
        pubkey(3),
        lamports=500_000_000_000,
        stake_lamports=500_000_000,
        rent=rent if rent is not None else Rent.default(),
    )


def make_parameters(**overrides: Any) -> GenesisParameters:
    """Parameters for a development genesis with a fixed tick rate."""
    fields: dict[str, Any] = {
        "bootstrap_validator": (pubkey(1), pubkey(2), pubkey(3)),
        "faucet_pubkey": pubkey(4),
        "faucet_lamports": 500_000_000_000_000_000,
        "cluster_type": "development",
        "hashes_per_tick": 12_500,
        "enable_warmup_epochs": True,
        "creation_time": DEFAULT_CREATION_TIME,
    }
    fields.update(overrides)
    return GenesisParameters(**fields)


def make_artifact(**overrides: Any) -> GenesisArtifact:
    """Build a genesis from `make_parameters(**overrides)` without benchmarking."""
    calibrator = TickRateCalibrator.from_policy(
        DEFAULT_POLICY, FixedDurationBenchmark([0.5])
    )
    return build_from_parameters(make_parameters(**overrides), calibrator)
