"""Test helpers shared across the cluster_genesis tests."""

from .builders import (
    DEFAULT_CREATION_TIME,
    FixedDurationBenchmark,
    counting_entropy,
    make_artifact,
    make_parameters,
    make_triple,
    pubkey,
)

__all__ = [
    "DEFAULT_CREATION_TIME",
    "FixedDurationBenchmark",
    "counting_entropy",
    "make_artifact",
    "make_parameters",
    "make_triple",
    "pubkey",
]
