"""
Error taxonomy for key generation, genesis construction, tick-rate
calibration and genesis verification.

Every error carries a human-readable `message` that names the offending
input, so an operator can correct it without reading a traceback. None of
these are retried automatically: each stems from a configuration or
environment defect, not from transient I/O.
"""

from __future__ import annotations

from pathlib import Path


class ClusterGenesisError(Exception):
    """
    Base exception for every failure surfaced to an operator or runtime.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------


class KeyMaterialError(ClusterGenesisError):
    """Base class for keypair generation and keypair file errors."""


class EntropyUnavailableError(KeyMaterialError):
    """Raised when the platform cannot supply secure randomness."""


class KeyFileExistsError(KeyMaterialError):
    """
    Raised when a keypair file would overwrite an existing file.

    Attributes:
        path: The path that already exists.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"refusing to overwrite {path} without --force")


class DecryptionFailedError(KeyMaterialError):
    """
    Raised when an encrypted keypair cannot be opened.

    The message never contains any secret or ciphertext bytes.
    """


class CorruptKeyFileError(KeyMaterialError):
    """
    Raised when a keypair file is malformed.

    Attributes:
        path: The file that failed to parse (if known).
        detail: What was wrong with it.
    """

    def __init__(self, detail: str, *, path: Path | None = None) -> None:
        self.path = path
        self.detail = detail
        where = f" {path}" if path is not None else ""
        super().__init__(f"corrupt keypair file{where}: {detail}")


# ---------------------------------------------------------------------------
# Genesis construction
# ---------------------------------------------------------------------------


class GenesisConstructionError(ClusterGenesisError):
    """Base class for errors raised while building or writing a genesis artifact."""


class InvalidAccountDeclarationError(GenesisConstructionError):
    """Raised when an account declaration is malformed or its public key is duplicated."""


class BootstrapTripleMismatchError(GenesisConstructionError):
    """
    Raised when the bootstrap validator's accounts do not reference each other.

    Attributes:
        field: The cross-reference that failed (e.g. "vote.node_pubkey").
        expected: Hex of the public key that should have been recorded.
        actual: Hex of the public key that was recorded.
    """

    def __init__(self, field: str, *, expected: str, actual: str) -> None:
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"bootstrap validator {field} is {actual}, expected {expected}")


class SupplyOverflowError(GenesisConstructionError):
    """
    Raised when the declared balances exceed the maximum representable supply.

    Attributes:
        total: The sum of all declared balances.
        maximum: The largest representable supply.
    """

    def __init__(self, total: int, maximum: int) -> None:
        self.total = total
        self.maximum = maximum
        super().__init__(f"total genesis supply {total} exceeds maximum {maximum}")


class UnrecognizedClusterTypeError(GenesisConstructionError):
    """Raised when a cluster type is not one of the recognized values."""


class ArchiveTooLargeError(GenesisConstructionError):
    """
    Raised when the unpacked genesis exceeds the configured bound.

    Attributes:
        unpacked_size: Size of the unpacked genesis in bytes.
        max_unpacked_size: The configured bound in bytes.
    """

    def __init__(self, unpacked_size: int, max_unpacked_size: int) -> None:
        self.unpacked_size = unpacked_size
        self.max_unpacked_size = max_unpacked_size
        super().__init__(
            f"genesis unpacks to {unpacked_size} bytes, "
            f"exceeding --max-genesis-archive-unpacked-size {max_unpacked_size}"
        )


class LedgerDirectoryNotEmptyError(GenesisConstructionError):
    """
    Raised when the ledger directory already holds prior state.

    Attributes:
        path: The ledger directory.
        entries: Names of the existing entries.
    """

    def __init__(self, path: Path, entries: list[str]) -> None:
        self.path = path
        self.entries = entries
        listed = ", ".join(entries[:5]) + (", ..." if len(entries) > 5 else "")
        super().__init__(f"ledger directory {path} is not empty ({listed}); use --overwrite")


# ---------------------------------------------------------------------------
# Tick rate calibration
# ---------------------------------------------------------------------------


class CalibrationError(ClusterGenesisError):
    """Base class for tick-rate resolution errors."""


class InvalidTickRateError(CalibrationError):
    """Raised when a fixed hashes-per-tick value is not a positive integer."""


class CalibrationTimeoutError(CalibrationError):
    """
    Raised when the benchmark cannot finish within its wall-clock budget.

    Attributes:
        budget: The budget in seconds.
    """

    def __init__(self, budget: float) -> None:
        self.budget = budget
        super().__init__(f"hash rate calibration did not finish within {budget:.1f}s")


class CalibrationUnstableError(CalibrationError):
    """
    Raised when repeated measurements disagree beyond the tolerance.

    Attributes:
        spread: Relative spread of the last round of measurements.
        tolerance: The accepted relative spread.
        attempts: How many rounds were measured.
    """

    def __init__(self, spread: float, tolerance: float, attempts: int) -> None:
        self.spread = spread
        self.tolerance = tolerance
        self.attempts = attempts
        super().__init__(
            f"hash rate varied by {spread:.1%} after {attempts} rounds "
            f"(tolerance {tolerance:.1%}); this host is not suitable for calibrating cluster timing"
        )


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerificationError(ClusterGenesisError):
    """Base class for errors raised while loading a stored genesis artifact."""


class ArchiveCorruptError(VerificationError):
    """Raised when a genesis archive cannot be unpacked or decoded."""


class GenesisHashMismatchError(VerificationError):
    """
    Raised when the recomputed genesis hash differs from the expected one.

    Attributes:
        actual: Hex of the recomputed hash.
        expected: Hex of the expected hash.
    """

    def __init__(self, actual: str, expected: str) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(f"genesis hash mismatch: actual={actual}, expected={expected}")
