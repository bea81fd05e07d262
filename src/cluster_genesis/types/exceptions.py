"""Exception hierarchy for the canonical codec."""

from __future__ import annotations


class SSZError(Exception):
    """
    Base exception for all codec errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class SSZTypeError(SSZError):
    """Raised when a codec type is incorrectly defined or misused."""


class SSZValueError(SSZError):
    """Raised when a value is invalid for an encoding operation, even if the type is correct."""


class SSZOverflowError(SSZValueError, OverflowError):
    """
    Raised when a numeric value is outside the valid range.

    Attributes:
        value: The value that caused the overflow.
        type_name: The type that couldn't hold the value.
        max_value: The maximum allowed value (inclusive).
    """

    def __init__(self, value: int, type_name: str, *, max_value: int) -> None:
        self.value = value
        self.type_name = type_name
        self.max_value = max_value

        super().__init__(f"{value} is out of range for {type_name} (valid range: [0, {max_value}])")


class SSZSerializationError(SSZError):
    """Base class for serialization-related errors."""


class SSZDecodeError(SSZSerializationError):
    """
    Raised when decoding bytes to a value fails.

    Attributes:
        type_name: The type being decoded.
        detail: Description of what went wrong.
        offset: The byte offset where the error occurred (if known).
    """

    def __init__(self, type_name: str, detail: str, *, offset: int | None = None) -> None:
        self.type_name = type_name
        self.detail = detail
        self.offset = offset

        msg = f"Failed to decode {type_name}: {detail}"
        if offset is not None:
            msg = f"{msg} (at byte offset {offset})"

        super().__init__(msg)
