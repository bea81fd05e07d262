"""Unsigned Integer Type Specification."""

from __future__ import annotations

from typing import IO, Any, ClassVar, SupportsInt

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .exceptions import SSZDecodeError, SSZOverflowError
from .ssz_base import SSZType


class BaseUint(int, SSZType):
    """
    A base class for fixed-width unsigned integers that inherits from `int`.

    Values are always encoded little-endian with exactly `BITS // 8` bytes,
    so the encoding is the same on every host regardless of native word size
    or byte order.
    """

    BITS: ClassVar[int]
    """The number of bits in the integer (overridden by subclasses)."""

    def __new__(cls, value: SupportsInt) -> Self:
        """
        Create and validate a new Uint instance.

        Raises:
            SSZOverflowError: If `value` is outside the allowed range [0, 2**BITS - 1].
            TypeError: If `value` is a float, string or other non-integral type.
        """
        if isinstance(value, (float, str, bytes)):
            raise TypeError(f"{cls.__name__} requires an integer, got {type(value).__name__}")
        int_value = int(value)
        if not (0 <= int_value < (2**cls.BITS)):
            raise SSZOverflowError(int_value, cls.__name__, max_value=2**cls.BITS - 1)
        return super().__new__(cls, int_value)

    @classmethod
    def max_value(cls) -> Self:
        """Return the largest representable value."""
        return cls(2**cls.BITS - 1)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Hook into Pydantic's validation system."""

        def validate(value: Any) -> BaseUint:
            """Pydantic validation function that calls the class constructor."""
            if isinstance(value, bool):
                raise ValueError(f"{cls.__name__} does not accept booleans")
            try:
                return cls(value)
            except (OverflowError, TypeError) as e:
                raise ValueError(str(e)) from e

        return core_schema.json_or_python_schema(
            json_schema=core_schema.chain_schema(
                [
                    core_schema.int_schema(ge=0, lt=2**cls.BITS),
                    core_schema.no_info_plain_validator_function(validate),
                ]
            ),
            python_schema=core_schema.no_info_plain_validator_function(validate),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda instance: int(instance)
            ),
        )

    @classmethod
    def is_fixed_size(cls) -> bool:
        """Unsigned integers always have a fixed width."""
        return True

    @classmethod
    def get_byte_length(cls) -> int:
        """Return the width in bytes."""
        return cls.BITS // 8

    def encode_bytes(self) -> bytes:
        """Return the little-endian, fixed-width encoding."""
        return int(self).to_bytes(self.BITS // 8, "little")

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Decode exactly `BITS // 8` little-endian bytes."""
        if len(data) != cls.get_byte_length():
            raise SSZDecodeError(
                cls.__name__, f"expected {cls.get_byte_length()} bytes, got {len(data)}"
            )
        return cls(int.from_bytes(data, "little"))

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the encoded integer to `stream`."""
        encoded = self.encode_bytes()
        stream.write(encoded)
        return len(encoded)

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Read an integer of exactly `scope` bytes from `stream`."""
        if scope != cls.get_byte_length():
            raise SSZDecodeError(
                cls.__name__, f"invalid scope {scope}, expected {cls.get_byte_length()}"
            )
        data = stream.read(scope)
        if len(data) != scope:
            raise SSZDecodeError(cls.__name__, "stream ended prematurely")
        return cls.decode_bytes(data)

    def _raise_type_error(self, other: Any, op_symbol: str) -> None:
        """Helper to raise a consistent TypeError."""
        raise TypeError(
            f"Unsupported operand type(s) for {op_symbol}: "
            f"'{type(self).__name__}' and '{type(other).__name__}'"
        )

    def __add__(self, other: Any) -> Self:
        """Handle the addition operator (`+`)."""
        if not isinstance(other, type(self)):
            self._raise_type_error(other, "+")
        return type(self)(super().__add__(other))

    def __sub__(self, other: Any) -> Self:
        """Handle the subtraction operator (`-`)."""
        if not isinstance(other, type(self)):
            self._raise_type_error(other, "-")
        return type(self)(super().__sub__(other))

    def __mul__(self, other: Any) -> Self:
        """Handle the multiplication operator (`*`)."""
        if not isinstance(other, type(self)):
            self._raise_type_error(other, "*")
        return type(self)(super().__mul__(other))

    def __floordiv__(self, other: Any) -> Self:
        """Handle the floor division operator (`//`)."""
        if not isinstance(other, type(self)):
            self._raise_type_error(other, "//")
        return type(self)(super().__floordiv__(other))

    def __repr__(self) -> str:
        """Return the official string representation of the object."""
        return f"{type(self).__name__}({int(self)})"

    def __str__(self) -> str:
        """Return the informal, user-friendly string representation."""
        return str(int(self))

    def __hash__(self) -> int:
        """Hash consistently with the plain `int` of the same value."""
        return hash(int(self))

    def __eq__(self, other: object) -> bool:
        """Compare by value against another Uint of the same width or a plain `int`."""
        if isinstance(other, BaseUint) and not isinstance(other, type(self)):
            return False
        if isinstance(other, int) and not isinstance(other, bool):
            return int(self) == int(other)
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        """Negation of `__eq__`."""
        result = self.__eq__(other)
        return result if result is NotImplemented else not result


class Uint8(BaseUint):
    """A type representing an 8-bit unsigned integer (uint8)."""

    BITS = 8


class Uint32(BaseUint):
    """A type representing a 32-bit unsigned integer (uint32)."""

    BITS = 32


class Uint64(BaseUint):
    """A type representing a 64-bit unsigned integer (uint64)."""

    BITS = 64
