"""Boolean Type Specification."""

from __future__ import annotations

from typing import IO, Any

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema
from typing_extensions import Self

from .exceptions import SSZDecodeError
from .ssz_base import SSZType


class Boolean(int, SSZType):
    """
    A strict boolean encoded as a single byte (`0x00` or `0x01`).

    Any other byte value is rejected on decode, so a flag can never have two
    encodings.
    """

    __slots__ = ()

    def __new__(cls, value: bool | int) -> Self:
        """
        Create and validate a new Boolean instance.

        Raises:
            TypeError: If `value` is not a bool or int.
            ValueError: If `value` is an integer other than 0 or 1.
        """
        if not isinstance(value, int):
            raise TypeError(f"Expected bool or int, got {type(value).__name__}")

        int_value = int(value)
        if int_value not in (0, 1):
            raise ValueError(f"Boolean value must be 0 or 1, not {int_value}")

        return super().__new__(cls, int_value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """Accept only real booleans (or existing instances) during validation."""
        from_bool_validator = core_schema.no_info_plain_validator_function(cls)

        python_schema = core_schema.chain_schema(
            [core_schema.bool_schema(strict=True), from_bool_validator]
        )

        return core_schema.union_schema(
            [core_schema.is_instance_schema(cls), python_schema],
            serialization=core_schema.plain_serializer_function_ser_schema(bool),
        )

    @classmethod
    def is_fixed_size(cls) -> bool:
        """Return whether the type is fixed-size."""
        return True

    @classmethod
    def get_byte_length(cls) -> int:
        """Return the byte length of the type."""
        return 1

    def encode_bytes(self) -> bytes:
        """Encode as `b'\\x01'` or `b'\\x00'`."""
        return b"\x01" if self else b"\x00"

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Deserialize a single byte into a Boolean instance."""
        if len(data) != 1:
            raise SSZDecodeError("Boolean", f"expected 1 byte, got {len(data)}")
        if data[0] not in (0, 1):
            raise SSZDecodeError("Boolean", f"byte must be 0x00 or 0x01, got {data[0]:#04x}")
        return cls(data[0])

    def serialize(self, stream: IO[bytes]) -> int:
        """Serialize the boolean to a binary stream."""
        encoded_data = self.encode_bytes()
        stream.write(encoded_data)
        return len(encoded_data)

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Deserialize a boolean from a binary stream."""
        if scope != 1:
            raise SSZDecodeError("Boolean", f"invalid scope {scope}, expected 1")
        return cls.decode_bytes(stream.read(1))

    def __eq__(self, other: object) -> bool:
        """Compare with native `bool` and `int` values."""
        if isinstance(other, int):
            return int(self) == int(other)
        return False

    def __ne__(self, other: object) -> bool:
        """Negation of `__eq__`."""
        return not self.__eq__(other)

    def __repr__(self) -> str:
        """Return the official string representation of the object."""
        return f"Boolean({bool(self)})"

    def __str__(self) -> str:
        """Return the informal, user-friendly string representation."""
        return str(bool(self))

    def __hash__(self) -> int:
        """Hash consistently with `bool`."""
        return hash(int(self))
