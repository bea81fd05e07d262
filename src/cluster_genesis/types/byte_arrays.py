"""
Byte array types.

Two families are provided:

- Fixed-length vectors (`Bytes32`, `Bytes64`, ...): exactly LENGTH bytes.
- Bounded lists (`BaseByteList` subclasses): up to LIMIT bytes.
"""

from __future__ import annotations

from typing import IO, Any, ClassVar, Iterable, SupportsIndex

from pydantic import Field, field_validator
from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .exceptions import SSZDecodeError, SSZTypeError, SSZValueError
from .ssz_base import SSZModel, SSZType


def _coerce_to_bytes(value: Any) -> bytes:
    """
    Coerce a variety of inputs to raw bytes.

    Accepts:
      - `bytes` / `bytearray` (returned as immutable `bytes`)
      - Iterables of integers in [0, 255]
      - Hex strings, with or without a '0x' prefix (e.g. "0xdeadbeef" or "deadbeef")
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value.removeprefix("0x"))
    if isinstance(value, Iterable):
        return bytes(bytearray(value))
    return bytes(value)


class BaseBytes(bytes, SSZType):
    """
    A base class for fixed-length byte types that inherits from `bytes`.

    Subclasses set `LENGTH`, the exact number of bytes an instance holds.
    """

    LENGTH: ClassVar[int]
    """The exact number of bytes (overridden by subclasses)."""

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create and validate a new Bytes instance.

        Raises:
            SSZValueError: If the resulting byte length differs from `LENGTH`.
        """
        if not hasattr(cls, "LENGTH"):
            raise SSZTypeError(f"{cls.__name__} must define LENGTH")

        b = _coerce_to_bytes(value)
        if len(b) != cls.LENGTH:
            raise SSZValueError(f"{cls.__name__} expects exactly {cls.LENGTH} bytes, got {len(b)}")
        return super().__new__(cls, b)

    @classmethod
    def zero(cls) -> Self:
        """Create a new instance filled with zero bytes."""
        return cls(b"\x00" * cls.LENGTH)

    @classmethod
    def is_fixed_size(cls) -> bool:
        """Byte vectors are fixed-size."""
        return True

    @classmethod
    def get_byte_length(cls) -> int:
        """Get the byte length of this fixed-size type."""
        return cls.LENGTH

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the raw bytes to `stream`."""
        stream.write(self)
        return len(self)

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Read exactly `LENGTH` bytes from `stream`."""
        if scope != cls.LENGTH:
            raise SSZDecodeError(cls.__name__, f"invalid scope {scope}, expected {cls.LENGTH}")
        data = stream.read(scope)
        if len(data) != scope:
            raise SSZDecodeError(cls.__name__, "stream ended prematurely")
        return cls(data)

    def encode_bytes(self) -> bytes:
        """Return the raw bytes."""
        return bytes(self)

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Parse `data`, which must be exactly `LENGTH` bytes."""
        if len(data) != cls.LENGTH:
            raise SSZDecodeError(cls.__name__, f"expected {cls.LENGTH} bytes, got {len(data)}")
        return cls(data)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """
        Hook into Pydantic's validation system.

        Instances pass through unchanged, raw bytes of the right length are
        wrapped, and JSON input is read from a hex string. Serialization to
        JSON produces a hex string.
        """
        from_bytes_validator = core_schema.no_info_plain_validator_function(cls)

        python_schema = core_schema.chain_schema(
            [
                core_schema.bytes_schema(min_length=cls.LENGTH, max_length=cls.LENGTH),
                from_bytes_validator,
            ]
        )
        json_schema = core_schema.chain_schema(
            [core_schema.str_schema(), from_bytes_validator],
        )

        return core_schema.json_or_python_schema(
            json_schema=json_schema,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(cls), python_schema]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(lambda x: x.hex()),
        )

    def __repr__(self) -> str:
        """Return a string representation of the bytes."""
        return f"{type(self).__name__}({self.hex()})"

    def __hash__(self) -> int:
        """Return the hash of the underlying bytes."""
        return hash(bytes(self))

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        return bytes(self).hex() if sep is None else bytes(self).hex(sep, bytes_per_sep)


class Bytes12(BaseBytes):
    """Fixed-size byte array of exactly 12 bytes (AEAD nonces)."""

    LENGTH = 12


class Bytes16(BaseBytes):
    """Fixed-size byte array of exactly 16 bytes (KDF salts)."""

    LENGTH = 16


class Bytes32(BaseBytes):
    """Fixed-size byte array of exactly 32 bytes (public keys, seeds and hashes)."""

    LENGTH = 32


class Bytes48(BaseBytes):
    """Fixed-size byte array of exactly 48 bytes (an encrypted 32-byte seed plus its tag)."""

    LENGTH = 48


class Bytes64(BaseBytes):
    """Fixed-size byte array of exactly 64 bytes (Ed25519 signatures)."""

    LENGTH = 64


ZERO_HASH: Bytes32 = Bytes32.zero()
"""All-zero 32-byte value."""


class BaseByteList(SSZModel):
    """
    Base class for bounded, variable-length byte blobs.

    Subclasses set `LIMIT`, the maximum number of bytes an instance may contain.
    """

    LIMIT: ClassVar[int]
    """Maximum number of bytes the instance may contain."""

    data: bytes = Field(default=b"")
    """The raw bytes stored in this list."""

    @field_validator("data", mode="before")
    @classmethod
    def _validate_byte_list_data(cls, v: Any) -> bytes:
        """Validate and convert input to bytes with limit checking."""
        if not hasattr(cls, "LIMIT"):
            raise SSZTypeError(f"{cls.__name__} must define LIMIT")

        b = _coerce_to_bytes(v)
        if len(b) > cls.LIMIT:
            raise ValueError(f"{cls.__name__} length {len(b)} exceeds limit {cls.LIMIT}")
        return b

    @classmethod
    def is_fixed_size(cls) -> bool:
        """Byte lists are variable-size."""
        return False

    @classmethod
    def get_byte_length(cls) -> int:
        """Byte lists are variable-size, so this should not be called."""
        raise SSZTypeError(f"{cls.__name__} is variable-size and has no fixed byte length")

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the raw bytes to `stream`."""
        stream.write(self.data)
        return len(self.data)

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Read exactly `scope` bytes from `stream`."""
        if scope < 0 or scope > cls.LIMIT:
            raise SSZDecodeError(cls.__name__, f"scope {scope} outside [0, {cls.LIMIT}]")
        data = stream.read(scope)
        if len(data) != scope:
            raise SSZDecodeError(cls.__name__, "stream ended prematurely")
        return cls(data=data)

    def encode_bytes(self) -> bytes:
        """Return the raw bytes."""
        return self.data

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Parse `data`, whose length must not exceed `LIMIT`."""
        if len(data) > cls.LIMIT:
            raise SSZDecodeError(cls.__name__, f"length {len(data)} exceeds limit {cls.LIMIT}")
        return cls(data=data)

    def __bytes__(self) -> bytes:
        """Return the byte list as a bytes object."""
        return self.data

    def __repr__(self) -> str:
        """Return a string representation of the byte list."""
        return f"{type(self).__name__}({self.data.hex()})"

    def __eq__(self, other: object) -> bool:
        """Return whether the two byte lists are equal."""
        return isinstance(other, type(self)) and self.data == other.data

    def __hash__(self) -> int:
        """Return the hash of the byte list."""
        return hash((type(self), self.data))

    def hex(self) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        return self.data.hex()
