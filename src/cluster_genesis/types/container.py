"""
Container Type: ordered heterogeneous records with named fields.

Containers are how every genesis structure is described. The field order
in the class body *is* the wire order, so two builds that construct the
same container always produce the same bytes.
"""

from __future__ import annotations

import io
from typing import IO, Type, cast

from typing_extensions import Self

from .base import StrictBaseModel
from .constants import OFFSET_BYTE_LENGTH
from .exceptions import SSZDecodeError, SSZTypeError
from .ssz_base import SSZType
from .uint import Uint32


class Container(StrictBaseModel, SSZType):
    """
    A strict, ordered collection of heterogeneous named fields.

    Key properties:
    - Fields are serialized in definition order
    - Fixed-size fields are packed directly
    - Variable-size fields use offset pointers
    - Inherits Pydantic validation for type safety

    Example:
        >>> class PohConfig(Container):
        ...     target_tick_duration_us: Uint64
        ...     hashes_per_tick: Uint64
        ...     ticks_per_slot: Uint64

    Serialization format:
        [fixed_field_1][fixed_field_2]...[offset_1][offset_2]...[variable_data_1][variable_data_2]...
    """

    @classmethod
    def _field_types(cls) -> list[tuple[str, Type[SSZType]]]:
        """Return (name, type) pairs in definition order."""
        return [
            (name, cast(Type[SSZType], field.annotation))
            for name, field in cls.model_fields.items()
        ]

    @classmethod
    def is_fixed_size(cls) -> bool:
        """A container is fixed-size only when all its fields are fixed-size."""
        return all(field_type.is_fixed_size() for _, field_type in cls._field_types())

    @classmethod
    def get_byte_length(cls) -> int:
        """
        Calculate the exact byte length for fixed-size containers.

        Raises:
            SSZTypeError: If called on a variable-size container.
        """
        if not cls.is_fixed_size():
            raise SSZTypeError(f"{cls.__name__} is variable-size")
        return sum(field_type.get_byte_length() for _, field_type in cls._field_types())

    def serialize(self, stream: IO[bytes]) -> int:
        """
        Serialize the container.

        The fixed part holds fixed-size fields and a 4-byte offset for each
        variable-size field; the variable part follows in field order.

        Returns:
            Number of bytes written to the stream.
        """
        fixed_parts: list[bytes | None] = []
        variable_data: list[bytes] = []

        for field_name, field_type in self._field_types():
            value = getattr(self, field_name)
            if field_type.is_fixed_size():
                fixed_parts.append(value.encode_bytes())
            else:
                # Placeholder, replaced with an offset below.
                fixed_parts.append(None)
                variable_data.append(value.encode_bytes())

        offset = sum(OFFSET_BYTE_LENGTH if part is None else len(part) for part in fixed_parts)

        var_index = 0
        for part in fixed_parts:
            if part is None:
                Uint32(offset).serialize(stream)
                offset += len(variable_data[var_index])
                var_index += 1
            else:
                stream.write(part)

        for data in variable_data:
            stream.write(data)

        return offset

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """
        Deserialize a container from a byte stream.

        Raises:
            SSZDecodeError: If the stream ends early or offsets are inconsistent.
        """
        fields = {}
        var_fields = []
        bytes_read = 0

        for field_name, field_type in cls._field_types():
            if field_type.is_fixed_size():
                size = field_type.get_byte_length()
                data = stream.read(size)
                if len(data) != size:
                    raise SSZDecodeError(
                        cls.__name__, f"unexpected end of data in '{field_name}'", offset=bytes_read
                    )
                fields[field_name] = field_type.decode_bytes(data)
                bytes_read += size
            else:
                offset_bytes = stream.read(OFFSET_BYTE_LENGTH)
                if len(offset_bytes) != OFFSET_BYTE_LENGTH:
                    raise SSZDecodeError(
                        cls.__name__,
                        f"unexpected end of data in offset for '{field_name}'",
                        offset=bytes_read,
                    )
                var_fields.append((field_name, field_type, int(Uint32.decode_bytes(offset_bytes))))
                bytes_read += OFFSET_BYTE_LENGTH

        if not var_fields:
            if bytes_read != scope:
                raise SSZDecodeError(
                    cls.__name__, f"expected {bytes_read} bytes, got {scope}", offset=bytes_read
                )
            return cls(**fields)

        var_section_size = scope - bytes_read
        if var_section_size < 0:
            raise SSZDecodeError(cls.__name__, "scope smaller than fixed part")
        var_section = stream.read(var_section_size)
        if len(var_section) != var_section_size:
            raise SSZDecodeError(cls.__name__, "unexpected end of data in variable section")

        if var_fields[0][2] != bytes_read:
            raise SSZDecodeError(
                cls.__name__,
                f"first offset {var_fields[0][2]} does not follow fixed part",
                offset=bytes_read,
            )

        offsets = [offset for _, _, offset in var_fields] + [scope]
        for i, (name, field_type, start) in enumerate(var_fields):
            end = offsets[i + 1]
            rel_start = start - bytes_read
            rel_end = end - bytes_read
            if rel_start < 0 or rel_start > rel_end or rel_end > var_section_size:
                raise SSZDecodeError(cls.__name__, f"invalid offsets for '{name}'", offset=start)
            fields[name] = field_type.decode_bytes(var_section[rel_start:rel_end])

        return cls(**fields)

    def encode_bytes(self) -> bytes:
        """Encode container to bytes."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Decode container from bytes."""
        with io.BytesIO(data) as stream:
            return cls.deserialize(stream, len(data))
