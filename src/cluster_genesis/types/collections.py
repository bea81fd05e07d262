"""Bounded List Type Specification."""

from __future__ import annotations

import io
from typing import (
    IO,
    Any,
    ClassVar,
    Generic,
    Iterator,
    Sequence,
    Type,
    TypeVar,
    cast,
    overload,
)

from pydantic import Field, field_validator
from typing_extensions import Self

from .constants import OFFSET_BYTE_LENGTH
from .exceptions import SSZDecodeError, SSZTypeError, SSZValueError
from .ssz_base import SSZModel, SSZType
from .uint import Uint32

T = TypeVar("T", bound=SSZType)
"""Element type parameter, bound to encodable types so `lst[0]` is typed."""


class SSZList(SSZModel, Generic[T]):
    """
    Variable-length sequence with a maximum capacity.

    Subclasses must define:
        ELEMENT_TYPE: The encoded type of each element
        LIMIT: The maximum number of elements allowed

    Example:
        class Accounts(SSZList[AccountDeclaration]):
            ELEMENT_TYPE = AccountDeclaration
            LIMIT = 4096

    Encoding:
        - Fixed-size elements: Serialized back-to-back
        - Variable-size elements: Offset table followed by element data
    """

    ELEMENT_TYPE: ClassVar[Type[SSZType]]
    """The encoded type of elements in this list."""

    LIMIT: ClassVar[int]
    """The maximum number of elements allowed."""

    data: Sequence[T] = Field(default_factory=tuple)
    """
    The immutable sequence of elements.

    Accepts lists or tuples on input; stored as a tuple after validation.
    """

    @field_validator("data", mode="before")
    @classmethod
    def _validate_list_data(cls, v: Any) -> tuple[SSZType, ...]:
        """Validate and convert input to a tuple of elements."""
        if not hasattr(cls, "ELEMENT_TYPE") or not hasattr(cls, "LIMIT"):
            raise SSZTypeError(f"{cls.__name__} must define ELEMENT_TYPE and LIMIT")

        if isinstance(v, (list, tuple)):
            elements = v
        elif hasattr(v, "__iter__") and not isinstance(v, (str, bytes)):
            elements = list(v)
        else:
            raise SSZTypeError(f"Expected iterable, got {type(v).__name__}")

        if len(elements) > cls.LIMIT:
            raise SSZValueError(f"{cls.__name__} exceeds limit of {cls.LIMIT}, got {len(elements)}")

        typed_values = []
        for element in elements:
            if isinstance(element, cls.ELEMENT_TYPE):
                typed_values.append(element)
            else:
                try:
                    typed_values.append(cast(Any, cls.ELEMENT_TYPE)(element))
                except Exception as e:
                    raise SSZTypeError(
                        f"Expected {cls.ELEMENT_TYPE.__name__}, got {type(element).__name__}"
                    ) from e

        return tuple(typed_values)

    @classmethod
    def is_fixed_size(cls) -> bool:
        """A list is never fixed-size (length varies from 0 to LIMIT)."""
        return False

    @classmethod
    def get_byte_length(cls) -> int:
        """Lists are variable-size, so this raises an SSZTypeError."""
        raise SSZTypeError(f"{cls.__name__}: variable-size list has no fixed byte length")

    def serialize(self, stream: IO[bytes]) -> int:
        """Serialize the list to a binary stream."""
        if self.ELEMENT_TYPE.is_fixed_size():
            return sum(element.serialize(stream) for element in self.data)

        # Variable-size elements: offsets first, then the element bodies.
        variable_data_stream = io.BytesIO()
        offset = len(self.data) * OFFSET_BYTE_LENGTH
        for element in self.data:
            Uint32(offset).serialize(stream)
            offset += element.serialize(variable_data_stream)
        stream.write(variable_data_stream.getvalue())
        return offset

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Deserialize a list from a binary stream."""
        if cls.ELEMENT_TYPE.is_fixed_size():
            element_size = cls.ELEMENT_TYPE.get_byte_length()
            if scope % element_size != 0:
                raise SSZDecodeError(
                    cls.__name__, f"scope {scope} not divisible by element size {element_size}"
                )

            num_elements = scope // element_size
            if num_elements > cls.LIMIT:
                raise SSZDecodeError(
                    cls.__name__, f"{num_elements} elements exceed limit {cls.LIMIT}"
                )

            return cls(
                data=[
                    cls.ELEMENT_TYPE.deserialize(stream, element_size)
                    for _ in range(num_elements)
                ]
            )

        if scope == 0:
            return cls(data=[])
        if scope < OFFSET_BYTE_LENGTH:
            raise SSZDecodeError(cls.__name__, f"scope {scope} too small for variable-size list")

        # The first offset also tells us how many elements there are.
        first_offset = int(Uint32.deserialize(stream, OFFSET_BYTE_LENGTH))
        if first_offset > scope or first_offset % OFFSET_BYTE_LENGTH != 0:
            raise SSZDecodeError(cls.__name__, f"invalid offset {first_offset}", offset=0)

        count = first_offset // OFFSET_BYTE_LENGTH
        if count > cls.LIMIT:
            raise SSZDecodeError(cls.__name__, f"{count} elements exceed limit {cls.LIMIT}")

        offsets = [first_offset] + [
            int(Uint32.deserialize(stream, OFFSET_BYTE_LENGTH)) for _ in range(count - 1)
        ]
        offsets.append(scope)

        elements = []
        for i in range(count):
            start, end = offsets[i], offsets[i + 1]
            if start > end:
                raise SSZDecodeError(
                    cls.__name__, f"invalid offsets start={start} > end={end}", offset=start
                )
            elements.append(cls.ELEMENT_TYPE.deserialize(stream, end - start))

        return cls(data=elements)

    def encode_bytes(self) -> bytes:
        """Return the list's canonical byte representation."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Deserializes a byte string into a list instance."""
        with io.BytesIO(data) as stream:
            return cls.deserialize(stream, len(data))

    def __len__(self) -> int:
        """Return the number of elements in the list."""
        return len(self.data)

    def __iter__(self) -> Iterator[T]:  # type: ignore[override]
        """Iterate over list elements."""
        return iter(self.data)

    @overload
    def __getitem__(self, index: int) -> T: ...
    @overload
    def __getitem__(self, index: slice) -> Sequence[T]: ...

    def __getitem__(self, index: int | slice) -> T | Sequence[T]:
        """Access element(s) by index or slice."""
        return self.data[index]
