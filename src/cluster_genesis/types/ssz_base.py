"""Base classes and interfaces for all canonically encoded types."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import IO, Any

from typing_extensions import Iterator, Self

from .base import StrictBaseModel


class SSZType(ABC):
    """
    Abstract base class for all canonically encoded types.

    Every type knows whether it has a fixed width and how to write itself to
    a stream. There is no padding, alignment or platform-dependent layout:
    integers are little-endian with an explicit width, and variable-size
    values are located through 4-byte offsets.
    """

    @classmethod
    @abstractmethod
    def is_fixed_size(cls) -> bool:
        """Check if the type has a fixed size in bytes."""
        ...

    @classmethod
    @abstractmethod
    def get_byte_length(cls) -> int:
        """
        Get the byte length of the type if it is fixed-size.

        Raises:
            TypeError: If the type is not fixed-size.
        """
        ...

    @abstractmethod
    def serialize(self, stream: IO[bytes]) -> int:
        """
        Serializes the object and writes it to a binary stream.

        Returns:
            int: The number of bytes written.
        """
        ...

    @classmethod
    @abstractmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """
        Deserializes an object from a binary stream within a given scope.

        Args:
            stream (IO[bytes]): The stream to read from.
            scope (int): The number of bytes available to read for this object.
        """
        ...

    def encode_bytes(self) -> bytes:
        """Serializes the object to a byte string."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Deserializes a byte string into an object."""
        with io.BytesIO(data) as stream:
            return cls.deserialize(stream, len(data))


class SSZModel(StrictBaseModel, SSZType):
    """
    Base class for encoded types that use pydantic validation.

    Collections built on this class store their elements in a `data` field
    and expose natural iteration, indexing and `len()` over it.
    """

    def __len__(self) -> int:
        """Return the length of the collection's data."""
        return len(self.data)  # type: ignore[attr-defined]

    def __iter__(self) -> Iterator[Any]:  # type: ignore[override]
        """Iterate over the collection's data."""
        return iter(self.data)  # type: ignore[attr-defined]

    def __getitem__(self, key: Any) -> Any:
        """Get an item from the collection's data."""
        return self.data[key]  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        """String representation showing the class name and data."""
        return f"{self.__class__.__name__}(data={list(self.data)!r})"  # type: ignore[attr-defined]
