"""Canonical, platform-independent value types used by every genesis structure."""

from .base import CamelModel, StrictBaseModel
from .boolean import Boolean
from .byte_arrays import ZERO_HASH, BaseByteList, Bytes12, Bytes16, Bytes32, Bytes48, Bytes64
from .collections import SSZList
from .container import Container
from .exceptions import (
    SSZDecodeError,
    SSZError,
    SSZOverflowError,
    SSZSerializationError,
    SSZTypeError,
    SSZValueError,
)
from .ssz_base import SSZType
from .uint import Uint8, Uint32, Uint64

__all__ = [
    # Core types
    "Uint8",
    "Uint32",
    "Uint64",
    "Boolean",
    "Bytes12",
    "Bytes16",
    "Bytes32",
    "Bytes48",
    "Bytes64",
    "BaseByteList",
    "ZERO_HASH",
    "CamelModel",
    "StrictBaseModel",
    "SSZList",
    "SSZType",
    "Container",
    # Exceptions
    "SSZError",
    "SSZTypeError",
    "SSZValueError",
    "SSZOverflowError",
    "SSZSerializationError",
    "SSZDecodeError",
]
