"""Constants used by the canonical codec."""

from __future__ import annotations

from typing import Final

OFFSET_BYTE_LENGTH: Final = 4
"""The number of bytes used to represent the offset of a variable-sized element."""
