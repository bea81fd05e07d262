"""Container encoding tests."""

import pytest
from pydantic import ValidationError

from cluster_genesis.types import (
    BaseByteList,
    Bytes32,
    Container,
    SSZDecodeError,
    SSZList,
    SSZValueError,
    Uint8,
    Uint64,
)


class Blob(BaseByteList):
    LIMIT = 64


class Pair(Container):
    a: Uint64
    b: Uint8


class Record(Container):
    key: Bytes32
    blob: Blob
    value: Uint64


class Records(SSZList[Record]):
    ELEMENT_TYPE = Record
    LIMIT = 8


class TestFixedContainer:
    def test_fields_encoded_in_declaration_order(self) -> None:
        """Fields are packed back to back with no padding."""
        pair = Pair(a=Uint64(1), b=Uint8(2))
        assert pair.encode_bytes() == b"\x01" + b"\x00" * 7 + b"\x02"
        assert Pair.get_byte_length() == 9
        assert Pair.is_fixed_size()

    def test_decode(self) -> None:
        assert Pair.decode_bytes(b"\x05" + b"\x00" * 7 + b"\x07") == Pair(a=5, b=7)

    def test_decode_wrong_length(self) -> None:
        with pytest.raises(SSZDecodeError):
            Pair.decode_bytes(b"\x00" * 8)

    def test_frozen(self) -> None:
        pair = Pair(a=1, b=2)
        with pytest.raises(ValidationError):
            pair.a = Uint64(3)  # type: ignore[misc]

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Pair(a=1, b=2, c=3)  # type: ignore[call-arg]


class TestVariableContainer:
    def test_offset_layout(self) -> None:
        """Variable-size fields are replaced by a 4-byte offset into the tail."""
        record = Record(key=Bytes32(b"\x11" * 32), blob=Blob(data=b"xyz"), value=9)
        encoded = record.encode_bytes()

        fixed_length = 32 + 4 + 8
        assert len(encoded) == fixed_length + 3
        assert encoded[32:36] == fixed_length.to_bytes(4, "little")
        assert encoded[fixed_length:] == b"xyz"
        assert Record.decode_bytes(encoded) == record

    def test_truncated_input_rejected(self) -> None:
        record = Record(key=Bytes32(b"\x11" * 32), blob=Blob(data=b"xyz"), value=9)
        with pytest.raises(SSZDecodeError):
            Record.decode_bytes(record.encode_bytes()[:20])

    def test_bad_first_offset_rejected(self) -> None:
        record = Record(key=Bytes32(b"\x11" * 32), blob=Blob(data=b"xyz"), value=9)
        encoded = bytearray(record.encode_bytes())
        encoded[32:36] = (50).to_bytes(4, "little")
        with pytest.raises(SSZDecodeError):
            Record.decode_bytes(bytes(encoded))

    def test_list_of_variable_records(self) -> None:
        records = Records(
            data=[
                Record(key=Bytes32(b"\x01" * 32), blob=Blob(data=b""), value=1),
                Record(key=Bytes32(b"\x02" * 32), blob=Blob(data=b"ab"), value=2),
            ]
        )
        decoded = Records.decode_bytes(records.encode_bytes())
        assert len(decoded) == 2
        assert decoded[1].blob == Blob(data=b"ab")

    def test_list_limit_enforced(self) -> None:
        record = Record(key=Bytes32(b"\x01" * 32), blob=Blob(data=b""), value=1)
        with pytest.raises(SSZValueError):
            Records(data=[record] * 9)
