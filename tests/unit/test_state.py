"""
Tests for contract state serialization.
"""

import pytest

from contract.exceptions import TypeDecodeError, TypeMismatchError
from contract.state import decode_data_part, deserialize_state, serialize_state, state_data_part
from contract.types import BOOL, BYTES, INT, ArrayType, StructType
from contract.values import Bool, Bytes, Int, StructValue
from scripts.script import Script


STATE_TYPE = StructType("DemoState", (
    ("count", INT),
    ("flags", ArrayType(BOOL, (2,))),
    ("memo", BYTES),
))


class TestSerializeState:
    """Test state blob encoding."""

    def test_blob_concatenates_leaf_chunks(self):
        blob = serialize_state(STATE_TYPE, {"count": 1000, "flags": [True, False], "memo": "abcd"})
        assert blob.hex() == "02e803" + "51" + "00" + "02abcd"

    def test_typed_value_accepted(self):
        value = STATE_TYPE.build({"count": 0, "flags": [False, False], "memo": ""})
        assert serialize_state(STATE_TYPE, value) == b"\x00\x00\x00\x00"

    def test_invalid_state(self):
        with pytest.raises(TypeMismatchError, match="missing field 'memo'"):
            serialize_state(STATE_TYPE, {"count": 1, "flags": [True, True]})

    def test_data_part_is_single_push(self):
        data_part = state_data_part(STATE_TYPE, {"count": -1, "flags": [True, True], "memo": "00"})
        assert len(data_part) == 1
        assert data_part.to_hex() == "05" + "4f" + "5151" + "0100"


class TestDeserializeState:
    """Test state blob decoding."""

    def test_round_trip(self):
        state = {"count": 2 ** 40, "flags": [False, True], "memo": "ff" * 100}
        data_part = state_data_part(STATE_TYPE, state)
        decoded = decode_data_part(STATE_TYPE, data_part)
        assert isinstance(decoded, StructValue)
        assert decoded["count"] == Int(2 ** 40)
        assert list(decoded["flags"]) == [Bool(False), Bool(True)]
        assert decoded["memo"] == Bytes(b"\xff" * 100)

    def test_wrong_value_count(self):
        with pytest.raises(TypeDecodeError, match="holds 2 values, expected 4"):
            deserialize_state(STATE_TYPE, bytes.fromhex("5151"))

    def test_truncated_blob(self):
        with pytest.raises(TypeDecodeError, match="not a chunk sequence"):
            deserialize_state(STATE_TYPE, bytes.fromhex("515100" + "05ab"))

    def test_non_canonical_bool(self):
        with pytest.raises(TypeDecodeError, match=r"flags\[0\]"):
            deserialize_state(STATE_TYPE, bytes.fromhex("51" + "0101" + "51" + "00"))

    def test_data_part_must_be_one_push(self):
        with pytest.raises(TypeDecodeError, match="single push"):
            decode_data_part(STATE_TYPE, Script.from_asm("aa bb"))
        with pytest.raises(TypeDecodeError, match="single push"):
            decode_data_part(STATE_TYPE, Script.from_asm("OP_CHECKSIG"))
