"""
Tests for script chunks, ASM/hex transcoding and output serialization.
"""

import pytest

from scripts.exceptions import ScriptParseError
from scripts.opcodes import ScriptOpcode, opcode_name, parse_opcode_name
from scripts.outputs import TxOutput, parse_output, serialize_output
from scripts.script import Script, ScriptChunk, asm_to_hex, hex_to_asm


class TestScriptChunk:
    """Test chunk construction and ASM tokens."""

    def test_minimal_push_sizes(self):
        """Test that push picks the smallest push opcode."""
        assert ScriptChunk.push(b"") == ScriptChunk.op(ScriptOpcode.OP_0)
        assert ScriptChunk.push(b"\xaa").serialize().hex() == "01aa"
        assert ScriptChunk.push(b"\x00" * 75).opcode == 75
        assert ScriptChunk.push(b"\x00" * 76).serialize()[:2].hex() == "4c4c"
        assert ScriptChunk.push(b"\x00" * 256).serialize()[:3].hex() == "4d0001"
        assert ScriptChunk.push(b"\x00" * 0x10000).serialize()[:5].hex() == "4e00000100"

    def test_direct_push_length_checked(self):
        with pytest.raises(ScriptParseError, match="length mismatch"):
            ScriptChunk(3, b"\x01")

    def test_opcode_cannot_carry_data(self):
        with pytest.raises(ScriptParseError):
            ScriptChunk(ScriptOpcode.OP_DUP, b"\x01")

    def test_special_asm_tokens(self):
        """Test the numeric ASM spellings of OP_0 and OP_1NEGATE."""
        assert ScriptChunk.from_asm("0") == ScriptChunk.op(ScriptOpcode.OP_0)
        assert ScriptChunk.from_asm("-1") == ScriptChunk.op(ScriptOpcode.OP_1NEGATE)
        assert ScriptChunk.op(ScriptOpcode.OP_0).to_asm() == "0"
        assert ScriptChunk.op(ScriptOpcode.OP_1NEGATE).to_asm() == "-1"
        assert ScriptChunk.from_asm("OP_FALSE") == ScriptChunk.op(ScriptOpcode.OP_0)
        assert ScriptChunk.from_asm("OP_TRUE").to_asm() == "OP_1"

    def test_push_values(self):
        assert ScriptChunk.push(b"\x01\x02").push_value == b"\x01\x02"
        assert ScriptChunk.op(ScriptOpcode.OP_0).push_value == b""
        assert ScriptChunk.op(ScriptOpcode.OP_5).push_value is None
        assert ScriptChunk.op(ScriptOpcode.OP_5).is_push
        assert not ScriptChunk.op(ScriptOpcode.OP_CHECKSIG).is_push

    def test_push_opcode_without_data_in_asm(self):
        with pytest.raises(ScriptParseError, match="without data"):
            ScriptChunk.from_asm("OP_PUSHDATA1")


class TestOpcodeNames:
    """Test opcode naming."""

    def test_known_names(self):
        assert opcode_name(ScriptOpcode.OP_CHECKSIG) == "OP_CHECKSIG"
        assert opcode_name(ScriptOpcode.OP_SPLIT) == "OP_SPLIT"
        assert parse_opcode_name("op_hash160") == ScriptOpcode.OP_HASH160
        assert parse_opcode_name("deadbeef") is None

    def test_unknown_opcodes_round_trip(self):
        """Test that undefined opcodes keep a parseable name."""
        assert opcode_name(0xba) == "OP_UNKNOWN186"
        assert parse_opcode_name("OP_UNKNOWN186") == 0xba
        assert hex_to_asm("ba") == "OP_UNKNOWN186"
        assert asm_to_hex("OP_UNKNOWN186") == "ba"


class TestScriptTranscoding:
    """Test exact ASM and hex transcoding."""

    def test_p2pkh_code_part(self, p2pkh_code_hex, p2pkh_code_asm):
        """Test transcoding of a compiled P2PKH code part."""
        assert hex_to_asm(p2pkh_code_hex) == p2pkh_code_asm
        assert asm_to_hex(p2pkh_code_asm) == p2pkh_code_hex

    def test_hex_tokens_become_pushes(self):
        assert asm_to_hex("aa") == "01aa"
        assert asm_to_hex("0 -1 OP_16") == "004f60"

    def test_pushdata_round_trip(self):
        """Test that long pushes survive hex and ASM round trips."""
        data = bytes(range(256)) * 2
        script = Script((ScriptChunk.push(data), ScriptChunk.op(ScriptOpcode.OP_DROP)))
        assert Script.from_hex(script.to_hex()) == script
        assert Script.from_asm(script.to_asm()) == script

    def test_truncated_push(self):
        with pytest.raises(ScriptParseError, match="Insufficient data"):
            Script.from_hex("05aabb")
        with pytest.raises(ScriptParseError, match="OP_PUSHDATA2"):
            Script.from_hex("4d01")

    def test_invalid_hex(self):
        with pytest.raises(ScriptParseError, match="Odd-length"):
            Script.from_hex("abc")
        with pytest.raises(ScriptParseError):
            Script.from_hex("zz")

    def test_invalid_asm_token(self):
        with pytest.raises(ScriptParseError, match="Invalid token"):
            Script.from_asm("OP_DUP OP_FOO")

    def test_coerce(self):
        script = Script.from_asm("OP_DUP OP_HASH160")
        assert Script.coerce(script) is script
        assert Script.coerce(bytes.fromhex("76a9")) == script
        assert Script.coerce("OP_DUP OP_HASH160") == script
        with pytest.raises(TypeError):
            Script.coerce(42)

    def test_sequence_behaviour(self):
        script = Script.from_asm("OP_1 OP_2 OP_3")
        assert len(script) == 3
        assert script[1] == ScriptChunk.op(ScriptOpcode.OP_2)
        assert script[1:].to_asm() == "OP_2 OP_3"
        assert (script + ScriptChunk.op(ScriptOpcode.OP_RETURN)).ends_with(
            ScriptChunk.op(ScriptOpcode.OP_RETURN)
        )
        assert (script + Script.from_asm("aa")).to_hex() == "51525301aa"


class TestOutputSerialization:
    """Test transaction output serialization."""

    def test_serialize_output(self):
        script = Script.from_asm("OP_1")
        assert serialize_output(script, 1000).hex() == "e803000000000000" + "01" + "51"

    def test_long_script_uses_varint(self):
        script = Script((ScriptChunk.push(b"\x00" * 300),))
        raw = serialize_output(script, 1)
        # 303-byte script: fd prefix and little-endian length
        assert raw[8:11].hex() == "fd2f01"

    def test_parse_output_round_trip(self):
        script = Script.from_asm("OP_DUP OP_HASH160 " + "11" * 20 + " OP_EQUALVERIFY OP_CHECKSIG")
        data = b"\xff" + TxOutput(5000, script).serialize() + b"\xee"
        output, offset = parse_output(data, 1)
        assert output == TxOutput(5000, script)
        assert data[offset:] == b"\xee"

    def test_parse_truncated_output(self):
        raw = serialize_output(Script.from_asm("OP_1 OP_2"), 10)
        with pytest.raises(ScriptParseError):
            parse_output(raw[:-1])

    def test_value_range(self):
        with pytest.raises(ValueError):
            TxOutput(-1, Script())

    def test_serialize_output_checks_value(self):
        """Test that out-of-range values fail before packing."""
        script = Script.from_asm("OP_1")
        with pytest.raises(ValueError, match="out of range"):
            serialize_output(script, -1)
        with pytest.raises(ValueError, match="out of range"):
            serialize_output(script, 2 ** 64)
        with pytest.raises(ValueError, match="must be an integer"):
            serialize_output(script, 1.5)
