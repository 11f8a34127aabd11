"""
Contract Script ABI - Script Primitives

This package provides the script token model used by the contract template
engine: opcodes, script chunks with exact ASM/binary transcoding, script
number encoding and transaction output serialization.
"""

from .exceptions import ScriptError, ScriptParseError, ScriptEncodingError
from .opcodes import ScriptOpcode, opcode_name, parse_opcode_name
from .number import encode_script_num, decode_script_num, is_minimal_script_num
from .script import Script, ScriptChunk, asm_to_hex, hex_to_asm
from .outputs import TxOutput, serialize_output, parse_output

__all__ = [
    'ScriptError',
    'ScriptParseError',
    'ScriptEncodingError',
    'ScriptOpcode',
    'opcode_name',
    'parse_opcode_name',
    'encode_script_num',
    'decode_script_num',
    'is_minimal_script_num',
    'Script',
    'ScriptChunk',
    'asm_to_hex',
    'hex_to_asm',
    'TxOutput',
    'serialize_output',
    'parse_output',
]
