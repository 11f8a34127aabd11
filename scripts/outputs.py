"""
Contract Script ABI - Transaction Output Serialization

Serializes a locking script together with its satoshi value in the
transaction-output wire format (8-byte little-endian value followed by a
varint-prefixed script), as needed when placing a new state script into the
next output of a state-transition transaction.
"""

import struct
from dataclasses import dataclass
from typing import Tuple

from bitcoinlib.encoding import int_to_varbyteint, varbyteint_to_int

from .exceptions import ScriptParseError
from .script import Script


MAX_SATOSHIS = 21_000_000 * 100_000_000


def check_satoshis(satoshis: int) -> None:
    if isinstance(satoshis, bool) or not isinstance(satoshis, int):
        raise ValueError(f"Output value must be an integer: {satoshis!r}")
    if not 0 <= satoshis <= MAX_SATOSHIS:
        raise ValueError(f"Output value out of range: {satoshis}")


@dataclass(frozen=True)
class TxOutput:
    """A transaction output: value in satoshis and locking script."""
    satoshis: int
    script: Script

    def __post_init__(self):
        check_satoshis(self.satoshis)

    def serialize(self) -> bytes:
        return serialize_output(self.script, self.satoshis)


def serialize_output(script: Script, satoshis: int) -> bytes:
    """
    Serialize an output.

    Args:
        script: Locking script
        satoshis: Output value

    Returns:
        Serialized output bytes
    """
    check_satoshis(satoshis)
    raw = script.to_bytes()
    return struct.pack('<Q', satoshis) + int_to_varbyteint(len(raw)) + raw


def parse_output(data: bytes, offset: int = 0) -> Tuple[TxOutput, int]:
    """
    Parse a serialized output.

    Args:
        data: Bytes to parse
        offset: Starting offset

    Returns:
        Tuple of (output, new_offset)
    """
    if offset + 9 > len(data):
        raise ScriptParseError("Insufficient data for output", offset)

    satoshis = struct.unpack('<Q', data[offset:offset + 8])[0]
    offset += 8

    script_len, size = varbyteint_to_int(data[offset:offset + 9])
    offset += size
    if offset + script_len > len(data):
        raise ScriptParseError("Insufficient data for output script", offset)

    script = Script.from_bytes(data[offset:offset + script_len])
    return TxOutput(satoshis=satoshis, script=script), offset + script_len
