"""
Contract Script ABI - Script Chunks and Transcoding

This module provides the immutable token model shared by the template engine:
a script is an ordered tuple of chunks (an opcode, optionally carrying push
data). Scripts transcode exactly between their binary form (length-prefixed
pushes) and the whitespace-separated ASM form used by contract artifacts.
"""

import logging
import struct
from dataclasses import dataclass
from io import BytesIO
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .exceptions import ScriptParseError
from .opcodes import ScriptOpcode, opcode_name, parse_opcode_name


logger = logging.getLogger(__name__)

MAX_DIRECT_PUSH = 75


@dataclass(frozen=True)
class ScriptChunk:
    """A single element of a script: an opcode, with data when it is a push."""
    opcode: int
    data: Optional[bytes] = None

    def __post_init__(self):
        if not 0 <= self.opcode <= 0xff:
            raise ScriptParseError(f"Opcode out of range: {self.opcode}")
        if self.is_data_push and self.data is None:
            raise ScriptParseError(f"Push opcode {self.opcode:#04x} requires data")
        if self.is_data_push and self.opcode <= MAX_DIRECT_PUSH and len(self.data) != self.opcode:
            raise ScriptParseError(f"Direct push length mismatch: {self.opcode} != {len(self.data)}")
        if not self.is_data_push and self.data is not None:
            raise ScriptParseError(f"Opcode {opcode_name(self.opcode)} cannot carry data")

    @classmethod
    def push(cls, data: bytes) -> 'ScriptChunk':
        """Create the minimal push chunk for ``data`` (OP_0 for empty data)."""
        size = len(data)
        if size == 0:
            return cls(ScriptOpcode.OP_0)
        if size <= MAX_DIRECT_PUSH:
            return cls(size, bytes(data))
        if size <= 0xff:
            return cls(ScriptOpcode.OP_PUSHDATA1, bytes(data))
        if size <= 0xffff:
            return cls(ScriptOpcode.OP_PUSHDATA2, bytes(data))
        return cls(ScriptOpcode.OP_PUSHDATA4, bytes(data))

    @classmethod
    def op(cls, opcode: int) -> 'ScriptChunk':
        """Create a non-push opcode chunk."""
        return cls(opcode)

    @property
    def is_data_push(self) -> bool:
        """True for direct pushes and OP_PUSHDATA1/2/4."""
        return 1 <= self.opcode <= ScriptOpcode.OP_PUSHDATA4

    @property
    def is_push(self) -> bool:
        """True for any chunk that only pushes a value (OP_0..OP_16 included)."""
        return self.opcode <= ScriptOpcode.OP_16 and self.opcode != ScriptOpcode.OP_RESERVED

    @property
    def push_value(self) -> Optional[bytes]:
        """Bytes pushed by this chunk; empty for OP_0, None for non-pushes and small ints."""
        if self.is_data_push:
            return self.data
        if self.opcode == ScriptOpcode.OP_0:
            return b''
        return None

    def __len__(self) -> int:
        """Get serialized size of this chunk."""
        return len(self.serialize())

    def serialize(self) -> bytes:
        """Serialize chunk to bytes."""
        if not self.is_data_push:
            return bytes([self.opcode])

        size = len(self.data)
        if self.opcode <= MAX_DIRECT_PUSH:
            return bytes([self.opcode]) + self.data
        if self.opcode == ScriptOpcode.OP_PUSHDATA1:
            return bytes([self.opcode]) + struct.pack('<B', size) + self.data
        if self.opcode == ScriptOpcode.OP_PUSHDATA2:
            return bytes([self.opcode]) + struct.pack('<H', size) + self.data
        return bytes([self.opcode]) + struct.pack('<I', size) + self.data

    def to_asm(self) -> str:
        """Convert to assembly token."""
        if self.is_data_push:
            return self.data.hex() if self.data else '0'
        if self.opcode == ScriptOpcode.OP_0:
            return '0'
        if self.opcode == ScriptOpcode.OP_1NEGATE:
            return '-1'
        return opcode_name(self.opcode)

    @classmethod
    def from_asm(cls, token: str) -> 'ScriptChunk':
        """Parse a single ASM token."""
        if token == '0':
            return cls(ScriptOpcode.OP_0)
        if token == '-1':
            return cls(ScriptOpcode.OP_1NEGATE)

        opcode = parse_opcode_name(token)
        if opcode is not None:
            if 1 <= opcode <= ScriptOpcode.OP_PUSHDATA4:
                raise ScriptParseError(f"Push opcode without data in ASM: {token}")
            return cls(opcode)

        try:
            data = bytes.fromhex(token)
        except ValueError:
            raise ScriptParseError(f"Invalid token in ASM: {token}")
        return cls.push(data)


@dataclass(frozen=True)
class Script:
    """
    Immutable sequence of script chunks.

    Scripts support concatenation with ``+`` and slicing, and compare equal
    chunk-for-chunk.
    """
    chunks: Tuple[ScriptChunk, ...] = ()

    def __post_init__(self):
        if not isinstance(self.chunks, tuple):
            object.__setattr__(self, 'chunks', tuple(self.chunks))

    # Construction

    @classmethod
    def from_chunks(cls, chunks: Iterable[ScriptChunk]) -> 'Script':
        return cls(tuple(chunks))

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Script':
        """Parse raw script bytes into chunks."""
        return cls(tuple(_parse_chunks(raw)))

    @classmethod
    def from_hex(cls, hex_string: str) -> 'Script':
        """Parse hex-encoded script."""
        if len(hex_string) % 2:
            raise ScriptParseError("Odd-length hex script")
        try:
            raw = bytes.fromhex(hex_string)
        except ValueError as e:
            raise ScriptParseError(f"Invalid hex script: {e}")
        return cls.from_bytes(raw)

    @classmethod
    def from_asm(cls, asm_string: str) -> 'Script':
        """Parse whitespace-separated ASM text."""
        return cls(tuple(ScriptChunk.from_asm(token) for token in asm_string.split()))

    @classmethod
    def coerce(cls, script: Union['Script', bytes, str]) -> 'Script':
        """Accept a Script, raw bytes or ASM text."""
        if isinstance(script, Script):
            return script
        if isinstance(script, (bytes, bytearray)):
            return cls.from_bytes(bytes(script))
        if isinstance(script, str):
            return cls.from_asm(script)
        raise TypeError(f"Cannot build a script from {type(script).__name__}")

    # Serialization

    def to_bytes(self) -> bytes:
        output = BytesIO()
        for chunk in self.chunks:
            output.write(chunk.serialize())
        return output.getvalue()

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def to_asm(self) -> str:
        return " ".join(chunk.to_asm() for chunk in self.chunks)

    # Sequence behaviour

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self) -> Iterator[ScriptChunk]:
        return iter(self.chunks)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Script(self.chunks[index])
        return self.chunks[index]

    def __add__(self, other: 'Script') -> 'Script':
        if isinstance(other, ScriptChunk):
            return Script(self.chunks + (other,))
        if not isinstance(other, Script):
            return NotImplemented
        return Script(self.chunks + other.chunks)

    def ends_with(self, chunk: ScriptChunk) -> bool:
        return bool(self.chunks) and self.chunks[-1] == chunk

    def __str__(self) -> str:
        return self.to_asm()


def _parse_chunks(script: bytes) -> List[ScriptChunk]:
    """Parse raw script bytes into chunks, raising on truncated pushes."""
    chunks = []
    pc = 0

    while pc < len(script):
        start = pc
        opcode = script[pc]
        pc += 1

        if 1 <= opcode <= MAX_DIRECT_PUSH:
            data_len = opcode
        elif opcode == ScriptOpcode.OP_PUSHDATA1:
            if pc + 1 > len(script):
                raise ScriptParseError("Missing length byte for OP_PUSHDATA1", start)
            data_len = script[pc]
            pc += 1
        elif opcode == ScriptOpcode.OP_PUSHDATA2:
            if pc + 2 > len(script):
                raise ScriptParseError("Missing length bytes for OP_PUSHDATA2", start)
            data_len = struct.unpack('<H', script[pc:pc + 2])[0]
            pc += 2
        elif opcode == ScriptOpcode.OP_PUSHDATA4:
            if pc + 4 > len(script):
                raise ScriptParseError("Missing length bytes for OP_PUSHDATA4", start)
            data_len = struct.unpack('<I', script[pc:pc + 4])[0]
            pc += 4
        else:
            chunks.append(ScriptChunk(opcode))
            continue

        if pc + data_len > len(script):
            raise ScriptParseError(f"Insufficient data for push of {data_len} bytes", start)

        chunks.append(ScriptChunk(opcode, script[pc:pc + data_len]))
        pc += data_len

    logger.debug(f"Parsed {len(chunks)} chunks from {len(script)} script bytes")
    return chunks


# Convenience functions

def asm_to_hex(asm_string: str) -> str:
    """Transcode ASM text to hex."""
    return Script.from_asm(asm_string).to_hex()


def hex_to_asm(hex_string: str) -> str:
    """Transcode hex to ASM text."""
    return Script.from_hex(hex_string).to_asm()
