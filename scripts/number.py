"""
Contract Script ABI - Script Number Encoding

Script numbers are little-endian, sign-and-magnitude integers of minimal
length. The sign lives in the top bit of the last byte, so a magnitude whose
top byte already has the high bit set needs one extra byte (0x00 or 0x80).
Zero is the empty byte string.
"""

from typing import Optional

from .exceptions import ScriptEncodingError


def encode_script_num(value: int) -> bytes:
    """
    Encode integer as a minimal script number.

    Args:
        value: Signed integer of any size

    Returns:
        Minimal little-endian sign-magnitude bytes (empty for zero)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScriptEncodingError(f"Script number must be an int, got {type(value).__name__}")

    if value == 0:
        return b''

    negative = value < 0
    magnitude = -value if negative else value

    result = bytearray()
    while magnitude > 0:
        result.append(magnitude & 0xff)
        magnitude >>= 8

    if result[-1] & 0x80:
        result.append(0x80 if negative else 0x00)
    elif negative:
        result[-1] |= 0x80

    return bytes(result)


def decode_script_num(data: bytes, max_size: Optional[int] = None) -> int:
    """
    Decode script number bytes into an integer.

    Non-minimal encodings are accepted and negative zero decodes to zero.

    Args:
        data: Little-endian sign-magnitude bytes
        max_size: Optional upper bound on the encoded length

    Returns:
        Decoded integer
    """
    if max_size is not None and len(data) > max_size:
        raise ScriptEncodingError(f"Script number overflow: {len(data)} > {max_size} bytes")

    if len(data) == 0:
        return 0

    result = int.from_bytes(data, 'little')
    if data[-1] & 0x80:
        result &= ~(0x80 << (8 * (len(data) - 1)))
        return -result
    return result


def is_minimal_script_num(data: bytes) -> bool:
    """Check that script number bytes carry no redundant trailing byte."""
    if len(data) == 0:
        return True
    if data[-1] & 0x7f:
        return True
    # Last byte is 0x00 or 0x80: only allowed when it holds the sign bit
    return len(data) > 1 and bool(data[-2] & 0x80)
