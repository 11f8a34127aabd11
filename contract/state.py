"""
Contract Script ABI - Contract State Serialization

Mutable contract state lives in the data part, after the end-of-code marker.
The state value is flattened into its primitive leaves, each leaf is encoded
as its canonical script chunk, and the serialized chunks are concatenated into
a single opaque blob pushed as one data push.
"""

from typing import Any

from scripts.exceptions import ScriptParseError
from scripts.script import Script, ScriptChunk

from .exceptions import TypeDecodeError
from .flatten import flatten, unflatten
from .types import StructType
from .values import StructValue, Value


def build_state(state_type: StructType, state: Any) -> Value:
    """Build a state value from a typed value or plain mapping."""
    return state_type.build(state, "")


def serialize_state(state_type: StructType, state: Any) -> bytes:
    """
    Serialize a state value into its opaque blob.

    Args:
        state_type: Declared state struct
        state: State value (typed, or a mapping of property values)

    Returns:
        Concatenated serialized leaf chunks
    """
    value = build_state(state_type, state)
    return b''.join(
        leaf_type.encode(leaf, path).serialize()
        for path, leaf_type, leaf in flatten(state_type, value)
    )


def deserialize_state(state_type: StructType, blob: bytes) -> StructValue:
    """
    Rebuild a state value from its blob.

    Raises TypeDecodeError if the blob does not hold exactly one decodable
    chunk per state leaf.
    """
    try:
        chunks = Script.from_bytes(blob)
    except ScriptParseError as e:
        raise TypeDecodeError(f"state blob is not a chunk sequence: {e}")

    leaves = list(state_type.leaves())
    if len(chunks) != len(leaves):
        raise TypeDecodeError(f"state blob holds {len(chunks)} values, expected {len(leaves)}")

    decoded = {
        path: leaf_type.decode(chunk, path)
        for (path, leaf_type), chunk in zip(leaves, chunks)
    }
    return unflatten(state_type, decoded)


def state_data_part(state_type: StructType, state: Any) -> Script:
    """Data part holding ``state`` as a single push."""
    return Script((ScriptChunk.push(serialize_state(state_type, state)),))


def decode_data_part(state_type: StructType, data_part: Script) -> StructValue:
    """Decode a data part produced by state_data_part."""
    if len(data_part) != 1 or data_part[0].push_value is None:
        raise TypeDecodeError(
            f"state data part must be a single push, got '{data_part.to_asm()}'"
        )
    return deserialize_state(state_type, data_part[0].push_value)
