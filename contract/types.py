"""
Contract Script ABI - Type Descriptors

Type descriptors declare the shape of a value: a primitive kind, a struct
schema, a fixed-size array schema or a library schema. Composites have no wire
encoding of their own; they only fix the order in which their primitive leaves
appear in a script. Decoding is therefore schema-directed: the same bytes mean
nothing without the descriptor, and any change to a declared shape invalidates
scripts serialized under the old shape.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Sequence, Tuple

from scripts.number import decode_script_num, encode_script_num
from scripts.opcodes import ScriptOpcode, small_int_opcode, small_int_value
from scripts.script import ScriptChunk

from .exceptions import TypeDecodeError, TypeMismatchError
from .values import ArrayValue, Bool, Bytes, Int, LibraryValue, StructValue, Value


class PrimitiveKind(str, Enum):
    """Primitive value kinds."""
    BOOL = "bool"
    INT = "int"
    BYTES = "bytes"


def join_field(root: str, name: str) -> str:
    """Path of a struct field, e.g. ``y.st3``."""
    return f"{root}.{name}" if root else name


def join_index(root: str, index: int) -> str:
    """Path of an array element, e.g. ``y[2]``."""
    return f"{root}[{index}]"


class TypeDescriptor:
    """Base class for declared value shapes."""

    @property
    def name(self) -> str:
        raise NotImplementedError

    def check(self, value: Value, path: str = "") -> None:
        """Raise TypeMismatchError unless ``value`` conforms to this type."""
        raise NotImplementedError

    def build(self, obj: Any, path: str = "") -> Value:
        """Build a typed value from plain Python data, directed by this type."""
        raise NotImplementedError

    def leaves(self, root: str = "") -> Iterator[Tuple[str, 'PrimitiveType']]:
        """Yield ``(path, primitive type)`` for every leaf in traversal order."""
        raise NotImplementedError

    def leaf_count(self) -> int:
        return sum(1 for _ in self.leaves())


@dataclass(frozen=True)
class PrimitiveType(TypeDescriptor):
    """
    Primitive type with its canonical script encoding.

    Booleans are OP_1/OP_0. Integers are minimal script numbers, using
    OP_0, OP_1NEGATE and OP_1..OP_16 for the values those opcodes push.
    Byte strings are pushed as-is, the empty string being OP_0.
    """
    kind: PrimitiveKind
    type_name: str
    byte_length: Optional[int] = None

    @property
    def name(self) -> str:
        return self.type_name

    def check(self, value: Value, path: str = "") -> None:
        expected = _VALUE_CLASSES[self.kind]
        if not isinstance(value, expected):
            raise TypeMismatchError(
                f"expected {self.type_name}, got {type(value).__name__}", path
            )
        if self.byte_length is not None and len(value.value) != self.byte_length:
            raise TypeMismatchError(
                f"{self.type_name} must be {self.byte_length} bytes, got {len(value.value)}", path
            )

    def build(self, obj: Any, path: str = "") -> Value:
        if isinstance(obj, Value):
            self.check(obj, path)
            return obj

        try:
            if self.kind == PrimitiveKind.BOOL:
                value = Bool(obj)
            elif self.kind == PrimitiveKind.INT:
                value = Int(obj)
            elif isinstance(obj, str):
                value = Bytes.from_hex(obj)
            else:
                value = Bytes(obj)
        except TypeMismatchError as e:
            raise TypeMismatchError(f"{self.type_name}: {e}", path)

        self.check(value, path)
        return value

    def leaves(self, root: str = "") -> Iterator[Tuple[str, 'PrimitiveType']]:
        yield root, self

    def encode(self, value: Value, path: str = "") -> ScriptChunk:
        """Encode a checked value as a single script chunk."""
        self.check(value, path)

        if self.kind == PrimitiveKind.BOOL:
            return ScriptChunk.op(ScriptOpcode.OP_1 if value.value else ScriptOpcode.OP_0)

        if self.kind == PrimitiveKind.INT:
            if value.value == 0:
                return ScriptChunk.op(ScriptOpcode.OP_0)
            opcode = small_int_opcode(value.value)
            if opcode is not None:
                return ScriptChunk.op(opcode)
            return ScriptChunk.push(encode_script_num(value.value))

        return ScriptChunk.push(value.value)

    def decode(self, chunk: ScriptChunk, path: str = "") -> Value:
        """Decode a single script chunk; raises TypeDecodeError."""
        if self.kind == PrimitiveKind.BOOL:
            if chunk == _OP_TRUE:
                return Bool(True)
            if chunk == _OP_FALSE:
                return Bool(False)
            raise TypeDecodeError(f"'{chunk.to_asm()}' is not a canonical bool", path)

        if self.kind == PrimitiveKind.INT:
            small = small_int_value(chunk.opcode)
            if small is not None:
                return Int(small)
            data = chunk.push_value
            if data is None:
                raise TypeDecodeError(f"'{chunk.to_asm()}' does not push an int", path)
            return Int(decode_script_num(data))

        data = chunk.push_value
        if data is None:
            raise TypeDecodeError(f"'{chunk.to_asm()}' does not push {self.type_name}", path)
        if self.byte_length is not None and len(data) != self.byte_length:
            raise TypeDecodeError(
                f"{self.type_name} must be {self.byte_length} bytes, got {len(data)}", path
            )
        return Bytes(data)


_VALUE_CLASSES = {
    PrimitiveKind.BOOL: Bool,
    PrimitiveKind.INT: Int,
    PrimitiveKind.BYTES: Bytes,
}

_OP_TRUE = ScriptChunk.op(ScriptOpcode.OP_1)
_OP_FALSE = ScriptChunk.op(ScriptOpcode.OP_0)


@dataclass(frozen=True)
class StructType(TypeDescriptor):
    """Struct schema: ordered field name to descriptor pairs."""
    struct_name: str
    fields: Tuple[Tuple[str, TypeDescriptor], ...]

    @property
    def name(self) -> str:
        return self.struct_name

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(field_name for field_name, _ in self.fields)

    def check(self, value: Value, path: str = "") -> None:
        if not isinstance(value, StructValue):
            raise TypeMismatchError(
                f"expected struct {self.struct_name}, got {type(value).__name__}", path
            )
        if value.name != self.struct_name:
            raise TypeMismatchError(
                f"expected struct {self.struct_name}, got struct {value.name}", path
            )
        self._check_fields(value, path)

    def _check_fields(self, value: StructValue, path: str) -> None:
        if tuple(value.field_names) != self.field_names:
            missing = [f for f in self.field_names if f not in value.field_names]
            extra = [f for f in value.field_names if f not in self.field_names]
            raise TypeMismatchError(
                f"struct {self.struct_name} fields mismatch "
                f"(missing {missing}, extra {extra}, expected order {list(self.field_names)})",
                path,
            )
        for (field_name, field_type), (_, field_value) in zip(self.fields, value.fields):
            field_type.check(field_value, join_field(path, field_name))

    def build(self, obj: Any, path: str = "") -> Value:
        if isinstance(obj, Value):
            self.check(obj, path)
            return obj
        if not isinstance(obj, Mapping):
            raise TypeMismatchError(
                f"struct {self.struct_name} expects a mapping, got {type(obj).__name__}", path
            )
        extra = [key for key in obj if key not in self.field_names]
        if extra:
            raise TypeMismatchError(f"unknown fields {extra} for struct {self.struct_name}", path)

        fields = []
        for field_name, field_type in self.fields:
            if field_name not in obj:
                raise TypeMismatchError(
                    f"missing field '{field_name}' for struct {self.struct_name}", path
                )
            fields.append((field_name, field_type.build(obj[field_name], join_field(path, field_name))))
        return StructValue(self.struct_name, tuple(fields))

    def leaves(self, root: str = "") -> Iterator[Tuple[str, PrimitiveType]]:
        for field_name, field_type in self.fields:
            yield from field_type.leaves(join_field(root, field_name))


@dataclass(frozen=True)
class ArrayType(TypeDescriptor):
    """Array schema: element type and fixed dimensions, outermost first."""
    element: TypeDescriptor
    dimensions: Tuple[int, ...]

    def __post_init__(self):
        if not self.dimensions or any(d <= 0 for d in self.dimensions):
            raise TypeMismatchError(f"invalid array dimensions {self.dimensions}")

    @property
    def name(self) -> str:
        return self.element.name + "".join(f"[{d}]" for d in self.dimensions)

    @property
    def length(self) -> int:
        return self.dimensions[0]

    @property
    def inner(self) -> TypeDescriptor:
        """Type of each element of the outermost dimension."""
        if len(self.dimensions) == 1:
            return self.element
        return ArrayType(self.element, self.dimensions[1:])

    def check(self, value: Value, path: str = "") -> None:
        if not isinstance(value, ArrayValue):
            raise TypeMismatchError(f"expected {self.name}, got {type(value).__name__}", path)
        if len(value) != self.length:
            raise TypeMismatchError(
                f"expected {self.length} elements for {self.name}, got {len(value)}", path
            )
        inner = self.inner
        for index, item in enumerate(value):
            inner.check(item, join_index(path, index))

    def build(self, obj: Any, path: str = "") -> Value:
        if isinstance(obj, Value):
            self.check(obj, path)
            return obj
        if isinstance(obj, (str, bytes, bytearray, Mapping)) or not isinstance(obj, Sequence):
            raise TypeMismatchError(f"{self.name} expects a sequence, got {type(obj).__name__}", path)
        if len(obj) != self.length:
            raise TypeMismatchError(
                f"expected {self.length} elements for {self.name}, got {len(obj)}", path
            )
        inner = self.inner
        return ArrayValue(tuple(
            inner.build(item, join_index(path, index)) for index, item in enumerate(obj)
        ))

    def leaves(self, root: str = "") -> Iterator[Tuple[str, PrimitiveType]]:
        inner = self.inner
        for index in range(self.length):
            yield from inner.leaves(join_index(root, index))


@dataclass(frozen=True)
class LibraryType(TypeDescriptor):
    """Library schema: a named wrapper around the struct of its properties."""
    library_name: str
    state: StructType

    @property
    def name(self) -> str:
        return self.library_name

    def check(self, value: Value, path: str = "") -> None:
        if not isinstance(value, LibraryValue):
            raise TypeMismatchError(
                f"expected library {self.library_name}, got {type(value).__name__}", path
            )
        if value.name != self.library_name:
            raise TypeMismatchError(
                f"expected library {self.library_name}, got library {value.name}", path
            )
        self.state.check(value.state, path)

    def build(self, obj: Any, path: str = "") -> Value:
        if isinstance(obj, Value):
            self.check(obj, path)
            return obj
        # Libraries may be given by their constructor arguments, positionally
        if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
            if len(obj) != len(self.state.fields):
                raise TypeMismatchError(
                    f"library {self.library_name} expects {len(self.state.fields)} "
                    f"arguments, got {len(obj)}",
                    path,
                )
            obj = dict(zip(self.state.field_names, obj))
        state = self.state.build(obj, path)
        return LibraryValue(self.library_name, state)

    def leaves(self, root: str = "") -> Iterator[Tuple[str, PrimitiveType]]:
        return self.state.leaves(root)


BOOL = PrimitiveType(PrimitiveKind.BOOL, "bool")
INT = PrimitiveType(PrimitiveKind.INT, "int")
BYTES = PrimitiveType(PrimitiveKind.BYTES, "bytes")

# Built-in type names and the primitives they resolve to
BUILTIN_TYPES = {
    "bool": BOOL,
    "int": INT,
    "bytes": BYTES,
    "PrivKey": PrimitiveType(PrimitiveKind.INT, "PrivKey"),
    "PubKey": PrimitiveType(PrimitiveKind.BYTES, "PubKey"),
    "Sig": PrimitiveType(PrimitiveKind.BYTES, "Sig"),
    "SigHashPreimage": PrimitiveType(PrimitiveKind.BYTES, "SigHashPreimage"),
    "SigHashType": PrimitiveType(PrimitiveKind.BYTES, "SigHashType", 1),
    "OpCodeType": PrimitiveType(PrimitiveKind.BYTES, "OpCodeType"),
    "Ripemd160": PrimitiveType(PrimitiveKind.BYTES, "Ripemd160", 20),
    "PubKeyHash": PrimitiveType(PrimitiveKind.BYTES, "PubKeyHash", 20),
    "Sha1": PrimitiveType(PrimitiveKind.BYTES, "Sha1", 20),
    "Sha256": PrimitiveType(PrimitiveKind.BYTES, "Sha256", 32),
}


def build_args(params: Sequence[Tuple[str, TypeDescriptor]], args: Sequence[Any]) -> Tuple[Value, ...]:
    """Build typed values for positional arguments against declared parameters."""
    if len(args) != len(params):
        raise TypeMismatchError(f"expected {len(params)} arguments, got {len(args)}")
    return tuple(
        param_type.build(arg, param_name)
        for (param_name, param_type), arg in zip(params, args)
    )
