"""
Contract Script ABI - Typed Values

Values are an explicit tagged union: booleans, arbitrary-precision signed
integers, byte strings, structs, fixed-length arrays and library values. They
are immutable; a value's shape is checked against its declared type by the
descriptors in ``contract.types``.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple

from .exceptions import TypeMismatchError


class Value:
    """Base class for all typed values."""

    def to_python(self) -> Any:
        """Convert to plain Python data (bool, int, bytes, dict, list)."""
        raise NotImplementedError

    def to_json(self) -> Any:
        """Convert to JSON-compatible data; bytes become hex strings."""
        raise NotImplementedError


@dataclass(frozen=True)
class Bool(Value):
    value: bool

    def __post_init__(self):
        if not isinstance(self.value, bool):
            raise TypeMismatchError(f"expected bool, got {type(self.value).__name__}")

    def to_python(self) -> bool:
        return self.value

    def to_json(self) -> bool:
        return self.value


@dataclass(frozen=True)
class Int(Value):
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeMismatchError(f"expected int, got {type(self.value).__name__}")

    def to_python(self) -> int:
        return self.value

    def to_json(self) -> int:
        return self.value


@dataclass(frozen=True)
class Bytes(Value):
    value: bytes

    def __post_init__(self):
        if isinstance(self.value, bytearray):
            object.__setattr__(self, 'value', bytes(self.value))
        if not isinstance(self.value, bytes):
            raise TypeMismatchError(f"expected bytes, got {type(self.value).__name__}")

    @classmethod
    def from_hex(cls, hex_string: str) -> 'Bytes':
        try:
            return cls(bytes.fromhex(hex_string))
        except ValueError:
            raise TypeMismatchError(f"invalid hex string: {hex_string!r}")

    def hex(self) -> str:
        return self.value.hex()

    def to_python(self) -> bytes:
        return self.value

    def to_json(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class StructValue(Value):
    """Struct value: type name plus fields in declaration order."""
    name: str
    fields: Tuple[Tuple[str, Value], ...]

    def __post_init__(self):
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, 'fields', tuple(self.fields))
        names = [field_name for field_name, _ in self.fields]
        if len(set(names)) != len(names):
            raise TypeMismatchError(f"duplicate field in struct {self.name}")
        for field_name, field_value in self.fields:
            if not isinstance(field_value, Value):
                raise TypeMismatchError(
                    f"field '{field_name}' of struct {self.name} is not a typed value"
                )

    @classmethod
    def of(cls, name: str, **fields: Value) -> 'StructValue':
        return cls(name, tuple(fields.items()))

    @property
    def field_names(self) -> List[str]:
        return [field_name for field_name, _ in self.fields]

    def __getitem__(self, field_name: str) -> Value:
        for name, value in self.fields:
            if name == field_name:
                return value
        raise KeyError(field_name)

    def get(self, field_name: str, default: Any = None) -> Any:
        try:
            return self[field_name]
        except KeyError:
            return default

    def to_python(self) -> Dict[str, Any]:
        return {name: value.to_python() for name, value in self.fields}

    def to_json(self) -> Dict[str, Any]:
        return {name: value.to_json() for name, value in self.fields}


@dataclass(frozen=True)
class ArrayValue(Value):
    """Fixed-length array value with homogeneous elements."""
    items: Tuple[Value, ...]

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, 'items', tuple(self.items))
        for item in self.items:
            if not isinstance(item, Value):
                raise TypeMismatchError("array element is not a typed value")
        kinds = {_element_kind(item) for item in self.items}
        if len(kinds) > 1:
            raise TypeMismatchError(f"array elements are not homogeneous: {sorted(kinds)}")

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> Value:
        return self.items[index]

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]

    def to_json(self) -> List[Any]:
        return [item.to_json() for item in self.items]


@dataclass(frozen=True)
class LibraryValue(Value):
    """Library value: library name plus the struct of its properties."""
    name: str
    state: StructValue

    def __post_init__(self):
        if not isinstance(self.state, StructValue):
            raise TypeMismatchError(f"library {self.name} state must be a struct value")

    def __getitem__(self, field_name: str) -> Value:
        return self.state[field_name]

    def to_python(self) -> Dict[str, Any]:
        return self.state.to_python()

    def to_json(self) -> Dict[str, Any]:
        return self.state.to_json()


def _element_kind(value: Value) -> str:
    """Kind key used for the array homogeneity check."""
    if isinstance(value, StructValue):
        return f"struct {value.name}"
    if isinstance(value, LibraryValue):
        return f"library {value.name}"
    if isinstance(value, ArrayValue):
        inner = {_element_kind(item) for item in value.items}
        return f"array[{len(value)}] of {','.join(sorted(inner))}"
    return type(value).__name__
