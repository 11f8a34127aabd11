"""
Contract Script ABI - Flattening

Turns a nested value tree into the ordered sequence of primitive leaves that
template placeholders bind to, and rebuilds the tree from those leaves.
Struct fields are visited in declaration order and array elements in index
order.
"""

from typing import Dict, List, Mapping, Sequence, Tuple

from .exceptions import TypeMismatchError, UnboundArgumentError
from .types import (
    ArrayType,
    LibraryType,
    PrimitiveType,
    StructType,
    TypeDescriptor,
    join_field,
    join_index,
)
from .values import ArrayValue, LibraryValue, StructValue, Value


Leaf = Tuple[str, PrimitiveType, Value]


def flatten(descriptor: TypeDescriptor, value: Value, root: str = "") -> List[Leaf]:
    """
    Flatten a value into its primitive leaves.

    Args:
        descriptor: Declared type of ``value``
        value: Typed value tree
        root: Path of ``value`` (e.g. the parameter name)

    Returns:
        List of ``(path, primitive type, leaf value)`` in traversal order
    """
    descriptor.check(value, root)
    leaves: List[Leaf] = []
    _flatten_into(descriptor, value, root, leaves)
    return leaves


def _flatten_into(descriptor: TypeDescriptor, value: Value, path: str, out: List[Leaf]) -> None:
    if isinstance(descriptor, PrimitiveType):
        out.append((path, descriptor, value))
    elif isinstance(descriptor, StructType):
        for (field_name, field_type), (_, field_value) in zip(descriptor.fields, value.fields):
            _flatten_into(field_type, field_value, join_field(path, field_name), out)
    elif isinstance(descriptor, LibraryType):
        _flatten_into(descriptor.state, value.state, path, out)
    elif isinstance(descriptor, ArrayType):
        inner = descriptor.inner
        for index, item in enumerate(value):
            _flatten_into(inner, item, join_index(path, index), out)
    else:
        raise TypeMismatchError(f"unsupported descriptor {type(descriptor).__name__}", path)


def flatten_args(params: Sequence[Tuple[str, TypeDescriptor]], values: Sequence[Value]) -> Dict[str, Value]:
    """Flatten positional argument values into a path to leaf mapping."""
    if len(values) != len(params):
        raise TypeMismatchError(f"expected {len(params)} arguments, got {len(values)}")
    bound: Dict[str, Value] = {}
    for (param_name, param_type), value in zip(params, values):
        for path, _, leaf in flatten(param_type, value, param_name):
            bound[path] = leaf
    return bound


def unflatten(descriptor: TypeDescriptor, leaves: Mapping[str, Value], root: str = "") -> Value:
    """
    Rebuild a value tree from a path to leaf mapping.

    Raises UnboundArgumentError if a leaf is missing.
    """
    if isinstance(descriptor, PrimitiveType):
        if root not in leaves:
            raise UnboundArgumentError(root)
        value = leaves[root]
        descriptor.check(value, root)
        return value

    if isinstance(descriptor, StructType):
        return StructValue(descriptor.struct_name, tuple(
            (field_name, unflatten(field_type, leaves, join_field(root, field_name)))
            for field_name, field_type in descriptor.fields
        ))

    if isinstance(descriptor, LibraryType):
        state = unflatten(descriptor.state, leaves, root)
        return LibraryValue(descriptor.library_name, state)

    if isinstance(descriptor, ArrayType):
        inner = descriptor.inner
        return ArrayValue(tuple(
            unflatten(inner, leaves, join_index(root, index))
            for index in range(descriptor.length)
        ))

    raise TypeMismatchError(f"unsupported descriptor {type(descriptor).__name__}", root)


def unflatten_args(params: Sequence[Tuple[str, TypeDescriptor]], leaves: Mapping[str, Value]) -> Tuple[Value, ...]:
    """Rebuild positional argument values from a path to leaf mapping."""
    return tuple(unflatten(param_type, leaves, param_name) for param_name, param_type in params)
