"""
Contract Script ABI - Public Function Calls

Encodes the unlocking script for a call to a contract's public function: the
flattened leaves of every argument in declaration order, followed by the
function index when the contract exposes more than one public function.
Decoding reverses this given the contract's declared functions.
"""

from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

from scripts.exceptions import ScriptParseError
from scripts.script import Script

from .exceptions import ContractError, TypeDecodeError
from .flatten import flatten, unflatten_args
from .types import INT, TypeDescriptor, build_args
from .values import Int, Value


@dataclass(frozen=True)
class FunctionSpec:
    """Public function: name, dispatch index and typed parameters."""
    name: str
    index: int
    params: Tuple[Tuple[str, TypeDescriptor], ...]

    @property
    def leaf_count(self) -> int:
        return sum(param_type.leaf_count() for _, param_type in self.params)


def _function(functions: Sequence[FunctionSpec], name: str, contract: str) -> FunctionSpec:
    for spec in functions:
        if spec.name == name:
            return spec
    raise ContractError(f"Contract {contract} has no public function '{name}'")


def encode_call(
    contract: str,
    functions: Sequence[FunctionSpec],
    function_name: str,
    args: Sequence[Any]
) -> Script:
    """
    Encode an unlocking script for a public function call.

    Args:
        contract: Contract name
        functions: Declared public functions
        function_name: Function to call
        args: Positional arguments (typed values or plain data)

    Returns:
        Unlocking script
    """
    spec = _function(functions, function_name, contract)
    values = build_args(spec.params, args)

    chunks = []
    for (param_name, param_type), value in zip(spec.params, values):
        for path, leaf_type, leaf in flatten(param_type, value, param_name):
            chunks.append(leaf_type.encode(leaf, path))

    if len(functions) > 1:
        chunks.append(INT.encode(Int(spec.index)))

    return Script(tuple(chunks))


def decode_call(
    contract: str,
    functions: Sequence[FunctionSpec],
    script: Union[Script, bytes, str]
) -> Tuple[FunctionSpec, Tuple[Value, ...]]:
    """
    Decode an unlocking script into the called function and its arguments.

    Raises TypeDecodeError if the script does not encode a call.
    """
    if not functions:
        raise ContractError(f"Contract {contract} has no public functions")
    try:
        script = Script.coerce(script)
    except ScriptParseError as e:
        raise TypeDecodeError(f"unparseable unlocking script: {e}")

    chunks = list(script)
    if len(functions) > 1:
        if not chunks:
            raise TypeDecodeError("unlocking script is missing the function index")
        index = INT.decode(chunks.pop(), "index").value
        matches = [spec for spec in functions if spec.index == index]
        if not matches:
            raise TypeDecodeError(f"no public function with index {index} in {contract}")
        spec = matches[0]
    else:
        spec = functions[0]

    if len(chunks) != spec.leaf_count:
        raise TypeDecodeError(
            f"{contract}.{spec.name} takes {spec.leaf_count} values, script has {len(chunks)}"
        )

    leaves = {}
    position = 0
    for param_name, param_type in spec.params:
        for path, leaf_type in param_type.leaves(param_name):
            leaves[path] = leaf_type.decode(chunks[position], path)
            position += 1

    return spec, unflatten_args(spec.params, leaves)
