"""
Contract Script ABI - Contract Instances

A contract instance pairs an immutable code part (the template rendered with
constructor arguments, terminated by the end-of-code marker) with an optional
data part holding on-chain state. The code part is written once at
construction; the data part can only be replaced wholesale through
``set_data_part``.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from scripts.exceptions import ScriptParseError
from scripts.script import Script

from .calls import encode_call
from .encoder import AsmVarValue, parse_asm_vars
from .exceptions import ContractError, TemplateMismatchError
from .flatten import flatten_args, unflatten_args
from .state import decode_data_part, state_data_part
from .template import END_OF_CODE_MARKER, AsmVariable
from .types import build_args
from .values import StructValue, Value


logger = logging.getLogger(__name__)

DATA_PART_SETTER_MESSAGE = "Setter for data_part is not available. Please use: set_data_part() instead"

ScriptInput = Union[Script, bytes, str]


class ContractInstance:
    """
    Instance of a contract definition.

    Instances are created from constructor arguments
    (``ContractInstance(definition, *args)``) or recovered from an existing
    locking script (``ContractInstance.from_script(definition, script)``).
    Attributes cannot be assigned; use ``set_data_part`` to change state.

    ``set_data_part`` (and ``set_state``, which goes through it) is the only
    operation that mutates an instance, and it does so in place: every holder
    of the instance sees the new data part. Instances are not thread-safe;
    share one between owners only if they coordinate their writes. Derived
    instances from ``replace_asm_vars`` are independent copies.
    """

    __slots__ = ('_definition', '_args', '_bound', '_asm_vars', '_code_part', '_data_part')

    def __init__(self, definition, *args: Any, asm_vars: Optional[Mapping[str, AsmVarValue]] = None):
        values = build_args(definition.ctor_params, args)
        bound = flatten_args(definition.ctor_params, values)
        variables = parse_asm_vars(asm_vars)
        code_part = definition.encoder.render_code_part(bound, variables)
        self._init(definition, values, bound, variables, code_part, None)
        logger.debug(f"Created {definition.name} instance with {len(bound)} bound leaves")

    def _init(self, definition, values, bound, variables, code_part, data_part) -> None:
        object.__setattr__(self, '_definition', definition)
        object.__setattr__(self, '_args', tuple(values))
        object.__setattr__(self, '_bound', dict(bound))
        object.__setattr__(self, '_asm_vars', dict(variables))
        object.__setattr__(self, '_code_part', code_part)
        object.__setattr__(self, '_data_part', data_part)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == 'data_part':
            raise AttributeError(DATA_PART_SETTER_MESSAGE)
        raise AttributeError(f"{type(self).__name__}.{name} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__}.{name} cannot be deleted")

    @classmethod
    def from_script(cls, definition, script: ScriptInput) -> 'ContractInstance':
        """
        Recover an instance from a locking script.

        The script must follow the template. After the template it must either
        end, or continue with the end-of-code marker; everything after the
        marker is taken verbatim as the data part.

        Raises:
            TemplateMismatchError: if the script does not follow the template
        """
        name = definition.name
        try:
            script = Script.coerce(script)
        except ScriptParseError as e:
            raise TemplateMismatchError(name, f"unparseable script: {e}")

        result = definition.matcher.match(script)
        code_length = len(definition.template)
        remainder = result.remainder

        if len(remainder) == 0:
            data_part = None
        elif remainder[0] == END_OF_CODE_MARKER:
            data_part = remainder[1:]
        else:
            raise TemplateMismatchError(
                name,
                f"expected end-of-code marker at position {code_length}, "
                f"found '{remainder[0].to_asm()}'",
                code_length,
            )

        values = unflatten_args(definition.ctor_params, result.arguments)
        code_part = script[:code_length] + END_OF_CODE_MARKER

        instance = cls.__new__(cls)
        instance._init(definition, values, result.arguments, result.asm_vars, code_part, data_part)
        logger.debug(
            f"Recovered {name} instance from script "
            f"({'no data part' if data_part is None else f'{len(data_part)} data chunks'})"
        )
        return instance

    @classmethod
    def from_hex(cls, definition, hex_string: str) -> 'ContractInstance':
        try:
            script = Script.from_hex(hex_string)
        except ScriptParseError as e:
            raise TemplateMismatchError(definition.name, f"unparseable script: {e}")
        return cls.from_script(definition, script)

    @classmethod
    def from_asm(cls, definition, asm: str) -> 'ContractInstance':
        try:
            script = Script.from_asm(asm)
        except ScriptParseError as e:
            raise TemplateMismatchError(definition.name, f"unparseable script: {e}")
        return cls.from_script(definition, script)

    # Accessors

    @property
    def definition(self):
        return self._definition

    @property
    def contract_name(self) -> str:
        return self._definition.name

    def ctor_args(self) -> Tuple[Value, ...]:
        """Typed constructor arguments in declaration order."""
        return self._args

    def ctor_arg_map(self) -> Dict[str, Value]:
        return {name: value for (name, _), value in zip(self._definition.ctor_params, self._args)}

    def bound_arguments(self) -> Dict[str, Value]:
        """Leaf path to primitive value mapping."""
        return dict(self._bound)

    def asm_vars(self) -> Dict[str, str]:
        """ASM variable values as ASM text."""
        return {name: chunk.to_asm() for name, chunk in self._asm_vars.items()}

    def code_part(self) -> Script:
        """Rendered template plus end-of-code marker."""
        return self._code_part

    def data_part(self) -> Optional[Script]:
        """Current data part, or None if it was never set."""
        return self._data_part

    def locking_script(self) -> Script:
        """
        Full locking script.

        With a data part this is ``code_part ++ data_part``. Without one the
        end-of-code marker is left off, so the script is the bare rendered
        template.
        """
        if self._data_part is None:
            return self._code_part[:-1]
        return self._code_part + self._data_part

    # Data part

    def set_data_part(self, data: Optional[ScriptInput]) -> None:
        """
        Replace the data part of this instance in place.

        Args:
            data: Script, raw script bytes or ASM text; None removes it
        """
        new_data = None if data is None else Script.coerce(data)
        object.__setattr__(self, '_data_part', new_data)
        logger.debug(
            f"Data part of {self.contract_name} set to "
            f"{'nothing' if new_data is None else repr(new_data.to_asm())}"
        )

    def _require_state_type(self):
        state_type = self._definition.state_type
        if state_type is None:
            raise ContractError(f"Contract {self.contract_name} declares no state properties")
        return state_type

    def new_state_script(self, state: Any) -> Script:
        """
        Locking script carrying ``state`` in its data part.

        The code part is reused as-is, so only the trailing data differs from
        the current locking script.
        """
        return self._code_part + state_data_part(self._require_state_type(), state)

    def set_state(self, state: Any) -> None:
        """Replace the data part with the serialized ``state``."""
        self.set_data_part(state_data_part(self._require_state_type(), state))

    def state(self) -> Optional[StructValue]:
        """Decode the current data part as contract state; None without a data part."""
        state_type = self._require_state_type()
        if self._data_part is None:
            return None
        return decode_data_part(state_type, self._data_part)

    def decode_state(self, data_part: ScriptInput) -> StructValue:
        """Decode an arbitrary data part against this contract's state declaration."""
        return decode_data_part(self._require_state_type(), Script.coerce(data_part))

    # Derived instances and calls

    def replace_asm_vars(self, asm_vars: Mapping[str, AsmVarValue]) -> 'ContractInstance':
        """
        New instance with ASM variables (re)bound; the data part is kept.

        Only the ASM variable slots of the stored code part are replaced, so
        every other code byte stays as it was, even when it was recovered
        from a script with non-minimal pushes.
        """
        updates = parse_asm_vars(asm_vars)
        variables = dict(self._asm_vars)
        variables.update(updates)

        chunks = list(self._code_part)
        for position, token in enumerate(self._definition.template.tokens):
            if isinstance(token, AsmVariable) and token.name in updates:
                chunks[position] = updates[token.name]
        code_part = Script(tuple(chunks))

        instance = type(self).__new__(type(self))
        instance._init(self._definition, self._args, self._bound, variables, code_part, self._data_part)
        return instance

    def unlocking_script(self, function_name: str, *args: Any) -> Script:
        """Unlocking script calling public function ``function_name``."""
        return encode_call(self.contract_name, self._definition.functions, function_name, args)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContractInstance):
            return NotImplemented
        return (
            self.contract_name == other.contract_name
            and self._code_part == other._code_part
            and self._data_part == other._data_part
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"ContractInstance({self.contract_name}, locking_script={self.locking_script().to_hex()!r})"
