"""
Contract Script ABI - Typed Argument Codec and Template Engine

This package instantiates compiled contract templates with typed constructor
arguments, recovers those arguments from existing locking scripts, and manages
the code part / data part split of stateful contracts.
"""

from .exceptions import (
    ContractError,
    ArtifactError,
    TypeMismatchError,
    TypeDecodeError,
    UnboundArgumentError,
    TemplateMismatchError,
)
from .values import Value, Bool, Int, Bytes, StructValue, ArrayValue, LibraryValue
from .types import (
    PrimitiveKind,
    TypeDescriptor,
    PrimitiveType,
    StructType,
    ArrayType,
    LibraryType,
    BOOL,
    INT,
    BYTES,
    BUILTIN_TYPES,
)
from .flatten import flatten, unflatten
from .artifact import ContractArtifact, TypeResolver
from .template import Template, LiteralToken, Placeholder, AsmVariable, END_OF_CODE_MARKER
from .encoder import TemplateEncoder, render
from .matcher import TemplateMatcher, MatchResult, MatchOutcome, match, probe
from .state import serialize_state, deserialize_state, state_data_part, decode_data_part
from .calls import FunctionSpec, encode_call, decode_call
from .instance import ContractInstance
from .definition import ContractDefinition

__all__ = [
    'ContractError',
    'ArtifactError',
    'TypeMismatchError',
    'TypeDecodeError',
    'UnboundArgumentError',
    'TemplateMismatchError',
    'Value',
    'Bool',
    'Int',
    'Bytes',
    'StructValue',
    'ArrayValue',
    'LibraryValue',
    'PrimitiveKind',
    'TypeDescriptor',
    'PrimitiveType',
    'StructType',
    'ArrayType',
    'LibraryType',
    'BOOL',
    'INT',
    'BYTES',
    'BUILTIN_TYPES',
    'flatten',
    'unflatten',
    'ContractArtifact',
    'TypeResolver',
    'Template',
    'LiteralToken',
    'Placeholder',
    'AsmVariable',
    'END_OF_CODE_MARKER',
    'TemplateEncoder',
    'render',
    'TemplateMatcher',
    'MatchResult',
    'MatchOutcome',
    'match',
    'probe',
    'serialize_state',
    'deserialize_state',
    'state_data_part',
    'decode_data_part',
    'FunctionSpec',
    'encode_call',
    'decode_call',
    'ContractInstance',
    'ContractDefinition',
]

__version__ = '1.0.0'
