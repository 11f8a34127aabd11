"""
Contract Script ABI - Contract Artifact Schema

This module defines the Pydantic models for compiled contract artifacts (the
JSON description produced by the contract compiler) and resolves the type
names they declare into type descriptors.
"""

import json
import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import ArtifactError
from .types import (
    BUILTIN_TYPES,
    ArrayType,
    LibraryType,
    StructType,
    TypeDescriptor,
)


IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
TYPE_EXPR = re.compile(
    r'^(?:(?P<keyword>struct|library)\s+)?(?P<base>[A-Za-z_][A-Za-z0-9_]*)'
    r'(?:\s*\{\s*\})?\s*(?P<dims>(?:\[\s*\d+\s*\])*)$'
)
DIMENSION = re.compile(r'\[\s*(\d+)\s*\]')


class ParamEntity(BaseModel):
    """Named, typed parameter or field."""

    name: str = Field(..., description="Parameter name")
    type: str = Field(..., description="Declared type expression, e.g. 'int[2][3]'")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate parameter name is an identifier."""
        if not IDENTIFIER.match(v):
            raise ValueError(f'Invalid parameter name: {v!r}')
        return v

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        """Validate type expression syntax."""
        v = v.strip()
        if not TYPE_EXPR.match(v):
            raise ValueError(f'Invalid type expression: {v!r}')
        return v


class StructEntity(BaseModel):
    """Struct declaration."""

    name: str
    params: List[ParamEntity] = Field(default_factory=list)


class LibraryEntity(BaseModel):
    """Library declaration; its constructor parameters form the library state."""

    name: str
    params: List[ParamEntity] = Field(default_factory=list)
    properties: List[ParamEntity] = Field(default_factory=list)


class AliasEntity(BaseModel):
    """Type alias declaration."""

    name: str
    type: str


class ABIEntityType(str, Enum):
    """ABI entry type enumeration."""
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"


class ABIEntity(BaseModel):
    """Public function or constructor entry."""

    type: ABIEntityType
    name: Optional[str] = None
    index: Optional[int] = Field(None, ge=0)
    params: List[ParamEntity] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_function_fields(self):
        """Functions need a name and index."""
        if self.type == ABIEntityType.FUNCTION and (self.name is None or self.index is None):
            raise ValueError('Public function entries require name and index')
        return self


class ContractArtifact(BaseModel):
    """Compiled contract artifact."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    version: int = Field(default=1, ge=1)
    compiler_version: Optional[str] = Field(None, alias='compilerVersion')
    contract: str = Field(..., description="Contract name")
    md5: Optional[str] = Field(None, description="Source hash")
    structs: List[StructEntity] = Field(default_factory=list)
    library: List[LibraryEntity] = Field(default_factory=list)
    alias: List[AliasEntity] = Field(default_factory=list)
    abi: List[ABIEntity] = Field(default_factory=list)
    state_props: List[ParamEntity] = Field(default_factory=list, alias='stateProps')
    asm: str = Field(..., description="ASM template with $placeholders")

    @field_validator('contract')
    @classmethod
    def validate_contract(cls, v):
        """Validate contract name."""
        if not IDENTIFIER.match(v):
            raise ValueError(f'Invalid contract name: {v!r}')
        return v

    @model_validator(mode='after')
    def validate_declarations(self):
        """Validate declaration uniqueness."""
        declared = [s.name for s in self.structs] + [lib.name for lib in self.library] + [a.name for a in self.alias]
        duplicates = {name for name in declared if declared.count(name) > 1}
        if duplicates:
            raise ValueError(f'Duplicate type declarations: {sorted(duplicates)}')

        builtin_clash = [name for name in declared if name in BUILTIN_TYPES]
        if builtin_clash:
            raise ValueError(f'Declarations shadow built-in types: {builtin_clash}')

        constructors = [e for e in self.abi if e.type == ABIEntityType.CONSTRUCTOR]
        if len(constructors) > 1:
            raise ValueError('Artifact declares more than one constructor')

        indexes = [e.index for e in self.abi if e.type == ABIEntityType.FUNCTION]
        if len(set(indexes)) != len(indexes):
            raise ValueError('Public function indexes must be unique')

        return self

    @classmethod
    def from_dict(cls, data: Dict) -> 'ContractArtifact':
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ArtifactError(f"Invalid contract artifact: {e}")

    @classmethod
    def from_json(cls, text: str) -> 'ContractArtifact':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ArtifactError(f"Artifact is not valid JSON: {e}")
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ContractArtifact':
        """Load an artifact from a JSON file."""
        path = Path(path)
        try:
            text = path.read_text()
        except OSError as e:
            raise ArtifactError(f"Cannot read artifact {path}: {e}")
        return cls.from_json(text)

    @property
    def constructor(self) -> Optional[ABIEntity]:
        for entry in self.abi:
            if entry.type == ABIEntityType.CONSTRUCTOR:
                return entry
        return None

    @property
    def public_functions(self) -> List[ABIEntity]:
        functions = [e for e in self.abi if e.type == ABIEntityType.FUNCTION]
        return sorted(functions, key=lambda e: e.index)


class TypeResolver:
    """
    Resolves type expressions declared in an artifact into descriptors.

    Handles built-in types, aliases (transitively), structs, libraries and
    array suffixes, e.g. ``ST1[2][2]`` or ``struct ST1 {}[2]``.
    """

    def __init__(self, artifact: ContractArtifact):
        self.structs = {s.name: s for s in artifact.structs}
        self.libraries = {lib.name: lib for lib in artifact.library}
        self.aliases = {a.name: a.type for a in artifact.alias}
        self._cache: Dict[str, TypeDescriptor] = {}
        self._resolving: Set[str] = set()

    def resolve(self, type_expr: str) -> TypeDescriptor:
        """Resolve a type expression; raises ArtifactError for unknown or cyclic types."""
        type_expr = type_expr.strip()
        match = TYPE_EXPR.match(type_expr)
        if not match:
            raise ArtifactError(f"Invalid type expression: {type_expr!r}")

        base = self._resolve_base(match.group('base'))
        dims = tuple(int(d) for d in DIMENSION.findall(match.group('dims')))
        if not dims:
            return base
        if any(d == 0 for d in dims):
            raise ArtifactError(f"Array dimensions must be positive: {type_expr!r}")
        if isinstance(base, ArrayType):
            return ArrayType(base.element, dims + base.dimensions)
        return ArrayType(base, dims)

    def _resolve_base(self, name: str) -> TypeDescriptor:
        if name in BUILTIN_TYPES:
            return BUILTIN_TYPES[name]
        if name in self._cache:
            return self._cache[name]
        if name in self._resolving:
            raise ArtifactError(f"Recursive type definition: {name}")

        self._resolving.add(name)
        try:
            if name in self.aliases:
                resolved = self.resolve(self.aliases[name])
            elif name in self.structs:
                resolved = StructType(name, self._resolve_fields(self.structs[name].params))
            elif name in self.libraries:
                library = self.libraries[name]
                resolved = LibraryType(name, StructType(name, self._resolve_fields(library.params)))
            else:
                raise ArtifactError(f"Unknown type: {name}")
        finally:
            self._resolving.discard(name)

        self._cache[name] = resolved
        return resolved

    def _resolve_fields(self, params: List[ParamEntity]):
        names = [p.name for p in params]
        if len(set(names)) != len(names):
            raise ArtifactError(f"Duplicate field names: {names}")
        return tuple((p.name, self.resolve(p.type)) for p in params)

    def resolve_params(self, params: List[ParamEntity]):
        """Resolve a parameter list into ``(name, descriptor)`` pairs."""
        return self._resolve_fields(params)
