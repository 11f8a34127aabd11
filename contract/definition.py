"""
Contract Script ABI - Contract Definitions

A contract definition is the generic engine configured by one artifact: the
resolved constructor parameters, public functions and state declaration, the
ASM template, and the encoder/matcher pair for that template. Contract
specific behaviour is data carried by the definition; no per-contract classes
are generated.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from scripts.script import Script

from .artifact import ContractArtifact, TypeResolver
from .calls import FunctionSpec, decode_call, encode_call
from .encoder import AsmVarValue, TemplateEncoder
from .exceptions import ContractError
from .instance import ContractInstance, ScriptInput
from .matcher import MatchOutcome, TemplateMatcher
from .template import Template
from .types import PrimitiveType, StructType, TypeDescriptor
from .values import Value


class ContractDefinition:
    """
    Contract definition loaded from a compiled artifact.
    """

    def __init__(self, artifact: ContractArtifact):
        """
        Initialize contract definition.

        Args:
            artifact: Parsed contract artifact
        """
        self.logger = logging.getLogger(__name__)
        self.artifact = artifact
        self.name = artifact.contract

        resolver = TypeResolver(artifact)
        constructor = artifact.constructor
        self.ctor_params: Tuple[Tuple[str, TypeDescriptor], ...] = (
            resolver.resolve_params(constructor.params) if constructor else ()
        )
        self.functions: Tuple[FunctionSpec, ...] = tuple(
            FunctionSpec(entry.name, entry.index, resolver.resolve_params(entry.params))
            for entry in artifact.public_functions
        )
        self.state_type: Optional[StructType] = None
        if artifact.state_props:
            self.state_type = StructType(
                f"{self.name}State", resolver.resolve_params(artifact.state_props)
            )

        self.template = Template.from_asm(self.name, artifact.asm, self.leaf_types())
        self.encoder = TemplateEncoder(self.template)
        self.matcher = TemplateMatcher(self.template)

        self.logger.info(
            f"Loaded contract {self.name}: {len(self.ctor_params)} constructor parameters, "
            f"{len(self.functions)} public functions, "
            f"{'stateful' if self.state_type else 'stateless'}"
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ContractDefinition':
        """Load a definition from an artifact JSON file."""
        return cls(ContractArtifact.load(path))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContractDefinition':
        return cls(ContractArtifact.from_dict(data))

    def leaf_types(self) -> Dict[str, PrimitiveType]:
        """Constructor leaf paths and their primitive types, in traversal order."""
        leaves: Dict[str, PrimitiveType] = {}
        for param_name, param_type in self.ctor_params:
            for path, leaf_type in param_type.leaves(param_name):
                leaves[path] = leaf_type
        return leaves

    def function(self, name: str) -> FunctionSpec:
        for spec in self.functions:
            if spec.name == name:
                return spec
        raise ContractError(f"Contract {self.name} has no public function '{name}'")

    # Instances

    def new(self, *args: Any, asm_vars: Optional[Mapping[str, AsmVarValue]] = None) -> ContractInstance:
        """Create an instance from constructor arguments."""
        return ContractInstance(self, *args, asm_vars=asm_vars)

    def from_script(self, script: ScriptInput) -> ContractInstance:
        return ContractInstance.from_script(self, script)

    def from_hex(self, hex_string: str) -> ContractInstance:
        return ContractInstance.from_hex(self, hex_string)

    def from_asm(self, asm: str) -> ContractInstance:
        return ContractInstance.from_asm(self, asm)

    def probe(self, script: ScriptInput) -> MatchOutcome:
        """Check whether a script follows this contract's template."""
        return self.matcher.probe(script)

    def get_asm_vars(self, script: ScriptInput) -> Dict[str, str]:
        """ASM variable values recovered from a locking script."""
        return self.from_script(script).asm_vars()

    # Calls

    def encode_call(self, function_name: str, *args: Any) -> Script:
        return encode_call(self.name, self.functions, function_name, args)

    def decode_call(self, script: ScriptInput) -> Tuple[FunctionSpec, Tuple[Value, ...]]:
        return decode_call(self.name, self.functions, script)

    def describe(self) -> Dict[str, Any]:
        """Summary of the definition for display."""
        return {
            'contract': self.name,
            'version': self.artifact.version,
            'constructor': [f"{name}: {t.name}" for name, t in self.ctor_params],
            'functions': [
                f"{spec.index}: {spec.name}({', '.join(f'{n}: {t.name}' for n, t in spec.params)})"
                for spec in self.functions
            ],
            'state': (
                [f"{name}: {t.name}" for name, t in self.state_type.fields]
                if self.state_type else []
            ),
            'placeholders': self.template.placeholder_paths,
            'asm_variables': self.template.asm_variables,
            'template_tokens': len(self.template),
        }

    def __repr__(self) -> str:
        return f"ContractDefinition({self.name!r})"
