"""
Contract Script ABI - ASM Templates

A template is the ordered token skeleton of a contract's code: literal tokens
that must appear verbatim, and placeholders bound to one primitive leaf of the
constructor arguments. Placeholders qualified with the contract name
(``$Simple.equalImpl.x``) are ASM variables, bound to a raw script token
instead of a typed value.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

from scripts.exceptions import ScriptParseError
from scripts.opcodes import ScriptOpcode
from scripts.script import ScriptChunk

from .exceptions import ArtifactError
from .types import PrimitiveType


PLACEHOLDER_PREFIX = '$'

# Separates the code part from the data part of every rendered template
END_OF_CODE_MARKER = ScriptChunk.op(ScriptOpcode.OP_RETURN)


@dataclass(frozen=True)
class LiteralToken:
    """Token that must appear verbatim."""
    chunk: ScriptChunk

    def to_asm(self) -> str:
        return self.chunk.to_asm()


@dataclass(frozen=True)
class Placeholder:
    """Slot bound to one primitive leaf of the constructor arguments."""
    path: str
    type: PrimitiveType

    def to_asm(self) -> str:
        return PLACEHOLDER_PREFIX + self.path


@dataclass(frozen=True)
class AsmVariable:
    """Slot bound to a single raw script token supplied per instance."""
    name: str

    def to_asm(self) -> str:
        return PLACEHOLDER_PREFIX + self.name


Token = Union[LiteralToken, Placeholder, AsmVariable]


@dataclass(frozen=True)
class Template:
    """Ordered literal/placeholder skeleton for a contract's code."""
    contract: str
    tokens: Tuple[Token, ...]

    def __post_init__(self):
        if not isinstance(self.tokens, tuple):
            object.__setattr__(self, 'tokens', tuple(self.tokens))

    @classmethod
    def from_asm(
        cls,
        contract: str,
        asm: str,
        leaf_types: Mapping[str, PrimitiveType]
    ) -> 'Template':
        """
        Parse an artifact ASM template.

        Args:
            contract: Contract name, used to recognise ASM variables
            asm: Whitespace-separated ASM with ``$path`` placeholders
            leaf_types: Constructor leaf paths and their primitive types, in
                traversal order

        Returns:
            Template whose constructor placeholders cover every leaf exactly once
        """
        logger = logging.getLogger(__name__)
        tokens: List[Token] = []
        seen: Dict[str, int] = {}

        for position, raw in enumerate(asm.split()):
            if raw.startswith(PLACEHOLDER_PREFIX):
                name = raw[len(PLACEHOLDER_PREFIX):]
                if not name:
                    raise ArtifactError(f"Empty placeholder at token {position} of {contract}")
                if name in seen:
                    raise ArtifactError(
                        f"Placeholder '{name}' appears more than once in template of {contract}"
                    )
                seen[name] = position

                if name in leaf_types:
                    tokens.append(Placeholder(name, leaf_types[name]))
                elif name.startswith(contract + '.'):
                    tokens.append(AsmVariable(name))
                else:
                    raise ArtifactError(
                        f"Placeholder '{name}' does not name a constructor argument of {contract}"
                    )
                continue

            try:
                tokens.append(LiteralToken(ScriptChunk.from_asm(raw)))
            except ScriptParseError as e:
                raise ArtifactError(f"Invalid literal at token {position} of {contract}: {e}")

        missing = [path for path in leaf_types if path not in seen]
        if missing:
            raise ArtifactError(f"Template of {contract} has no placeholder for {missing}")

        template = cls(contract, tuple(tokens))
        logger.debug(
            f"Loaded template for {contract}: {len(tokens)} tokens, "
            f"{len(template.placeholders)} placeholders, {len(template.asm_variables)} ASM variables"
        )
        return template

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def placeholders(self) -> List[Placeholder]:
        return [t for t in self.tokens if isinstance(t, Placeholder)]

    @property
    def placeholder_paths(self) -> List[str]:
        return [t.path for t in self.placeholders]

    @property
    def asm_variables(self) -> List[str]:
        return [t.name for t in self.tokens if isinstance(t, AsmVariable)]

    def placeholder(self, path: str) -> Optional[Placeholder]:
        for token in self.placeholders:
            if token.path == path:
                return token
        return None

    def to_asm(self) -> str:
        """Template text with ``$`` placeholders."""
        return " ".join(token.to_asm() for token in self.tokens)
