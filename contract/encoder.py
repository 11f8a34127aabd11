"""
Contract Script ABI - Template Encoder

Renders a template with bound constructor arguments into a script. Literal
tokens pass through verbatim; each placeholder emits the canonical encoding of
its bound primitive value. Bound entries the template does not reference are
ignored.
"""

import logging
from typing import Dict, Mapping, Optional, Union

from scripts.exceptions import ScriptParseError
from scripts.script import Script, ScriptChunk

from .exceptions import TypeMismatchError, UnboundArgumentError
from .template import END_OF_CODE_MARKER, AsmVariable, LiteralToken, Placeholder, Template
from .values import Value


AsmVarValue = Union[str, ScriptChunk]


def parse_asm_var(name: str, value: AsmVarValue) -> ScriptChunk:
    """Parse an ASM variable value; it must be exactly one script token."""
    if isinstance(value, ScriptChunk):
        return value
    if not isinstance(value, str):
        raise TypeMismatchError(f"ASM variable must be ASM text, got {type(value).__name__}", name)
    tokens = value.split()
    if len(tokens) != 1:
        raise TypeMismatchError(f"ASM variable must be a single script token, got {value!r}", name)
    try:
        return ScriptChunk.from_asm(tokens[0])
    except ScriptParseError as e:
        raise TypeMismatchError(f"invalid ASM variable value: {e}", name)


def parse_asm_vars(asm_vars: Optional[Mapping[str, AsmVarValue]]) -> Dict[str, ScriptChunk]:
    return {name: parse_asm_var(name, value) for name, value in (asm_vars or {}).items()}


class TemplateEncoder:
    """
    Encoder for rendering a contract template.
    """

    def __init__(self, template: Template):
        """
        Initialize template encoder.

        Args:
            template: Template to render
        """
        self.template = template
        self.logger = logging.getLogger(__name__)

    def render(
        self,
        bound: Mapping[str, Value],
        asm_vars: Optional[Mapping[str, AsmVarValue]] = None
    ) -> Script:
        """
        Render the template.

        Args:
            bound: Leaf path to primitive value mapping
            asm_vars: ASM variable name to single-token ASM (or chunk) mapping

        Returns:
            Rendered script, without the end-of-code marker
        """
        variables = parse_asm_vars(asm_vars)
        chunks = []

        for token in self.template.tokens:
            if isinstance(token, LiteralToken):
                chunks.append(token.chunk)
            elif isinstance(token, Placeholder):
                if token.path not in bound:
                    raise UnboundArgumentError(token.path, self.template.contract)
                chunks.append(token.type.encode(bound[token.path], token.path))
            elif isinstance(token, AsmVariable):
                if token.name not in variables:
                    raise UnboundArgumentError(token.name, self.template.contract)
                chunks.append(variables[token.name])

        self.logger.debug(f"Rendered template of {self.template.contract}: {len(chunks)} chunks")
        return Script(tuple(chunks))

    def render_code_part(
        self,
        bound: Mapping[str, Value],
        asm_vars: Optional[Mapping[str, AsmVarValue]] = None
    ) -> Script:
        """Render the template followed by the end-of-code marker."""
        return self.render(bound, asm_vars) + END_OF_CODE_MARKER


def render(
    template: Template,
    bound: Mapping[str, Value],
    asm_vars: Optional[Mapping[str, AsmVarValue]] = None
) -> Script:
    """Render ``template`` with bound arguments."""
    return TemplateEncoder(template).render(bound, asm_vars)
