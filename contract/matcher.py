"""
Contract Script ABI - Template Matcher

Matches a raw script against a contract template positionally: literal tokens
must equal the script chunk at the same position, placeholders consume exactly
one chunk and decode it under their declared type. Matching either fully
succeeds or fails with TemplateMismatchError; no partial arguments escape.
Chunks left over after the template are returned as the remainder.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from scripts.exceptions import ScriptParseError
from scripts.script import Script, ScriptChunk

from .exceptions import TemplateMismatchError, TypeDecodeError
from .template import AsmVariable, LiteralToken, Placeholder, Template
from .values import Value


@dataclass(frozen=True)
class MatchResult:
    """Arguments recovered from a script that follows a template."""
    template: str
    arguments: Dict[str, Value] = field(default_factory=dict)
    asm_vars: Dict[str, ScriptChunk] = field(default_factory=dict)
    remainder: Script = Script()

    def asm_var_text(self) -> Dict[str, str]:
        return {name: chunk.to_asm() for name, chunk in self.asm_vars.items()}


@dataclass(frozen=True)
class MatchOutcome:
    """Terminal outcome of probing a script: matched, or rejected with a reason."""
    matched: bool
    result: Optional[MatchResult] = None
    reason: Optional[str] = None
    position: Optional[int] = None

    def __bool__(self) -> bool:
        return self.matched


class TemplateMatcher:
    """
    Matcher recovering bound arguments from scripts.
    """

    def __init__(self, template: Template):
        """
        Initialize template matcher.

        Args:
            template: Template scripts are matched against
        """
        self.template = template
        self.logger = logging.getLogger(__name__)

    def match(self, script: Union[Script, bytes, str]) -> MatchResult:
        """
        Match a script against the template.

        Args:
            script: Script, raw script bytes or ASM text

        Returns:
            MatchResult with recovered arguments and the unmatched remainder

        Raises:
            TemplateMismatchError: on the first literal mismatch, undecodable
                placeholder or a script shorter than the template
        """
        contract = self.template.contract
        try:
            script = Script.coerce(script)
        except ScriptParseError as e:
            raise TemplateMismatchError(contract, f"unparseable script: {e}")

        tokens = self.template.tokens
        arguments: Dict[str, Value] = {}
        asm_vars: Dict[str, ScriptChunk] = {}

        # A short script reports its shortfall only once its whole prefix matched
        for position, token in enumerate(tokens):
            if position >= len(script):
                raise TemplateMismatchError(
                    contract,
                    f"script has {len(script)} chunks, template needs {len(tokens)}",
                    len(script),
                )
            chunk = script[position]
            if isinstance(token, LiteralToken):
                if chunk != token.chunk:
                    raise TemplateMismatchError(
                        contract,
                        f"expected '{token.chunk.to_asm()}' at position {position}, "
                        f"found '{chunk.to_asm()}'",
                        position,
                    )
            elif isinstance(token, Placeholder):
                try:
                    arguments[token.path] = token.type.decode(chunk, token.path)
                except TypeDecodeError as e:
                    raise TemplateMismatchError(contract, f"position {position}: {e}", position)
            elif isinstance(token, AsmVariable):
                asm_vars[token.name] = chunk

        remainder = script[len(tokens):]
        self.logger.debug(
            f"Matched template of {contract}: {len(arguments)} arguments, "
            f"{len(remainder)} trailing chunks"
        )
        return MatchResult(
            template=contract,
            arguments=arguments,
            asm_vars=asm_vars,
            remainder=remainder,
        )

    def probe(self, script: Union[Script, bytes, str]) -> MatchOutcome:
        """Check whether a script follows the template without raising."""
        try:
            return MatchOutcome(matched=True, result=self.match(script))
        except TemplateMismatchError as e:
            self.logger.info(f"Script rejected by template of {self.template.contract}: {e.reason}")
            return MatchOutcome(matched=False, reason=e.reason, position=e.position)


def match(template: Template, script: Union[Script, bytes, str]) -> MatchResult:
    """Match ``script`` against ``template``; raises TemplateMismatchError."""
    return TemplateMatcher(template).match(script)


def probe(template: Template, script: Union[Script, bytes, str]) -> MatchOutcome:
    """Non-raising form of ``match``."""
    return TemplateMatcher(template).probe(script)
