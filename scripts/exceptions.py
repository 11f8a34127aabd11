"""
Contract Script ABI - Script Exceptions

This module defines exceptions raised while parsing and serializing scripts.
"""


class ScriptError(Exception):
    """Base exception for script-related errors."""
    pass


class ScriptParseError(ScriptError):
    """Exception raised when raw bytes, hex or ASM text cannot be parsed into a script."""

    def __init__(self, message: str, position: int = None):
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)


class ScriptEncodingError(ScriptError):
    """Exception raised when a value cannot be encoded as script data."""
    pass
