"""
Contract Script ABI - Contract Exceptions

This module defines the exceptions raised while building typed values,
rendering templates and matching scripts against templates. All of them are
local and non-retriable.
"""


class ContractError(Exception):
    """Base exception for contract codec errors."""
    pass


class ArtifactError(ContractError):
    """Exception raised when a contract artifact is structurally invalid."""
    pass


class TypeMismatchError(ContractError):
    """Exception raised when a value's shape disagrees with its declared type."""

    def __init__(self, message: str, path: str = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class TypeDecodeError(ContractError):
    """Exception raised when a script token cannot be read as its declared primitive kind."""

    def __init__(self, message: str, path: str = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class UnboundArgumentError(ContractError):
    """Exception raised when a template placeholder has no bound value at render time."""

    def __init__(self, path: str, template: str = None):
        self.path = path
        self.template = template
        message = f"No value bound for placeholder '{path}'"
        if template:
            message += f" in template of contract {template}"
        super().__init__(message)


class TemplateMismatchError(ContractError):
    """Exception raised when a raw script does not follow a contract's ASM template."""

    def __init__(self, template: str, reason: str = None, position: int = None):
        self.template = template
        self.reason = reason
        self.position = position
        message = f"the raw script cannot match the ASM template of contract {template}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
