"""
Error taxonomy for hashid routing.

Every error raised by the package is a HashIdException carrying a HashIdError
code. The code knows its HTTP status and log severity, so the FastAPI
exception handler can render any of them without a lookup table.
"""
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class HashIdError(str, Enum):
    INVALID_PARAMETER = "invalid_parameter"
    DECODING_FAILED = "decoding_failed"
    ENCODING_FAILED = "encoding_failed"
    HASHER_NOT_FOUND = "hasher_not_found"
    CONFIGURATION_ERROR = "configuration_error"
    INVALID_HANDLER = "invalid_handler"
    MISSING_HANDLER = "missing_handler"

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    @property
    def status_code(self) -> int:
        if self in (HashIdError.INVALID_PARAMETER, HashIdError.DECODING_FAILED):
            return 400
        # everything else is a deployment or wiring defect
        return 500

    @property
    def severity(self) -> str:
        if self in (HashIdError.DECODING_FAILED, HashIdError.INVALID_PARAMETER):
            return "warning"
        if self is HashIdError.CONFIGURATION_ERROR:
            return "critical"
        return "error"


_MESSAGES = {
    HashIdError.INVALID_PARAMETER: "The provided parameter declaration is invalid",
    HashIdError.DECODING_FAILED: "Failed to decode the hash value",
    HashIdError.ENCODING_FAILED: "Failed to encode the value",
    HashIdError.HASHER_NOT_FOUND: "The specified hasher configuration was not found",
    HashIdError.CONFIGURATION_ERROR: "Invalid hasher configuration",
    HashIdError.INVALID_HANDLER: "Invalid route handler reference",
    HashIdError.MISSING_HANDLER: "The referenced handler class or method does not exist",
}


# --- BASE EXCEPTION ---

class HashIdException(Exception):
    """Base class for every error raised by hashid_routing."""
    error: HashIdError = HashIdError.CONFIGURATION_ERROR

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.context: Dict[str, Any] = context
        super().__init__(message or self.error.message)

    @property
    def status_code(self) -> int:
        return self.error.status_code

    @property
    def severity(self) -> str:
        return self.error.severity


# --- CONCRETE EXCEPTIONS ---

class ConfigurationError(HashIdException):
    error = HashIdError.CONFIGURATION_ERROR

    def __init__(self, field: str, issue: str, hasher: Optional[str] = None):
        self.field = field
        prefix = f'Hasher "{hasher}": ' if hasher else ""
        super().__init__(f'{prefix}configuration error for "{field}": {issue}',
                         field=field, issue=issue, hasher=hasher)


class HasherNotFound(HashIdException):
    error = HashIdError.HASHER_NOT_FOUND

    def __init__(self, name: str, available: Iterable[str] = ()):
        self.name = name
        self.available = sorted(available)
        if self.available:
            message = f'Hasher "{name}" not found. Available hashers: {", ".join(self.available)}'
        else:
            message = f'Hasher "{name}" not found. No hashers are configured.'
        super().__init__(message, hasher=name, available=self.available)


class InvalidHandlerReference(HashIdException):
    error = HashIdError.INVALID_HANDLER

    def __init__(self, handler: Any, reason: str = ""):
        message = f"Invalid handler {handler!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message, handler=repr(handler), reason=reason)


class MissingHandlerReference(HashIdException):
    error = HashIdError.MISSING_HANDLER

    def __init__(self, target: str, method: Optional[str] = None):
        if method is not None:
            message = f'Method "{target}::{method}" does not exist'
        else:
            message = f'"{target}" does not exist'
        super().__init__(message, target=target, method=method)


class DecodingFailed(HashIdException):
    error = HashIdError.DECODING_FAILED

    def __init__(self, value: str, hasher: str = "default"):
        self.value = value
        self.hasher = hasher
        super().__init__(f'Failed to decode value "{value}" using hasher "{hasher}"',
                         value=value, hasher=hasher)


class EncodingFailed(HashIdException):
    error = HashIdError.ENCODING_FAILED

    def __init__(self, value: Any, hasher: str = "default"):
        super().__init__(f'Failed to encode value {value!r} using hasher "{hasher}"',
                         value=repr(value), hasher=hasher)


class InvalidParameterDeclaration(HashIdException):
    error = HashIdError.INVALID_PARAMETER

    def __init__(self, parameter: str, reason: str = "", guard: bool = False):
        # guard is set when a size/length limit was hit rather than a format rule
        self.parameter = parameter
        self.guard = guard
        message = f'Invalid parameter "{parameter}"'
        if reason:
            message += f": {reason}"
        super().__init__(message, parameter=parameter, reason=reason)
