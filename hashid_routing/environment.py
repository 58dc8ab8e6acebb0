"""
Resolution of environment-style placeholders in hasher configuration.

A value of the form ``%env(NAME)%`` or ``%env(TYPE:NAME)%`` is replaced by the
environment variable NAME, cast to TYPE (int, bool, float or string). When the
variable is unset the literal placeholder is kept, and validation of that field
is deferred until the registry builds a converter.
"""
import os
import re
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError

PLACEHOLDER_PATTERN = re.compile(r"^%env\((?:(?P<type>[a-z]+):)?(?P<name>[A-Za-z_][A-Za-z0-9_]*)\)%$")

TRUTHY = {"1", "true", "on", "yes"}
FALSY = {"0", "false", "off", "no", ""}
SUPPORTED_TYPES = ("int", "bool", "float", "string")


def contains_placeholder(value: Any) -> bool:
    return isinstance(value, str) and "%env(" in value


def _cast(raw: str, type_name: str, field: str) -> Any:
    if type_name == "string":
        return raw
    if type_name == "int":
        try:
            return int(raw.strip())
        except ValueError:
            raise ConfigurationError(field, f"environment value {raw!r} is not an int")
    if type_name == "float":
        try:
            return float(raw.strip())
        except ValueError:
            raise ConfigurationError(field, f"environment value {raw!r} is not a float")
    if type_name == "bool":
        lowered = raw.strip().lower()
        if lowered in TRUTHY:
            return True
        if lowered in FALSY:
            return False
        raise ConfigurationError(field, f"environment value {raw!r} is not a bool")
    return raw


def resolve_value(value: Any, field: str, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Resolves a single placeholder; anything else is returned as is."""
    if not isinstance(value, str):
        return value
    match = PLACEHOLDER_PATTERN.match(value)
    if not match:
        return value

    type_name = match.group("type") or "string"
    if type_name not in SUPPORTED_TYPES:
        raise ConfigurationError(field, f'unsupported environment type "{type_name}"')

    environ = os.environ if environ is None else environ
    name = match.group("name")
    if name not in environ:
        return value
    return _cast(environ[name], type_name, field)


def resolve_placeholders(config: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Returns a copy of config with every placeholder that can be resolved, resolved."""
    return {key: resolve_value(value, key, environ) for key, value in config.items()}
