"""
The two ways a handler can declare which parameters are obfuscated.

Modern form, a decorator:

    @router.get("/orders/{id}")
    @hashid("id", hasher="secure")
    async def show_order(id: int): ...

Legacy form, a directive inside the docstring (deprecated):

    async def show_order(id: int):
        \"\"\"
        Show one order.

        @Hash("id")
        \"\"\"

    @Hash({"id", "user_id"}) and @Hash("id", hasher="secure") are accepted too.

Both produce the same ParameterSpec.
"""
import re
from typing import Callable, Iterable, Optional, Sequence, Union

from .config import (
    DEFAULT_HASHER,
    HASHER_NAME_PATTERN,
    MAX_DIRECTIVE_LENGTH,
    MAX_DOCSTRING_LENGTH,
    MAX_HASHER_NAME_LENGTH,
    MAX_PARAMETER_NAME_LENGTH,
    MAX_PARAMETERS,
    PARAMETER_NAME_PATTERN,
)
from .exceptions import InvalidParameterDeclaration
from .models import ParameterSpec

HASHID_ATTRIBUTE = "__hashid__"
LEGACY_MARKER = "@Hash"

_PARAMETER_NAME_RE = re.compile(PARAMETER_NAME_PATTERN)
_HASHER_NAME_RE = re.compile(HASHER_NAME_PATTERN)

# [^)]* followed by a literal ")" cannot backtrack catastrophically
_DIRECTIVE_RE = re.compile(r"@Hash\(([^)]*)\)")
_ARGUMENTS_RE = re.compile(
    r'^(?P<value>"[^"]*"|\{[^}]*\})'
    r'(?:\s*,\s*hasher\s*=\s*"(?P<hasher>[^"]*)")?$'
)
# List entries may use either quote, the single value form only double quotes
_QUOTED_RE = re.compile(r"""^(["'])([^"']*)\1$""")


# --- Shared validation ---

def validate_parameter_names(names: Sequence[str]) -> None:
    if len(names) > MAX_PARAMETERS:
        raise InvalidParameterDeclaration(
            "parameters", f"too many parameters specified (max {MAX_PARAMETERS}, got {len(names)})", guard=True
        )
    for name in names:
        if not isinstance(name, str):
            raise InvalidParameterDeclaration(repr(name), f"must be a string, got {type(name).__name__}")
        if len(name) > MAX_PARAMETER_NAME_LENGTH:
            raise InvalidParameterDeclaration(
                name[:MAX_PARAMETER_NAME_LENGTH], f"name too long (max {MAX_PARAMETER_NAME_LENGTH} characters)",
                guard=True,
            )
        if not _PARAMETER_NAME_RE.fullmatch(name):
            raise InvalidParameterDeclaration(name, "names must contain only letters, numbers, and underscores")


def normalize_hasher_name(hasher: Optional[str]) -> str:
    hasher = (hasher or "").strip()
    if not hasher:
        return DEFAULT_HASHER
    if len(hasher) > MAX_HASHER_NAME_LENGTH:
        raise InvalidParameterDeclaration(
            "hasher", f"hasher name too long (max {MAX_HASHER_NAME_LENGTH} characters)", guard=True
        )
    if not _HASHER_NAME_RE.fullmatch(hasher):
        raise InvalidParameterDeclaration(
            "hasher",
            f'invalid hasher name "{hasher}"; hasher names can only contain letters, numbers, '
            f"underscores, hyphens, and dots",
        )
    return hasher


def build_spec(names: Sequence[str], hasher: Optional[str] = DEFAULT_HASHER) -> ParameterSpec:
    if not names:
        raise InvalidParameterDeclaration("parameters", "at least one parameter name is required")
    validate_parameter_names(names)
    return ParameterSpec(parameters=tuple(names), hasher=normalize_hasher_name(hasher))


# --- Modern form ---

def hashid(*parameters: Union[str, Iterable[str]], hasher: str = DEFAULT_HASHER) -> Callable:
    """
    Declares route parameters to be obfuscated with the named hasher.

    Accepts names as separate arguments or as one list. Stacking the decorator
    adds names; stacked declarations must agree on the hasher. Invalid
    declarations raise InvalidParameterDeclaration at decoration time.
    """
    names = []
    for item in parameters:
        if isinstance(item, str):
            names.append(item)
        else:
            names.extend(item)
    spec = build_spec(names, hasher)

    def decorator(func: Callable) -> Callable:
        target = getattr(func, "__func__", func)
        existing = getattr(target, HASHID_ATTRIBUTE, None)
        declared = spec
        if existing is not None:
            if existing.hasher != spec.hasher:
                raise InvalidParameterDeclaration(
                    "hasher", f'conflicting hashers "{existing.hasher}" and "{spec.hasher}" on one handler'
                )
            declared = build_spec(existing.parameters + spec.parameters, spec.hasher)
        setattr(target, HASHID_ATTRIBUTE, declared)
        return func

    return decorator


def get_declaration(func: Callable) -> Optional[ParameterSpec]:
    declaration = getattr(func, HASHID_ATTRIBUTE, None)
    return declaration if isinstance(declaration, ParameterSpec) else None


# --- Legacy form ---

def has_legacy_directive(func: Callable) -> bool:
    doc = getattr(func, "__doc__", None)
    return isinstance(doc, str) and LEGACY_MARKER in doc


def parse_legacy_directive(doc: Optional[str]) -> Optional[ParameterSpec]:
    """
    Parses the first @Hash(...) directive of a docstring.

    Returns None when there is no directive. Raises InvalidParameterDeclaration
    when one is present but malformed; guard is set on the exception when a
    length or count limit was exceeded.
    """
    if not doc or LEGACY_MARKER not in doc:
        return None
    if len(doc) > MAX_DOCSTRING_LENGTH:
        raise InvalidParameterDeclaration(
            "docstring", f"docstring exceeds maximum length of {MAX_DOCSTRING_LENGTH}", guard=True
        )

    doc = re.sub(r"\s+", " ", doc)
    match = _DIRECTIVE_RE.search(doc)
    if not match:
        return None
    arguments = match.group(1).strip()
    if not arguments:
        raise InvalidParameterDeclaration("directive", "@Hash() needs at least one parameter name")
    if len(arguments) > MAX_DIRECTIVE_LENGTH:
        raise InvalidParameterDeclaration(
            "directive", f"arguments exceed maximum length of {MAX_DIRECTIVE_LENGTH}", guard=True
        )

    parsed = _ARGUMENTS_RE.match(arguments)
    if not parsed:
        raise InvalidParameterDeclaration("directive", f"unrecognised @Hash arguments: {arguments}")

    value = parsed.group("value")
    if value.startswith("{"):
        names = _parse_list(value[1:-1])
    else:
        names = [value[1:-1]]
    return build_spec(names, parsed.group("hasher"))


def _parse_list(body: str):
    items = [item.strip() for item in body.split(",")]
    if len(items) > MAX_PARAMETERS:
        raise InvalidParameterDeclaration(
            "parameters", f"too many parameters in @Hash (max {MAX_PARAMETERS}, got {len(items)})", guard=True
        )
    names = []
    for item in items:
        quoted = _QUOTED_RE.match(item)
        if not quoted:
            raise InvalidParameterDeclaration(item, "list entries must be quoted names")
        names.append(quoted.group(2))
    return names
