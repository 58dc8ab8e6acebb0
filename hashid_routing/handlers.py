"""
Turns a handler reference into the function object that carries its metadata.

Accepted references:
    - a callable: plain function, bound method, staticmethod, functools.partial
    - a "package.module.Class::method" string (or "package.module::function")
    - an (object_or_class, "method") pair
"""
import functools
import importlib
import inspect
import re
from typing import Any, Callable

from .exceptions import InvalidHandlerReference, MissingHandlerReference

HANDLER_STRING_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*::[A-Za-z_][A-Za-z0-9_]*$")

_ILLEGAL_CHARACTERS = ("\x00", "\r", "\n")


def unwrap_handler(func: Callable) -> Callable:
    """Strips bound-method and partial wrappers down to the underlying function."""
    while True:
        if isinstance(func, functools.partial):
            func = func.func
        elif inspect.ismethod(func):
            func = func.__func__
        elif isinstance(func, (staticmethod, classmethod)):
            func = func.__func__
        else:
            return func


def resolve_handler(handler: Any) -> Callable:
    """Returns the function referenced by handler, or raises a handler error."""
    if isinstance(handler, str):
        return _from_string(handler)
    if isinstance(handler, tuple):
        return _from_pair(handler)
    if callable(handler) or isinstance(handler, (staticmethod, classmethod)):
        func = unwrap_handler(handler)
        if inspect.isclass(func):
            raise InvalidHandlerReference(handler, "expected a function or method, got a class")
        if not callable(func):
            raise InvalidHandlerReference(handler, "not callable")
        return func
    raise InvalidHandlerReference(handler, 'expected a callable, "module.Class::method" or (object, "method")')


def _from_string(reference: str) -> Callable:
    if any(char in reference for char in _ILLEGAL_CHARACTERS):
        raise InvalidHandlerReference(reference, 'contains illegal characters; expected "module.Class::method"')
    if not HANDLER_STRING_PATTERN.fullmatch(reference):
        raise InvalidHandlerReference(reference, 'expected format "module.Class::method"')

    target, method = reference.split("::")
    obj = _import_target(target)
    return _from_pair((obj, method), display=target)


def _import_target(path: str) -> Any:
    # Try the whole path as a module first, then peel attributes off the end
    parts = path.split(".")
    for split in range(len(parts), 0, -1):
        module_name = ".".join(parts[:split])
        try:
            obj = importlib.import_module(module_name)
        except ImportError:
            continue
        for attribute in parts[split:]:
            try:
                obj = getattr(obj, attribute)
            except AttributeError:
                raise MissingHandlerReference(path) from None
        return obj
    raise MissingHandlerReference(path)


def _from_pair(pair: tuple, display: str = None) -> Callable:
    if len(pair) != 2 or not isinstance(pair[1], str):
        raise InvalidHandlerReference(pair, 'expected an (object, "method") pair')
    obj, method = pair
    if display is None:
        display = getattr(obj, "__qualname__", type(obj).__qualname__)

    # inspect.getattr_static sees staticmethod/classmethod wrappers as declared
    try:
        attribute = inspect.getattr_static(obj, method)
    except AttributeError:
        raise MissingHandlerReference(display, method) from None

    func = unwrap_handler(attribute)
    if not callable(func) or inspect.isclass(func):
        raise InvalidHandlerReference(f"{display}::{method}", "attribute is not a function")
    return func


def describe_handler(func: Callable) -> str:
    """module.qualname, used as call-site context in log messages."""
    module = getattr(func, "__module__", None) or "?"
    qualname = getattr(func, "__qualname__", None) or repr(func)
    return f"{module}.{qualname}"
