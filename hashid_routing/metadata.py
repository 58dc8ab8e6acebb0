import inspect
import logging
import threading
import warnings
from collections import Counter
from typing import Any, Callable, Dict, Optional, Set

from .declarations import get_declaration, has_legacy_directive, parse_legacy_directive
from .exceptions import InvalidParameterDeclaration
from .handlers import describe_handler, resolve_handler, unwrap_handler
from .log import get_security_logger
from .models import ParameterSpec

logger = logging.getLogger(__name__)
security_logger = get_security_logger()

_MISSING = object()

DEPRECATION_MESSAGE = (
    "Using the @Hash docstring directive is deprecated and will be removed in a future release. "
    "Use the @hashid(...) decorator instead. (in {context})"
)


class ParameterMetadataResolver:
    """
    Resolves which parameters of a route handler are obfuscated.

    The @hashid decorator is read first and, when present, wins outright. Only
    handlers without it fall back to the legacy docstring directive, which
    emits a DeprecationWarning unless this resolver was created with
    suppress_deprecations=True. Results are cached per function object.
    """

    def __init__(self, suppress_deprecations: bool = False):
        self.suppress_deprecations = suppress_deprecations
        self.deprecation_log: Counter = Counter()
        self.duplicate_declarations: Set[str] = set()
        self._cache: Dict[Callable, Any] = {}
        self._lock = threading.Lock()

    def resolve(self, handler: Any) -> Optional[ParameterSpec]:
        """
        Returns the ParameterSpec declared on handler, or None.

        Raises InvalidHandlerReference for a malformed reference and
        MissingHandlerReference when the referenced class or method does not
        exist.
        """
        func = resolve_handler(handler)
        try:
            cached = self._cache.get(func, _MISSING)
        except TypeError:
            # unhashable callable object
            return self._extract(func)
        if cached is not _MISSING:
            return cached

        spec = self._extract(func)
        with self._lock:
            self._cache[func] = spec
        return spec

    def has_duplicate_declaration(self, handler: Any) -> bool:
        """True when handler carries both the decorator and the docstring directive."""
        func = resolve_handler(handler)
        return get_declaration(func) is not None and has_legacy_directive(func)

    def compatibility_report(self, cls: type) -> Dict[str, Any]:
        """Summarises which declaration syntax each method of a controller class uses."""
        report = {
            "class": f"{cls.__module__}.{cls.__qualname__}",
            "methods": {},
            "uses_legacy": False,
            "uses_decorator": False,
            "has_duplicates": False,
        }
        for name, member in inspect.getmembers(cls):
            func = unwrap_handler(member)
            if not inspect.isfunction(func):
                continue
            uses_decorator = get_declaration(func) is not None
            uses_legacy = has_legacy_directive(func)
            if not (uses_decorator or uses_legacy):
                continue
            report["methods"][name] = {
                "uses_legacy": uses_legacy,
                "uses_decorator": uses_decorator,
                "is_duplicate": uses_legacy and uses_decorator,
            }
            report["uses_legacy"] |= uses_legacy
            report["uses_decorator"] |= uses_decorator
            report["has_duplicates"] |= uses_legacy and uses_decorator
        return report

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # --- Internals ---

    def _extract(self, func: Callable) -> Optional[ParameterSpec]:
        context = describe_handler(func)

        spec = get_declaration(func)
        if spec is not None:
            if has_legacy_directive(func):
                self.duplicate_declarations.add(context)
                logger.warning(
                    f"{context} declares hashed parameters with both @hashid and a @Hash docstring "
                    f"directive; using @hashid {list(spec.parameters)}"
                )
            return spec

        return self._extract_legacy(func, context)

    def _extract_legacy(self, func: Callable, context: str) -> Optional[ParameterSpec]:
        try:
            spec = parse_legacy_directive(getattr(func, "__doc__", None))
        except InvalidParameterDeclaration as e:
            logger.error(f"Ignoring @Hash directive on {context}: {e}")
            if e.guard:
                security_logger.warning(f"@Hash directive on {context} exceeded a size guard: {e}")
            return None

        if spec is not None:
            self._deprecate(context)
        return spec

    def _deprecate(self, context: str) -> None:
        self.deprecation_log[context] += 1
        if self.suppress_deprecations:
            return
        message = DEPRECATION_MESSAGE.format(context=context)
        # DeprecationWarning is filtered outside __main__ and test runners
        logger.warning(message)
        warnings.warn(message, DeprecationWarning, stacklevel=5)
