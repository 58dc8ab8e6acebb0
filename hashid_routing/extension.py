import inspect
import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from .config import DEFAULT_HASHER, Settings, get_settings
from .exceptions import ConfigurationError, DecodingFailed, HashIdException
from .ingress import HashidsRoute, HashidsRouteGuard, RequestParametersDecoder
from .log import setup_logging
from .metadata import ParameterMetadataResolver
from .processors import ParametersProcessorFactory
from .registry import HasherRegistry
from .urls import HashidsURLGenerator, iter_endpoint_routes, make_template_url_for

logger = logging.getLogger(__name__)


class HashIds:
    """
    Wires hashid routing into a FastAPI application.

        app = FastAPI()
        hashids = HashIds(app)

    init_app() must run before routes are added: it switches the app router's
    route_class to HashidsRoute. Routers created separately should pass
    route_class=HashidsRoute themselves. Routes that declare hashed parameters
    but would not decode them are reported by verify_routes(), which runs
    before the first request is served.
    """

    def __init__(
        self,
        app: Optional[FastAPI] = None,
        settings: Optional[Settings] = None,
        registry: Optional[HasherRegistry] = None,
        resolver: Optional[ParameterMetadataResolver] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or HasherRegistry.from_settings(self.settings)
        self.resolver = resolver or ParameterMetadataResolver(
            suppress_deprecations=self.settings.suppress_deprecations
        )
        self.processor_factory = ParametersProcessorFactory(self.resolver, self.registry)
        self.decoder = RequestParametersDecoder(self.processor_factory)
        self.url_generator: Optional[HashidsURLGenerator] = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app: FastAPI) -> None:
        setup_logging(getattr(logging, self.settings.log_level.upper(), logging.INFO), self.settings.log_file)

        app.state.hashids = self
        app.router.route_class = HashidsRoute
        app.add_exception_handler(HashIdException, hashid_exception_handler)
        app.add_middleware(HashidsRouteGuard)
        self.url_generator = HashidsURLGenerator(app.router, self.processor_factory)
        logger.info(f"Hashid routing enabled with hashers: {', '.join(self.registry.hasher_names())}")

    def init_templates(self, templates: Jinja2Templates) -> None:
        """Registers url_for and the hashid filter in a Jinja2Templates environment."""
        if self.url_generator is None:
            raise RuntimeError("init_app() must be called before init_templates()")
        templates.env.globals["url_for"] = make_template_url_for(self.url_generator)
        templates.env.filters["hashid"] = self.encode

    def verify_routes(self, app: FastAPI) -> None:
        """
        Raises ConfigurationError when a route declares hashed parameters but
        is not a HashidsRoute. Such a route would hand the raw path value to
        its endpoint, so an unobfuscated integer would be accepted.
        """
        undecoded = self.find_undecoded_routes(app)
        if not undecoded:
            return
        paths = ", ".join(undecoded)
        logger.error(f"Routes declare hashed parameters but do not decode them: {paths}")
        raise ConfigurationError(
            "route_class",
            f"routes {paths} declare hashed parameters but are not HashidsRoute; "
            f"create their router with route_class=HashidsRoute or add them after HashIds(app)",
        )

    def find_undecoded_routes(self, app: FastAPI) -> List[str]:
        undecoded = []
        for route in iter_endpoint_routes(app.router.routes):
            if isinstance(route, HashidsRoute):
                continue
            endpoint = route.endpoint
            if inspect.isclass(endpoint) or not callable(endpoint):
                continue
            if self.resolver.resolve(endpoint) is not None:
                undecoded.append(getattr(route, "path", None) or route.name)
        return undecoded

    # --- Direct access ---

    def encode(self, value: int, hasher: str = DEFAULT_HASHER) -> str:
        return self.registry.get_converter(hasher).encode(value)

    def decode(self, value: str, hasher: str = DEFAULT_HASHER) -> int:
        return self.registry.get_converter(hasher).decode(value)


# --- DEPENDENCIES ---

def get_hashids(request: Request) -> HashIds:
    """Dependency returning the HashIds instance installed on the app."""
    return request.app.state.hashids


def get_url_generator(request: Request) -> HashidsURLGenerator:
    return get_hashids(request).url_generator


# --- EXCEPTION HANDLER ---

async def hashid_exception_handler(request: Request, exc: HashIdException) -> JSONResponse:
    """Renders escaped hashid errors; server-class errors are logged with a traceback."""
    if isinstance(exc, DecodingFailed):
        # Malformed hashes are client input; answer like an unknown route
        return JSONResponse(status_code=404, content={"detail": "Not Found"})
    if exc.status_code >= 500:
        logger.error(f"Hashid error while handling {request.url.path}: {exc}", exc_info=exc)
    else:
        logger.warning(f"Hashid error while handling {request.url.path}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": exc.error.value},
    )
