"""
URL generation that obfuscates declared parameters on the way out.

HashidsURLGenerator decorates a Starlette router (or app). Before delegating
to the wrapped url_path_for it looks up the target route, resolves the
route endpoint's ParameterSpec and encodes the declared parameters.
"""
import logging
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional
from urllib.parse import urlencode

from jinja2 import pass_context
from starlette.datastructures import URL, URLPath
from starlette.requests import Request
from starlette.routing import BaseRoute, Mount

from .processors import ParametersProcessorFactory

logger = logging.getLogger(__name__)


def included_routes(route: BaseRoute) -> Optional[Iterable[BaseRoute]]:
    """
    The routes of a router added with include_router(), when route wraps one.
    Recent FastAPI releases keep included routers as a single entry holding
    the original router instead of copying its routes into the parent.
    """
    original_router = getattr(route, "original_router", None)
    if original_router is None:
        return None
    return original_router.routes


def iter_endpoint_routes(routes: Iterable[BaseRoute]) -> Iterator[BaseRoute]:
    """Yields every route with an endpoint, descending into mounts and included routers."""
    for route in routes:
        if isinstance(route, Mount):
            yield from iter_endpoint_routes(route.routes)
        elif included_routes(route) is not None:
            yield from iter_endpoint_routes(included_routes(route))
        elif hasattr(route, "endpoint"):
            yield route


def find_route(routes: Iterable[BaseRoute], name: str) -> Optional[BaseRoute]:
    """Finds the endpoint route called name, following "mount:route" names into mounts."""
    for route in routes:
        children = included_routes(route)
        if children is not None:
            found = find_route(children, name)
            if found is not None:
                return found
            continue
        if isinstance(route, Mount):
            if route.name is None:
                found = find_route(route.routes, name)
            elif name.startswith(f"{route.name}:"):
                found = find_route(route.routes, name[len(route.name) + 1:])
            else:
                continue
            if found is not None:
                return found
        elif getattr(route, "name", None) == name and hasattr(route, "endpoint"):
            return route
    return None


class HashidsURLGenerator:
    """Decorates a router's url_path_for with parameter encoding."""

    def __init__(self, router: Any, processor_factory: ParametersProcessorFactory):
        self.router = router
        self.processor_factory = processor_factory

    def url_path_for(self, name: str, /, **path_params: Any) -> URLPath:
        """
        Same contract as Starlette's url_path_for: every parameter must be a
        path parameter of the route, and an unknown route raises NoMatchFound.
        """
        self.encode_parameters(name, path_params)
        return self.router.url_path_for(name, **path_params)

    def url_for(self, request: Request, name: str, /, **path_params: Any) -> URL:
        url_path = self.url_path_for(name, **path_params)
        return url_path.make_absolute_url(base_url=request.base_url)

    def generate(self, name: str, parameters: Optional[Mapping[str, Any]] = None, request: Optional[Request] = None) -> str:
        """
        Builds a URL string for the named route. Parameters that are not part
        of the route path are appended as a query string. The URL is absolute
        when a request is given.
        """
        parameters = dict(parameters or {})
        self.encode_parameters(name, parameters)

        route = self._find(name)
        path_names = set(getattr(route, "param_convertors", {}) or {})
        path_params = {k: v for k, v in parameters.items() if k in path_names}
        query = {k: v for k, v in parameters.items() if k not in path_names}

        url_path = self.router.url_path_for(name, **path_params)
        url = str(url_path.make_absolute_url(base_url=request.base_url)) if request is not None else str(url_path)
        if query:
            url = f"{url}?{urlencode(query, doseq=True)}"
        return url

    def encode_parameters(self, name: str, parameters: dict) -> dict:
        route = self._find(name)
        if route is None:
            # Let the wrapped router raise its own NoMatchFound
            return parameters
        return self.processor_factory.encoding(route.endpoint).apply(parameters)

    def _find(self, name: str) -> Optional[BaseRoute]:
        return find_route(self.router.routes, name)


def make_template_url_for(generator: HashidsURLGenerator) -> Callable:
    """A url_for for Jinja2 templates, taking the request from the template context."""

    @pass_context
    def url_for(context: dict, name: str, /, **path_params: Any) -> URL:
        return generator.url_for(context["request"], name, **path_params)

    return url_for
