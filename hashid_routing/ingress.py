"""
Decoding of obfuscated path parameters on the way in.

HashidsRoute is an APIRoute that decodes its endpoint's declared path
parameters while the router matches the request, so FastAPI validates and
injects plain integers. A value that does not decode under the declared
hasher means the route does not match: the router moves on and, failing any
other match, answers 404. Foreign or stale hashes are ordinary client input,
never a server error.
"""
import logging
from typing import Any, MutableMapping, Tuple

from fastapi.routing import APIRoute
from starlette.routing import Match
from starlette.types import ASGIApp, Receive, Scope, Send

from .exceptions import DecodingFailed
from .processors import ParametersProcessorFactory

logger = logging.getLogger(__name__)


class RequestParametersDecoder:
    """Decodes the route parameter bag of a matched handler in place."""

    def __init__(self, processor_factory: ParametersProcessorFactory):
        self.processor_factory = processor_factory

    def decode(self, handler: Any, path_params: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        """Raises DecodingFailed when a declared parameter is not a valid hash."""
        return self.processor_factory.decoding(handler).apply(path_params)

    def try_decode(self, handler: Any, path_params: MutableMapping[str, Any]) -> bool:
        """Decodes in place; False means the request must be treated as unmatched."""
        try:
            self.decode(handler, path_params)
        except DecodingFailed as e:
            logger.info(f"Route parameter rejected: {e}")
            return False
        return True


def get_decoder(scope: Scope) -> RequestParametersDecoder:
    app = scope.get("app")
    hashids = getattr(getattr(app, "state", None), "hashids", None)
    if hashids is None:
        raise RuntimeError("HashidsRoute used on an app without HashIds installed; call HashIds(app) first")
    return hashids.decoder


class HashidsRoute(APIRoute):
    """APIRoute that decodes declared path parameters during matching."""

    def matches(self, scope: Scope) -> Tuple[Match, Scope]:
        match, child_scope = super().matches(scope)
        if match is Match.NONE:
            return match, child_scope

        # Decode a copy so a rejected match leaves nothing behind
        path_params = dict(child_scope.get("path_params", {}))
        if not get_decoder(scope).try_decode(self.endpoint, path_params):
            return Match.NONE, {}
        child_scope["path_params"] = path_params
        return match, child_scope


class HashidsRouteGuard:
    """
    ASGI middleware that runs HashIds.verify_routes() before the first request.
    A failed check fails the request and is repeated on the next one, so a
    misconfigured app never serves a route that skips decoding.
    """

    def __init__(self, app: ASGIApp):
        self.app = app
        self._verified = False

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self._verified and scope["type"] in ("http", "websocket"):
            app = scope["app"]
            app.state.hashids.verify_routes(app)
            self._verified = True
        await self.app(scope, receive, send)
