"""ASGI middleware rewriting image requests to cached variants."""

from __future__ import annotations

from urllib.parse import quote

from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Receive, Scope, Send

from .engine.pipeline import ResponsiveImageEngine


HANDLED_METHODS = frozenset({"GET", "HEAD"})


class ResponsiveImagesMiddleware:
    """Swap the requested path for a device-sized variant.

    The wrapped app (usually :class:`~starlette.staticfiles.StaticFiles`)
    receives either the untouched scope or a copy whose ``path`` points into
    the cache tree. The middleware never produces a response of its own.
    """

    def __init__(self, app: ASGIApp, engine: ResponsiveImageEngine) -> None:
        self.app = app
        self.engine = engine

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method") not in HANDLED_METHODS:
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        rewrite = await self.engine.resolve(
            scope["path"],
            query_params=connection.query_params,
            cookie_header=connection.headers.get("cookie"),
            accept_header=connection.headers.get("accept"),
        )
        if rewrite is not None:
            scope = dict(scope)
            scope["path"] = rewrite
            scope["raw_path"] = quote(rewrite).encode("ascii")
        await self.app(scope, receive, send)


__all__ = ["ResponsiveImagesMiddleware"]
