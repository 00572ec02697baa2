# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Application factory — wires settings, routes, origin and the edge handler.

Request flow: EdgeHandler (outermost) → inner Starlette app:

- ``GET /robots.txt`` — domain-aware robots policy
- ``GET /health``     — liveness probe
- everything else     — origin (static directory at ``BASE_PATH`` or an
  HTTP origin proxied with httpx)
"""

from __future__ import annotations

import contextlib
import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from .config import Settings
from .edge import EdgeHandler
from .robots import robots_txt_endpoint
from .upstream import AsgiUpstream, HttpUpstream, Upstream

logger = logging.getLogger(__name__)


async def health_endpoint(request: Request) -> JSONResponse:
    settings: Settings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "custom_domain": settings.custom_domain,
            "redirect_enabled": settings.enable_canonical_redirect,
            "cf_pages_branch": settings.cf_pages_branch,
        }
    )


def _origin_route(origin: Upstream) -> Route:
    async def _forward(request: Request) -> Response:
        return await origin(request)

    return Route("/{path:path}", _forward)


def create_app(settings: Settings | None = None, *, origin: Upstream | None = None) -> EdgeHandler:
    """Build the ASGI application.

    Args:
        settings: Process configuration (defaults to ``Settings.from_env()``).
        origin: Resolver for everything that is not an edge-owned route.
            Defaults to an :class:`HttpUpstream` when ``origin_url`` is set,
            otherwise ``StaticFiles`` over ``static_dir`` mounted at ``base_path``.
    """
    settings = settings or Settings.from_env()
    closers: list[HttpUpstream] = []

    routes: list = [
        Route("/robots.txt", robots_txt_endpoint, methods=["GET"]),
        Route("/health", health_endpoint, methods=["GET"]),
    ]

    if origin is None and settings.origin_url:
        proxy = HttpUpstream(settings.origin_url)
        closers.append(proxy)
        origin = proxy
        logger.info("Origin: proxying to %s", settings.origin_url)

    if origin is not None:
        routes.append(_origin_route(origin))
    else:
        routes.append(Mount(settings.base_path, app=StaticFiles(directory=settings.static_dir, html=True, check_dir=False)))
        logger.info("Origin: static files from %s at %s", settings.static_dir, settings.base_path)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        try:
            yield
        finally:
            for closer in closers:
                await closer.aclose()

    inner = Starlette(routes=routes, lifespan=lifespan)
    inner.state.settings = settings
    inner.state.robots_config = settings.robots_config()

    return EdgeHandler(
        AsgiUpstream(inner),
        custom_domain=settings.custom_domain,
        redirect_enabled=settings.enable_canonical_redirect,
        app=inner,
    )


def run(settings: Settings) -> None:
    """Serve the edge app with uvicorn (blocking)."""
    import uvicorn

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    server = uvicorn.Server(config)
    logger.info(
        "Starting canonical edge (host=%s, port=%d, domain=%s, redirect=%s)",
        settings.host,
        settings.port,
        settings.custom_domain,
        settings.enable_canonical_redirect,
    )
    server.run()
