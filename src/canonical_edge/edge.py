# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Edge redirect handler — per-request canonical-domain enforcement.

Request lifecycle::

    RECEIVE_REQUEST → CLASSIFY → REDIRECT                     (301, done)
                               → FORWARD → DECORATE → RESPOND
    any step ──exception──→ FAIL_SAFE → forward undecorated   (degraded)
                                      → fixed 500             (failed)

Design choices:

- **Pure ASGI** — no BaseHTTPMiddleware; one stateless invocation per request.
- **Explicit outcome** — :meth:`EdgeHandler.dispatch` returns an
  :class:`EdgeResult` instead of nesting exception handlers, so the
  success / degraded / failed paths are testable on their own.
- **Single fallback** — exactly one undecorated retry, no backoff.
- **Verbatim redirect** — only hostname and scheme change; the raw path,
  query string and fragment are carried over byte-for-byte.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import quote, urlsplit, urlunsplit

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import Response

from .config import DEFAULT_CUSTOM_DOMAIN
from .domain import analyze_domain
from .logging_config import bind_request_context, clear_request_context
from .security_headers import decorate_response, internal_error_response
from .upstream import Upstream

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {80, 443}


class EdgeOutcome(StrEnum):
    """How a request left the handler."""

    REDIRECTED = "redirected"
    FORWARDED = "forwarded"
    DEGRADED = "degraded"  # fallback forward succeeded, no decoration
    FAILED = "failed"  # fixed 500


@dataclass(frozen=True, slots=True)
class EdgeResult:
    outcome: EdgeOutcome
    response: Response
    error: str = ""


# ── URL helpers ───────────────────────────────────────────────────────


def request_url(scope: dict) -> str:
    """Rebuild the absolute inbound URL, keeping the raw (still-encoded) path."""
    scheme = scope.get("scheme", "http")
    host = Headers(scope=scope).get("host")
    if not host:
        server = scope.get("server")
        host = f"{server[0]}:{server[1]}" if server else ""
    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1")
    else:
        path = quote(scope.get("root_path", "") + scope.get("path", "/"))
    query = scope.get("query_string", b"").decode("latin-1")
    return f"{scheme}://{host}{path}?{query}" if query else f"{scheme}://{host}{path}"


def build_redirect_url(url: str, custom_domain: str) -> str:
    """Clone *url* onto ``https://{custom_domain}``.

    Userinfo and a non-default port survive, exactly like assigning
    ``hostname`` and ``protocol`` on a WHATWG URL object.

    Raises:
        ValueError: If *url* has an invalid port or bracketed host.
    """
    parts = urlsplit(url)
    netloc = custom_domain
    port = parts.port
    if port is not None and port not in _DEFAULT_PORTS:
        netloc = f"{netloc}:{port}"
    if "@" in parts.netloc:
        netloc = f"{parts.netloc.rsplit('@', 1)[0]}@{netloc}"
    return urlunsplit(("https", netloc, parts.path or "/", parts.query, parts.fragment))


def redirect_response(location: str) -> Response:
    """301 with only a ``Location`` header (no re-quoting of the target)."""
    return Response(status_code=301, headers={"location": location})


# ── Handler ───────────────────────────────────────────────────────────


class EdgeHandler:
    """Pure ASGI entry point enforcing the canonical domain.

    ``upstream`` resolves non-redirected requests. ``app`` (optional)
    receives non-HTTP scopes such as ``lifespan``.
    """

    def __init__(
        self,
        upstream: Upstream,
        *,
        custom_domain: str = DEFAULT_CUSTOM_DOMAIN,
        redirect_enabled: bool = True,
        app=None,
    ) -> None:
        self.upstream = upstream
        self.custom_domain = custom_domain
        self.redirect_enabled = redirect_enabled
        self.app = app

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] != "http":
            if self.app is not None:
                await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        try:
            result = await self.dispatch(request)
            await result.response(scope, receive, send)
        finally:
            clear_request_context()

    async def dispatch(self, request: Request) -> EdgeResult:
        """Run one request through the state machine. Never raises."""
        url = request_url(request.scope)
        path = request.scope.get("path", "/")
        try:
            hostname = urlsplit(url).hostname or ""
            bind_request_context(hostname=hostname, path=path, method=request.method)

            analysis = analyze_domain(hostname, self.custom_domain, redirect_enabled=self.redirect_enabled)
            if analysis.should_redirect:
                location = build_redirect_url(url, self.custom_domain)
                logger.info("Redirecting %s to %s", hostname, self.custom_domain)
                return EdgeResult(EdgeOutcome.REDIRECTED, redirect_response(location))

            response = await self.upstream(request)
            decorated = decorate_response(response, path)
            logger.debug("Forwarded %s -> %d", path, decorated.status_code)
            return EdgeResult(EdgeOutcome.FORWARDED, decorated)
        except Exception as exc:
            logger.warning("Edge handler error, forwarding without decoration: %s", exc, exc_info=True)
            return await self._fail_safe(request, exc)

    async def _fail_safe(self, request: Request, exc: Exception) -> EdgeResult:
        error = f"{type(exc).__name__}: {exc}"
        try:
            response = await self.upstream(request)
        except Exception:
            logger.exception("Fallback forward failed, returning 500")
            return EdgeResult(EdgeOutcome.FAILED, internal_error_response(), error=error)
        return EdgeResult(EdgeOutcome.DEGRADED, response, error=error)
