# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Upstream collaborators the edge handler forwards to.

An upstream is any ``async (Request) -> Response`` callable. Two are provided:

- :class:`AsgiUpstream` — runs an in-process ASGI app (static files, the
  robots.txt route) and buffers its response.
- :class:`HttpUpstream` — proxies to a remote origin with ``httpx``.

Both may be called more than once for the same request (the edge
fail-safe retries once), so the request body is read through
``Request.body()``, which caches it. After the buffered body is replayed,
further reads go to the real inbound ``receive`` so a streaming response
only sees a genuine client disconnect.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import httpx
from starlette.requests import Request
from starlette.responses import Response

from .errors import UpstreamError

logger = logging.getLogger(__name__)

Upstream = Callable[[Request], Awaitable[Response]]

# RFC 9110 §7.6.1 connection-specific headers, never forwarded
_HOP_BY_HOP: frozenset[str] = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# httpx already decoded the body, so length/encoding must be recomputed
_STRIP_RESPONSE: frozenset[str] = _HOP_BY_HOP | {"content-length", "content-encoding"}


# ── In-process ASGI app ───────────────────────────────────────────────


class AsgiUpstream:
    """Call an inner ASGI app and collect its response into a :class:`Response`."""

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, request: Request) -> Response:
        body = await request.body()
        _replayed = False

        async def replay_receive() -> dict:
            nonlocal _replayed
            if not _replayed:
                _replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            # later reads (disconnect listeners) wait on the real client
            return await request.receive()

        status: int | None = None
        raw_headers: list[tuple[bytes, bytes]] = []
        chunks: list[bytes] = []

        async def collect(message) -> None:
            nonlocal status, raw_headers
            if message["type"] == "http.response.start":
                status = message["status"]
                raw_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                chunks.append(message.get("body", b""))

        await self.app(dict(request.scope), replay_receive, collect)

        if status is None:
            raise UpstreamError("upstream app returned without starting a response")

        response = Response(status_code=status)
        response.body = b"".join(chunks)
        response.raw_headers = raw_headers
        return response


# ── Remote origin over HTTP ───────────────────────────────────────────


class HttpUpstream:
    """Reverse-proxy requests to *origin_url* (``scheme://host[:port]``)."""

    def __init__(self, origin_url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self.origin_url = origin_url.rstrip("/")
        self._client = client or httpx.AsyncClient(follow_redirects=False)

    def _target(self, request: Request) -> str:
        raw_path = request.scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else request.url.path
        query = request.scope.get("query_string", b"").decode("latin-1")
        return f"{self.origin_url}{path}?{query}" if query else f"{self.origin_url}{path}"

    async def __call__(self, request: Request) -> Response:
        headers = [(k, v) for k, v in request.headers.items() if k not in _HOP_BY_HOP and k != "host"]
        target = self._target(request)
        try:
            upstream_resp = await self._client.request(
                request.method,
                target,
                headers=headers,
                content=await request.body(),
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"origin fetch failed for {target}: {e}") from e

        logger.debug("origin %s -> %d", target, upstream_resp.status_code)
        response = Response(content=upstream_resp.content, status_code=upstream_resp.status_code)
        response.raw_headers.extend(
            (name.lower(), value)
            for name, value in upstream_resp.headers.raw
            if name.lower().decode("latin-1") not in _STRIP_RESPONSE
        )
        return response

    async def aclose(self) -> None:
        await self._client.aclose()
