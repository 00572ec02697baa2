# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Response decoration — fixed security headers + path-based Cache-Control.

Leaf module over Starlette responses.

Rules:

- **Security headers** — always set, overwriting whatever the upstream sent.
- **Cache-Control** — chosen by request path: static asset extensions
  get one year, ``/feed*`` and ``/sitemap*`` one hour, HTML one hour.
  Sitemap paths additionally get ``Content-Type: application/xml``.
- Edge-owned routes with their own lifetime (``/robots.txt``) keep it.
"""

from __future__ import annotations

import re

from starlette.responses import PlainTextResponse, Response

# ── Header constants ──────────────────────────────────────────────────

SECURITY_HEADERS: tuple[tuple[str, str], ...] = (
    ("X-Frame-Options", "DENY"),
    ("X-Content-Type-Options", "nosniff"),
    ("X-XSS-Protection", "1; mode=block"),
    ("Referrer-Policy", "strict-origin-when-cross-origin"),
    ("X-Robots-Tag", "noai, noimageai"),
)

CACHE_STATIC = "public, max-age=31536000"  # 1 year
CACHE_FEED = "public, max-age=3600"  # 1 hour
CACHE_HTML = "public, max-age=3600"  # 1 hour

XML_CONTENT_TYPE = "application/xml"

_STATIC_ASSET_RE = re.compile(r"\.(ico|svg|png|jpg|jpeg|gif|css|js|woff|woff2|ttf)$")
_FEED_PREFIXES: tuple[str, ...] = ("/feed", "/sitemap")
_SELF_CACHED_PATHS: frozenset[str] = frozenset({"/robots.txt"})


# ── Rules ─────────────────────────────────────────────────────────────


def cache_policy_for(path: str) -> tuple[str, str | None]:
    """Return ``(cache_control, content_type_override)`` for *path*."""
    if _STATIC_ASSET_RE.search(path):
        return CACHE_STATIC, None
    if path.startswith(_FEED_PREFIXES):
        return CACHE_FEED, XML_CONTENT_TYPE if "sitemap" in path else None
    return CACHE_HTML, None


def apply_security_headers(response: Response) -> Response:
    for name, value in SECURITY_HEADERS:
        response.headers[name] = value
    return response


def decorate_response(response: Response, path: str) -> Response:
    """Attach security and cache headers to *response* in place and return it."""
    apply_security_headers(response)
    if path in _SELF_CACHED_PATHS and "cache-control" in response.headers:
        return response
    cache_control, content_type = cache_policy_for(path)
    response.headers["Cache-Control"] = cache_control
    if content_type is not None:
        response.headers["Content-Type"] = content_type
    return response


def internal_error_response() -> Response:
    """Fixed last-resort 500 carrying only the security headers."""
    return PlainTextResponse(
        "Internal Server Error",
        status_code=500,
        headers=dict(SECURITY_HEADERS),
    )
