# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""robots.txt policy rendering and the ``/robots.txt`` route.

Two variants are rendered from one :class:`RobotsConfig`:

- **normal** — served on the custom domain: search engines welcome,
  AI crawlers refused, crawl-delay, sitemap pointer.
- **restrictive** — served on the platform preview domain: everything
  disallowed, pointer comment to the canonical domain, AI crawlers
  refused, canonical sitemap pointer.

Rendering is pure text. The route attaches ``Cache-Control`` from the
config; on any failure it serves :data:`FALLBACK_ROBOTS_TXT`.
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import PlainTextResponse

from .config import DEFAULT_CUSTOM_DOMAIN, ROBOTS_CONFIG, RobotsConfig
from .domain import is_platform_preview_domain

logger = logging.getLogger(__name__)

FALLBACK_MAX_AGE = 3600
FALLBACK_ROBOTS_TXT = f"User-agent: *\nAllow: /\n\nSitemap: https://{DEFAULT_CUSTOM_DOMAIN}/sitemap.xml"

_CONTENT_TYPE = "text/plain; charset=utf-8"


def _sitemap_line(custom_domain: str) -> str:
    return f"Sitemap: https://{custom_domain}/sitemap.xml"


def _bot_block(bot: str, directive: str) -> list[str]:
    return [f"User-agent: {bot}", directive, ""]


def generate_normal_robots_txt(config: RobotsConfig) -> str:
    """robots.txt for the custom domain."""
    lines = ["User-agent: *", "Allow: /", "", "# SEO-friendly crawling"]
    for bot in config.allowed_bots:
        lines += _bot_block(bot, "Allow: /")

    lines.append("# AI Bot restrictions")
    for bot in config.disallowed_bots:
        lines += _bot_block(bot, "Disallow: /")

    lines += [
        "# Crawl-delay for heavy crawlers",
        "User-agent: *",
        f"Crawl-delay: {config.crawl_delay}",
        "",
        "# Sitemap location",
        _sitemap_line(config.custom_domain),
    ]
    return "\n".join(lines)


def generate_restrictive_robots_txt(config: RobotsConfig) -> str:
    """robots.txt for the platform preview domain (nothing may be indexed)."""
    lines = [
        "User-agent: *",
        "Disallow: /",
        "",
        "# This site has moved to the canonical domain",
        f"# Please visit: https://{config.custom_domain}",
        "",
        "# AI Bot restrictions (extra strict)",
    ]
    for bot in config.disallowed_bots:
        lines += _bot_block(bot, "Disallow: /")

    lines += ["# Canonical sitemap location", _sitemap_line(config.custom_domain)]
    return "\n".join(lines)


def select_robots_txt(hostname: str, config: RobotsConfig = ROBOTS_CONFIG) -> tuple[str, int]:
    """Pick the variant for *hostname*. Returns ``(body, max_age_seconds)``."""
    if is_platform_preview_domain(hostname):
        return generate_restrictive_robots_txt(config), config.cache_max_age.restrictive
    return generate_normal_robots_txt(config), config.cache_max_age.normal


def _robots_response(body: str, max_age: int) -> PlainTextResponse:
    return PlainTextResponse(
        body,
        headers={
            "Content-Type": _CONTENT_TYPE,
            "Cache-Control": f"public, max-age={max_age}",
        },
    )


async def robots_txt_endpoint(request: Request) -> PlainTextResponse:
    """``GET /robots.txt`` — variant chosen by the request hostname."""
    try:
        config: RobotsConfig = getattr(request.app.state, "robots_config", ROBOTS_CONFIG)
        hostname = request.url.hostname or ""
        body, max_age = select_robots_txt(hostname, config)
    except Exception:
        logger.exception("robots.txt generation failed, serving fallback")
        return _robots_response(FALLBACK_ROBOTS_TXT, FALLBACK_MAX_AGE)
    return _robots_response(body, max_age)
