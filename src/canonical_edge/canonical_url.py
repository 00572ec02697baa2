# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Canonical URL construction and normalization.

Canonical URLs are always absolute, on the custom domain, and never carry
a query string or fragment (search engines must not index tracking
parameters). Callers that need the original query keep it themselves.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlsplit

from .config import CanonicalUrlConfig, default_canonical_config
from .domain import is_platform_preview_domain, is_problematic_domain

_REPEATED_SLASHES = re.compile(r"/{2,}")


def _path_only(path: str) -> str:
    """Drop any ``?query`` / ``#fragment`` suffix."""
    for sep in ("?", "#"):
        idx = path.find(sep)
        if idx != -1:
            path = path[:idx]
    return path


def generate_canonical_url(
    path: str,
    config: CanonicalUrlConfig | None = None,
    **overrides: object,
) -> str:
    """Build the canonical absolute URL for *path*.

    Args:
        path: Site path, with or without a leading slash.
        config: Base configuration (defaults to the process-wide instance).
        **overrides: Field overrides applied on top of *config*,
            e.g. ``force_https=False``.

    Raises:
        ConfigError: If an override produces an invalid configuration.
    """
    cfg = config or default_canonical_config()
    if overrides:
        cfg = dataclasses.replace(cfg, **overrides)

    normalized = _path_only(path)
    if not normalized.startswith("/"):
        normalized = f"/{normalized}"

    normalized = _REPEATED_SLASHES.sub("/", normalized)

    # Collapse before stripping so "/a//" ends as "/a"; a second pass is then a no-op
    if cfg.normalize_trailing_slash and normalized != "/" and normalized.endswith("/"):
        normalized = normalized[:-1]

    scheme = "https:" if cfg.force_https else "http:"
    return f"{scheme}//{cfg.custom_domain}{normalized}"


def remove_query_params(url: str) -> str:
    """Return ``scheme://host/path`` of *url*; malformed input comes back unchanged."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return url
    if not parts.scheme or not hostname:
        return url
    return f"{parts.scheme}://{hostname}{parts.path or '/'}"


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and strip one trailing slash. Idempotent."""
    collapsed = _REPEATED_SLASHES.sub("/", path)
    if collapsed.endswith("/"):
        collapsed = collapsed[:-1]
    return collapsed or "/"


def validate_canonical_url(url: str) -> bool:
    """True iff *url* is https, on a real (non-preview) host, with an absolute path."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
    except ValueError:
        return False
    path = parts.path or "/"
    return (
        parts.scheme == "https"
        and len(hostname) > 0
        and not is_platform_preview_domain(hostname)
        and path.startswith("/")
    )


# ── Debug info ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CanonicalDebugInfo:
    original_url: str
    canonical_url: str
    config: CanonicalUrlConfig
    is_valid: bool
    is_problematic: bool
    timestamp: str

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def generate_debug_info(
    original_url: str,
    canonical_url: str,
    config: CanonicalUrlConfig | None = None,
) -> CanonicalDebugInfo:
    """Snapshot how *original_url* maps to *canonical_url* under *config*."""
    cfg = config or default_canonical_config()
    try:
        hostname = urlsplit(original_url).hostname or ""
    except ValueError:
        hostname = ""
    return CanonicalDebugInfo(
        original_url=original_url,
        canonical_url=canonical_url,
        config=cfg,
        is_valid=validate_canonical_url(canonical_url),
        is_problematic=is_problematic_domain(hostname, cfg.custom_domain),
        timestamp=datetime.now(UTC).isoformat(),
    )
