# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""canonical-edge: canonical-domain enforcement for a statically generated blog.

Decides, per request, whether a hostname must be 301-redirected to the
custom domain, which security/cache headers a response carries, which
robots.txt is served, and which canonical URL a page declares. Ships an
offline SEO validator that regression-tests those decisions.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .canonical_url import generate_canonical_url, normalize_path, remove_query_params, validate_canonical_url
from .config import CanonicalUrlConfig, RobotsConfig, Settings
from .domain import DomainAnalysis, analyze_domain, is_custom_domain, is_platform_preview_domain, is_problematic_domain

try:
    __version__ = version("canonical-edge")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "CanonicalUrlConfig",
    "DomainAnalysis",
    "RobotsConfig",
    "Settings",
    "analyze_domain",
    "generate_canonical_url",
    "is_custom_domain",
    "is_platform_preview_domain",
    "is_problematic_domain",
    "normalize_path",
    "remove_query_params",
    "validate_canonical_url",
]
