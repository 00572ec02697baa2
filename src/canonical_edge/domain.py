# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Hostname classification: custom domain, platform preview domain, problematic.

Pure, total predicates. Malformed input (empty string) is never an error;
it simply fails every positive predicate.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import default_canonical_config

# Auto-assigned preview hostname suffix of the hosting platform
PLATFORM_PREVIEW_SUFFIX = ".pages.dev"


@dataclass(frozen=True, slots=True)
class DomainAnalysis:
    """Per-request classification of a hostname. Never persisted."""

    hostname: str
    is_custom_domain: bool
    is_platform_preview: bool
    is_problematic: bool
    should_redirect: bool


def is_custom_domain(hostname: str, custom_domain: str | None = None) -> bool:
    """True iff *hostname* is the configured domain or its ``www.`` alias."""
    target = custom_domain or default_canonical_config().custom_domain
    return hostname == target or hostname == f"www.{target}"


def is_platform_preview_domain(hostname: str) -> bool:
    return PLATFORM_PREVIEW_SUFFIX in hostname


def is_problematic_domain(hostname: str, custom_domain: str | None = None) -> bool:
    """Preview domain, or anything that is not the custom domain.

    Unrelated third-party hostnames count as problematic too.
    """
    return is_platform_preview_domain(hostname) or not is_custom_domain(hostname, custom_domain)


def analyze_domain(
    hostname: str,
    custom_domain: str | None = None,
    *,
    redirect_enabled: bool = True,
) -> DomainAnalysis:
    """Classify *hostname* for one request."""
    preview = is_platform_preview_domain(hostname)
    return DomainAnalysis(
        hostname=hostname,
        is_custom_domain=is_custom_domain(hostname, custom_domain),
        is_platform_preview=preview,
        is_problematic=is_problematic_domain(hostname, custom_domain),
        should_redirect=redirect_enabled and preview,
    )
