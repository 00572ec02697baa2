# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""canonical-edge exception hierarchy.

All errors inherit from CanonicalEdgeError, allowing callers to catch the
base class for any failure or specific subclasses for targeted handling.
Nothing in the request path lets these escape: the edge handler turns them
into a degraded or failed result.
"""

from __future__ import annotations


class CanonicalEdgeError(Exception):
    """Base exception for all canonical-edge errors."""


class ConfigError(CanonicalEdgeError):
    """Invalid configuration or environment (fatal at startup)."""

    def __init__(self, message: str, *, key: str = "") -> None:
        super().__init__(message)
        self.key = key


class UpstreamError(CanonicalEdgeError):
    """Forwarding the request to the upstream asset/origin layer failed."""
