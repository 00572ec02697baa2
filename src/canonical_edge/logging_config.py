# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Process logging for the edge: stdlib loggers rendered by structlog.

Every module logs through ``logging.getLogger(__name__)``. :func:`configure`
installs one root handler whose formatter runs the structlog chain, so
stdlib records, structlog loggers and uvicorn's own loggers all come out
in one format (console for a terminal, JSON lines behind a log collector).

Per-request fields (hostname, path, method) are carried in
``structlog.contextvars`` and merged into every line of that request.
Imports nothing from canonical_edge, so it can run first in startup.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

# Loggers that uvicorn configures on its own; they must propagate to root
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _resolve_level(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _pre_chain() -> list:
    """Processors shared by structlog-native and foreign (stdlib) records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure(*, json_output: bool = False, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Install the root handler and point structlog at it.

    Safe to call repeatedly; each call replaces the previous root handler.

    Args:
        json_output: JSON lines instead of the human-readable console format.
        level: Root level name; unknown names fall back to INFO.
        stream: Output stream (defaults to the current ``sys.stderr``).
    """
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))

    for name in _UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True


def bind_request_context(*, hostname: str, path: str, method: str = "GET") -> None:
    """Start a request's log context: hostname, path and method on every line."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(hostname=hostname, path=path, method=method)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
