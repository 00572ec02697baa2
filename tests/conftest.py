# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import canonical_edge  # noqa: F401
except ImportError:
    raise ImportError("canonical_edge is not installed. Run: pip install -e '.[dev]'") from None

import pytest
import structlog

from canonical_edge.config import CanonicalUrlConfig, RobotsConfig, Settings, default_canonical_config
from tests._edge_helpers import CUSTOM_DOMAIN, RecordingOrigin


@pytest.fixture(autouse=True)
def _clear_contextvars():
    """Request context bound by one test must not leak into the next."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _fresh_default_config():
    """The env-seeded default config is rebuilt from each test's environment."""
    default_canonical_config.cache_clear()
    yield
    default_canonical_config.cache_clear()


@pytest.fixture
def canonical_config() -> CanonicalUrlConfig:
    return CanonicalUrlConfig(custom_domain=CUSTOM_DOMAIN)


@pytest.fixture
def robots_config() -> RobotsConfig:
    return RobotsConfig(custom_domain=CUSTOM_DOMAIN)


@pytest.fixture
def site_dir(tmp_path):
    """A tiny built site: home page, one post, a stylesheet and a sitemap."""
    (tmp_path / "index.html").write_text("<h1>home</h1>")
    (tmp_path / "posts" / "test").mkdir(parents=True)
    (tmp_path / "posts" / "test" / "index.html").write_text("<h1>test post</h1>")
    (tmp_path / "style.css").write_text("body{}")
    (tmp_path / "sitemap.xml").write_text("<urlset/>")
    return tmp_path


@pytest.fixture
def settings(site_dir) -> Settings:
    return Settings(custom_domain=CUSTOM_DOMAIN, static_dir=str(site_dir))


@pytest.fixture
def origin() -> RecordingOrigin:
    return RecordingOrigin()
