# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for canonical_edge.canonical_url — builder, normalizers, debug info."""

from __future__ import annotations

import pytest

from canonical_edge.canonical_url import (
    generate_canonical_url,
    generate_debug_info,
    normalize_path,
    remove_query_params,
    validate_canonical_url,
)
from canonical_edge.config import CanonicalUrlConfig
from canonical_edge.errors import ConfigError

# ── generate_canonical_url ────────────────────────────────────────────


class TestGenerateCanonicalUrl:
    def test_simple_path(self, canonical_config):
        assert generate_canonical_url("/posts/test", canonical_config) == "https://midnight480.com/posts/test"

    def test_root(self, canonical_config):
        assert generate_canonical_url("/", canonical_config) == "https://midnight480.com/"

    def test_empty_path_is_root(self, canonical_config):
        assert generate_canonical_url("", canonical_config) == "https://midnight480.com/"

    def test_missing_leading_slash_and_duplicate(self, canonical_config):
        assert generate_canonical_url("posts//test", canonical_config) == "https://midnight480.com/posts/test"

    def test_missing_leading_slash(self, canonical_config):
        assert generate_canonical_url("posts/test", canonical_config) == "https://midnight480.com/posts/test"

    def test_query_is_dropped(self, canonical_config):
        url = generate_canonical_url("/posts/test?utm_source=twitter", canonical_config)
        assert url == "https://midnight480.com/posts/test"

    def test_fragment_is_dropped(self, canonical_config):
        assert generate_canonical_url("/posts/test#intro", canonical_config) == "https://midnight480.com/posts/test"

    def test_trailing_slash_stripped(self, canonical_config):
        assert generate_canonical_url("/posts/test/", canonical_config) == "https://midnight480.com/posts/test"

    def test_trailing_slash_kept_when_disabled(self, canonical_config):
        url = generate_canonical_url("/posts/test/", canonical_config, normalize_trailing_slash=False)
        assert url == "https://midnight480.com/posts/test/"

    def test_repeated_slashes_collapsed(self, canonical_config):
        url = generate_canonical_url("//posts///test//", canonical_config)
        assert url == "https://midnight480.com/posts/test"

    def test_collapse_runs_before_trailing_slash_strip(self, canonical_config):
        assert generate_canonical_url("/a//", canonical_config) == "https://midnight480.com/a"

    def test_only_slashes_is_root(self, canonical_config):
        assert generate_canonical_url("///", canonical_config) == "https://midnight480.com/"

    def test_http_when_not_forced(self, canonical_config):
        url = generate_canonical_url("/about", canonical_config, force_https=False)
        assert url == "http://midnight480.com/about"

    def test_custom_domain_override(self, canonical_config):
        url = generate_canonical_url("/about", canonical_config, custom_domain="example.org")
        assert url == "https://example.org/about"

    def test_invalid_override_raises(self, canonical_config):
        with pytest.raises(ConfigError):
            generate_canonical_url("/about", canonical_config, custom_domain="not a host")

    def test_output_never_carries_query_or_fragment(self, canonical_config):
        for path in ("/a?b=1", "/a#b", "/a/?b=1#c", "a?"):
            url = generate_canonical_url(path, canonical_config)
            assert "?" not in url
            assert "#" not in url

    def test_idempotent_on_own_path(self, canonical_config):
        first = generate_canonical_url("/posts//test/?x=1", canonical_config)
        path = first.removeprefix("https://midnight480.com")
        assert generate_canonical_url(path, canonical_config) == first


# ── remove_query_params ───────────────────────────────────────────────


class TestRemoveQueryParams:
    def test_strips_query_and_fragment(self):
        url = "https://midnight480.com/posts/test?utm_source=twitter#top"
        assert remove_query_params(url) == "https://midnight480.com/posts/test"

    def test_keeps_scheme_and_host(self):
        assert remove_query_params("http://example.org/a?b=c") == "http://example.org/a"

    def test_empty_path_becomes_root(self):
        assert remove_query_params("https://midnight480.com?x=1") == "https://midnight480.com/"

    @pytest.mark.parametrize("url", ["not a url", "/relative/path?x=1", ""])
    def test_malformed_returned_unchanged(self, url):
        assert remove_query_params(url) == url


# ── normalize_path ────────────────────────────────────────────────────


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/", "/"),
            ("", "/"),
            ("//", "/"),
            ("/posts/test/", "/posts/test"),
            ("/posts//test", "/posts/test"),
            ("//posts///test//", "/posts/test"),
        ],
    )
    def test_normalize(self, path, expected):
        assert normalize_path(path) == expected

    @pytest.mark.parametrize("path", ["/", "/a/", "//a//b//", "/a/b"])
    def test_idempotent(self, path):
        once = normalize_path(path)
        assert normalize_path(once) == once


# ── validate_canonical_url ────────────────────────────────────────────


class TestValidateCanonicalUrl:
    def test_valid(self):
        assert validate_canonical_url("https://midnight480.com/posts/test") is True

    def test_bare_host_is_valid(self):
        assert validate_canonical_url("https://midnight480.com") is True

    def test_http_root_rejected(self):
        assert validate_canonical_url("http://midnight480.com/") is False

    def test_http_rejected(self):
        assert validate_canonical_url("http://midnight480.com/posts/test") is False

    def test_preview_host_rejected(self):
        assert validate_canonical_url("https://astro-notion-blog-cq9.pages.dev/posts/test") is False

    @pytest.mark.parametrize("url", ["", "not a url", "/posts/test", "https://"])
    def test_malformed_rejected(self, url):
        assert validate_canonical_url(url) is False

    def test_builder_output_validates(self, canonical_config):
        assert validate_canonical_url(generate_canonical_url("/x/y/", canonical_config)) is True


# ── generate_debug_info ───────────────────────────────────────────────


class TestGenerateDebugInfo:
    def test_preview_origin_is_problematic(self, canonical_config):
        info = generate_debug_info(
            "https://astro-notion-blog-cq9.pages.dev/posts/test",
            "https://midnight480.com/posts/test",
            canonical_config,
        )
        assert info.is_valid is True
        assert info.is_problematic is True
        assert info.config is canonical_config

    def test_custom_origin_not_problematic(self, canonical_config):
        info = generate_debug_info(
            "https://midnight480.com/posts/test",
            "https://midnight480.com/posts/test",
            canonical_config,
        )
        assert info.is_problematic is False

    def test_to_dict(self, canonical_config):
        info = generate_debug_info("https://midnight480.com/", "http://midnight480.com/", canonical_config)
        data = info.to_dict()
        assert data["is_valid"] is False
        assert data["config"]["custom_domain"] == "midnight480.com"
        assert data["timestamp"].endswith("+00:00")

    def test_malformed_original_url(self):
        info = generate_debug_info("http://[bad", "https://midnight480.com/", CanonicalUrlConfig())
        assert info.is_problematic is True
