# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for canonical_edge.seo_validator — per-check validators, batch scoring, report."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from canonical_edge.config import CanonicalUrlConfig, RobotsConfig
from canonical_edge.seo_validator import (
    generate_seo_validation_report,
    run_comprehensive_seo_validation,
    validate_canonical_url_accuracy,
    validate_redirect_chain,
    validate_robots_txt_generation,
)
from tests._edge_helpers import CUSTOM_DOMAIN, PREVIEW_HOST

# ── Canonical accuracy ────────────────────────────────────────────────


class TestCanonicalAccuracy:
    def test_clean_path_scores_100(self, canonical_config):
        result = validate_canonical_url_accuracy("https://midnight480.com/posts/test", "/posts/test", canonical_config)
        assert result.is_valid is True
        assert result.canonical_url == "https://midnight480.com/posts/test"
        assert result.issues == []
        assert result.recommendations == []
        assert result.score == 100

    def test_root(self, canonical_config):
        result = validate_canonical_url_accuracy("https://midnight480.com/", "/", canonical_config)
        assert result.is_valid is True
        assert result.score == 100

    def test_trailing_slash_path_mismatch(self, canonical_config):
        result = validate_canonical_url_accuracy("https://midnight480.com/posts/test/", "/posts/test/", canonical_config)
        assert result.is_valid is False
        assert any("Path mismatch" in issue for issue in result.issues)
        assert result.score == 80

    def test_kept_trailing_slash_is_recommendation(self):
        cfg = CanonicalUrlConfig(custom_domain=CUSTOM_DOMAIN, normalize_trailing_slash=False)
        result = validate_canonical_url_accuracy("https://midnight480.com/posts/", "/posts/", cfg)
        assert result.is_valid is True
        assert result.recommendations == ["Use a consistent trailing-slash policy"]
        assert result.score == 95

    def test_http_config_penalized(self):
        cfg = CanonicalUrlConfig(custom_domain=CUSTOM_DOMAIN, force_https=False)
        result = validate_canonical_url_accuracy("http://midnight480.com/a", "/a", cfg)
        assert result.is_valid is False
        # invalid canonical + non-HTTPS, one recommendation
        assert len(result.issues) == 2
        assert result.score == 100 - 2 * 20 - 5

    def test_preview_domain_config_penalized(self):
        cfg = CanonicalUrlConfig(custom_domain=PREVIEW_HOST)
        result = validate_canonical_url_accuracy(f"https://{PREVIEW_HOST}/a", "/a", cfg)
        assert result.is_valid is False
        assert "Canonical URL uses the platform preview domain" in result.issues

    def test_duplicate_slashes_are_a_recommendation(self, canonical_config):
        result = validate_canonical_url_accuracy("https://midnight480.com/posts//test", "/posts//test", canonical_config)
        assert result.is_valid is True
        assert result.issues == []
        assert result.recommendations == ["Collapse duplicate slashes in the path"]
        assert result.score == 95
        assert result.canonical_url == "https://midnight480.com/posts/test"

    def test_duplicate_slashes_with_trailing_slash_still_mismatch(self, canonical_config):
        result = validate_canonical_url_accuracy("https://midnight480.com/a//b/", "/a//b/", canonical_config)
        assert result.issues == ["Path mismatch: /a/b vs /a//b/"]
        assert result.recommendations == ["Collapse duplicate slashes in the path"]
        assert result.score == 75

    def test_score_floor_is_zero(self):
        cfg = CanonicalUrlConfig(custom_domain=PREVIEW_HOST, force_https=False)
        result = validate_canonical_url_accuracy(f"http://{PREVIEW_HOST}/a/", "/a//b/", cfg)
        assert result.score >= 0

    def test_relative_page_url(self, canonical_config):
        result = validate_canonical_url_accuracy("/posts/test", "/posts/test", canonical_config)
        assert result.is_valid is False
        assert result.score == 0
        assert result.canonical_url == ""
        assert result.issues[0].startswith("URL parse error")


# ── robots.txt ────────────────────────────────────────────────────────


class TestRobotsValidation:
    def test_custom_domain_valid(self, robots_config):
        result = validate_robots_txt_generation("midnight480.com", robots_config)
        assert result.is_valid is True, result.issues
        assert result.allowed_bots == ["Googlebot", "Bingbot"]
        assert len(result.disallowed_bots) == 9
        assert "Crawl-delay: 1" in result.robots_txt

    def test_preview_domain_valid(self, robots_config):
        result = validate_robots_txt_generation(PREVIEW_HOST, robots_config)
        assert result.is_valid is True, result.issues
        assert result.allowed_bots == []
        assert result.robots_txt.startswith("User-agent: *\nDisallow: /")

    def test_conflicting_bot_lists_flagged(self):
        cfg = RobotsConfig(allowed_bots=("Googlebot",), disallowed_bots=("Googlebot",))
        result = validate_robots_txt_generation("midnight480.com", cfg)
        assert result.is_valid is False
        assert "AI bots can still fetch /: Googlebot" in result.issues

    def test_generation_error_is_failed_record(self, robots_config):
        with patch("canonical_edge.seo_validator.select_robots_txt", side_effect=RuntimeError("boom")):
            result = validate_robots_txt_generation("midnight480.com", robots_config)
        assert result.is_valid is False
        assert result.robots_txt == ""
        assert "boom" in result.issues[0]

    def test_missing_sitemap_is_issue(self, robots_config):
        body = "User-agent: *\nAllow: /\nCrawl-delay: 1"
        with patch("canonical_edge.seo_validator.select_robots_txt", return_value=(body, 60)):
            result = validate_robots_txt_generation("midnight480.com", robots_config)
        assert "Missing Sitemap directive" in result.issues
        assert "Some AI bots are not restricted" in result.issues


# ── Redirect chain ────────────────────────────────────────────────────


class TestRedirectChain:
    def test_preview_single_hop(self):
        result = validate_redirect_chain(f"https://{PREVIEW_HOST}/posts/test?utm_source=twitter", CUSTOM_DOMAIN)
        assert result.is_valid is True
        assert result.final_url == "https://midnight480.com/posts/test?utm_source=twitter"
        assert result.redirect_count == 1
        assert result.redirect_chain[0].status == 301
        assert result.redirect_chain[0].location == result.final_url
        assert result.redirect_chain[-1].status == 200

    def test_custom_domain_no_hop(self):
        url = "https://midnight480.com/posts/test"
        result = validate_redirect_chain(url, CUSTOM_DOMAIN)
        assert result.is_valid is True
        assert result.final_url == url
        assert result.redirect_count == 0

    def test_unparseable(self):
        result = validate_redirect_chain("not a url", CUSTOM_DOMAIN)
        assert result.is_valid is False
        assert result.final_url == ""
        assert result.redirect_count == 0


# ── Batch + report ────────────────────────────────────────────────────


class TestComprehensiveValidation:
    URLS = [
        "https://midnight480.com/posts/test",
        f"https://{PREVIEW_HOST}/posts/test?utm_source=twitter",
        "https://midnight480.com/",
    ]

    def test_all_green(self, canonical_config, robots_config):
        result = run_comprehensive_seo_validation(
            self.URLS, canonical_config=canonical_config, robots_config=robots_config
        )
        assert len(result.canonical_results) == 3
        assert len(result.robots_results) == 3
        assert len(result.redirect_results) == 3
        assert result.overall_score == pytest.approx(100.0)
        assert result.summary.total_issues == 0
        assert result.summary.valid_urls == 3
        assert result.summary.invalid_urls == 0

    def test_unparseable_urls_skipped(self, canonical_config, robots_config):
        result = run_comprehensive_seo_validation(
            ["not a url", "https://midnight480.com/"], canonical_config=canonical_config, robots_config=robots_config
        )
        assert len(result.canonical_results) == 1
        assert result.canonical_results[0].url == "https://midnight480.com/"

    def test_empty_input(self):
        result = run_comprehensive_seo_validation([])
        assert result.canonical_results == []
        assert result.overall_score == pytest.approx((0 + 0 + 0) / 3)

    def test_trailing_slash_lowers_score(self, canonical_config, robots_config):
        result = run_comprehensive_seo_validation(
            ["https://midnight480.com/posts/test/"], canonical_config=canonical_config, robots_config=robots_config
        )
        # canonical 80, robots 100, redirect 100
        assert result.overall_score == pytest.approx(280 / 3)
        assert result.summary.invalid_urls == 1

    def test_to_dict(self, canonical_config, robots_config):
        data = run_comprehensive_seo_validation(
            self.URLS[:1], canonical_config=canonical_config, robots_config=robots_config
        ).to_dict()
        assert data["summary"]["valid_urls"] == 1
        assert data["redirect_results"][0]["redirect_chain"][0]["status"] == 200


class TestReport:
    def test_markdown_sections(self, canonical_config, robots_config):
        result = run_comprehensive_seo_validation(
            [f"https://{PREVIEW_HOST}/posts/test"], canonical_config=canonical_config, robots_config=robots_config
        )
        report = generate_seo_validation_report(result)
        assert report.startswith("# SEO Validation Report")
        assert "## Summary" in report
        assert "- Overall score: 100.0/100" in report
        assert "## Canonical URLs" in report
        assert "## robots.txt" in report
        assert "## Redirect chains" in report
        assert "- Redirects: 1" in report
        assert f"### 1. {PREVIEW_HOST}" in report

    def test_issues_listed(self, canonical_config, robots_config):
        result = run_comprehensive_seo_validation(
            ["https://midnight480.com/posts/test/"], canonical_config=canonical_config, robots_config=robots_config
        )
        report = generate_seo_validation_report(result)
        assert "- Status: INVALID" in report
        assert "- Issues:" in report
        assert "Path mismatch" in report
