# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Offline SEO auditor for canonical URLs, robots.txt and redirect chains.

Runs the real builders (canonical URL, robots policy, redirect target)
against sample URLs and scores compliance. Each validator is pure and
returns a result record; failures inside one validator become a failed
record, never an exception.

Usage:
    from canonical_edge.seo_validator import run_comprehensive_seo_validation, generate_seo_validation_report
    result = run_comprehensive_seo_validation(["https://midnight480.com/posts/test"])
    print(generate_seo_validation_report(result))
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from protego import Protego

from .canonical_url import generate_canonical_url, validate_canonical_url
from .config import ROBOTS_CONFIG, CanonicalUrlConfig, RobotsConfig, default_canonical_config
from .domain import is_platform_preview_domain
from .edge import build_redirect_url
from .robots import select_robots_txt

logger = logging.getLogger(__name__)

_ISSUE_PENALTY = 20
_RECOMMENDATION_PENALTY = 5
_MAX_REDIRECT_CHAIN = 3
_REPEATED_SLASHES = re.compile(r"/{2,}")
# Any agent not named in the policy falls under the wildcard group
_GENERIC_AGENT = "GenericCrawler"


# ── Result types ─────────────────────────────────────────────────────────────


@dataclass
class SeoValidationResult:
    """Canonical URL accuracy for one page."""

    url: str
    canonical_url: str
    is_valid: bool
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    score: int = 0  # 0-100


@dataclass
class RobotsValidationResult:
    domain: str
    robots_txt: str
    is_valid: bool
    issues: list[str] = field(default_factory=list)
    allowed_bots: list[str] = field(default_factory=list)
    disallowed_bots: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RedirectHop:
    url: str
    status: int
    location: str | None = None


@dataclass
class RedirectChainResult:
    original_url: str
    final_url: str
    redirect_chain: list[RedirectHop] = field(default_factory=list)
    is_valid: bool = False
    issues: list[str] = field(default_factory=list)

    @property
    def redirect_count(self) -> int:
        return max(len(self.redirect_chain) - 1, 0)


@dataclass(frozen=True)
class ValidationSummary:
    total_issues: int
    total_recommendations: int
    valid_urls: int
    invalid_urls: int


@dataclass
class ComprehensiveValidationResult:
    canonical_results: list[SeoValidationResult]
    robots_results: list[RobotsValidationResult]
    redirect_results: list[RedirectChainResult]
    overall_score: float
    summary: ValidationSummary

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def _score(issues: list[str], recommendations: list[str]) -> int:
    score = 100 - len(issues) * _ISSUE_PENALTY - len(recommendations) * _RECOMMENDATION_PENALTY
    return max(0, score)


def _require_absolute(url: str):
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"not an absolute URL: {url!r}")
    return parts


# ── Canonical URL ────────────────────────────────────────────────────────────


def validate_canonical_url_accuracy(
    page_url: str,
    expected_path: str,
    config: CanonicalUrlConfig | None = None,
) -> SeoValidationResult:
    """Check the canonical URL rendered for *expected_path*.

    Hard failures (−20 each): invalid canonical, preview host, non-HTTPS,
    path mismatch. Recommendations (−5 each): duplicate slashes, trailing slash.
    """
    issues: list[str] = []
    recommendations: list[str] = []
    try:
        _require_absolute(page_url)
        canonical_url = generate_canonical_url(expected_path, config or default_canonical_config())
        canonical = urlsplit(canonical_url)
        canonical_host = canonical.hostname or ""
        canonical_path = canonical.path or "/"
    except ValueError as e:
        return SeoValidationResult(
            url=page_url,
            canonical_url="",
            is_valid=False,
            issues=[f"URL parse error: {e}"],
            recommendations=["Provide a valid absolute URL"],
            score=0,
        )

    if not validate_canonical_url(canonical_url):
        issues.append("Canonical URL is not a valid https URL on the custom domain")

    if is_platform_preview_domain(canonical_host):
        issues.append("Canonical URL uses the platform preview domain")
        recommendations.append("Use the custom domain for canonical URLs")

    if canonical.scheme != "https":
        issues.append("Canonical URL does not use HTTPS")
        recommendations.append("Serve canonical URLs over HTTPS")

    collapsed_path = _REPEATED_SLASHES.sub("/", expected_path)
    if collapsed_path != expected_path:
        recommendations.append("Collapse duplicate slashes in the path")

    if canonical_path != collapsed_path:
        issues.append(f"Path mismatch: {canonical_path} vs {expected_path}")

    if canonical_path != "/" and canonical_path.endswith("/"):
        recommendations.append("Use a consistent trailing-slash policy")

    return SeoValidationResult(
        url=page_url,
        canonical_url=canonical_url,
        is_valid=not issues,
        issues=issues,
        recommendations=recommendations,
        score=_score(issues, recommendations),
    )


# ── robots.txt ───────────────────────────────────────────────────────────────


def validate_robots_txt_generation(domain: str, config: RobotsConfig | None = None) -> RobotsValidationResult:
    """Render the robots.txt *domain* would receive and check its directives."""
    cfg = config or ROBOTS_CONFIG
    preview = is_platform_preview_domain(domain)
    issues: list[str] = []
    try:
        robots_txt, _max_age = select_robots_txt(domain, cfg)
        parsed = Protego.parse(robots_txt)
    except Exception as e:
        logger.warning("robots.txt generation failed for %s", domain, exc_info=True)
        return RobotsValidationResult(
            domain=domain,
            robots_txt="",
            is_valid=False,
            issues=[f"robots.txt generation error: {e}"],
        )

    if "User-agent:" not in robots_txt:
        issues.append("Missing User-agent directive")
    if "Sitemap:" not in robots_txt:
        issues.append("Missing Sitemap directive")

    root_url = f"https://{cfg.custom_domain}/"
    sitemap_url = f"https://{cfg.custom_domain}/sitemap.xml"
    if sitemap_url not in list(parsed.sitemaps):
        issues.append(f"Sitemap does not point at {sitemap_url}")

    if preview:
        if "Disallow: /" not in robots_txt or parsed.can_fetch(root_url, _GENERIC_AGENT):
            issues.append("Preview domain does not disallow crawling")
        if "canonical domain" not in robots_txt:
            issues.append("Missing pointer to the canonical domain")
    else:
        if "Allow: /" not in robots_txt or not parsed.can_fetch(root_url, _GENERIC_AGENT):
            issues.append("Custom domain does not allow crawling")
        if "Crawl-delay:" not in robots_txt:
            issues.append("Missing Crawl-delay directive")
        blocked_search_bots = [bot for bot in cfg.allowed_bots if not parsed.can_fetch(root_url, bot)]
        if blocked_search_bots:
            issues.append(f"Search bots blocked: {', '.join(blocked_search_bots)}")

    listed = [bot for bot in cfg.disallowed_bots if f"User-agent: {bot}" in robots_txt]
    if len(listed) != len(cfg.disallowed_bots):
        issues.append("Some AI bots are not restricted")
    unrestricted = [bot for bot in cfg.disallowed_bots if parsed.can_fetch(root_url, bot)]
    if unrestricted:
        issues.append(f"AI bots can still fetch /: {', '.join(unrestricted)}")

    return RobotsValidationResult(
        domain=domain,
        robots_txt=robots_txt,
        is_valid=not issues,
        issues=issues,
        allowed_bots=[] if preview else list(cfg.allowed_bots),
        disallowed_bots=list(cfg.disallowed_bots),
    )


# ── Redirect chain ───────────────────────────────────────────────────────────


def validate_redirect_chain(original_url: str, custom_domain: str | None = None) -> RedirectChainResult:
    """Simulate the edge: one 301 hop for preview hosts, none otherwise."""
    domain = custom_domain or default_canonical_config().custom_domain
    try:
        parts = _require_absolute(original_url)
        hostname = parts.hostname or ""
        if not is_platform_preview_domain(hostname):
            return RedirectChainResult(
                original_url=original_url,
                final_url=original_url,
                redirect_chain=[RedirectHop(url=original_url, status=200)],
                is_valid=True,
            )
        location = build_redirect_url(original_url, domain)
    except ValueError as e:
        return RedirectChainResult(
            original_url=original_url,
            final_url="",
            is_valid=False,
            issues=[f"Redirect chain error: {e}"],
        )

    chain = [
        RedirectHop(url=original_url, status=301, location=location),
        RedirectHop(url=location, status=200),
    ]
    issues: list[str] = []
    if len(chain) > _MAX_REDIRECT_CHAIN:
        issues.append(f"Redirect chain too long (more than {_MAX_REDIRECT_CHAIN})")
    if chain[0].status != 301:
        issues.append("First hop is not a permanent (301) redirect")
    final_url = chain[-1].url
    if is_platform_preview_domain(urlsplit(final_url).hostname or ""):
        issues.append("Final URL is still on the preview domain")

    return RedirectChainResult(
        original_url=original_url,
        final_url=final_url,
        redirect_chain=chain,
        is_valid=not issues,
        issues=issues,
    )


# ── Batch ────────────────────────────────────────────────────────────────────


def run_comprehensive_seo_validation(
    urls: list[str],
    *,
    canonical_config: CanonicalUrlConfig | None = None,
    robots_config: RobotsConfig | None = None,
) -> ComprehensiveValidationResult:
    """Run all three validators over *urls* and aggregate an overall score.

    Overall score = mean of (average canonical score, % valid robots,
    % valid redirect chains). URLs that do not parse are logged and skipped.
    """
    canonical_cfg = canonical_config or default_canonical_config()
    canonical_results: list[SeoValidationResult] = []
    robots_results: list[RobotsValidationResult] = []
    redirect_results: list[RedirectChainResult] = []

    for url in urls:
        try:
            parts = _require_absolute(url)
        except ValueError:
            logger.warning("Skipping unparseable URL: %s", url)
            continue
        canonical_results.append(validate_canonical_url_accuracy(url, parts.path or "/", canonical_cfg))
        robots_results.append(validate_robots_txt_generation(parts.hostname or "", robots_config))
        redirect_results.append(validate_redirect_chain(url, canonical_cfg.custom_domain))

    total_issues = sum(len(r.issues) for r in (*canonical_results, *robots_results, *redirect_results))
    total_recommendations = sum(len(r.recommendations) for r in canonical_results)
    valid_urls = sum(1 for r in canonical_results if r.is_valid)

    avg_canonical = sum(r.score for r in canonical_results) / len(canonical_results) if canonical_results else 0.0
    robots_score = sum(1 for r in robots_results if r.is_valid) / max(len(robots_results), 1) * 100
    redirect_score = sum(1 for r in redirect_results if r.is_valid) / max(len(redirect_results), 1) * 100

    return ComprehensiveValidationResult(
        canonical_results=canonical_results,
        robots_results=robots_results,
        redirect_results=redirect_results,
        overall_score=(avg_canonical + robots_score + redirect_score) / 3,
        summary=ValidationSummary(
            total_issues=total_issues,
            total_recommendations=total_recommendations,
            valid_urls=valid_urls,
            invalid_urls=len(canonical_results) - valid_urls,
        ),
    )


# ── Report ───────────────────────────────────────────────────────────────────


def _status(valid: bool) -> str:
    return "valid" if valid else "INVALID"


def _bullets(title: str, items: list[str]) -> list[str]:
    if not items:
        return []
    return [f"- {title}:", *(f"  - {item}" for item in items)]


def generate_seo_validation_report(result: ComprehensiveValidationResult) -> str:
    """Render *result* as a Markdown report."""
    s = result.summary
    lines = [
        "# SEO Validation Report",
        "",
        "## Summary",
        f"- Overall score: {result.overall_score:.1f}/100",
        f"- URLs checked: {len(result.canonical_results)}",
        f"- Valid URLs: {s.valid_urls}",
        f"- Invalid URLs: {s.invalid_urls}",
        f"- Total issues: {s.total_issues}",
        f"- Total recommendations: {s.total_recommendations}",
        "",
        "## Canonical URLs",
        "",
    ]
    for i, r in enumerate(result.canonical_results, 1):
        lines += [
            f"### {i}. {r.url}",
            f"- Canonical URL: {r.canonical_url}",
            f"- Status: {_status(r.is_valid)}",
            f"- Score: {r.score}/100",
            *_bullets("Issues", r.issues),
            *_bullets("Recommendations", r.recommendations),
            "",
        ]

    lines += ["## robots.txt", ""]
    for i, r in enumerate(result.robots_results, 1):
        lines += [
            f"### {i}. {r.domain}",
            f"- Status: {_status(r.is_valid)}",
            f"- Allowed bots: {len(r.allowed_bots)}",
            f"- Disallowed bots: {len(r.disallowed_bots)}",
            *_bullets("Issues", r.issues),
            "",
        ]

    lines += ["## Redirect chains", ""]
    for i, r in enumerate(result.redirect_results, 1):
        lines += [
            f"### {i}. {r.original_url}",
            f"- Final URL: {r.final_url}",
            f"- Redirects: {r.redirect_count}",
            f"- Status: {_status(r.is_valid)}",
            *_bullets("Issues", r.issues),
            "",
        ]

    return "\n".join(lines)
