# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Process-wide configuration — immutable value objects seeded once from the environment.

Depends only on the stdlib and errors. Every other module receives these objects by
reference; nothing mutates them after startup.

- ``CanonicalUrlConfig`` — how canonical URLs are rendered.
- ``RobotsConfig`` — declarative bot-access policy for robots.txt.
- ``Settings`` — the fully enumerated environment bag for the edge server.
- ``default_canonical_config()`` — CUSTOM_DOMAIN-seeded config, built lazily on first use.
- ``validate_environment()`` — pre-flight report used by ``canonical-edge env``.
"""

from __future__ import annotations

import dataclasses
import functools
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

DEFAULT_CUSTOM_DOMAIN = "midnight480.com"

_TRUTHY = ("1", "true", "yes")

# RFC 1123 hostname: dot-separated labels, no leading/trailing hyphen
_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$"
)

# Apex domain with a TLD, e.g. midnight480.com
_APEX_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]{1,61}[a-zA-Z0-9]\.[a-zA-Z]{2,}$")


def is_valid_hostname(value: str) -> bool:
    """True if *value* is a syntactically valid DNS hostname."""
    return bool(value) and _HOSTNAME_RE.match(value) is not None


# ── Canonical URL config ──────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CanonicalUrlConfig:
    """Immutable canonical URL rendering options."""

    custom_domain: str = DEFAULT_CUSTOM_DOMAIN
    force_https: bool = True
    preserve_query: bool = False  # canonical tags never carry tracking parameters
    normalize_trailing_slash: bool = True

    def __post_init__(self) -> None:
        if not is_valid_hostname(self.custom_domain):
            raise ConfigError(f"custom_domain must be a valid hostname, got {self.custom_domain!r}", key="CUSTOM_DOMAIN")


# ── Robots config ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CacheMaxAge:
    """robots.txt cache lifetimes in seconds."""

    normal: int = 86400  # 24h
    restrictive: int = 3600  # 1h

    def __post_init__(self) -> None:
        if self.normal < 0 or self.restrictive < 0:
            raise ConfigError(f"cache max-age must be >= 0, got {self.normal}/{self.restrictive}")


@dataclass(frozen=True, slots=True)
class RobotsConfig:
    """Immutable bot-access policy."""

    custom_domain: str = DEFAULT_CUSTOM_DOMAIN
    allowed_bots: tuple[str, ...] = ("Googlebot", "Bingbot")
    disallowed_bots: tuple[str, ...] = (
        "GPTBot",
        "ChatGPT-User",
        "CCBot",
        "anthropic-ai",
        "Claude-Web",
        "PerplexityBot",
        "YouBot",
        "Meta-ExternalAgent",
        "FacebookBot",
    )
    crawl_delay: int = 1
    cache_max_age: CacheMaxAge = field(default_factory=CacheMaxAge)

    def __post_init__(self) -> None:
        if not is_valid_hostname(self.custom_domain):
            raise ConfigError(f"custom_domain must be a valid hostname, got {self.custom_domain!r}", key="CUSTOM_DOMAIN")
        if self.crawl_delay < 0:
            raise ConfigError(f"crawl_delay must be >= 0, got {self.crawl_delay}")


ROBOTS_CONFIG = RobotsConfig()


# ── Environment helpers ───────────────────────────────────────────────


def _env_str(environ: Mapping[str, str], key: str, default: str = "") -> str:
    return environ.get(key, "").strip() or default


def _env_flag(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key, "").strip().lower()
    if not raw:
        return default
    return raw in _TRUTHY


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}", key=key) from None


# ── Settings ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Settings:
    """Everything the edge server reads from the environment, with defaults.

    Built once by :meth:`from_env` and passed to the app factory.
    """

    custom_domain: str = DEFAULT_CUSTOM_DOMAIN
    base_path: str = "/"
    force_https: bool = True
    enable_canonical_redirect: bool = True
    cf_pages: bool = False
    cf_pages_url: str = ""
    cf_pages_branch: str = ""
    host: str = "127.0.0.1"
    port: int = 8787
    origin_url: str = ""
    static_dir: str = "dist"
    log_json: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not is_valid_hostname(self.custom_domain):
            raise ConfigError(f"CUSTOM_DOMAIN must be a valid hostname, got {self.custom_domain!r}", key="CUSTOM_DOMAIN")
        if not 0 < self.port < 65536:
            raise ConfigError(f"EDGE_PORT must be in 1..65535, got {self.port}", key="EDGE_PORT")
        if not self.base_path.startswith("/"):
            raise ConfigError(f"BASE_PATH must start with '/', got {self.base_path!r}", key="BASE_PATH")
        if self.origin_url and not self.origin_url.startswith(("http://", "https://")):
            raise ConfigError(f"EDGE_ORIGIN_URL must be an http(s) URL, got {self.origin_url!r}", key="EDGE_ORIGIN_URL")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from *environ* (defaults to ``os.environ``).

        Raises:
            ConfigError: If a value is present but malformed.
        """
        env = os.environ if environ is None else environ
        return cls(
            custom_domain=_env_str(env, "CUSTOM_DOMAIN", DEFAULT_CUSTOM_DOMAIN).lower(),
            base_path=_env_str(env, "BASE_PATH", "/"),
            force_https=_env_flag(env, "FORCE_HTTPS", True),
            enable_canonical_redirect=_env_flag(env, "ENABLE_CANONICAL_REDIRECT", True),
            cf_pages=_env_flag(env, "CF_PAGES", False),
            cf_pages_url=_env_str(env, "CF_PAGES_URL"),
            cf_pages_branch=_env_str(env, "CF_PAGES_BRANCH"),
            host=_env_str(env, "EDGE_HOST", "127.0.0.1"),
            port=_env_int(env, "EDGE_PORT", 8787),
            origin_url=_env_str(env, "EDGE_ORIGIN_URL").rstrip("/"),
            static_dir=_env_str(env, "EDGE_STATIC_DIR", "dist"),
            log_json=_env_flag(env, "EDGE_LOG_JSON", False),
            log_level=_env_str(env, "EDGE_LOG_LEVEL", "INFO").upper(),
        )

    def canonical_config(self) -> CanonicalUrlConfig:
        return CanonicalUrlConfig(custom_domain=self.custom_domain, force_https=self.force_https)

    def robots_config(self) -> RobotsConfig:
        return dataclasses.replace(ROBOTS_CONFIG, custom_domain=self.custom_domain)


@functools.cache
def default_canonical_config() -> CanonicalUrlConfig:
    """Canonical config from CUSTOM_DOMAIN, built on first use and then reused.

    Raises:
        ConfigError: If CUSTOM_DOMAIN is set but not a valid hostname.
    """
    domain = os.environ.get("CUSTOM_DOMAIN", "").strip().lower() or DEFAULT_CUSTOM_DOMAIN
    return CanonicalUrlConfig(custom_domain=domain)


# ── Environment validation ────────────────────────────────────────────

RECOMMENDED_ENV: tuple[str, ...] = ("CUSTOM_DOMAIN",)

OPTIONAL_ENV_DEFAULTS: dict[str, str] = {
    "BASE_PATH": "/",
    "FORCE_HTTPS": "true",
    "ENABLE_CANONICAL_REDIRECT": "true",
    "EDGE_HOST": "127.0.0.1",
    "EDGE_PORT": "8787",
    "EDGE_STATIC_DIR": "dist",
    "EDGE_LOG_JSON": "false",
    "EDGE_LOG_LEVEL": "INFO",
}


@dataclass
class EnvironmentReport:
    """Result of :func:`validate_environment`."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    applied_defaults: dict[str, str] = field(default_factory=dict)
    present: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _check_format(key: str, value: str) -> str | None:
    """Return an error message if *value* is malformed for *key*."""
    if key == "CUSTOM_DOMAIN" and not is_valid_hostname(value):
        return f"CUSTOM_DOMAIN is not a valid hostname: {value!r}"
    if key == "EDGE_PORT":
        try:
            port = int(value)
        except ValueError:
            return f"EDGE_PORT is not an integer: {value!r}"
        if not 0 < port < 65536:
            return f"EDGE_PORT out of range: {port}"
    if key == "EDGE_ORIGIN_URL" and not value.startswith(("http://", "https://")):
        return f"EDGE_ORIGIN_URL must start with http:// or https://: {value!r}"
    if key == "BASE_PATH" and not value.startswith("/"):
        return f"BASE_PATH must start with '/': {value!r}"
    return None


def validate_environment(environ: Mapping[str, str] | None = None) -> EnvironmentReport:
    """Check the edge environment without mutating it.

    Recommended variables that are missing produce warnings, malformed
    values produce errors, and unset optional variables are reported with
    the default that :meth:`Settings.from_env` will apply.
    """
    env = os.environ if environ is None else environ
    report = EnvironmentReport()

    for key in RECOMMENDED_ENV:
        value = env.get(key, "").strip()
        if not value:
            report.warnings.append(f"recommended variable {key} is not set (default {DEFAULT_CUSTOM_DOMAIN})")
            continue
        report.present[key] = value
        problem = _check_format(key, value)
        if problem:
            report.errors.append(problem)
        elif key == "CUSTOM_DOMAIN" and not _APEX_DOMAIN_RE.match(value):
            report.warnings.append(f"CUSTOM_DOMAIN {value!r} is not an apex domain; www. aliasing may not apply")

    for key, default in OPTIONAL_ENV_DEFAULTS.items():
        value = env.get(key, "").strip()
        if not value:
            report.applied_defaults[key] = default
            continue
        report.present[key] = value
        problem = _check_format(key, value)
        if problem:
            report.errors.append(problem)

    origin = env.get("EDGE_ORIGIN_URL", "").strip()
    if origin:
        report.present["EDGE_ORIGIN_URL"] = origin
        problem = _check_format("EDGE_ORIGIN_URL", origin)
        if problem:
            report.errors.append(problem)
        elif env.get("EDGE_STATIC_DIR", "").strip():
            report.warnings.append("both EDGE_ORIGIN_URL and EDGE_STATIC_DIR are set; the origin URL takes precedence")
    else:
        static_dir = env.get("EDGE_STATIC_DIR", "").strip() or OPTIONAL_ENV_DEFAULTS["EDGE_STATIC_DIR"]
        if not Path(static_dir).is_dir():
            report.warnings.append(f"static directory {static_dir!r} does not exist")

    return report
