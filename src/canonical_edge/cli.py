# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""canonical-edge CLI: serve, validate, robots, canonical, env commands.

Usage:
    canonical-edge serve [--host HOST] [--port PORT] [--static-dir DIR] [--origin-url URL] [--no-redirect]
    canonical-edge validate URL [URL ...] [--json] [--min-score N]
    canonical-edge robots HOSTNAME
    canonical-edge canonical PATH [--from URL] [--http] [--keep-trailing-slash]
    canonical-edge env [validate|status]
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
import sys

from tabulate import tabulate

from .config import OPTIONAL_ENV_DEFAULTS, RECOMMENDED_ENV, Settings, validate_environment
from .errors import ConfigError


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the edge server."""
    from .app import run
    from .logging_config import configure as configure_logging

    settings = _load_settings()
    overrides: dict = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.static_dir:
        overrides["static_dir"] = args.static_dir
    if args.origin_url:
        overrides["origin_url"] = args.origin_url.rstrip("/")
    if args.no_redirect:
        overrides["enable_canonical_redirect"] = False
    try:
        settings = dataclasses.replace(settings, **overrides)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(json_output=settings.log_json, level=settings.log_level)
    run(settings)


def cmd_validate(args: argparse.Namespace) -> None:
    """Audit canonical URLs, robots.txt and redirect chains for URLs."""
    from .seo_validator import generate_seo_validation_report, run_comprehensive_seo_validation

    settings = _load_settings()
    result = run_comprehensive_seo_validation(
        args.urls,
        canonical_config=settings.canonical_config(),
        robots_config=settings.robots_config(),
    )

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(generate_seo_validation_report(result))
        rows = [
            [c.url, c.score, "ok" if r.is_valid else "FAIL", "ok" if d.is_valid else "FAIL"]
            for c, r, d in zip(result.canonical_results, result.robots_results, result.redirect_results, strict=True)
        ]
        print(tabulate(rows, headers=["URL", "Canonical", "robots.txt", "Redirect"], tablefmt="simple"))
        print(f"\nOverall score: {result.overall_score:.1f}/100")

    if result.overall_score < args.min_score:
        sys.exit(1)


def cmd_robots(args: argparse.Namespace) -> None:
    """Print the robots.txt a hostname would receive."""
    from .robots import select_robots_txt

    settings = _load_settings()
    body, max_age = select_robots_txt(args.hostname, settings.robots_config())
    print(body)
    print(f"\n# Cache-Control: public, max-age={max_age}", file=sys.stderr)


def cmd_canonical(args: argparse.Namespace) -> None:
    """Print the canonical URL for a path."""
    from .canonical_url import generate_canonical_url, generate_debug_info

    settings = _load_settings()
    config = dataclasses.replace(
        settings.canonical_config(),
        force_https=not args.http,
        normalize_trailing_slash=not args.keep_trailing_slash,
    )
    canonical = generate_canonical_url(args.path, config)
    if args.from_url:
        info = generate_debug_info(args.from_url, canonical, config)
        print(json.dumps(info.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(canonical)


def cmd_env(args: argparse.Namespace) -> None:
    """Validate the environment or show its status."""
    if args.action == "status":
        rows = []
        for key in (*RECOMMENDED_ENV, *OPTIONAL_ENV_DEFAULTS, "EDGE_ORIGIN_URL", "CF_PAGES", "CF_PAGES_URL", "CF_PAGES_BRANCH"):
            value = os.environ.get(key, "").strip()
            if value:
                rows.append([key, value, "env"])
            else:
                rows.append([key, OPTIONAL_ENV_DEFAULTS.get(key, ""), "default"])
        print(tabulate(rows, headers=["Variable", "Value", "Source"], tablefmt="simple"))
        return

    report = validate_environment()
    if report.applied_defaults:
        print("Defaults applied:")
        print(tabulate(sorted(report.applied_defaults.items()), headers=["Variable", "Default"], tablefmt="simple"))
    for warning in report.warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    for error in report.errors:
        print(f"ERROR: {error}", file=sys.stderr)
    if not report.ok:
        sys.exit(1)
    print("Environment OK")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canonical-edge",
        description="Canonical-domain edge server and SEO validation tools",
    )
    sub = parser.add_subparsers(dest="command")

    p_serve = sub.add_parser("serve", help="Run the edge server")
    p_serve.add_argument("--host", default="", help="Bind host (env: EDGE_HOST, default 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=0, help="Bind port (env: EDGE_PORT, default 8787)")
    p_serve.add_argument("--static-dir", default="", help="Built site directory (env: EDGE_STATIC_DIR)")
    p_serve.add_argument("--origin-url", default="", help="Proxy to this origin instead of static files")
    p_serve.add_argument("--no-redirect", action="store_true", help="Disable preview-domain redirects")

    p_validate = sub.add_parser("validate", help="Run SEO validation over URLs")
    p_validate.add_argument("urls", nargs="+", help="Absolute URLs to audit")
    p_validate.add_argument("--json", action="store_true", help="Emit JSON instead of a report")
    p_validate.add_argument("--min-score", type=float, default=0.0, help="Exit 1 below this overall score")

    p_robots = sub.add_parser("robots", help="Print robots.txt for a hostname")
    p_robots.add_argument("hostname")

    p_canonical = sub.add_parser("canonical", help="Print the canonical URL for a path")
    p_canonical.add_argument("path")
    p_canonical.add_argument("--from", dest="from_url", default="", help="Original URL; prints debug info")
    p_canonical.add_argument("--http", action="store_true", help="Do not force https")
    p_canonical.add_argument("--keep-trailing-slash", action="store_true")

    p_env = sub.add_parser("env", help="Validate or show the environment")
    p_env.add_argument("action", nargs="?", choices=["validate", "status"], default="validate")

    return parser


_COMMANDS = {
    "serve": cmd_serve,
    "validate": cmd_validate,
    "robots": cmd_robots,
    "canonical": cmd_canonical,
    "env": cmd_env,
}


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)
    _COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
