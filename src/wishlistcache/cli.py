"""wishlist-cache CLI.

Subcommands:
  generate  -> poll GitHub issues and write the wishlist cache JSON
  summary   -> human-readable counts for an existing cache file
  validate  -> check a cache file against the JSON Schema
  schema    -> write the cache JSON Schema
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import requests

from wishlistcache.aggregate import top_entries
from wishlistcache.cache_store import CacheError, load_cache
from wishlistcache.config import (
    CONFIG_DEFAULT,
    RESOLVER_POLICIES,
    CacheConfig,
    ConfigError,
    load_config,
)
from wishlistcache.env_auth import EnvAuthConfig, create_env_auth_manager
from wishlistcache.errors import classify_error
from wishlistcache.github_rest import GitHubAPIError, GitHubRestClient
from wishlistcache.logging import configure_logging, get_logger
from wishlistcache.models import CacheStats
from wishlistcache.orchestrator import generate_cache
from wishlistcache.schema_registry import get_schema_descriptor
from wishlistcache.schemas import get_cache_schema, validate_cache_document

REPO_HELP = "Override target repository (owner/repo)"
CONFIG_HELP = f"Config file (default: {CONFIG_DEFAULT} when present)"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="wishlist-cache",
        description="Build the OSS wishlist cache from GitHub issue forms",
        formatter_class=_HelpFormatter,
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors (env: WISHLISTCACHE_QUIET=1)",
    )
    p.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    sub = p.add_subparsers(dest="cmd", required=True, metavar="<command>")

    pg = sub.add_parser("generate", help="Fetch issues and write the cache file")
    pg.add_argument("--config", help=CONFIG_HELP)
    pg.add_argument("--repo", help=REPO_HELP)
    pg.add_argument("--output", type=Path, help="Cache file path")
    pg.add_argument("--policy", choices=RESOLVER_POLICIES, help="Form edit resolution policy")
    pg.add_argument(
        "--approved-only",
        action="store_true",
        help="List only issues carrying the approved label",
    )
    pg.add_argument("--dry-run", action="store_true", help="Build but do not write the cache")

    psm = sub.add_parser("summary", help="Summarize an existing cache file")
    psm.add_argument("--config", help=CONFIG_HELP)
    psm.add_argument("--cache", type=Path, help="Cache file path")
    psm.add_argument("--limit", type=int, default=5, help="Top ecosystems/services to show")

    pv = sub.add_parser("validate", help="Validate a cache file against the schema")
    pv.add_argument("--config", help=CONFIG_HELP)
    pv.add_argument("--cache", type=Path, help="Cache file path")

    psc = sub.add_parser("schema", help="Write the cache JSON Schema")
    psc.add_argument("--output", type=Path, help="Destination (default: registry filename)")
    psc.add_argument("--stdout", action="store_true", help="Print instead of writing a file")
    return p


def prepare_config(args: argparse.Namespace) -> CacheConfig:
    cfg = load_config(getattr(args, "config", None))
    if getattr(args, "repo", None):
        cfg.github_repo = args.repo
    if getattr(args, "policy", None):
        cfg.resolver_policy = args.policy
    if getattr(args, "approved_only", False):
        cfg.approved_only = True
    return cfg


def _build_client(cfg: CacheConfig) -> GitHubRestClient:
    auth = create_env_auth_manager(
        EnvAuthConfig(
            load_dotenv=cfg.env_auth_load_dotenv,
            dotenv_path=cfg.env_auth_dotenv_path,
        )
    )
    token = auth.get_github_token()
    if not token:
        get_logger().warning(
            "No GitHub token found (set GITHUB_TOKEN); using unauthenticated requests"
        )
    return GitHubRestClient(token=token, repo=cfg.github_repo, base_url=cfg.github_api_url)


def _print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)


def _summary_lines(stats: CacheStats, *, limit: int) -> list[str]:
    lines = [
        f"Wishlists: {stats.total} (approved {stats.approved}, pending {stats.pending})",
        f"Ecosystems: {len(stats.ecosystem_stats)} distinct",
    ]
    lines += [f"  {name}: {count}" for name, count in top_entries(stats.ecosystem_stats, limit)]
    lines.append(f"Services: {len(stats.service_stats)} distinct")
    lines += [f"  {name}: {count}" for name, count in top_entries(stats.service_stats, limit)]
    return lines


def _stats_from_document(document: dict[str, Any]) -> CacheStats:
    return CacheStats(
        total=int(document.get("totalWishlists", 0)),
        approved=int(document.get("approvedCount", 0)),
        pending=int(document.get("pendingCount", 0)),
        ecosystem_stats=dict(document.get("ecosystemStats") or {}),
        service_stats=dict(document.get("serviceStats") or {}),
    )


def _report_fatal(context: str, exc: BaseException) -> int:
    info = classify_error(exc)
    get_logger().log_error(
        f"{context} failed", error=info.message, category=info.category
    )
    print(f"ERROR: {context} failed [{info.category}]: {info.message}", file=sys.stderr)
    return 1


def _cmd_generate(cfg: CacheConfig, args: argparse.Namespace) -> int:
    client = _build_client(cfg)
    try:
        result = generate_cache(cfg, client, dry_run=args.dry_run, output=args.output)
    except (GitHubAPIError, requests.RequestException, CacheError) as exc:
        return _report_fatal("cache generation", exc)

    _print_lines(_summary_lines(result.stats, limit=5))
    if result.written:
        print(f"Cache written: {result.path}")
    else:
        print(f"Dry run: {result.path} not written")
    return 0


def _cmd_summary(cfg: CacheConfig, args: argparse.Namespace) -> int:
    path = args.cache or cfg.cache_file
    try:
        document = load_cache(path)
    except CacheError as exc:
        return _report_fatal("reading cache", exc)
    print(f"Cache: {path} (generated {document.get('generatedAt', 'unknown')})")
    _print_lines(_summary_lines(_stats_from_document(document), limit=args.limit))
    return 0


def _cmd_validate(cfg: CacheConfig, args: argparse.Namespace) -> int:
    path = args.cache or cfg.cache_file
    try:
        document = load_cache(path)
    except CacheError as exc:
        return _report_fatal("reading cache", exc)
    problems = validate_cache_document(document)
    if problems:
        print(f"Invalid cache {path}:", file=sys.stderr)
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        return 1
    print(f"Valid cache {path}: {document.get('totalWishlists', 0)} wishlists")
    return 0


def _cmd_schema(args: argparse.Namespace) -> int:
    schema_text = json.dumps(get_cache_schema(), indent=2) + "\n"
    if args.stdout:
        sys.stdout.write(schema_text)
        return 0
    target = args.output or Path(get_schema_descriptor("cache").filename)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(schema_text, encoding="utf-8")
    print(f"Schema written: {target}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("WISHLISTCACHE_QUIET") == "1":
        args.quiet = True

    if args.cmd == "schema":
        configure_logging(json_logging=args.json_logs, level="WARNING" if args.quiet else "INFO")
        return _cmd_schema(args)

    try:
        cfg = prepare_config(args)
    except ConfigError as exc:
        configure_logging(json_logging=args.json_logs)
        return _report_fatal("loading configuration", exc)

    level = "WARNING" if args.quiet else cfg.logging_level
    configure_logging(json_logging=args.json_logs or cfg.logging_json_enabled, level=level)

    handlers = {
        "generate": lambda: _cmd_generate(cfg, args),
        "summary": lambda: _cmd_summary(cfg, args),
        "validate": lambda: _cmd_validate(cfg, args),
    }
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return handler()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
