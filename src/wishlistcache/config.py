from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, cast

import yaml

from .github_rest import DEFAULT_API_URL

CONFIG_DEFAULT = 'wishlist_cache.config.yaml'
DEFAULT_REPO = 'oss-wishlist/wishlists'
DEFAULT_APPROVED_LABEL = 'approved-wishlist'
DEFAULT_BOT_LOGIN = 'oss-wishlist-bot'
DEFAULT_FULFILL_URL_TEMPLATE = 'https://oss-wishlist.com/fulfill?issue={number}'
DEFAULT_CACHE_FILE = 'all-wishlists.json'

POLICY_LATEST_BOT_COMMENT = 'latest-bot-comment'
POLICY_RECENCY_WINDOW = 'recency-window'
RESOLVER_POLICIES = (POLICY_LATEST_BOT_COMMENT, POLICY_RECENCY_WINDOW)

ISSUE_STATES = ('open', 'closed', 'all')


class ConfigError(RuntimeError):
    pass


@dataclass
class CacheConfig:
    # GitHub
    github_repo: str
    github_api_url: str
    issue_state: str
    approved_label: str
    approved_only: bool
    bot_login: str
    # Form resolution
    resolver_policy: str
    resolver_window_minutes: int
    # Output
    fulfill_url_template: str
    cache_file: Path
    output_indent: int
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str
    # Concurrency configuration
    concurrency_enabled: bool
    concurrency_max_workers: int
    concurrency_batch_size: int
    # Environment authentication configuration
    env_auth_load_dotenv: bool
    env_auth_dotenv_path: str | None

    @property
    def resolver_window(self) -> timedelta:
        return timedelta(minutes=self.resolver_window_minutes)


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:], value)  # Fallback to original if not found
    return value


_TRUE_STRINGS = frozenset({'1', 'true', 'yes', 'on'})
_FALSE_STRINGS = frozenset({'0', 'false', 'no', 'off', ''})


def _as_bool(value: Any) -> bool:
    """YAML booleans pass through; ``$VAR`` values arrive as strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f'expected a boolean, got {value!r}')


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return {k: _resolve_env_var(v) for k, v in value.items()}


def _validate(cfg: CacheConfig) -> CacheConfig:
    if cfg.resolver_policy not in RESOLVER_POLICIES:
        raise ConfigError(
            f"Unknown resolver policy '{cfg.resolver_policy}' "
            f"(expected one of: {', '.join(RESOLVER_POLICIES)})"
        )
    if cfg.issue_state not in ISSUE_STATES:
        raise ConfigError(f"Unknown issue state '{cfg.issue_state}'")
    if '/' not in cfg.github_repo:
        raise ConfigError(f"github.repo must look like owner/repo, got '{cfg.github_repo}'")
    if cfg.resolver_window_minutes < 0:
        raise ConfigError('resolver.window_minutes must be >= 0')
    if cfg.concurrency_max_workers < 1 or cfg.concurrency_batch_size < 1:
        raise ConfigError('concurrency.max_workers and batch_size must be >= 1')
    return cfg


def build_config(raw: dict[str, Any], base_dir: Path | None = None) -> CacheConfig:
    gh = _section(raw, 'github')
    resolver = _section(raw, 'resolver')
    site = _section(raw, 'site')
    out = _section(raw, 'output')
    logging_config = _section(raw, 'logging')
    concurrency_config = _section(raw, 'concurrency')
    env_auth = _section(raw, 'environment')

    env_output = os.environ.get('WISHLISTCACHE_OUTPUT')
    cache_file = Path(env_output or out.get('cache_file', DEFAULT_CACHE_FILE))
    if not env_output and base_dir is not None and not cache_file.is_absolute():
        cache_file = base_dir / cache_file

    try:
        cfg = CacheConfig(
            github_repo=str(os.environ.get('WISHLISTCACHE_REPO') or gh.get('repo', DEFAULT_REPO)),
            github_api_url=str(gh.get('api_url', DEFAULT_API_URL)),
            issue_state=str(gh.get('state', 'open')),
            approved_label=str(gh.get('approved_label', DEFAULT_APPROVED_LABEL)),
            approved_only=_as_bool(gh.get('approved_only', False)),
            bot_login=str(gh.get('bot_login', DEFAULT_BOT_LOGIN)),
            resolver_policy=str(resolver.get('policy', POLICY_LATEST_BOT_COMMENT)),
            resolver_window_minutes=int(resolver.get('window_minutes', 60)),
            fulfill_url_template=str(
                site.get('fulfill_url_template', DEFAULT_FULFILL_URL_TEMPLATE)
            ),
            cache_file=cache_file,
            output_indent=int(out.get('indent', 2)),
            logging_json_enabled=_as_bool(logging_config.get('json_enabled', False)),
            logging_level=str(logging_config.get('level', 'INFO')),
            concurrency_enabled=_as_bool(concurrency_config.get('enabled', True)),
            concurrency_max_workers=int(concurrency_config.get('max_workers', 8)),
            concurrency_batch_size=int(concurrency_config.get('batch_size', 20)),
            env_auth_load_dotenv=_as_bool(env_auth.get('load_dotenv', True)),
            env_auth_dotenv_path=env_auth.get('dotenv_path'),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'Invalid configuration value: {exc}') from exc
    return _validate(cfg)


def default_config() -> CacheConfig:
    return build_config({})


def load_config(path: str | Path | None = None) -> CacheConfig:
    """Load config from YAML; ``None`` falls back to the default file if present."""
    if path is None:
        candidate = Path(CONFIG_DEFAULT)
        if not candidate.exists():
            return default_config()
        path = candidate
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        loaded = yaml.safe_load(p.read_text(encoding='utf-8')) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f'Configuration root in {p} must be a mapping')
    return build_config(cast(dict[str, Any], loaded), base_dir=p.parent)


__all__ = [
    'CONFIG_DEFAULT',
    'POLICY_LATEST_BOT_COMMENT',
    'POLICY_RECENCY_WINDOW',
    'RESOLVER_POLICIES',
    'CacheConfig',
    'ConfigError',
    'build_config',
    'default_config',
    'load_config',
]
