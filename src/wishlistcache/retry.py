"""Centralized retry / backoff helpers.

Provides ``run_with_retries`` which wraps a single HTTP call with
exponential backoff plus jitter. Only transient GitHub failure modes are
retried (rate limits, gateway errors, dropped connections); every other
error propagates on the first attempt.

Environment overrides:
  WISHLISTCACHE_RETRY_ATTEMPTS (default 3)
  WISHLISTCACHE_RETRY_BASE (seconds base, default 0.5)
  WISHLISTCACHE_RETRY_MAX_SLEEP (cap for a single sleep, unset by default)
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import requests

from .logging import get_logger

T = TypeVar("T")

TRANSIENT_TOKENS = (
    "rate limit",
    "abuse detection",
    "secondary rate",
)
TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})
FORBIDDEN_STATUS = 403

_RE_RETRY_AFTER = re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE)
_RE_SECONDS_HINT = re.compile(r"wait\s*(\d+)\s*seconds", re.IGNORECASE)
_JITTER = random.SystemRandom()


class TransientHTTPError(RuntimeError):
    """Raised by callers to flag a retryable HTTP response."""

    def __init__(self, response: requests.Response):
        super().__init__(f"transient HTTP {response.status_code}")
        self.response = response


def _extract_explicit_backoff(text: str) -> float | None:
    """Extract an explicit backoff (seconds) from a header or message.

    Supports patterns like:
      Retry-After: 12
      retry after 12
      wait 30 seconds
    Returns None if no valid positive value found.
    """
    if not text:
        return None
    for pattern in (_RE_RETRY_AFTER, _RE_SECONDS_HINT):
        m = pattern.search(text)
        if m:
            val = float(m.group(1))
            return val if val > 0 else None
    return None


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("WISHLISTCACHE_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(
        default_factory=lambda: _env_float("WISHLISTCACHE_RETRY_BASE", 0.5)
    )


def is_transient(output: str) -> bool:
    out_lower = output.lower()
    return any(tok in out_lower for tok in TRANSIENT_TOKENS)


def is_transient_response(response: requests.Response) -> bool:
    if response.status_code in TRANSIENT_STATUSES:
        return True
    if response.status_code == FORBIDDEN_STATUS:
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        return is_transient(response.text or "")
    return False


def _compute_sleep(attempt: int, cfg: RetryConfig, hint: str) -> float:
    explicit = _extract_explicit_backoff(hint)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("WISHLISTCACHE_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def _retry_hint(exc: BaseException) -> str:
    if isinstance(exc, TransientHTTPError):
        retry_after = exc.response.headers.get("Retry-After")
        if retry_after:
            return f"Retry-After: {retry_after}"
        return exc.response.text or ""
    return str(exc)


def run_with_retries(fn: Callable[[], T], *, cfg: RetryConfig | None = None) -> T:
    """Call ``fn`` until it succeeds or a non-transient error occurs.

    ``fn`` signals a retryable response by raising :class:`TransientHTTPError`;
    connection failures and timeouts from ``requests`` are retried as well.
    After the final attempt the last error is re-raised unchanged.
    """
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except (TransientHTTPError, requests.ConnectionError, requests.Timeout) as exc:
            if attempt >= attempts:
                raise
            sleep_for = _compute_sleep(attempt, cfg, _retry_hint(exc))
            get_logger().warning(
                f"[retry] transient error, attempt {attempt}/{attempts}, "
                f"sleeping {sleep_for:.2f}s",
                error=str(exc),
            )
            time.sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = [
    "RetryConfig",
    "TransientHTTPError",
    "run_with_retries",
    "is_transient",
    "is_transient_response",
]
