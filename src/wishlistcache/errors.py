"""Error taxonomy & redaction.

Only a handful of failures are fatal for a cache run (listing the tracker,
reading config, writing the cache). Everything else degrades to a default
and is logged. This module gives those log lines a stable ``category`` and
keeps credentials out of them.

Public API:
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # classic tokens
    re.compile(r"gh[osu]_[A-Za-z0-9]{20,40}"),  # oauth / server / user tokens
    re.compile(r"github_pat_\w{20,}"),  # fine-grained tokens
    re.compile(r"(?i)(authorization:\s*(?:bearer|token)\s+)\S+"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

_AUTH_STATUS = 401
_NOT_FOUND_STATUS = 404


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "category": self.category,
            "message": self.message,
            "original_type": self.original_type,
            "transient": self.transient,
        }
        if self.details:
            out["details"] = self.details
        return out


def redact(text: str) -> str:
    """Replace token-looking substrings with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        if pat.groups:
            redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
        else:
            redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    HTTP status (when the exception carries one) wins over message
    keywords:
    - 401 -> 'github.auth'
    - 404 -> 'github.not_found'
    - rate limit / abuse wording or 429 -> 'github.rate_limit', transient
    - timeouts and connection failures -> 'network', transient
    - JSON / YAML decoding -> 'parse'
    - anything else -> 'generic'
    """
    msg = str(exc) if exc else ""
    low = msg.lower()
    name = exc.__class__.__name__
    status = getattr(exc, "status", None)
    details = {"status": status} if isinstance(status, int) else None

    if status == _AUTH_STATUS or "bad credentials" in low:
        return ErrorInfo("github.auth", redact(msg), name, details=details)
    if status == _NOT_FOUND_STATUS:
        return ErrorInfo("github.not_found", redact(msg), name, details=details)
    if status == 429 or "rate limit" in low or "secondary rate" in low or "abuse" in low:  # noqa: PLR2004
        return ErrorInfo(
            "github.rate_limit", redact(msg), name, transient=True, details=details
        )
    if name in {"ConnectionError", "Timeout", "ReadTimeout", "ConnectTimeout"} or any(
        k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")
    ):
        return ErrorInfo("network", redact(msg), name, transient=True, details=details)
    if name in {"JSONDecodeError", "YAMLError", "ScannerError", "ParserError"} or any(
        k in low for k in ("yaml", "json")
    ):
        return ErrorInfo("parse", redact(msg), name, details=details)
    return ErrorInfo("generic", redact(msg), name, details=details)


__all__ = ["ErrorInfo", "classify_error", "redact"]
