from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import CacheStats, WishlistRecord, parse_timestamp
from .schema_registry import get_schema_descriptor
from .schemas import validate_cache_document

logger = logging.getLogger(__name__)

GENERATED_BY = "wishlist-cache"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CacheError(RuntimeError):
    pass


def _newest_first(records: Sequence[WishlistRecord]) -> list[WishlistRecord]:
    return sorted(
        records,
        key=lambda r: (parse_timestamp(r.created_at) or _EPOCH, r.issue_number),
        reverse=True,
    )


def build_cache_document(
    records: Sequence[WishlistRecord],
    stats: CacheStats,
    *,
    repo: str,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    return {
        "schema_version": get_schema_descriptor("cache").version,
        "generatedAt": stamp,
        "generatedBy": GENERATED_BY,
        "dataSource": f"GitHub Issues ({repo})",
        "totalWishlists": stats.total,
        "approvedCount": stats.approved,
        "pendingCount": stats.pending,
        "ecosystemStats": dict(stats.ecosystem_stats),
        "serviceStats": dict(stats.service_stats),
        "wishlists": [r.to_dict() for r in _newest_first(records)],
    }


def persist_cache(path: Path, document: dict[str, Any], *, indent: int = 2) -> None:
    """Validate then write the whole document in one step.

    The payload goes to a sibling ``.tmp`` file first and is renamed over the
    target, so readers see either the previous cache or the new one.
    """
    problems = validate_cache_document(document)
    if problems:
        raise CacheError("Refusing to write invalid cache document: " + "; ".join(problems[:5]))
    payload = json.dumps(document, indent=indent, ensure_ascii=False) + "\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise CacheError(f"Failed to write cache {path}: {exc}") from exc
    logger.debug("wrote cache %s (%d bytes)", path, len(payload))


def load_cache(path: Path) -> dict[str, Any]:
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CacheError(f"Cache file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise CacheError(f"Failed to read cache {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise CacheError(f"Cache root in {path} must be an object")
    return raw


__all__ = ["CacheError", "build_cache_document", "persist_cache", "load_cache"]
