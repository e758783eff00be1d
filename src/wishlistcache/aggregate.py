from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from .models import STATUS_APPROVED, STATUS_PENDING, CacheStats, WishlistRecord


def count_records_containing(values_per_record: Iterable[Iterable[str]]) -> dict[str, int]:
    """Map each value to the number of records listing it (lexicographic keys)."""
    counter: Counter[str] = Counter()
    for values in values_per_record:
        counter.update({v for v in values if v})
    return {key: counter[key] for key in sorted(counter)}


def summarize(records: Sequence[WishlistRecord]) -> CacheStats:
    approved = sum(1 for r in records if r.status == STATUS_APPROVED)
    pending = sum(1 for r in records if r.status == STATUS_PENDING)
    return CacheStats(
        total=len(records),
        approved=approved,
        pending=pending,
        ecosystem_stats=count_records_containing(r.technologies for r in records),
        service_stats=count_records_containing(r.wishes for r in records),
    )


def top_entries(stats: dict[str, int], limit: int = 5) -> list[tuple[str, int]]:
    return sorted(stats.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]


__all__ = ["count_records_containing", "summarize", "top_entries"]
