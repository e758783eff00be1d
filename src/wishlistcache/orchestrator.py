"""Cache generation pipeline.

list issues -> (per issue, concurrently) resolve form text -> build record
-> join -> aggregate -> build document -> persist once.

Only a failure to list issues (or to write the result) aborts the run; in
that case nothing is written and the previous cache stays in place.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from .aggregate import summarize
from .builder import BuildSettings, build_record
from .cache_store import build_cache_document, persist_cache
from .concurrency import ConcurrencyConfig, run_concurrently
from .config import CacheConfig
from .logging import get_logger
from .models import CacheStats, RawItem, WishlistRecord
from .resolver import FormResolver


class IssueSource(Protocol):
    def list_issues(
        self, *, state: str = "open", labels: Iterable[str] | None = None
    ) -> list[dict[str, Any]]: ...

    def list_comments(self, number: int) -> list[dict[str, Any]]: ...


@dataclass
class RunSummary:
    path: Path
    written: bool
    stats: CacheStats
    document: dict[str, Any]
    skipped_pull_requests: int = 0


def fetch_items(cfg: CacheConfig, client: IssueSource) -> tuple[list[RawItem], int]:
    """List issues for the run; returns items and the count of dropped PRs."""
    labels = [cfg.approved_label] if cfg.approved_only else None
    payloads = client.list_issues(state=cfg.issue_state, labels=labels)
    items = [RawItem.from_api(p) for p in payloads]
    issues = [item for item in items if not item.is_pull_request]
    return issues, len(items) - len(issues)


def build_records(
    cfg: CacheConfig, client: IssueSource, items: list[RawItem]
) -> list[WishlistRecord]:
    resolver = FormResolver(
        client,
        policy=cfg.resolver_policy,
        bot_login=cfg.bot_login,
        window=cfg.resolver_window,
    )
    settings = BuildSettings.from_config(cfg)

    def _process(item: RawItem) -> WishlistRecord:
        return build_record(item, resolver.resolve(item), settings)

    concurrency = ConcurrencyConfig(
        enabled=cfg.concurrency_enabled,
        max_workers=cfg.concurrency_max_workers,
        batch_size=cfg.concurrency_batch_size,
    )
    return run_concurrently(items, _process, concurrency)


def generate_cache(
    cfg: CacheConfig,
    client: IssueSource,
    *,
    dry_run: bool = False,
    output: Path | None = None,
    now: datetime | None = None,
) -> RunSummary:
    logger = get_logger()
    target = output or cfg.cache_file

    with logger.timed_operation("list_issues", repo=cfg.github_repo):
        items, skipped = fetch_items(cfg, client)
    logger.info(
        f"Found {len(items)} issues in {cfg.github_repo}",
        issue_count=len(items),
        skipped_pull_requests=skipped,
    )

    with logger.timed_operation("build_records", issue_count=len(items)):
        records = build_records(cfg, client, items)

    stats = summarize(records)
    document = build_cache_document(records, stats, repo=cfg.github_repo, generated_at=now)

    if dry_run:
        logger.info("Dry run: cache not written", path=str(target))
    else:
        persist_cache(target, document, indent=cfg.output_indent)
        logger.log_operation("cache_written", path=str(target), total=stats.total)

    return RunSummary(
        path=target,
        written=not dry_run,
        stats=stats,
        document=document,
        skipped_pull_requests=skipped,
    )


__all__ = ["IssueSource", "RunSummary", "fetch_items", "build_records", "generate_cache"]
