"""Concurrency support for wishlist-cache.

Per-issue work (listing comments, then parsing) is independent across
issues, so it is fanned out in batches. Blocking callables run on a thread
pool; coroutine functions are awaited directly. Results keep input order.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from .logging import get_logger

T = TypeVar('T')
R = TypeVar('R')


class ConcurrencyConfig:
    """Configuration for concurrency settings."""

    def __init__(self, enabled: bool = True, max_workers: int = 8, batch_size: int = 20):
        self.enabled = enabled
        self.max_workers = max_workers
        self.batch_size = batch_size


class ConcurrentProcessor:
    """Processes items concurrently, one task per item."""

    def __init__(self, concurrency_config: ConcurrencyConfig):
        self.config = concurrency_config
        self.logger = get_logger()

    async def process_items(
        self,
        items: Sequence[T],
        processor_func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> list[Any]:
        """Apply ``processor_func`` to every item; the first error propagates."""
        if not self.config.enabled or len(items) <= 1:
            return [await self._call(None, processor_func, item, *args, **kwargs) for item in items]

        results: list[Any] = []
        batch_size = max(1, self.config.batch_size)

        self.logger.log_operation(
            'concurrent_processing_start',
            item_count=len(items),
            batch_size=batch_size,
            max_workers=self.config.max_workers,
        )
        start_time = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            for i in range(0, len(items), batch_size):
                batch = items[i : i + batch_size]
                tasks = [
                    asyncio.ensure_future(
                        self._call(executor, processor_func, item, *args, **kwargs)
                    )
                    for item in batch
                ]
                try:
                    results.extend(await asyncio.gather(*tasks))
                except Exception:
                    for task in tasks:
                        task.cancel()
                    raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.log_performance(
            'concurrent_processing', duration_ms, item_count=len(items), results_count=len(results)
        )
        return results

    async def _call(
        self,
        executor: ThreadPoolExecutor | None,
        processor_func: Callable[..., Any],
        item: Any,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        if inspect.iscoroutinefunction(processor_func):
            return await processor_func(item, *args, **kwargs)
        if executor is None:
            return processor_func(item, *args, **kwargs)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            executor, lambda: processor_func(item, *args, **kwargs)
        )


def run_concurrently(
    items: Sequence[T],
    processor_func: Callable[[T], R],
    config: ConcurrencyConfig,
) -> list[R]:
    """Synchronous entry point: run the fan-out on a fresh event loop."""
    processor = ConcurrentProcessor(config)
    return asyncio.run(processor.process_items(items, processor_func))


__all__ = ['ConcurrencyConfig', 'ConcurrentProcessor', 'run_concurrently']
