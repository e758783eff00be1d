"""Concurrency tests.

Most tests drive the processor through ``asyncio.run`` wrappers; one uses
the pytest-asyncio marker directly.
"""

import asyncio
import threading
import time

import pytest

from wishlistcache.concurrency import ConcurrencyConfig, ConcurrentProcessor, run_concurrently


def test_concurrency_config_defaults() -> None:
    config = ConcurrencyConfig()
    assert config.enabled is True
    assert config.max_workers == 8
    assert config.batch_size == 20


def test_results_keep_input_order() -> None:
    def slow_square(n: int) -> int:
        time.sleep(0.001 * (10 - n))
        return n * n

    items = list(range(10))
    config = ConcurrencyConfig(enabled=True, max_workers=4, batch_size=3)
    assert run_concurrently(items, slow_square, config) == [n * n for n in items]


def test_work_runs_on_worker_threads() -> None:
    seen: set[int] = set()

    def record_thread(_: int) -> None:
        seen.add(threading.get_ident())

    run_concurrently([1, 2, 3], record_thread, ConcurrencyConfig(max_workers=2))
    assert threading.get_ident() not in seen


def test_disabled_runs_sequentially_in_caller_thread() -> None:
    seen: list[int] = []

    def record_thread(_: int) -> int:
        seen.append(threading.get_ident())
        return 1

    result = run_concurrently([1, 2, 3], record_thread, ConcurrencyConfig(enabled=False))
    assert result == [1, 1, 1]
    assert set(seen) == {threading.get_ident()}


def test_empty_and_single_item() -> None:
    config = ConcurrencyConfig()
    assert run_concurrently([], lambda n: n, config) == []
    assert run_concurrently([5], lambda n: n + 1, config) == [6]


def test_error_propagates() -> None:
    def boom(n: int) -> int:
        if n == 3:
            raise ValueError("item 3 failed")
        return n

    with pytest.raises(ValueError, match="item 3"):
        run_concurrently(list(range(6)), boom, ConcurrencyConfig(max_workers=2, batch_size=2))


def test_coroutine_functions_are_awaited() -> None:
    async def double(n: int) -> int:
        await asyncio.sleep(0)
        return n * 2

    async def _run() -> list[int]:
        processor = ConcurrentProcessor(ConcurrencyConfig(batch_size=2))
        return await processor.process_items([1, 2, 3], double)

    assert asyncio.run(_run()) == [2, 4, 6]


@pytest.mark.asyncio
async def test_process_items_passes_extra_arguments() -> None:
    processor = ConcurrentProcessor(ConcurrencyConfig(max_workers=2))
    results = await processor.process_items([1, 2, 3], lambda n, offset: n + offset, 10)
    assert results == [11, 12, 13]
