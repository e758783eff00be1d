"""Pytest configuration for wishlist-cache tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and provides an in-memory stand-in for
the GitHub issues API.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Any

import pytest

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

pytest_plugins = ["pytest_asyncio"]

_ENV_VARS = (
    "WISHLISTCACHE_REPO",
    "WISHLISTCACHE_OUTPUT",
    "WISHLISTCACHE_QUIET",
    "WISHLISTCACHE_RETRY_MAX_SLEEP",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WISHLISTCACHE_RETRY_BASE", "0")


@pytest.fixture(autouse=True)
def _fresh_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    # the global logger binds sys.stdout on creation; rebuild it per test
    from wishlistcache import logging as wl_logging

    monkeypatch.setattr(wl_logging, "_GLOBAL", None)


FORM_BODY = """### Project Name

Foo

### Project Repository

https://github.com/acme/foo

### Maintainer GitHub Username

@octocat

### Urgency Level

High - Needed within weeks

### Services Requested

- [x] Security Audit
- [ ] Documentation
- [X] Governance Review

### Package Ecosystems

npm, PyPI

### Additional Context

_No response_
"""


def issue_payload(
    number: int,
    *,
    body: str = FORM_BODY,
    title: str | None = None,
    labels: list[str] | None = None,
    created_at: str = "2024-05-01T10:00:00Z",
    updated_at: str = "2024-05-02T10:00:00Z",
    state: str = "open",
    pull_request: bool = False,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "number": number,
        "title": title if title is not None else f"Wishlist {number}",
        "body": body,
        "created_at": created_at,
        "updated_at": updated_at,
        "labels": [{"name": name} for name in (labels or [])],
        "state": state,
    }
    if pull_request:
        payload["pull_request"] = {"url": f"https://api.github.com/pulls/{number}"}
    return payload


def comment_payload(
    comment_id: int,
    body: str,
    *,
    author: str = "oss-wishlist-bot",
    created_at: str = "2024-05-02T09:30:00Z",
    updated_at: str | None = None,
) -> dict[str, Any]:
    return {
        "id": comment_id,
        "user": {"login": author},
        "body": body,
        "created_at": created_at,
        "updated_at": updated_at or created_at,
    }


class FakeIssueClient:
    """In-memory replacement for GitHubRestClient."""

    def __init__(
        self,
        issues: list[dict[str, Any]] | None = None,
        comments: dict[int, list[dict[str, Any]]] | None = None,
        *,
        failing_comments: set[int] | None = None,
        list_error: Exception | None = None,
    ):
        self.issues = issues or []
        self.comments = comments or {}
        self.failing_comments = failing_comments or set()
        self.list_error = list_error
        self.list_calls: list[dict[str, Any]] = []
        self.comment_calls: list[int] = []

    def list_issues(self, *, state: str = "open", labels: Any = None) -> list[dict[str, Any]]:
        self.list_calls.append({"state": state, "labels": labels})
        if self.list_error is not None:
            raise self.list_error
        return list(self.issues)

    def list_comments(self, number: int) -> list[dict[str, Any]]:
        self.comment_calls.append(number)
        if number in self.failing_comments:
            raise RuntimeError(f"rate limit exceeded while listing comments for #{number}")
        return list(self.comments.get(number, []))


# --- Timing utilities to help identify slow/stalling tests ---


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        _TEST_DURATIONS.append((item.nodeid, time.perf_counter() - start))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
