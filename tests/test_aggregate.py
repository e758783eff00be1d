from __future__ import annotations

from wishlistcache.aggregate import count_records_containing, summarize, top_entries
from wishlistcache.models import WishlistRecord


def _record(number: int, *, approved: bool = False, technologies=(), wishes=()) -> WishlistRecord:
    return WishlistRecord(
        id=f"wishlist-{number}",
        issue_number=number,
        project_name=f"Project {number}",
        repository_url="",
        fulfillment_url=f"https://oss-wishlist.com/fulfill?issue={number}",
        wishlist_url=f"/wishlist/{number}",
        maintainer_username="",
        maintainer_avatar_url="",
        approved=approved,
        state="open",
        form_source="body",
        created_at="2024-05-01T10:00:00Z",
        updated_at="2024-05-01T10:00:00Z",
        wishes=list(wishes),
        technologies=list(technologies),
    )


def test_counts_records_per_value():
    records = [
        _record(1, technologies=["go"]),
        _record(2, technologies=["go", "rust"]),
        _record(3, technologies=["python"]),
        _record(4, technologies=["go"]),
        _record(5),
    ]
    stats = summarize(records)
    assert stats.ecosystem_stats["go"] == 3
    assert stats.ecosystem_stats["rust"] == 1


def test_value_repeated_in_one_record_counts_once():
    assert count_records_containing([["Audit", "Audit"], ["Audit"]]) == {"Audit": 2}


def test_keys_are_sorted_and_case_sensitive():
    counts = count_records_containing([["npm", "Cargo"], ["PyPI", "npm"], ["Go", "go"]])
    assert list(counts) == sorted(counts)
    assert counts["Go"] == 1
    assert counts["go"] == 1


def test_status_counts_add_up():
    records = [_record(1, approved=True), _record(2), _record(3, approved=True)]
    stats = summarize(records)
    assert stats.total == 3
    assert stats.approved == 2
    assert stats.pending == 1
    assert stats.approved + stats.pending == stats.total


def test_empty_input():
    stats = summarize([])
    assert (stats.total, stats.approved, stats.pending) == (0, 0, 0)
    assert stats.ecosystem_stats == {}
    assert stats.service_stats == {}


def test_service_stats_from_wishes():
    stats = summarize([_record(1, wishes=["Security Audit"]), _record(2, wishes=["Security Audit"])])
    assert stats.service_stats == {"Security Audit": 2}


def test_top_entries_orders_by_count_then_name():
    assert top_entries({"b": 2, "a": 2, "c": 5, "d": 1}, limit=3) == [("c", 5), ("a", 2), ("b", 2)]
