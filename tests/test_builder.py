from __future__ import annotations

import json

import pytest
from conftest import FORM_BODY, issue_payload

from wishlistcache.builder import (
    BuildSettings,
    avatar_url,
    build_record,
    derive_wishlist_id,
    extract_fulfillment_url,
    repo_name_from_url,
    slugify,
)
from wishlistcache.logging import configure_logging
from wishlistcache.models import RawItem, ResolvedForm


def _item(number: int = 42, **kwargs) -> RawItem:
    return RawItem.from_api(issue_payload(number, **kwargs))


def _body_form(item: RawItem) -> ResolvedForm:
    return ResolvedForm(text=item.body, source="body", updated_at=item.updated_at)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/Acme/My.Repo.git", "My.Repo.git"),
        ("github.com/acme/widgets", "widgets"),
        ("https://github.com/acme/widgets/tree/main", "widgets"),
        ("acme/widgets", "widgets"),
        ("https://gitlab.com/acme/widgets", None),
        ("", None),
    ],
)
def test_repo_name_from_url(url, expected):
    assert repo_name_from_url(url) == expected


def test_slugify_rules():
    assert slugify("My.Repo.git") == "my-repo"
    assert slugify("--Hello,  World!--") == "hello-world"
    assert slugify("!!!") == ""


def test_derive_id_from_repository_url():
    assert derive_wishlist_id("https://github.com/Acme/My.Repo.git", "", 42) == "my-repo-42"
    assert derive_wishlist_id("acme/Widgets", "Ignored", 7) == "widgets-7"


def test_derive_id_falls_back_to_project_name_then_number():
    assert derive_wishlist_id("", "Cool Project!", 5) == "cool-project-5"
    assert derive_wishlist_id("not a url", "Cool Project", 5) == "cool-project-5"
    assert derive_wishlist_id("", "", 5) == "wishlist-5"
    assert derive_wishlist_id("", "???", 5) == "wishlist-5"


def test_fulfillment_url_marker_and_default():
    body = "Thanks!\nFulfill this wishlist: https://example.org/f/9 \n"
    assert extract_fulfillment_url(body, 9) == "https://example.org/f/9"
    assert extract_fulfillment_url("nothing here", 9) == "https://oss-wishlist.com/fulfill?issue=9"
    assert extract_fulfillment_url(["", body], 9) == "https://example.org/f/9"
    assert extract_fulfillment_url("", 3, "https://x.test/{number}") == "https://x.test/3"


def test_avatar_url_only_with_username():
    assert avatar_url("octocat") == "https://github.com/octocat.png"
    assert avatar_url("") == ""


def test_build_record_from_full_form():
    item = _item(labels=["approved-wishlist"])
    record = build_record(item, _body_form(item))

    assert record.id == "foo-42"
    assert record.project_name == "Foo"
    assert record.repository_url == "https://github.com/acme/foo"
    assert record.maintainer_username == "octocat"
    assert record.maintainer_avatar_url == "https://github.com/octocat.png"
    assert record.urgency == "high"
    assert record.approved is True
    assert record.status == "approved"
    assert record.wishes == ["Security Audit", "Governance Review"]
    assert record.technologies == ["npm", "PyPI"]
    assert record.additional_context is None
    assert record.fulfillment_url == "https://oss-wishlist.com/fulfill?issue=42"
    assert record.wishlist_url == "/wishlist/42"
    assert record.form_source == "body"
    assert record.created_at == "2024-05-01T10:00:00Z"
    assert record.updated_at == "2024-05-02T10:00:00Z"


def test_build_record_minimal_end_to_end_form():
    body = "### Project Name\nFoo\n### Urgency Level\nHigh - Needed within weeks\n"
    item = _item(7, body=body, labels=["approved-wishlist"])
    record = build_record(item, _body_form(item))
    assert record.project_name == "Foo"
    assert record.urgency == "high"
    assert record.approved is True
    assert record.id == "foo-7"
    assert record.repository_url == ""
    assert record.maintainer_avatar_url == ""


def test_build_record_approval_comes_from_labels_only():
    body = FORM_BODY + "\n### Status\napproved-wishlist\n"
    item = _item(body=body, labels=["needs-review"])
    record = build_record(item, _body_form(item))
    assert record.approved is False
    assert record.status == "pending"


def test_build_record_custom_approved_label():
    item = _item(labels=["ok"])
    record = build_record(item, _body_form(item), BuildSettings(approved_label="ok"))
    assert record.approved is True


def test_build_record_fallbacks_for_empty_body():
    item = _item(9, body="", title="Help wanted")
    record = build_record(item, _body_form(item))
    assert record.project_name == "Help wanted"
    assert record.id == "wishlist-9"
    assert record.urgency == "medium"
    assert record.wishes == []
    assert record.resources == []
    assert record.technologies == []
    assert record.project_size is None

    untitled = _item(10, body="", title="")
    assert build_record(untitled, _body_form(untitled)).project_name == "Wishlist #10"


def _warnings(out: str) -> list[dict]:
    entries = [json.loads(line) for line in out.splitlines() if line]
    return [e for e in entries if e["level"] == "WARNING"]


def test_data_quality_problems_are_logged(capsys):
    configure_logging(json_logging=True, level="INFO")
    body = "### Urgency Level\nWhenever\n"
    item = _item(11, body=body, title="")

    record = build_record(item, _body_form(item))

    assert record.project_name == "Wishlist #11"
    assert record.urgency == "medium"
    warnings = _warnings(capsys.readouterr().out)
    assert [w["issue_number"] for w in warnings] == [11, 11, 11]
    messages = " | ".join(w["message"] for w in warnings)
    assert "Issue #11: no project name" in messages
    assert "Issue #11: no repository URL" in messages
    assert "Issue #11: unrecognised urgency" in messages


def test_complete_form_logs_no_warnings(capsys):
    configure_logging(json_logging=True, level="INFO")
    item = _item(12)
    build_record(item, _body_form(item))
    assert _warnings(capsys.readouterr().out) == []


def test_urgency_left_blank_is_not_reported_as_unrecognised(capsys):
    configure_logging(json_logging=True, level="INFO")
    body = "### Project Name\nFoo\n### Repository\nacme/foo\n### Urgency Level\n_No response_\n"
    item = _item(13, body=body)
    assert build_record(item, _body_form(item)).urgency == "medium"
    assert _warnings(capsys.readouterr().out) == []


def test_checkbox_token_inside_label_does_not_flag_funding_yml():
    body = "### Project Name\nFoo\n### FUNDING.yml Setup\n- [ ] Add [x] to my file\n"
    item = _item(14, body=body)
    assert build_record(item, _body_form(item)).wants_funding_yml is False


def test_build_record_optional_fields_and_flags():
    body = """### Project Name
Bar
### Repository
acme/bar
### Project Size
Large
### Organization Type
Community-Team
### Organization Name
Acme Foundation
### Timeline
Q3
### Resources Requested
- [x] Funding
- [ ] Hardware
### FUNDING.yml Setup
- [x] Yes, open a PR
### Open to Honorarium
Yes
### Practitioner Email
someone@example.org
### Urgency Level
Whenever
"""
    item = _item(3, body=body)
    record = build_record(item, _body_form(item))
    assert record.id == "bar-3"
    assert record.project_size == "large"
    assert record.organization_type == "community-team"
    assert record.organization_name == "Acme Foundation"
    assert record.timeline == "Q3"
    assert record.resources == ["Funding"]
    assert record.wants_funding_yml is True
    assert record.open_to_sponsorship is True
    assert record.nominee_email == "someone@example.org"
    assert record.urgency == "medium"


def test_build_record_uses_resolved_form_text_and_timestamp():
    item = _item(body="### Project Name\nOld\n")
    form = ResolvedForm(
        text="### Project Name\nNew\n",
        source="comment",
        updated_at="2024-06-01T00:00:00Z",
        comment_id=5,
    )
    record = build_record(item, form)
    assert record.project_name == "New"
    assert record.form_source == "comment"
    assert record.updated_at == "2024-06-01T00:00:00Z"


def test_record_to_dict_omits_absent_optionals():
    item = _item(labels=["approved-wishlist"])
    data = build_record(item, _body_form(item)).to_dict()
    assert data["projectName"] == "Foo"
    assert data["urgency"] == "high"
    assert data["approved"] is True
    assert "projectSize" not in data
    assert "additionalContext" not in data
    assert None not in data.values()
