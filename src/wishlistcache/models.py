from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

URGENCY_LEVELS = ("low", "medium", "high", "critical")
DEFAULT_URGENCY = "medium"
PROJECT_SIZES = ("small", "medium", "large")
ORGANIZATION_TYPES = (
    "single-maintainer",
    "community-team",
    "company-team",
    "foundation-team",
    "other",
)

STATUS_APPROVED = "approved"
STATUS_PENDING = "pending"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse GitHub's ISO-8601 timestamps (``2024-05-01T10:00:00Z``)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class RawItem:
    """An issue as listed by the tracker. Read-only to the pipeline."""

    number: int
    title: str
    body: str
    created_at: str
    updated_at: str
    labels: list[str] = field(default_factory=list)
    state: str = "open"
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> RawItem:
        labels: list[str] = []
        for label in payload.get("labels") or []:
            if isinstance(label, dict):
                name = label.get("name")
                if isinstance(name, str):
                    labels.append(name)
            elif isinstance(label, str):
                labels.append(label)
        return cls(
            number=int(payload["number"]),
            title=str(payload.get("title") or ""),
            body=str(payload.get("body") or ""),
            created_at=str(payload.get("created_at") or ""),
            updated_at=str(payload.get("updated_at") or ""),
            labels=labels,
            state=str(payload.get("state") or "open"),
            is_pull_request="pull_request" in payload,
        )


@dataclass
class RawComment:
    id: int
    author: str
    body: str
    created_at: str
    updated_at: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> RawComment:
        user = payload.get("user")
        author = user.get("login") if isinstance(user, dict) else None
        return cls(
            id=int(payload.get("id") or 0),
            author=str(author or ""),
            body=str(payload.get("body") or ""),
            created_at=str(payload.get("created_at") or ""),
            updated_at=str(payload.get("updated_at") or ""),
        )


@dataclass
class ResolvedForm:
    """The form text judged authoritative for one item."""

    text: str
    source: str  # "body" or "comment"
    updated_at: str
    comment_id: int | None = None


@dataclass
class WishlistRecord:
    """Canonical structured output derived from one item.

    Optional string fields use ``None`` internally and are omitted from the
    serialized record; everything else always serializes.
    """

    id: str
    issue_number: int
    project_name: str
    repository_url: str
    fulfillment_url: str
    wishlist_url: str
    maintainer_username: str
    maintainer_avatar_url: str
    approved: bool
    state: str
    form_source: str
    created_at: str
    updated_at: str
    wishes: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)
    urgency: str = DEFAULT_URGENCY
    open_to_sponsorship: bool = False
    wants_funding_yml: bool = False
    project_size: str | None = None
    organization_type: str | None = None
    organization_name: str | None = None
    timeline: str | None = None
    additional_notes: str | None = None
    additional_context: str | None = None
    preferred_practitioner: str | None = None
    nominee_name: str | None = None
    nominee_email: str | None = None
    nominee_github: str | None = None

    @property
    def status(self) -> str:
        return STATUS_APPROVED if self.approved else STATUS_PENDING

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "issueNumber": self.issue_number,
            "projectName": self.project_name,
            "repositoryUrl": self.repository_url,
            "fulfillmentUrl": self.fulfillment_url,
            "wishlistUrl": self.wishlist_url,
            "maintainerUsername": self.maintainer_username,
            "maintainerAvatarUrl": self.maintainer_avatar_url,
            "approved": self.approved,
            "status": self.status,
            "state": self.state,
            "formSource": self.form_source,
            "wishes": list(self.wishes),
            "resources": list(self.resources),
            "technologies": list(self.technologies),
            "urgency": self.urgency,
            "openToSponsorship": self.open_to_sponsorship,
            "wantsFundingYml": self.wants_funding_yml,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        optional = {
            "projectSize": self.project_size,
            "organizationType": self.organization_type,
            "organizationName": self.organization_name,
            "timeline": self.timeline,
            "additionalNotes": self.additional_notes,
            "additionalContext": self.additional_context,
            "preferredPractitioner": self.preferred_practitioner,
            "nomineeName": self.nominee_name,
            "nomineeEmail": self.nominee_email,
            "nomineeGithub": self.nominee_github,
        }
        out.update({k: v for k, v in optional.items() if v})
        return out


@dataclass
class CacheStats:
    total: int
    approved: int
    pending: int
    ecosystem_stats: dict[str, int] = field(default_factory=dict)
    service_stats: dict[str, int] = field(default_factory=dict)


__all__ = [
    "URGENCY_LEVELS",
    "DEFAULT_URGENCY",
    "PROJECT_SIZES",
    "ORGANIZATION_TYPES",
    "STATUS_APPROVED",
    "STATUS_PENDING",
    "parse_timestamp",
    "RawItem",
    "RawComment",
    "ResolvedForm",
    "WishlistRecord",
    "CacheStats",
]
