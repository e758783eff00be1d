"""Pick the authoritative form text for a wishlist issue.

Issue forms cannot be edited in place; an edit is re-posted as a comment by
the wishlist bot. Two selection policies are supported and exactly one is
used per run:

``latest-bot-comment``
    The newest comment authored by the bot wins when it contains form
    sections.
``recency-window``
    The newest comment of any author wins when it contains form sections
    and was created within the window around the issue's ``updated_at``.

When comments cannot be listed the issue body is used and a warning logged.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from .config import POLICY_LATEST_BOT_COMMENT, RESOLVER_POLICIES
from .errors import classify_error
from .logging import get_logger
from .models import RawComment, RawItem, ResolvedForm, parse_timestamp
from .parser import has_form_sections

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CommentSource(Protocol):
    def list_comments(self, number: int) -> list[dict[str, Any]]: ...


def _created(comment: RawComment) -> datetime:
    return parse_timestamp(comment.created_at) or _EPOCH


def latest_comment(comments: list[RawComment]) -> RawComment | None:
    """Newest comment by ``created_at``; later listing order breaks ties."""
    latest: RawComment | None = None
    for comment in comments:
        if latest is None or _created(comment) >= _created(latest):
            latest = comment
    return latest


class FormResolver:
    def __init__(
        self,
        client: CommentSource,
        *,
        policy: str = POLICY_LATEST_BOT_COMMENT,
        bot_login: str = "oss-wishlist-bot",
        window: timedelta = timedelta(hours=1),
    ):
        if policy not in RESOLVER_POLICIES:
            raise ValueError(f"Unknown resolver policy: {policy}")
        self.client = client
        self.policy = policy
        self.bot_login = bot_login
        self.window = window
        self.logger = get_logger()

    def _from_body(self, item: RawItem) -> ResolvedForm:
        return ResolvedForm(text=item.body, source="body", updated_at=item.updated_at)

    def _fetch_comments(self, item: RawItem) -> list[RawComment] | None:
        try:
            payloads = self.client.list_comments(item.number)
        except Exception as exc:  # any listing failure degrades to the issue body
            info = classify_error(exc)
            self.logger.warning(
                f"Could not list comments for issue #{item.number}; using issue body",
                issue_number=item.number,
                error=info.message,
                category=info.category,
            )
            return None
        return [RawComment.from_api(p) for p in payloads]

    def _pick_candidate(self, item: RawItem, comments: list[RawComment]) -> RawComment | None:
        if self.policy == POLICY_LATEST_BOT_COMMENT:
            bot_comments = [
                c for c in comments if c.author.lower() == self.bot_login.lower()
            ]
            return latest_comment(bot_comments)

        newest = latest_comment(comments)
        if newest is None:
            return None
        item_updated = parse_timestamp(item.updated_at)
        comment_created = parse_timestamp(newest.created_at)
        if item_updated is None or comment_created is None:
            return None
        if abs(item_updated - comment_created) > self.window:
            return None
        return newest

    def resolve(self, item: RawItem) -> ResolvedForm:
        comments = self._fetch_comments(item)
        if not comments:
            return self._from_body(item)
        candidate = self._pick_candidate(item, comments)
        if candidate is None or not has_form_sections(candidate.body):
            return self._from_body(item)
        self.logger.debug(
            f"Using edited form from comment {candidate.id} for issue #{item.number}",
            issue_number=item.number,
        )
        return ResolvedForm(
            text=candidate.body,
            source="comment",
            updated_at=candidate.updated_at or candidate.created_at or item.updated_at,
            comment_id=candidate.id,
        )


__all__ = ["CommentSource", "FormResolver", "latest_comment"]
