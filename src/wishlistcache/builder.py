"""Turn one issue plus its resolved form text into a ``WishlistRecord``.

Field decoding never raises: missing or malformed answers fall back to the
defaults documented on :class:`~wishlistcache.models.WishlistRecord` and are
reported as data-quality warnings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .config import (
    DEFAULT_APPROVED_LABEL,
    DEFAULT_FULFILL_URL_TEMPLATE,
    CacheConfig,
)
from .logging import get_logger
from .models import (
    DEFAULT_URGENCY,
    ORGANIZATION_TYPES,
    PROJECT_SIZES,
    URGENCY_LEVELS,
    RawItem,
    ResolvedForm,
    WishlistRecord,
)
from .parser import (
    clean_text,
    decode_checked,
    decode_choice,
    decode_list_lines,
    decode_yes_no,
    extract_section_any,
    has_checked,
    strip_mention,
)

AVATAR_URL_TEMPLATE = 'https://github.com/{username}.png'
WISHLIST_URL_TEMPLATE = '/wishlist/{number}'

_GITHUB_URL_RE = re.compile(r'github\.com/[^/\s]+/([^/\s?#]+)', re.IGNORECASE)
_OWNER_REPO_RE = re.compile(r'^([^/\s]+)/([^/\s]+)$')
_FULFILL_RE = re.compile(r'Fulfill this wishlist:\s*(https?://\S+)', re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')

# Section titles as they appear in the issue form; aliases cover renamed fields.
PROJECT_NAME = ('Project Name',)
REPOSITORY = ('Project Repository', 'Repository')
MAINTAINER = ('Maintainer GitHub Username',)
URGENCY = ('Urgency Level',)
PROJECT_SIZE = ('Project Size',)
SERVICES = ('Services Requested',)
RESOURCES = ('Resources Requested',)
ECOSYSTEMS = ('Package Ecosystems',)
ADDITIONAL_CONTEXT = ('Additional Context',)
ADDITIONAL_NOTES = ('Additional Notes',)
FUNDING_YML = ('FUNDING.yml Setup',)
SPONSORSHIP = ('Open to Sponsorship', 'Open to Honorarium')
TIMELINE = ('Timeline',)
ORGANIZATION_TYPE = ('Organization Type',)
ORGANIZATION_NAME = ('Organization Name',)
PREFERRED_PRACTITIONER = ('Preferred Practitioner',)
NOMINEE_NAME = ('Practitioner Name',)
NOMINEE_EMAIL = ('Practitioner Email',)
NOMINEE_GITHUB = ('Practitioner GitHub',)


@dataclass
class BuildSettings:
    approved_label: str = DEFAULT_APPROVED_LABEL
    fulfill_url_template: str = DEFAULT_FULFILL_URL_TEMPLATE

    @classmethod
    def from_config(cls, cfg: CacheConfig) -> BuildSettings:
        return cls(
            approved_label=cfg.approved_label,
            fulfill_url_template=cfg.fulfill_url_template,
        )


def slugify(value: str) -> str:
    """Lowercase, drop a ``.git`` suffix, collapse non-alphanumerics to ``-``."""
    lowered = value.strip().lower()
    if lowered.endswith('.git'):
        lowered = lowered[: -len('.git')]
    return _NON_ALNUM_RE.sub('-', lowered).strip('-')


def repo_name_from_url(repository_url: str) -> str | None:
    """Repository name from a GitHub URL or a short ``owner/repo`` reference."""
    value = repository_url.strip()
    if not value:
        return None
    match = _GITHUB_URL_RE.search(value)
    if match:
        return match.group(1)
    short = _OWNER_REPO_RE.match(value)
    if short:
        return short.group(2)
    return None


def derive_wishlist_id(repository_url: str, project_name: str, number: int) -> str:
    for candidate in (repo_name_from_url(repository_url) or '', project_name):
        slug = slugify(candidate)
        if slug:
            return f'{slug}-{number}'
    return f'wishlist-{number}'


def extract_fulfillment_url(
    texts: str | list[str], number: int, template: str = DEFAULT_FULFILL_URL_TEMPLATE
) -> str:
    for text in [texts] if isinstance(texts, str) else texts:
        match = _FULFILL_RE.search(text or '')
        if match:
            return match.group(1).strip()
    return template.format(number=number)


def avatar_url(username: str) -> str:
    return AVATAR_URL_TEMPLATE.format(username=username) if username else ''


def _optional(text: str, titles: tuple[str, ...]) -> str | None:
    return clean_text(extract_section_any(text, *titles)) or None


def build_record(
    item: RawItem, form: ResolvedForm, settings: BuildSettings | None = None
) -> WishlistRecord:
    settings = settings or BuildSettings()
    logger = get_logger()
    text = form.text

    parsed_name = clean_text(extract_section_any(text, *PROJECT_NAME))
    repository_url = clean_text(extract_section_any(text, *REPOSITORY))
    maintainer = strip_mention(extract_section_any(text, *MAINTAINER))

    if not parsed_name:
        logger.warning(
            f'Issue #{item.number}: no project name in form; using fallback',
            issue_number=item.number,
        )
    if not repository_url:
        logger.warning(
            f'Issue #{item.number}: no repository URL; deriving id from project name',
            issue_number=item.number,
        )

    urgency_block = extract_section_any(text, *URGENCY)
    urgency = decode_choice(urgency_block, URGENCY_LEVELS, DEFAULT_URGENCY) or DEFAULT_URGENCY
    if clean_text(urgency_block) and decode_choice(urgency_block, URGENCY_LEVELS) is None:
        logger.warning(
            f'Issue #{item.number}: unrecognised urgency; defaulting to {DEFAULT_URGENCY}',
            issue_number=item.number,
        )

    wishlist_id = derive_wishlist_id(repository_url, parsed_name, item.number)
    return WishlistRecord(
        id=wishlist_id,
        issue_number=item.number,
        project_name=parsed_name or item.title.strip() or f'Wishlist #{item.number}',
        repository_url=repository_url,
        fulfillment_url=extract_fulfillment_url(
            [text, item.body], item.number, settings.fulfill_url_template
        ),
        wishlist_url=WISHLIST_URL_TEMPLATE.format(number=item.number),
        maintainer_username=maintainer,
        maintainer_avatar_url=avatar_url(maintainer),
        approved=settings.approved_label in item.labels,
        state=item.state,
        form_source=form.source,
        created_at=item.created_at,
        updated_at=form.updated_at,
        wishes=decode_checked(extract_section_any(text, *SERVICES)),
        resources=decode_checked(extract_section_any(text, *RESOURCES)),
        technologies=decode_list_lines(extract_section_any(text, *ECOSYSTEMS)),
        urgency=urgency,
        open_to_sponsorship=decode_yes_no(extract_section_any(text, *SPONSORSHIP)),
        wants_funding_yml=has_checked(extract_section_any(text, *FUNDING_YML)),
        project_size=decode_choice(extract_section_any(text, *PROJECT_SIZE), PROJECT_SIZES),
        organization_type=decode_choice(
            extract_section_any(text, *ORGANIZATION_TYPE), ORGANIZATION_TYPES
        ),
        organization_name=_optional(text, ORGANIZATION_NAME),
        timeline=_optional(text, TIMELINE),
        additional_notes=_optional(text, ADDITIONAL_NOTES),
        additional_context=_optional(text, ADDITIONAL_CONTEXT),
        preferred_practitioner=_optional(text, PREFERRED_PRACTITIONER),
        nominee_name=_optional(text, NOMINEE_NAME),
        nominee_email=_optional(text, NOMINEE_EMAIL),
        nominee_github=_optional(text, NOMINEE_GITHUB),
    )


__all__ = [
    'BuildSettings',
    'avatar_url',
    'build_record',
    'derive_wishlist_id',
    'extract_fulfillment_url',
    'repo_name_from_url',
    'slugify',
]
