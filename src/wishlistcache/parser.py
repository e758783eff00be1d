from __future__ import annotations

import re
from collections.abc import Iterable

NO_RESPONSE = '_No response_'
CHOICE_SEPARATOR = ' - '

_HEADING_RE = re.compile(r'^###\s', re.MULTILINE)
_CHECKED_PREFIX_RE = re.compile(r'^\s*(?:[-*+]\s*)?\[[xX]\]\s*')
_BULLET_RE = re.compile(r'^\s*[-*+]\s+')


def _section_pattern(title: str) -> re.Pattern[str]:
    return re.compile(
        r'^###[ \t]+' + re.escape(title.strip()) + r'[ \t]*\r?\n(.*?)(?=^###|\Z)',
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    )


def extract_section(text: str | None, title: str) -> str:
    """Return the trimmed block under ``### <title>``.

    The block runs to the next ``###`` heading line or the end of the text.
    Missing headings and empty bodies both yield ``''``.
    """
    if not text or not title.strip():
        return ''
    match = _section_pattern(title).search(text)
    if not match:
        return ''
    return match.group(1).strip()


def extract_section_any(text: str | None, *titles: str) -> str:
    for title in titles:
        block = extract_section(text, title)
        if block:
            return block
    return ''


def has_form_sections(text: str | None) -> bool:
    return bool(text) and _HEADING_RE.search(text or '') is not None


def clean_text(block: str) -> str:
    value = block.strip()
    return '' if value == NO_RESPONSE else value


def strip_mention(value: str) -> str:
    value = clean_text(value)
    return value[1:].strip() if value.startswith('@') else value


def decode_checked(block: str) -> list[str]:
    """Items of a checkbox list that are ticked, in source order.

    Only a ``[x]`` opening the list item counts; the same token inside a
    label is plain text.
    """
    out: list[str] = []
    for line in block.splitlines():
        match = _CHECKED_PREFIX_RE.match(line)
        if not match:
            continue
        item = line[match.end():].strip()
        if item and item != NO_RESPONSE:
            out.append(item)
    return out


def has_checked(block: str) -> bool:
    return any(_CHECKED_PREFIX_RE.match(line) for line in block.splitlines())


def decode_comma_list(value: str) -> list[str]:
    return [piece.strip() for piece in value.split(',') if piece.strip()]


def decode_list_lines(block: str) -> list[str]:
    """Comma list spread over (optionally bulleted) lines."""
    out: list[str] = []
    for line in block.splitlines():
        line = _BULLET_RE.sub('', line).strip()
        if not line or line == NO_RESPONSE:
            continue
        out.extend(decode_comma_list(line))
    return out


def decode_choice(
    block: str, allowed: Iterable[str], default: str | None = None
) -> str | None:
    """Decode a dropdown answer such as ``High - Needed within weeks``.

    Only the first line counts and anything after the first ``' - '`` is a
    description. Values outside ``allowed`` resolve to ``default``.
    """
    value = clean_text(block)
    if not value:
        return default
    first = value.splitlines()[0]
    choice = first.split(CHOICE_SEPARATOR, 1)[0].strip().lower()
    return choice if choice in set(allowed) else default


def decode_yes_no(block: str) -> bool:
    return 'yes' in clean_text(block).lower()


__all__ = [
    'NO_RESPONSE',
    'extract_section',
    'extract_section_any',
    'has_form_sections',
    'clean_text',
    'strip_mention',
    'decode_checked',
    'has_checked',
    'decode_comma_list',
    'decode_list_lines',
    'decode_choice',
    'decode_yes_no',
]
