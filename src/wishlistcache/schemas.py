"""JSON Schema for the wishlist cache document.

The schema pins the top-level shape and the record fields the site relies
on. Optional record fields are listed so their types are checked, but they
are not required because absent values are omitted rather than nulled.
"""

from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator

from .models import ORGANIZATION_TYPES, PROJECT_SIZES, URGENCY_LEVELS
from .schema_registry import get_schema_descriptor

SCHEMA_KEY = "$schema"
SCHEMA_URL = "http://json-schema.org/draft-07/schema#"

_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": {"type": "string", "minLength": 1}}
_COUNTS = {"type": "object", "additionalProperties": {"type": "integer", "minimum": 1}}

_REQUIRED_RECORD_FIELDS = [
    "id",
    "issueNumber",
    "projectName",
    "repositoryUrl",
    "fulfillmentUrl",
    "wishlistUrl",
    "maintainerUsername",
    "maintainerAvatarUrl",
    "approved",
    "status",
    "state",
    "formSource",
    "wishes",
    "resources",
    "technologies",
    "urgency",
    "openToSponsorship",
    "wantsFundingYml",
    "createdAt",
    "updatedAt",
]


def _record_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "required": list(_REQUIRED_RECORD_FIELDS),
        "properties": {
            "id": {"type": "string", "pattern": "^[a-z0-9]+(-[a-z0-9]+)*$"},
            "issueNumber": {"type": "integer", "minimum": 1},
            "projectName": {"type": "string", "minLength": 1},
            "repositoryUrl": _STRING,
            "fulfillmentUrl": {"type": "string", "minLength": 1},
            "wishlistUrl": _STRING,
            "maintainerUsername": _STRING,
            "maintainerAvatarUrl": _STRING,
            "approved": {"type": "boolean"},
            "status": {"enum": ["approved", "pending"]},
            "state": _STRING,
            "formSource": {"enum": ["body", "comment"]},
            "wishes": _STRING_LIST,
            "resources": _STRING_LIST,
            "technologies": _STRING_LIST,
            "urgency": {"enum": list(URGENCY_LEVELS)},
            "projectSize": {"enum": list(PROJECT_SIZES)},
            "organizationType": {"enum": list(ORGANIZATION_TYPES)},
            "organizationName": _STRING,
            "timeline": _STRING,
            "additionalNotes": _STRING,
            "additionalContext": _STRING,
            "preferredPractitioner": _STRING,
            "nomineeName": _STRING,
            "nomineeEmail": _STRING,
            "nomineeGithub": _STRING,
            "openToSponsorship": {"type": "boolean"},
            "wantsFundingYml": {"type": "boolean"},
            "createdAt": _STRING,
            "updatedAt": _STRING,
        },
    }


def get_cache_schema() -> dict[str, Any]:
    descriptor = get_schema_descriptor("cache")
    return {
        SCHEMA_KEY: SCHEMA_URL,
        "$comment": f"wishlist-cache schema v{descriptor.version}",
        "title": "WishlistCache",
        "type": "object",
        "required": [
            "schema_version",
            "generatedAt",
            "totalWishlists",
            "approvedCount",
            "pendingCount",
            "ecosystemStats",
            "serviceStats",
            "wishlists",
        ],
        "properties": {
            "schema_version": {"type": "string", "const": descriptor.version},
            "generatedAt": _STRING,
            "generatedBy": _STRING,
            "dataSource": _STRING,
            "totalWishlists": {"type": "integer", "minimum": 0},
            "approvedCount": {"type": "integer", "minimum": 0},
            "pendingCount": {"type": "integer", "minimum": 0},
            "ecosystemStats": _COUNTS,
            "serviceStats": _COUNTS,
            "wishlists": {"type": "array", "items": _record_schema()},
        },
    }


def validate_cache_document(document: Any) -> list[str]:
    """Return human-readable schema violations (empty when valid)."""
    validator = Draft7Validator(get_cache_schema())
    errors = sorted(
        validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path]
    )
    messages: list[str] = []
    for err in errors:
        location = "/".join(str(p) for p in err.absolute_path) or "<root>"
        messages.append(f"{location}: {err.message}")
    if isinstance(document, dict) and not messages:
        approved = document.get("approvedCount", 0)
        pending = document.get("pendingCount", 0)
        total = document.get("totalWishlists", 0)
        if approved + pending != total:
            messages.append("<root>: approvedCount + pendingCount must equal totalWishlists")
        if total != len(document.get("wishlists", [])):
            messages.append("<root>: totalWishlists must equal the number of wishlists")
    return messages


__all__ = ["SCHEMA_URL", "get_cache_schema", "validate_cache_document"]
