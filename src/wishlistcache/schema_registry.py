"""Central schema registry with version metadata and filenames."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SchemaDescriptor:
    """Describes a schema artifact shipped with wishlist-cache."""

    name: str
    version: str
    filename: str
    description: str


_REGISTRY: dict[str, SchemaDescriptor] = {
    "cache": SchemaDescriptor(
        name="cache",
        version="3.0.0",
        filename="all-wishlists.schema.json",
        description="Wishlist cache document consumed by the static site.",
    ),
}


def get_schema_descriptor(name: str) -> SchemaDescriptor:
    """Return a copy of a schema descriptor by name."""

    try:
        descriptor = _REGISTRY[name]
    except KeyError as exc:
        raise KeyError(f"Unknown schema '{name}'") from exc
    return replace(descriptor)


def iter_schema_descriptors() -> Iterable[SchemaDescriptor]:
    for descriptor in _REGISTRY.values():
        yield replace(descriptor)


__all__ = ["SchemaDescriptor", "get_schema_descriptor", "iter_schema_descriptors"]
