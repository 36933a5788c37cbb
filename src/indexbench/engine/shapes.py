"""
Query shapes and index specifications.

Both are immutable values: the engine never mutates a filter, sort, or index
definition it was given, and specs print to (and parse back from) the same
indented JSON text that is echoed to the caller.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from bson import json_util

Direction = Union[int, str]

ASCENDING = 1
DESCENDING = -1
SPECIAL_INDEX_TYPES = frozenset({"text", "hashed", "2d", "2dsphere"})


def pretty(value: Any) -> str:
    """Render a filter, sort, or key pattern as indented JSON for display."""
    return json_util.dumps(value, indent=2)


def _normalize_direction(field_name: str, direction: Any, allow_special: bool) -> Direction:
    # bool is an int subclass; True must not pass as ascending
    if isinstance(direction, bool):
        raise ValueError(f"Invalid direction for '{field_name}': {direction!r}")
    if isinstance(direction, (int, float)) and direction in (ASCENDING, DESCENDING):
        return int(direction)
    if allow_special and isinstance(direction, str) and direction in SPECIAL_INDEX_TYPES:
        return direction
    raise ValueError(f"Invalid direction for '{field_name}': {direction!r}")


def _normalize_keys(
    keys: Mapping[str, Any] | list[tuple[str, Any]],
    allow_special: bool,
) -> tuple[tuple[str, Direction], ...]:
    items = list(keys.items()) if isinstance(keys, Mapping) else list(keys)
    if not items:
        raise ValueError("A key pattern needs at least one field")

    normalized: list[tuple[str, Direction]] = []
    seen: set[str] = set()
    for item in items:
        field_name, direction = item
        if not isinstance(field_name, str) or not field_name:
            raise ValueError(f"Invalid field name: {field_name!r}")
        if field_name in seen:
            raise ValueError(f"Duplicate field in key pattern: '{field_name}'")
        seen.add(field_name)
        normalized.append((field_name, _normalize_direction(field_name, direction, allow_special)))
    return tuple(normalized)


@dataclass(frozen=True)
class IndexSpec:
    """Ordered mapping of field name to index direction."""

    keys: tuple[tuple[str, Direction], ...]

    @classmethod
    def from_mapping(cls, keys: Mapping[str, Any] | list[tuple[str, Any]]) -> IndexSpec:
        """Build a spec from ``{"field": 1}`` or ``[("field", 1)]``."""
        return cls(keys=_normalize_keys(keys, allow_special=True))

    @classmethod
    def parse(cls, text: str) -> IndexSpec:
        """Parse the JSON text produced by :meth:`pretty`."""
        value = json_util.loads(text)
        if not isinstance(value, Mapping):
            raise ValueError(f"Index specification must be a JSON object, got {type(value).__name__}")
        return cls.from_mapping(value)

    @property
    def fields(self) -> list[str]:
        return [name for name, _ in self.keys]

    def as_dict(self) -> dict[str, Direction]:
        return dict(self.keys)

    def to_pymongo(self) -> list[tuple[str, Direction]]:
        """Key list accepted by ``create_index``."""
        return list(self.keys)

    def pretty(self) -> str:
        return pretty(self.as_dict())

    def __str__(self) -> str:
        return ", ".join(f"{name}: {direction}" for name, direction in self.keys)


@dataclass(frozen=True)
class QueryShape:
    """
    Filter, optional sort, and result cap of one benchmarked query.

    The filter is deep-copied on construction; ``filter_document()`` hands out
    fresh copies so nothing downstream can alter the shape.
    """

    filter: dict[str, Any] = field(default_factory=dict)
    sort: tuple[tuple[str, int], ...] | None = None
    limit: int = 100

    def __post_init__(self) -> None:
        if not isinstance(self.filter, Mapping):
            raise ValueError("Query filter must be a mapping")
        if self.limit < 1:
            raise ValueError(f"Result limit must be positive, got {self.limit}")
        object.__setattr__(self, "filter", copy.deepcopy(dict(self.filter)))
        if self.sort is not None:
            sort = _normalize_keys(self.sort, allow_special=False)
            object.__setattr__(self, "sort", sort)

    @classmethod
    def build(
        cls,
        filter: Mapping[str, Any] | None,
        sort: Mapping[str, Any] | None = None,
        limit: int = 100,
    ) -> QueryShape:
        return cls(
            filter=dict(filter or {}),
            sort=tuple(sort.items()) if sort else None,
            limit=limit,
        )

    def filter_document(self) -> dict[str, Any]:
        return copy.deepcopy(self.filter)

    def sort_document(self) -> dict[str, int] | None:
        return dict(self.sort) if self.sort else None

    def with_limit(self, limit: int) -> QueryShape:
        """Same filter and sort with a different result cap."""
        return QueryShape(filter=self.filter, sort=self.sort, limit=limit)
