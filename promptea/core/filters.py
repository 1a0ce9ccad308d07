"""Filter Builder: maps optional query parameters onto payload match conditions.

Conditions are vendor-neutral; the vector store gateway translates them into
its own filter type. An empty list means "no filter" and must never be sent to
the store as an empty AND-filter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class Condition:
    """A single payload match: exact ``value`` or membership in ``any_of``."""

    key: str
    value: Any = None
    any_of: tuple[str, ...] | None = None

    @property
    def is_any(self) -> bool:
        return self.any_of is not None

    def matches(self, payload: dict[str, Any]) -> bool:
        """Evaluate the condition against a payload (used by in-process stores)."""
        field = payload.get(self.key)
        if self.is_any:
            values = field if isinstance(field, (list, tuple, set)) else [field]
            return any(v in self.any_of for v in values)
        if isinstance(field, (list, tuple, set)):
            return self.value in field
        return field == self.value


def build_filter(
    category: str | None = None,
    tags: list[str] | None = None,
    difficulty: str | None = None,
    featured: bool | None = None,
    contributor: str | None = None,
) -> list[Condition]:
    """Build the condition list for a search or browse request.

    ``category == "all"`` disables category filtering. ``featured`` is
    tri-state: ``None`` adds nothing, ``False`` filters on non-featured prompts.
    """
    conditions: list[Condition] = []

    if category and category != ALL_CATEGORIES:
        conditions.append(Condition(key="category", value=category))

    if tags:
        conditions.append(Condition(key="tags", any_of=tuple(tags)))

    if difficulty:
        conditions.append(Condition(key="difficulty", value=difficulty))

    if featured is not None:
        conditions.append(Condition(key="featured", value=featured))

    if contributor:
        conditions.append(Condition(key="contributor", value=contributor))

    return conditions
