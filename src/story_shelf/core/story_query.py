"""Search predicates for story listing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol


class SearchableStory(Protocol):
    @property
    def title(self) -> str: ...

    @property
    def writers(self) -> str: ...

    @property
    def category(self) -> str: ...

    @property
    def status(self) -> str: ...


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value or None


@dataclass(frozen=True)
class StoryQuery:
    """Listing filters; a ``None`` field imposes no constraint.

    ``search`` is a case-insensitive substring matched against title OR
    writers. ``category`` and ``status`` are exact, case-sensitive matches.
    All present filters combine with AND.
    """

    search: str | None = None
    category: str | None = None
    status: str | None = None

    @classmethod
    def from_params(
        cls,
        *,
        search: str | None = None,
        category: str | None = None,
        status: str | None = None,
    ) -> StoryQuery:
        """Build a query from raw request parameters, treating empty strings as absent."""
        return cls(search=_clean(search), category=_clean(category), status=_clean(status))

    @property
    def is_empty(self) -> bool:
        return self.search is None and self.category is None and self.status is None

    def matches_search(self, story: SearchableStory) -> bool:
        if self.search is None:
            return True
        needle = self.search.lower()
        return needle in story.title.lower() or needle in story.writers.lower()

    def matches(self, story: SearchableStory) -> bool:
        if self.category is not None and story.category != self.category:
            return False
        if self.status is not None and story.status != self.status:
            return False
        return self.matches_search(story)

    def to_mongo_filter(self) -> dict[str, Any]:
        """Render the query as a MongoDB filter document."""
        clauses: list[dict[str, Any]] = []
        if self.search is not None:
            pattern = {"$regex": re.escape(self.search), "$options": "i"}
            clauses.append({"$or": [{"title": pattern}, {"writers": pattern}]})
        if self.category is not None:
            clauses.append({"category": self.category})
        if self.status is not None:
            clauses.append({"status": self.status})
        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}
