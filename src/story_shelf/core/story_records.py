"""Story and chapter records exchanged between the service and its stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StoredChapter:
    """Chapter embedded in a stored story."""

    title: str
    content: str
    updated_at: str

    def to_document(self) -> dict[str, str]:
        return {"title": self.title, "content": self.content, "updatedAt": self.updated_at}

    @classmethod
    def from_document(cls, payload: dict[str, Any]) -> StoredChapter:
        return cls(
            title=str(payload.get("title") or ""),
            content=str(payload.get("content") or ""),
            updated_at=str(payload.get("updatedAt") or ""),
        )


@dataclass(frozen=True)
class StoryFields:
    """Validated, server-stamped story fields ready to be written."""

    title: str
    writers: str
    synopsis: str
    category: str
    status: str
    keyword: tuple[str, ...] = ()
    cover: str = ""
    chapters: tuple[StoredChapter, ...] = ()
    last_updated: str = ""

    def to_document(self) -> dict[str, Any]:
        """Render the fields as a camelCase story document body."""
        return {
            "title": self.title,
            "writers": self.writers,
            "synopsis": self.synopsis,
            "category": self.category,
            "status": self.status,
            "keyword": list(self.keyword),
            "cover": self.cover,
            "chapters": [chapter.to_document() for chapter in self.chapters],
            "lastUpdated": self.last_updated,
        }


@dataclass(frozen=True)
class StoredStory:
    """Stored story document with its identifier and audit timestamps."""

    story_id: str
    title: str
    writers: str
    synopsis: str
    category: str
    status: str
    keyword: tuple[str, ...] = ()
    cover: str = ""
    chapters: tuple[StoredChapter, ...] = ()
    last_updated: str = ""
    created_at_utc: str = ""
    updated_at_utc: str = ""

    @classmethod
    def from_document(
        cls,
        *,
        story_id: str,
        payload: dict[str, Any],
        created_at_utc: str,
        updated_at_utc: str,
    ) -> StoredStory:
        """Rebuild a stored story from a camelCase document body."""
        raw_chapters = payload.get("chapters") or []
        raw_keywords = payload.get("keyword") or []
        return cls(
            story_id=story_id,
            title=str(payload.get("title") or ""),
            writers=str(payload.get("writers") or ""),
            synopsis=str(payload.get("synopsis") or ""),
            category=str(payload.get("category") or ""),
            status=str(payload.get("status") or ""),
            keyword=tuple(str(value) for value in raw_keywords),
            cover=str(payload.get("cover") or ""),
            chapters=tuple(
                StoredChapter.from_document(chapter)
                for chapter in raw_chapters
                if isinstance(chapter, dict)
            ),
            last_updated=str(payload.get("lastUpdated") or ""),
            created_at_utc=created_at_utc,
            updated_at_utc=updated_at_utc,
        )


@dataclass(frozen=True)
class StoredCover:
    """Location of one saved cover image."""

    filename: str
    url: str
