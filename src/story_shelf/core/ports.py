"""Ports for story persistence and cover blob storage."""

from __future__ import annotations

from typing import Protocol

from story_shelf.core.story_query import StoryQuery
from story_shelf.core.story_records import StoredChapter, StoredCover, StoredStory, StoryFields


class StoryStorePort(Protocol):
    """Persistence operations needed by the story service."""

    def list_stories(self, *, query: StoryQuery) -> list[StoredStory]: ...

    def get_story(self, *, story_id: str) -> StoredStory | None: ...

    def create_story(self, *, fields: StoryFields) -> StoredStory: ...

    def replace_story(self, *, story_id: str, fields: StoryFields) -> StoredStory | None: ...

    def append_chapter(
        self, *, story_id: str, chapter: StoredChapter, last_updated: str
    ) -> StoredStory | None: ...

    def delete_story(self, *, story_id: str) -> bool: ...


class CoverStorePort(Protocol):
    """Writes uploaded cover blobs somewhere publicly served."""

    def save_cover(self, *, original_filename: str, data: bytes) -> StoredCover: ...
