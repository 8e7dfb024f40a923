"""Story service: payload validation, server-side timestamps, and store orchestration.

Every operation is a single store call. The service holds no state between
calls beyond its collaborators, so one instance is shared by all requests.
Chapter ``updatedAt`` and story ``lastUpdated`` values are always computed
here from the injected clock; client-supplied values never reach the store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from story_shelf.core.errors import CoverUploadError, StoryNotFoundError, StoryValidationError
from story_shelf.core.ports import CoverStorePort, StoryStorePort
from story_shelf.core.story_query import StoryQuery
from story_shelf.core.story_records import StoredChapter, StoredCover, StoredStory, StoryFields

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
REQUIRED_TEXT_FIELDS = ("title", "writers", "category", "status")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChapterDraft:
    """Client-supplied chapter content."""

    title: str = ""
    content: str = ""


@dataclass(frozen=True)
class StoryDraft:
    """Client-supplied story payload for create and full replacement."""

    title: str = ""
    writers: str = ""
    synopsis: str = ""
    category: str = ""
    status: str = ""
    keyword: tuple[str, ...] = ()
    cover: str = ""
    chapters: tuple[ChapterDraft, ...] = ()


def _local_now() -> datetime:
    return datetime.now().astimezone()


def format_chapter_date(moment: datetime) -> str:
    """Format as ``DD Month YYYY``, e.g. ``05 March 2024``."""
    return f"{moment.day:02d} {MONTH_NAMES[moment.month - 1]} {moment.year:04d}"


def format_instant(moment: datetime) -> str:
    """Format as a UTC ISO-8601 instant with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    utc_moment = moment.astimezone(UTC)
    return utc_moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc_moment.microsecond // 1000:03d}Z"


def missing_story_fields(draft: StoryDraft) -> list[str]:
    """Names of required fields that are empty, in a stable order."""
    missing = [name for name in REQUIRED_TEXT_FIELDS if not getattr(draft, name).strip()]
    if not draft.chapters:
        missing.append("chapters")
    return missing


class StoryService:
    """Validate story writes and orchestrate store operations."""

    def __init__(
        self,
        *,
        store: StoryStorePort,
        cover_store: CoverStorePort,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._store = store
        self._cover_store = cover_store
        self._clock = clock

    def list_stories(
        self,
        *,
        search: str | None = None,
        category: str | None = None,
        status: str | None = None,
    ) -> list[StoredStory]:
        query = StoryQuery.from_params(search=search, category=category, status=status)
        return self._store.list_stories(query=query)

    def get_story(self, *, story_id: str) -> StoredStory:
        story = self._store.get_story(story_id=story_id)
        if story is None:
            raise StoryNotFoundError(story_id)
        return story

    def create_story(self, *, draft: StoryDraft) -> StoredStory:
        fields = self._validated_fields(draft)
        story = self._store.create_story(fields=fields)
        logger.info("story.created id=%s chapters=%s", story.story_id, len(story.chapters))
        return story

    def update_story(self, *, story_id: str, draft: StoryDraft) -> StoredStory:
        """Replace the whole story; every chapter is re-stamped."""
        fields = self._validated_fields(draft)
        story = self._store.replace_story(story_id=story_id, fields=fields)
        if story is None:
            raise StoryNotFoundError(story_id)
        logger.info("story.updated id=%s chapters=%s", story.story_id, len(story.chapters))
        return story

    def delete_story(self, *, story_id: str) -> None:
        if not self._store.delete_story(story_id=story_id):
            raise StoryNotFoundError(story_id)
        logger.info("story.deleted id=%s", story_id)

    def append_chapter(self, *, story_id: str, chapter: ChapterDraft) -> StoredStory:
        now = self._clock()
        story = self._store.append_chapter(
            story_id=story_id,
            chapter=self._stamped_chapter(chapter, now),
            last_updated=format_instant(now),
        )
        if story is None:
            raise StoryNotFoundError(story_id)
        logger.info("story.chapter_appended id=%s chapters=%s", story_id, len(story.chapters))
        return story

    def upload_cover(self, *, filename: str | None, data: bytes | None) -> StoredCover:
        if not data:
            raise CoverUploadError("No file uploaded")
        return self._cover_store.save_cover(original_filename=filename or "", data=data)

    def _validated_fields(self, draft: StoryDraft) -> StoryFields:
        missing = missing_story_fields(draft)
        if missing:
            raise StoryValidationError(missing)
        now = self._clock()
        return StoryFields(
            title=draft.title.strip(),
            writers=draft.writers.strip(),
            synopsis=draft.synopsis,
            category=draft.category.strip(),
            status=draft.status.strip(),
            keyword=_clean_keywords(draft.keyword),
            cover=draft.cover,
            chapters=tuple(self._stamped_chapter(chapter, now) for chapter in draft.chapters),
            last_updated=format_instant(now),
        )

    @staticmethod
    def _stamped_chapter(chapter: ChapterDraft, now: datetime) -> StoredChapter:
        return StoredChapter(
            title=chapter.title,
            content=chapter.content,
            updated_at=format_chapter_date(now),
        )


def _clean_keywords(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(value.strip() for value in values if value.strip())
