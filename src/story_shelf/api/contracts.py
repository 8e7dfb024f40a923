"""Typed contracts shared by API handlers and Python interfaces."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from story_shelf.core.story_records import StoredChapter, StoredCover, StoredStory
from story_shelf.core.story_service import ChapterDraft, StoryDraft


class PayloadModel(BaseModel):
    """Base config for request bodies.

    Unknown keys are dropped so clients can send back a fetched story
    (``id``, ``createdAt``, chapter ``updatedAt``...) as a replacement body.
    """

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)
        return value


class ResponseModel(BaseModel):
    """Base config for response bodies rendered with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class ChapterPayload(PayloadModel):
    """Chapter content sent by clients."""

    title: str = ""
    content: str = ""

    def to_draft(self) -> ChapterDraft:
        return ChapterDraft(title=self.title, content=self.content)


class StoryPayload(PayloadModel):
    """Story body for create and full replacement."""

    title: str = ""
    writers: str = ""
    synopsis: str = ""
    category: str = ""
    status: str = ""
    keyword: list[str] = Field(default_factory=list)
    cover: str = ""
    chapters: list[ChapterPayload] = Field(default_factory=list)

    @field_validator("keyword", mode="before")
    @classmethod
    def _split_keyword_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.split(",")
        return value

    def to_draft(self) -> StoryDraft:
        return StoryDraft(
            title=self.title,
            writers=self.writers,
            synopsis=self.synopsis,
            category=self.category,
            status=self.status,
            keyword=tuple(self.keyword),
            cover=self.cover,
            chapters=tuple(chapter.to_draft() for chapter in self.chapters),
        )


class ChapterResponse(ResponseModel):
    """Stored chapter with its server-assigned date."""

    title: str
    content: str
    updated_at: str = Field(alias="updatedAt")

    @classmethod
    def from_stored(cls, chapter: StoredChapter) -> ChapterResponse:
        return cls(title=chapter.title, content=chapter.content, updated_at=chapter.updated_at)


class StoryResponse(ResponseModel):
    """Stored story as returned by every story endpoint."""

    id: str
    title: str
    writers: str
    synopsis: str
    category: str
    status: str
    keyword: list[str]
    cover: str
    chapters: list[ChapterResponse]
    last_updated: str = Field(alias="lastUpdated")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    @classmethod
    def from_stored(cls, story: StoredStory) -> StoryResponse:
        return cls(
            id=story.story_id,
            title=story.title,
            writers=story.writers,
            synopsis=story.synopsis,
            category=story.category,
            status=story.status,
            keyword=list(story.keyword),
            cover=story.cover,
            chapters=[ChapterResponse.from_stored(chapter) for chapter in story.chapters],
            last_updated=story.last_updated,
            created_at=story.created_at_utc,
            updated_at=story.updated_at_utc,
        )


class DeleteResponse(ResponseModel):
    message: str = "Story deleted"


class CoverUploadResponse(ResponseModel):
    """Saved cover location to attach to a story's ``cover`` field."""

    filename: str
    url: str

    @classmethod
    def from_stored(cls, cover: StoredCover) -> CoverUploadResponse:
        return cls(filename=cover.filename, url=cover.url)


class ErrorResponse(ResponseModel):
    error: str


class HealthResponse(ResponseModel):
    """Simple health payload used by probes."""

    status: Literal["ok"] = "ok"
    service: str = "story_shelf"


class ApiRootResponse(ResponseModel):
    """Describes the available API endpoints and the active store backend."""

    name: str = "story_shelf"
    persistence: str = "sqlite"
    endpoints: list[str] = Field(
        default_factory=lambda: [
            "/api/stories",
            "/api/stories/{story_id}",
            "/api/stories/{story_id}/chapters",
            "/api/stories/upload/cover",
            "/uploads/{filename}",
        ]
    )
