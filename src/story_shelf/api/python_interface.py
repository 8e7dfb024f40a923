"""Python-first interface for the story catalogue API."""

from __future__ import annotations

from pathlib import Path

import httpx

from story_shelf.api.contracts import (
    ChapterPayload,
    CoverUploadResponse,
    StoryPayload,
    StoryResponse,
)


class StoryApiClient:
    """Tiny typed API client for Python users."""

    def __init__(self, api_base_url: str = "http://127.0.0.1:8000") -> None:
        """Initialize client with an API base URL."""
        self._api_base_url = api_base_url.rstrip("/")

    @property
    def api_base_url(self) -> str:
        """Return normalized API base URL."""
        return self._api_base_url

    def list_stories(
        self, *, search: str = "", category: str = "", status: str = ""
    ) -> list[StoryResponse]:
        """Search stories by title/writer substring and exact category/status."""
        params = {
            key: value
            for key, value in {"search": search, "category": category, "status": status}.items()
            if value
        }
        response = httpx.get(f"{self._api_base_url}/api/stories", params=params, timeout=30.0)
        response.raise_for_status()
        return [StoryResponse.model_validate(item) for item in response.json()]

    def get_story(self, *, story_id: str) -> StoryResponse:
        response = httpx.get(f"{self._api_base_url}/api/stories/{story_id}", timeout=30.0)
        response.raise_for_status()
        return StoryResponse.model_validate(response.json())

    def create_story(self, *, story: StoryPayload) -> StoryResponse:
        """Create a story; chapters get server-side dates."""
        response = httpx.post(
            f"{self._api_base_url}/api/stories",
            json=story.model_dump(mode="json"),
            timeout=30.0,
        )
        response.raise_for_status()
        return StoryResponse.model_validate(response.json())

    def update_story(self, *, story_id: str, story: StoryPayload) -> StoryResponse:
        """Replace a story wholesale, chapters included."""
        response = httpx.put(
            f"{self._api_base_url}/api/stories/{story_id}",
            json=story.model_dump(mode="json"),
            timeout=30.0,
        )
        response.raise_for_status()
        return StoryResponse.model_validate(response.json())

    def delete_story(self, *, story_id: str) -> None:
        response = httpx.delete(f"{self._api_base_url}/api/stories/{story_id}", timeout=30.0)
        response.raise_for_status()

    def append_chapter(self, *, story_id: str, chapter: ChapterPayload) -> StoryResponse:
        """Append one chapter and return the full updated story."""
        response = httpx.post(
            f"{self._api_base_url}/api/stories/{story_id}/chapters",
            json=chapter.model_dump(mode="json"),
            timeout=30.0,
        )
        response.raise_for_status()
        return StoryResponse.model_validate(response.json())

    def upload_cover(self, *, path: Path) -> CoverUploadResponse:
        """Upload a cover image; attach the returned URL to a story's ``cover``."""
        with path.open("rb") as handle:
            response = httpx.post(
                f"{self._api_base_url}/api/stories/upload/cover",
                files={"cover": (path.name, handle)},
                timeout=60.0,
            )
        response.raise_for_status()
        return CoverUploadResponse.model_validate(response.json())
