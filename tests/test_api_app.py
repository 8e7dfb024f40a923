from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from story_shelf.adapters.sqlite_story_store import SQLiteStoryStore
from story_shelf.api.app import create_app
from story_shelf.core.errors import StoreError
from story_shelf.core.story_query import StoryQuery

CHAPTER_DATE = re.compile(r"^\d{2} (January|February|March|April|May|June|July|August|"
                          r"September|October|November|December) \d{4}$")


def _story_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "title": "The Lantern Road",
        "writers": "Mira Sol",
        "synopsis": "A courier crosses a haunted valley.",
        "category": "Fantasy",
        "status": "Ongoing",
        "keyword": ["travel", "ghosts"],
        "cover": "",
        "chapters": [{"title": "Departure", "content": "She left at dawn."}],
    }
    body.update(overrides)
    return body


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.delenv("STORY_SHELF_STORE_BACKEND", raising=False)
    monkeypatch.delenv("STORY_SHELF_CORS_ORIGINS", raising=False)
    return TestClient(create_app(db_path=tmp_path / "stories.db", upload_dir=tmp_path / "uploads"))


class FailingStore(SQLiteStoryStore):
    def list_stories(self, *, query: StoryQuery) -> list[Any]:
        raise StoreError("list", "connection reset by peer")

    def get_story(self, *, story_id: str) -> Any:
        raise StoreError("get", "connection reset by peer")

    def delete_story(self, *, story_id: str) -> bool:
        raise StoreError("delete", "connection reset by peer")

    def create_story(self, *, fields: Any) -> Any:
        raise StoreError("create", "duplicate key error")

    def replace_story(self, *, story_id: str, fields: Any) -> Any:
        raise StoreError("update", "write conflict")

    def append_chapter(self, *, story_id: str, chapter: Any, last_updated: str) -> Any:
        raise StoreError("append_chapter", "document too large")


def test_root_health_and_api_discovery(client: TestClient) -> None:
    assert client.get("/").text == "Backend running"
    assert client.get("/healthz").json() == {"status": "ok", "service": "story_shelf"}
    discovery = client.get("/api").json()
    assert discovery["name"] == "story_shelf"
    assert discovery["persistence"] == "sqlite"
    assert "/api/stories/upload/cover" in discovery["endpoints"]


def test_openapi_lists_story_routes(client: TestClient) -> None:
    payload = client.get("/openapi.json").json()
    assert payload["info"]["title"] == "story_shelf API"
    assert "/api/stories/{story_id}/chapters" in payload["paths"]
    assert any(tag["name"] == "uploads" for tag in payload["tags"])


def test_story_crud_lifecycle(client: TestClient) -> None:
    create = client.post("/api/stories", json=_story_body())
    assert create.status_code == 201
    created = create.json()
    story_id = created["id"]
    assert story_id
    assert created["title"] == "The Lantern Road"
    assert created["keyword"] == ["travel", "ghosts"]
    assert created["lastUpdated"].endswith("Z")
    assert created["createdAt"]
    assert all(CHAPTER_DATE.match(chapter["updatedAt"]) for chapter in created["chapters"])

    fetched = client.get(f"/api/stories/{story_id}")
    assert fetched.status_code == 200
    assert fetched.json() == created

    replacement = dict(created, title="The Lantern Road, Revised")
    replacement["chapters"] = [
        *created["chapters"],
        {"title": "The Ford", "content": "Water rose.", "updatedAt": "01 January 1999"},
    ]
    update = client.put(f"/api/stories/{story_id}", json=replacement)
    assert update.status_code == 200
    updated = update.json()
    assert updated["id"] == story_id
    assert updated["title"] == "The Lantern Road, Revised"
    assert len(updated["chapters"]) == 2
    assert all(chapter["updatedAt"] != "01 January 1999" for chapter in updated["chapters"])
    assert all(CHAPTER_DATE.match(chapter["updatedAt"]) for chapter in updated["chapters"])

    deleted = client.delete(f"/api/stories/{story_id}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Story deleted"}
    missing = client.get(f"/api/stories/{story_id}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Story not found"}


@pytest.mark.parametrize("field_name", ["title", "writers", "category", "status"])
def test_create_rejects_missing_required_fields(client: TestClient, field_name: str) -> None:
    body = _story_body()
    del body[field_name]
    response = client.post("/api/stories", json=body)
    assert response.status_code == 400
    assert field_name in response.json()["error"]
    assert client.get("/api/stories").json() == []


def test_create_rejects_blank_fields_and_missing_chapters(client: TestClient) -> None:
    response = client.post("/api/stories", json=_story_body(title="   ", chapters=[]))
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field(s): title, chapters."}


def test_create_rejects_malformed_bodies_with_400(client: TestClient) -> None:
    wrong_type = client.post("/api/stories", json=_story_body(chapters="not-a-list"))
    assert wrong_type.status_code == 400
    assert "chapters" in wrong_type.json()["error"]
    not_json = client.post(
        "/api/stories", content=b"{oops", headers={"Content-Type": "application/json"}
    )
    assert not_json.status_code == 400


def test_create_accepts_null_optional_fields(client: TestClient) -> None:
    response = client.post("/api/stories", json=_story_body(synopsis=None, keyword=None, cover=None))
    assert response.status_code == 201
    payload = response.json()
    assert payload["synopsis"] == ""
    assert payload["keyword"] == []
    assert payload["cover"] == ""


def test_prose_fields_keep_their_whitespace(client: TestClient) -> None:
    content = "    Indented.\n\nNext.\n"
    created = client.post(
        "/api/stories",
        json=_story_body(
            synopsis="  lead space",
            chapters=[{"title": " Prologue ", "content": content}],
        ),
    ).json()
    assert created["synopsis"] == "  lead space"
    assert created["chapters"][0] == {
        "title": " Prologue ",
        "content": content,
        "updatedAt": created["chapters"][0]["updatedAt"],
    }

    appended = client.post(
        f"/api/stories/{created['id']}/chapters",
        json={"title": "Two", "content": content},
    ).json()
    assert appended["chapters"][-1]["content"] == content
    assert client.get(f"/api/stories/{created['id']}").json()["chapters"][-1]["content"] == content


def test_required_fields_are_trimmed_before_storing(client: TestClient) -> None:
    created = client.post(
        "/api/stories", json=_story_body(title="  The Lantern Road ", status=" Ongoing")
    ).json()
    assert created["title"] == "The Lantern Road"
    assert created["status"] == "Ongoing"


def test_list_filters_by_search_category_and_status(client: TestClient) -> None:
    lantern = client.post("/api/stories", json=_story_body()).json()
    harbor = client.post(
        "/api/stories",
        json=_story_body(
            title="Salt Harbor", writers="Ode Lark", category="Mystery", status="Completed"
        ),
    ).json()

    def ids(**params: str) -> list[str]:
        response = client.get("/api/stories", params=params)
        assert response.status_code == 200
        return [story["id"] for story in response.json()]

    assert ids() == [lantern["id"], harbor["id"]]
    assert ids(search="LANTERN") == [lantern["id"]]
    assert ids(search="lark") == [harbor["id"]]
    assert ids(category="Mystery") == [harbor["id"]]
    assert ids(category="mystery") == []
    assert ids(status="Ongoing", category="Fantasy", search="mira") == [lantern["id"]]
    assert ids(search="", category="", status="") == [lantern["id"], harbor["id"]]
    assert ids(search="nothing-matches") == []


def test_update_missing_story_returns_404_and_leaves_store_unchanged(client: TestClient) -> None:
    created = client.post("/api/stories", json=_story_body()).json()
    response = client.put("/api/stories/does-not-exist", json=_story_body(title="Ghost"))
    assert response.status_code == 404
    assert response.json() == {"error": "Story not found"}
    assert client.get("/api/stories").json() == [created]


def test_update_validates_required_fields(client: TestClient) -> None:
    created = client.post("/api/stories", json=_story_body()).json()
    response = client.put(f"/api/stories/{created['id']}", json=_story_body(writers=""))
    assert response.status_code == 400
    assert "writers" in response.json()["error"]


def test_append_chapter_adds_one_chapter(client: TestClient) -> None:
    created = client.post("/api/stories", json=_story_body()).json()
    response = client.post(
        f"/api/stories/{created['id']}/chapters",
        json={"title": "Crossing", "content": "The bridge held.", "updatedAt": "bogus"},
    )
    assert response.status_code == 200
    story = response.json()
    assert len(story["chapters"]) == len(created["chapters"]) + 1
    assert story["chapters"][:-1] == created["chapters"]
    assert story["chapters"][-1]["title"] == "Crossing"
    assert CHAPTER_DATE.match(story["chapters"][-1]["updatedAt"])


def test_append_chapter_to_missing_story_returns_404(client: TestClient) -> None:
    response = client.post("/api/stories/missing/chapters", json={"title": "x", "content": "y"})
    assert response.status_code == 404


def test_delete_missing_story_returns_404(client: TestClient) -> None:
    response = client.delete("/api/stories/missing")
    assert response.status_code == 404
    assert response.json() == {"error": "Story not found"}


def test_cover_upload_round_trip(client: TestClient, tmp_path: Path) -> None:
    content = b"\x89PNG\r\n\x1a\nfake-image"
    response = client.post(
        "/api/stories/upload/cover",
        files={"cover": ("my cover.png", content, "image/png")},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["filename"].endswith(".png")
    assert payload["url"] == f"/uploads/{payload['filename']}"
    assert (tmp_path / "uploads" / payload["filename"]).read_bytes() == content

    served = client.get(payload["url"])
    assert served.status_code == 200
    assert served.content == content


def test_cover_upload_without_file_returns_400(client: TestClient) -> None:
    no_body = client.post("/api/stories/upload/cover")
    assert no_body.status_code == 400
    assert no_body.json() == {"error": "No file uploaded"}
    wrong_field = client.post(
        "/api/stories/upload/cover",
        files={"image": ("cover.png", b"bytes", "image/png")},
    )
    assert wrong_field.status_code == 400


def test_store_failures_map_to_500_on_reads_and_400_on_writes(tmp_path: Path) -> None:
    store = FailingStore(db_path=tmp_path / "stories.db")
    client = TestClient(create_app(store=store, upload_dir=tmp_path / "uploads"))

    listed = client.get("/api/stories")
    assert listed.status_code == 500
    assert listed.json() == {"error": "Internal Server Error"}

    fetched = client.get("/api/stories/any")
    assert fetched.status_code == 500
    assert fetched.json() == {"error": "Failed to fetch story"}

    deleted = client.delete("/api/stories/any")
    assert deleted.status_code == 400
    assert deleted.json() == {"error": "connection reset by peer"}

    created = client.post("/api/stories", json=_story_body())
    assert created.status_code == 400
    assert created.json() == {"error": "duplicate key error"}

    replaced = client.put("/api/stories/any", json=_story_body())
    assert replaced.status_code == 400
    assert replaced.json() == {"error": "write conflict"}

    appended = client.post("/api/stories/any/chapters", json={"title": "x", "content": "y"})
    assert appended.status_code == 400
    assert appended.json() == {"error": "document too large"}


def test_cors_allows_any_origin_by_default(client: TestClient) -> None:
    response = client.options(
        "/api/stories",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )
    assert response.status_code == 200
    assert response.headers.get("access-control-allow-origin") == "*"
