"""SQLite-backed document store for story records."""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from story_shelf.core.errors import StoreError
from story_shelf.core.story_query import StoryQuery
from story_shelf.core.story_records import StoredChapter, StoredStory, StoryFields

_STORY_COLUMNS = "story_id, document_json, created_at_utc, updated_at_utc"


class SQLiteStoryStore:
    """Persist story documents as JSON rows in one SQLite database.

    ``category`` and ``status`` are mirrored into indexed columns so equality
    filters run in SQL; the substring search runs over the loaded documents.
    Rows are returned in insertion order.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(str(self._db_path))
        connection.row_factory = sqlite3.Row
        return connection

    def _initialize_schema(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS stories (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL UNIQUE,
                    category TEXT NOT NULL,
                    status TEXT NOT NULL,
                    document_json TEXT NOT NULL,
                    created_at_utc TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_stories_category_status
                ON stories(category, status)
                """
            )

    def list_stories(self, *, query: StoryQuery) -> list[StoredStory]:
        """Return stories matching the query in insertion order."""
        clauses: list[str] = []
        params: list[str] = []
        if query.category is not None:
            clauses.append("category = ?")
            params.append(query.category)
        if query.status is not None:
            clauses.append("status = ?")
            params.append(query.status)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            with self._connect() as connection:
                rows = connection.execute(
                    f"SELECT {_STORY_COLUMNS} FROM stories {where} ORDER BY seq ASC",
                    params,
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("list", str(exc)) from exc
        stories = [self._story_from_row(row) for row in rows]
        return [story for story in stories if query.matches_search(story)]

    def get_story(self, *, story_id: str) -> StoredStory | None:
        """Load one story by id."""
        try:
            with self._connect() as connection:
                return self._load_story(connection, story_id)
        except sqlite3.Error as exc:
            raise StoreError("get", str(exc)) from exc

    def create_story(self, *, fields: StoryFields) -> StoredStory:
        """Insert one story document and return it with its new id."""
        now = datetime.now(UTC).isoformat()
        story_id = uuid4().hex
        try:
            with self._connect() as connection:
                connection.execute(
                    """
                    INSERT INTO stories
                        (story_id, category, status, document_json, created_at_utc, updated_at_utc)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        story_id,
                        fields.category,
                        fields.status,
                        json.dumps(fields.to_document(), ensure_ascii=False),
                        now,
                        now,
                    ),
                )
                story = self._load_story(connection, story_id)
        except sqlite3.Error as exc:
            raise StoreError("create", str(exc)) from exc
        if story is None:
            raise StoreError("create", "Created story could not be loaded.")
        return story

    def replace_story(self, *, story_id: str, fields: StoryFields) -> StoredStory | None:
        """Replace the whole document; return None when the id does not exist."""
        now = datetime.now(UTC).isoformat()
        try:
            with self._connect() as connection:
                cursor = connection.execute(
                    """
                    UPDATE stories
                    SET category = ?, status = ?, document_json = ?, updated_at_utc = ?
                    WHERE story_id = ?
                    """,
                    (
                        fields.category,
                        fields.status,
                        json.dumps(fields.to_document(), ensure_ascii=False),
                        now,
                        story_id,
                    ),
                )
                if cursor.rowcount == 0:
                    return None
                return self._load_story(connection, story_id)
        except sqlite3.Error as exc:
            raise StoreError("update", str(exc)) from exc

    def append_chapter(
        self, *, story_id: str, chapter: StoredChapter, last_updated: str
    ) -> StoredStory | None:
        """Append one chapter in a single transaction; None when the id does not exist."""
        now = datetime.now(UTC).isoformat()
        try:
            with self._connect() as connection:
                row = connection.execute(
                    "SELECT document_json FROM stories WHERE story_id = ?",
                    (story_id,),
                ).fetchone()
                if row is None:
                    return None
                document = json.loads(str(row["document_json"]))
                chapters = list(document.get("chapters") or [])
                chapters.append(chapter.to_document())
                document["chapters"] = chapters
                document["lastUpdated"] = last_updated
                connection.execute(
                    """
                    UPDATE stories
                    SET document_json = ?, updated_at_utc = ?
                    WHERE story_id = ?
                    """,
                    (json.dumps(document, ensure_ascii=False), now, story_id),
                )
                return self._load_story(connection, story_id)
        except sqlite3.Error as exc:
            raise StoreError("append_chapter", str(exc)) from exc

    def delete_story(self, *, story_id: str) -> bool:
        """Delete one story; return False when nothing matched."""
        try:
            with self._connect() as connection:
                cursor = connection.execute(
                    "DELETE FROM stories WHERE story_id = ?",
                    (story_id,),
                )
                deleted_rows = cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError("delete", str(exc)) from exc
        return deleted_rows > 0

    def _load_story(self, connection: sqlite3.Connection, story_id: str) -> StoredStory | None:
        row = connection.execute(
            f"SELECT {_STORY_COLUMNS} FROM stories WHERE story_id = ?",
            (story_id,),
        ).fetchone()
        if row is None:
            return None
        return self._story_from_row(row)

    @staticmethod
    def _story_from_row(row: sqlite3.Row) -> StoredStory:
        return StoredStory.from_document(
            story_id=str(row["story_id"]),
            payload=json.loads(str(row["document_json"])),
            created_at_utc=str(row["created_at_utc"]),
            updated_at_utc=str(row["updated_at_utc"]),
        )
