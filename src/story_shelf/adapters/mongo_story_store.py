"""MongoDB document store for story records."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from story_shelf.core.errors import StoreError
from story_shelf.core.story_query import StoryQuery
from story_shelf.core.story_records import StoredChapter, StoredStory, StoryFields

logger = logging.getLogger(__name__)


def _object_id(story_id: str) -> ObjectId | None:
    try:
        return ObjectId(story_id)
    except (InvalidId, TypeError):
        return None


def _now_utc() -> str:
    return datetime.now(UTC).isoformat()


class MongoStoryStore:
    """Persist one document per story in a MongoDB collection.

    Identifiers are the string form of the document ``_id``; malformed ids
    resolve to nothing instead of raising.
    """

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection

    @classmethod
    def from_uri(cls, *, uri: str, database: str, collection: str) -> MongoStoryStore:
        """Connect lazily to ``uri`` and bind the story collection."""
        client: MongoClient[dict[str, Any]] = MongoClient(uri)
        logger.info("mongo.connect database=%s collection=%s", database, collection)
        return cls(client[database][collection])

    def list_stories(self, *, query: StoryQuery) -> list[StoredStory]:
        """Return matching stories in insertion order."""
        try:
            documents = list(self._collection.find(query.to_mongo_filter()).sort("_id", ASCENDING))
        except PyMongoError as exc:
            raise StoreError("list", str(exc)) from exc
        return [self._story_from_document(document) for document in documents]

    def get_story(self, *, story_id: str) -> StoredStory | None:
        object_id = _object_id(story_id)
        if object_id is None:
            return None
        try:
            document = self._collection.find_one({"_id": object_id})
        except PyMongoError as exc:
            raise StoreError("get", str(exc)) from exc
        if document is None:
            return None
        return self._story_from_document(document)

    def create_story(self, *, fields: StoryFields) -> StoredStory:
        now = _now_utc()
        document: dict[str, Any] = {**fields.to_document(), "createdAt": now, "updatedAt": now}
        try:
            result = self._collection.insert_one(document)
        except PyMongoError as exc:
            raise StoreError("create", str(exc)) from exc
        document["_id"] = result.inserted_id
        return self._story_from_document(document)

    def replace_story(self, *, story_id: str, fields: StoryFields) -> StoredStory | None:
        object_id = _object_id(story_id)
        if object_id is None:
            return None
        try:
            document = self._collection.find_one_and_update(
                {"_id": object_id},
                {"$set": {**fields.to_document(), "updatedAt": _now_utc()}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreError("update", str(exc)) from exc
        if document is None:
            return None
        return self._story_from_document(document)

    def append_chapter(
        self, *, story_id: str, chapter: StoredChapter, last_updated: str
    ) -> StoredStory | None:
        object_id = _object_id(story_id)
        if object_id is None:
            return None
        try:
            document = self._collection.find_one_and_update(
                {"_id": object_id},
                {
                    "$push": {"chapters": chapter.to_document()},
                    "$set": {"lastUpdated": last_updated, "updatedAt": _now_utc()},
                },
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreError("append_chapter", str(exc)) from exc
        if document is None:
            return None
        return self._story_from_document(document)

    def delete_story(self, *, story_id: str) -> bool:
        object_id = _object_id(story_id)
        if object_id is None:
            return False
        try:
            document = self._collection.find_one_and_delete({"_id": object_id})
        except PyMongoError as exc:
            raise StoreError("delete", str(exc)) from exc
        return document is not None

    @staticmethod
    def _story_from_document(document: dict[str, Any]) -> StoredStory:
        return StoredStory.from_document(
            story_id=str(document["_id"]),
            payload=document,
            created_at_utc=str(document.get("createdAt") or ""),
            updated_at_utc=str(document.get("updatedAt") or ""),
        )
