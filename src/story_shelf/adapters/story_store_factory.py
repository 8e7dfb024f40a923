"""Factory for selecting the configured story persistence adapter."""

from __future__ import annotations

import os
from pathlib import Path

from story_shelf.adapters.mongo_story_store import MongoStoryStore
from story_shelf.adapters.sqlite_story_store import SQLiteStoryStore
from story_shelf.core.ports import StoryStorePort

DEFAULT_MONGO_DATABASE = "story_shelf"
DEFAULT_MONGO_COLLECTION = "stories"


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def create_story_store(*, db_path: Path) -> StoryStorePort:
    """Build the store backend named by ``STORY_SHELF_STORE_BACKEND``."""
    backend = _env("STORY_SHELF_STORE_BACKEND", "sqlite").lower()
    if backend == "sqlite":
        return SQLiteStoryStore(db_path=db_path)
    if backend == "mongo":
        uri = _env("STORY_SHELF_MONGODB_URI") or _env("MONGODB_URI")
        if not uri:
            raise RuntimeError(
                "STORY_SHELF_STORE_BACKEND=mongo requires STORY_SHELF_MONGODB_URI (or MONGODB_URI)."
            )
        return MongoStoryStore.from_uri(
            uri=uri,
            database=_env("STORY_SHELF_MONGODB_DATABASE", DEFAULT_MONGO_DATABASE),
            collection=_env("STORY_SHELF_MONGODB_COLLECTION", DEFAULT_MONGO_COLLECTION),
        )
    raise RuntimeError("Unsupported STORY_SHELF_STORE_BACKEND value. Expected sqlite or mongo.")
