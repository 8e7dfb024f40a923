"""Public API surface for HTTP serving and Python-first interfaces."""

from story_shelf.api.app import create_app
from story_shelf.api.contracts import ChapterPayload, StoryPayload, StoryResponse
from story_shelf.api.python_interface import StoryApiClient

__all__ = [
    "ChapterPayload",
    "StoryApiClient",
    "StoryPayload",
    "StoryResponse",
    "create_app",
]
