"""Domain error taxonomy shared by the service, adapters, and HTTP boundary."""

from __future__ import annotations

from collections.abc import Sequence


class StoryShelfError(Exception):
    """Base class for all story_shelf domain errors."""


class StoryValidationError(StoryShelfError):
    """Raised when a story payload is missing required fields."""

    def __init__(self, missing_fields: Sequence[str]) -> None:
        self.missing_fields = tuple(missing_fields)
        super().__init__(f"Missing required field(s): {', '.join(self.missing_fields)}.")


class StoryNotFoundError(StoryShelfError):
    """Raised when a story identifier does not resolve."""

    def __init__(self, story_id: str) -> None:
        self.story_id = story_id
        super().__init__("Story not found")


class StoreError(StoryShelfError):
    """Raised when the underlying document store fails an operation."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(message)


class CoverUploadError(StoryShelfError):
    """Raised when a cover upload carries no file content."""
