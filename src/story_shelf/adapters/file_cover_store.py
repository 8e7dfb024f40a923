"""Filesystem blob store for uploaded cover images."""

from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path, PurePath

from story_shelf.core.story_records import StoredCover

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"


def generate_cover_filename(original_filename: str) -> str:
    """Return ``<epoch-millis>-<random><ext>`` keeping the original extension."""
    suffix = PurePath(original_filename or "").suffix.lower()
    return f"{time.time_ns() // 1_000_000}-{secrets.randbelow(1_000_000_000)}{suffix}"


class FileCoverStore:
    """Write cover blobs into a directory served under ``/uploads``."""

    def __init__(self, upload_dir: Path) -> None:
        self._upload_dir = upload_dir
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def save_cover(self, *, original_filename: str, data: bytes) -> StoredCover:
        """Persist one blob under a fresh, collision-resistant name."""
        filename = generate_cover_filename(original_filename)
        target = self._upload_dir / filename
        while target.exists():
            filename = generate_cover_filename(original_filename)
            target = self._upload_dir / filename
        target.write_bytes(data)
        logger.info("cover.saved filename=%s bytes=%s", filename, len(data))
        return StoredCover(filename=filename, url=f"{UPLOADS_URL_PREFIX}/{filename}")
