"""FastAPI application serving the story catalogue and cover uploads."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI, File, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from story_shelf import __version__
from story_shelf.adapters.file_cover_store import UPLOADS_URL_PREFIX, FileCoverStore
from story_shelf.adapters.story_store_factory import create_story_store
from story_shelf.api.contracts import (
    ApiRootResponse,
    ChapterPayload,
    CoverUploadResponse,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    StoryPayload,
    StoryResponse,
)
from story_shelf.core.errors import (
    CoverUploadError,
    StoreError,
    StoryNotFoundError,
    StoryValidationError,
)
from story_shelf.core.ports import StoryStorePort
from story_shelf.core.story_service import StoryService

DEFAULT_DB_PATH = Path("work/local/story_shelf.db")
DEFAULT_UPLOAD_DIR = Path("public/uploads")

# Store failures on read paths hide the backend message.
READ_FAILURE_MESSAGES = {
    "list": "Internal Server Error",
    "get": "Failed to fetch story",
}

logger = logging.getLogger(__name__)


def _resolve_path(explicit: Path | None, env_name: str, default: Path) -> Path:
    """Resolve a path from explicit arg, env var, then default path."""
    if explicit is not None:
        return explicit
    env_value = os.environ.get(env_name, "").strip()
    if env_value:
        return Path(env_value)
    return default


def _cors_origins() -> list[str]:
    raw = os.environ.get("STORY_SHELF_CORS_ORIGINS", "").strip()
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return ["*"]


def _store_backend_name() -> str:
    return os.environ.get("STORY_SHELF_STORE_BACKEND", "").strip().lower() or "sqlite"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _request_validation_message(exc: RequestValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "invalid value"))
        details.append(f"{location}: {message}" if location else message)
    return "Invalid request: " + "; ".join(details) if details else "Invalid request"


def create_app(
    db_path: Path | None = None,
    upload_dir: Path | None = None,
    store: StoryStorePort | None = None,
) -> FastAPI:
    """Create the API application.

    ``store`` overrides the env-configured backend; ``db_path`` only applies to
    the SQLite backend.
    """
    effective_db_path = _resolve_path(db_path, "STORY_SHELF_DB_PATH", DEFAULT_DB_PATH)
    effective_upload_dir = _resolve_path(upload_dir, "STORY_SHELF_UPLOAD_DIR", DEFAULT_UPLOAD_DIR)
    story_store = store if store is not None else create_story_store(db_path=effective_db_path)
    cover_store = FileCoverStore(upload_dir=effective_upload_dir)
    service = StoryService(store=story_store, cover_store=cover_store)
    backend_name = type(story_store).__name__ if store is not None else _store_backend_name()

    app = FastAPI(
        title="story_shelf API",
        version=__version__,
        description="Catalogue API for serialized fiction: stories, chapters, and cover images.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "system", "description": "Service health and runtime metadata."},
            {"name": "stories", "description": "Story search, CRUD, and chapter appends."},
            {"name": "uploads", "description": "Cover image uploads served under /uploads."},
        ],
    )
    origins = _cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount(
        UPLOADS_URL_PREFIX,
        StaticFiles(directory=str(effective_upload_dir)),
        name="uploads",
    )

    logger.info(
        "api.start store=%s db_path=%s upload_dir=%s",
        backend_name,
        effective_db_path,
        effective_upload_dir,
    )

    @app.exception_handler(StoryValidationError)
    async def handle_story_validation(_: Request, exc: StoryValidationError) -> JSONResponse:
        logger.debug("story.rejected missing=%s", ",".join(exc.missing_fields))
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(StoryNotFoundError)
    async def handle_story_not_found(_: Request, exc: StoryNotFoundError) -> JSONResponse:
        logger.debug("story.not_found id=%s", exc.story_id)
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(CoverUploadError)
    async def handle_cover_upload(_: Request, exc: CoverUploadError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(StoreError)
    async def handle_store_error(_: Request, exc: StoreError) -> JSONResponse:
        logger.exception("store.failed operation=%s", exc.operation, exc_info=exc)
        generic = READ_FAILURE_MESSAGES.get(exc.operation)
        if generic is not None:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, generic)
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _request_validation_message(exc))

    error_responses: dict[int | str, dict[str, object]] = {
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }

    @app.get("/", response_class=PlainTextResponse, tags=["system"])
    def root() -> str:
        return "Backend running"

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get("/api", response_model=ApiRootResponse, tags=["system"])
    def api_root() -> ApiRootResponse:
        return ApiRootResponse(persistence=backend_name)

    # Registered before /{story_id} routes so "upload" is never read as an id.
    @app.post(
        "/api/stories/upload/cover",
        response_model=CoverUploadResponse,
        responses=error_responses,
        tags=["uploads"],
    )
    def upload_cover(cover: UploadFile | None = File(default=None)) -> CoverUploadResponse:
        if cover is None:
            raise CoverUploadError("No file uploaded")
        stored = service.upload_cover(filename=cover.filename, data=cover.file.read())
        return CoverUploadResponse.from_stored(stored)

    @app.get(
        "/api/stories",
        response_model=list[StoryResponse],
        responses=error_responses,
        tags=["stories"],
    )
    def list_stories(
        search: str = Query(default=""),
        category: str = Query(default=""),
        status_filter: str = Query(default="", alias="status"),
    ) -> list[StoryResponse]:
        stories = service.list_stories(search=search, category=category, status=status_filter)
        return [StoryResponse.from_stored(story) for story in stories]

    @app.get(
        "/api/stories/{story_id}",
        response_model=StoryResponse,
        responses=error_responses,
        tags=["stories"],
    )
    def get_story(story_id: str) -> StoryResponse:
        return StoryResponse.from_stored(service.get_story(story_id=story_id))

    @app.post(
        "/api/stories",
        response_model=StoryResponse,
        responses=error_responses,
        tags=["stories"],
        status_code=201,
    )
    def create_story(payload: StoryPayload) -> StoryResponse:
        return StoryResponse.from_stored(service.create_story(draft=payload.to_draft()))

    @app.put(
        "/api/stories/{story_id}",
        response_model=StoryResponse,
        responses=error_responses,
        tags=["stories"],
    )
    def update_story(story_id: str, payload: StoryPayload) -> StoryResponse:
        story = service.update_story(story_id=story_id, draft=payload.to_draft())
        return StoryResponse.from_stored(story)

    @app.delete(
        "/api/stories/{story_id}",
        response_model=DeleteResponse,
        responses=error_responses,
        tags=["stories"],
    )
    def delete_story(story_id: str) -> DeleteResponse:
        service.delete_story(story_id=story_id)
        return DeleteResponse()

    @app.post(
        "/api/stories/{story_id}/chapters",
        response_model=StoryResponse,
        responses=error_responses,
        tags=["stories"],
    )
    def append_chapter(story_id: str, payload: ChapterPayload) -> StoryResponse:
        story = service.append_chapter(story_id=story_id, chapter=payload.to_draft())
        return StoryResponse.from_stored(story)

    return app


app = create_app()
