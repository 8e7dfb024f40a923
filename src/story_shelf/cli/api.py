"""CLI entrypoint for serving the story_shelf HTTP API."""

from __future__ import annotations

import argparse
import os

import uvicorn

from story_shelf.adapters.observability import configure_runtime_logging


def build_arg_parser() -> argparse.ArgumentParser:
    """Create CLI args for the API server process."""
    parser = argparse.ArgumentParser(description="Serve story_shelf API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "") or 5000))
    parser.add_argument("--reload", action="store_true")
    parser.add_argument(
        "--db-path",
        default="",
        help="SQLite path for story persistence (default: work/local/story_shelf.db).",
    )
    parser.add_argument(
        "--upload-dir",
        default="",
        help="Directory for uploaded covers served under /uploads (default: public/uploads).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI flags and start uvicorn with the app module path."""
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    db_path = str(parsed.db_path).strip()
    if db_path:
        os.environ["STORY_SHELF_DB_PATH"] = db_path
    upload_dir = str(parsed.upload_dir).strip()
    if upload_dir:
        os.environ["STORY_SHELF_UPLOAD_DIR"] = upload_dir
    uvicorn.run(
        "story_shelf.api.app:app",
        host=str(parsed.host),
        port=int(parsed.port),
        reload=bool(parsed.reload),
    )


if __name__ == "__main__":
    main()
