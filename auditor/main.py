"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auditor.api import comments, metadata, reviews
from auditor.config import Settings, get_settings
from auditor.middleware.logging import RequestLoggingMiddleware
from auditor.services.git_diff import GitDiffProvider
from auditor.services.redis_store import RedisSnapshotStore
from auditor.services.review_service import ReviewService
from auditor.services.snapshot_store import JsonFileSnapshotStore, SnapshotStore
from auditor.utils.logging import get_logger, setup_logging

VERSION = "0.1.0"

logger = get_logger(__name__)


def build_store(settings: Settings) -> SnapshotStore:
    """
    Create the snapshot store selected by the settings.

    Raises:
        ValueError: If the redis backend is selected without a redis_url
    """
    if settings.storage_backend == "redis":
        if not settings.redis_url:
            raise ValueError("redis_url is required when storage_backend is 'redis'")
        return RedisSnapshotStore(settings.redis_url)
    return JsonFileSnapshotStore(settings.db_path)


def build_review_service(settings: Settings, store: SnapshotStore) -> ReviewService:
    return ReviewService(
        store=store,
        diff_provider=GitDiffProvider(settings.repository_path),
        repository_path=settings.repository_path,
        excluded_prefixes=settings.excluded_prefixes,
        allowed_file_extensions=settings.allowed_file_extensions,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and review service on startup, release them on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting line review auditor")

    store = build_store(settings)
    await store.initialize()
    app.state.review_service = build_review_service(settings, store)
    logger.info(
        f"Review service ready for {settings.repository_path}",
        extra={"storage_backend": settings.storage_backend},
    )

    yield

    logger.info("Shutting down line review auditor")
    await store.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Line Review Auditor",
        description="Tracks reviewed, modified and ignored line ranges across commits",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": VERSION}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Send requests to /reviews, /transform, /info, /comments and /metadata",
            "version": VERSION,
            "docs": "/docs",
        }

    app.include_router(reviews.router)
    app.include_router(comments.router)
    app.include_router(metadata.router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
