import os
import logging
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.application.interfaces import IArtifactStore
from app.application.use_cases.render_video import RenderVideoUseCase
from app.core.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware
from app.core.exceptions import not_found_exception_handler
from app.infrastructure.adapters import LocalArtifactStore
from app.presentation.api.v1.dependencies.render import build_render_video_use_case
from app.presentation.api.v1.routers import health, render, videos
from app.core.config import settings
from utils.resource_manager import cleanup_old_temp_directories


def configure_logging() -> None:
    """Log to console and, when LOG_FILE is set, to a rotating file"""
    log_handlers = [logging.StreamHandler()]
    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        log_handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=5 * 1024 * 1024,
                backupCount=2,
                encoding="utf-8",
            )
        )
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
        datefmt=settings.log_date_format,
        handlers=log_handlers,
    )


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info(
        "Starting %s v%s on port %d (environment=%s, render slots=%d)",
        settings.api_title,
        settings.api_version,
        settings.port,
        settings.environment,
        settings.max_concurrent_renders,
    )
    removed = cleanup_old_temp_directories()
    if removed:
        logger.info("Removed %d stale bundle directories", removed)
    yield
    logger.info("Shutting down %s...", settings.api_title)


def create_application(
    render_use_case: RenderVideoUseCase | None = None,
    artifact_store: IArtifactStore | None = None,
) -> FastAPI:
    """Create and configure FastAPI application

    The render use case is built once here so every request shares its render
    slot; tests pass their own use case and store.
    """

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.render_use_case = render_use_case or build_render_video_use_case()
    app.state.artifact_store = artifact_store or LocalArtifactStore(
        settings.output_directory
    )

    app.add_middleware(
        BodySizeLimitMiddleware, max_body_size=settings.max_request_body_size
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(StarletteHTTPException, not_found_exception_handler)

    app.include_router(health.router)
    app.include_router(render.router)
    app.include_router(videos.router)

    return app


# Create application instance
app = create_application()

if __name__ == "__main__":
    dev_mode = os.getenv("DEV_MODE", "false").lower() == "true"
    uvicorn.run(
        "app.presentation.main:app",
        host=settings.host,
        port=settings.port,
        reload=dev_mode,
    )
