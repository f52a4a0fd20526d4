"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import init_db, close_db
from app.core.logging import setup_logging, get_logger
from app.core.middleware import LoggingMiddleware
from app.api.health import router as health_router
from app.api.documents import router as documents_router
from app.api.versions import router as versions_router

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    await logger.ainfo("Starting document version service")

    try:
        await init_db()
        await logger.ainfo("Database initialized successfully")
    except Exception as e:
        await logger.aerror("Failed to start application", error=str(e))
        raise

    yield

    await logger.ainfo("Shutting down document version service")
    await close_db()
    await logger.ainfo("Application shutdown completed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Document Version Service",
        description="Version history with undo, redo and restore for sectioned documents",
        version="1.0.0",
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(documents_router, prefix="/api", tags=["Documents"])
    app.include_router(versions_router, prefix="/api", tags=["Versions"])

    return app


app = create_app()
