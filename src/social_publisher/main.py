"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from social_publisher import __version__
from social_publisher.api.routes import health, platforms, videos
from social_publisher.config import settings
from social_publisher.container import Container, build_container
from social_publisher.logging import get_logger, setup_logging

# Setup logging
setup_logging()
logger = get_logger(__name__)


def create_app(container: Container | None = None) -> FastAPI:
    """Create the API application.

    Args:
        container: Prebuilt services. When omitted, one is built from the
            environment at startup. Its HTTP client is closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        logger.info("application_starting", version=__version__)

        app.state.container = container or build_container()

        yield

        # Shutdown
        logger.info("application_shutting_down")
        await app.state.container.aclose()

    app = FastAPI(
        title="Social Publisher",
        description="Publish videos to YouTube, TikTok and Instagram with per-platform results",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router)
    app.include_router(platforms.router, prefix="/api")
    app.include_router(videos.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint pointing at the docs."""
        return {
            "name": "Social Publisher",
            "version": __version__,
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "social_publisher.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
