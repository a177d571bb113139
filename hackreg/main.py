"""
Hackathon Registration - Main Application Entry Point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from hackreg.api import auth, status, teams, user
from hackreg.core.config import get_settings
from hackreg.core.database import close_db, init_db
from hackreg.core.exceptions import register_exception_handlers
from hackreg.middleware.security import setup_security_middleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Team capacity: {settings.max_teams}")
    await init_db()
    logger.info("Database initialized")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    """Build the application with middleware, error handlers and routers."""
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Team registration, capacity tracking and admin management for a hackathon",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    setup_security_middleware(app)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    prefix = settings.api_prefix.rstrip("/")
    app.include_router(auth.router, prefix=prefix)
    app.include_router(status.router, prefix=prefix)
    app.include_router(teams.router, prefix=prefix)
    app.include_router(user.router, prefix=prefix)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "success",
            "message": "Server is running",
            "environment": settings.environment,
            "version": settings.app_version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "hackreg.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
