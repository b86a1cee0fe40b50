"""
Guild Site - Main Application
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .core.config import get_settings
from .core.context import AppContext, build_context
from .frontend.components import STATIC_DIR
from .routes import admin, applications, auth, guild, pages
from .utils.logging_utils import level_from_name, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting guild site...")

    settings = app.state.context.settings if app.state.context is not None else get_settings()
    settings.check_session_secret()

    if app.state.context is None:
        app.state.context = await build_context(settings)
    context: AppContext = app.state.context

    await context.db.init_db()
    logger.info("Database initialized")

    if context.settings.enable_scheduler:
        context.create_scheduler().start()
        logger.info("Scheduled updates enabled")

    yield

    logger.info("Shutting down guild site...")
    await context.close()


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        context: Pre-built application context. When omitted the context is
            built from environment settings on startup.
    """
    app = FastAPI(
        title="Guild Site",
        description="World of Warcraft guild website: roster, raid progress and Battle.net login",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.context = context

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request monitoring middleware
    @app.middleware("http")
    async def monitor_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"{response.status_code} - {process_time:.3f}s"
        )

        return response

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring"""
        return {"status": "healthy", "service": "guild-site"}

    app.include_router(guild.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(applications.router)
    app.include_router(pages.router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    return app


app = create_app()


def main():
    import uvicorn

    settings = get_settings()
    setup_logging(level_from_name(settings.log_level))
    uvicorn.run("guild_site.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
