"""
ShowerLog FastAPI Application Entry Point.

Run with: uvicorn showerlog.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from showerlog.api.errors import register_exception_handlers
from showerlog.api.middleware import SessionMiddleware
from showerlog.api.routes import ai, auth, saved_thoughts, thoughts
from showerlog.config import get_settings
from showerlog.db.session import build_engine, build_session_factory

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    engine = build_engine(settings)
    app.state.session_factory = build_session_factory(engine)
    logger.info("Started %s (%s)", settings.app_name, settings.environment)
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Capture thoughts and turn them into nested task lists",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Session checks for page routes
app.add_middleware(SessionMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(thoughts.router)
app.include_router(saved_thoughts.router)
app.include_router(ai.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
