"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from pacer.api.routes import courses, plans
from pacer.config import get_settings
from pacer.db.engine import get_engine


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(get_engine())
        yield

    app = FastAPI(
        title="Pacer API",
        description="Grade-adjusted race pacing",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(plans.router, prefix="/plans", tags=["plans"])
    app.include_router(courses.router, prefix="/courses", tags=["courses"])

    return app


# Module-level app instance for uvicorn
app = create_app()
