"""FastAPI application factory."""

from __future__ import annotations

import os
from typing import Generator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evalround.db.repo import DbSession
from evalround.db.session import get_session

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def get_db_session() -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def create_app() -> FastAPI:
    """Create FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="evalround API",
        description="Questionnaire rounds and weighted score statistics",
        version="0.1.0",
    )

    origins = os.environ.get("EVALROUND_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routes
    from evalround.api.routes import rounds, statistics

    app.include_router(rounds.router, prefix="/api")
    app.include_router(statistics.router, prefix="/api")

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
