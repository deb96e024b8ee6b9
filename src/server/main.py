"""FastAPI application exposing the reorder engine."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from coursetree.api_client import LearningApiClient
from coursetree.engine import ReorderEngine
from coursetree.utils.logging_config import get_logger
from server.routers import drag_router

logger = get_logger(__name__)


def create_app(engine: ReorderEngine | None = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    engine : ReorderEngine | None
        Engine to serve. When omitted, one is created at startup around a
        ``LearningApiClient`` for the configured backend and closed again at
        shutdown.

    Returns
    -------
    FastAPI
        The configured application.

    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client: LearningApiClient | None = None
        if engine is None:
            client = LearningApiClient()
            app.state.engine = ReorderEngine(client)
        else:
            app.state.engine = engine
        logger.info("Reorder engine ready")
        try:
            yield
        finally:
            # Order updates are never cancelled; let them settle first.
            await app.state.engine.drain()
            if client is not None:
                await client.aclose()

    app = FastAPI(title="coursetree", lifespan=lifespan)
    app.include_router(drag_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
