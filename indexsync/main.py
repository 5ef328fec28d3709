"""Application entrypoint.

Run with ``uvicorn indexsync.main:app``.
"""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI

from indexsync.api.v1.api import api_router
from indexsync.core.config import settings
from indexsync.core.logging import logger
from indexsync.core.runtime import Runtime


def create_app(runtime_factory: Optional[Callable[[], Runtime]] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        runtime_factory: Builds the service runtime at startup, defaults to ``Runtime``
    """
    factory = runtime_factory or Runtime

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        runtime = factory()
        await runtime.start()
        app.state.runtime = runtime
        logger.info(f"{settings.PROJECT_NAME} started")
        try:
            yield
        finally:
            await runtime.stop()
            logger.info(f"{settings.PROJECT_NAME} stopped")

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
