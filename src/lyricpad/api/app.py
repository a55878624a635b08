"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .. import __version__
from ..ai.orchestration import CompletionOrchestrator, InspirationOrchestrator
from ..services.settings import Settings
from .routes import health_router, router

__all__ = ["create_app"]

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    *,
    completion: CompletionOrchestrator | None = None,
    inspiration: InspirationOrchestrator | None = None,
) -> FastAPI:
    """Build the API app; orchestrators default to ones built from ``settings``."""

    completion = completion or CompletionOrchestrator(settings)
    inspiration = inspiration or InspirationOrchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        LOGGER.info("LyricPad API ready (completion model %s)", settings.completion_model)
        yield
        await completion.aclose()
        await inspiration.aclose()

    app = FastAPI(title="LyricPad", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.completion = completion
    app.state.inspiration = inspiration
    app.include_router(router)
    app.include_router(health_router)
    return app
