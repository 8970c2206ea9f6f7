# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Chat Assistant - FastAPI surface for the conversation engine.

The platform adapter builds an ``AssistantRuntime`` around its ``Bot`` and
serves ``create_app(runtime)``; the app's lifespan starts and stops the
runtime.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from pydantic import BaseModel

from assistant import __version__
from assistant.config import Settings, settings
from assistant.runtime import AssistantRuntime

logger = logging.getLogger(__name__)


def configure_logging(config: Settings = settings) -> None:
    """Configure the root logger from ``LOG_LEVEL`` (DEBUG when ``DEBUG`` is set)."""
    level = logging.DEBUG if config.DEBUG else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status (str): Current service health status.
        version (str): Application version string.
        queue_size (int): Inbound messages waiting for the loop.
    """

    status: str
    version: str
    queue_size: int


def create_app(runtime: AssistantRuntime) -> FastAPI:
    """Build the FastAPI app around a runtime.

    Args:
        runtime (AssistantRuntime): The engine to start and stop with the app.

    Returns:
        FastAPI: The configured application.
    """
    configure_logging(runtime.settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting %s...", runtime.settings.APP_NAME)
        await runtime.start()
        yield
        logger.info("Shutting down %s...", runtime.settings.APP_NAME)
        await runtime.stop()

    app = FastAPI(
        title=runtime.settings.APP_NAME,
        description="Chat-platform assistant with an LLM tool-calling engine",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            HealthResponse: Service status, version and inbound queue depth.
        """
        status = "healthy" if runtime.running else "stopped"
        return HealthResponse(status=status, version=__version__, queue_size=runtime.queue_size)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"{runtime.settings.APP_NAME} Service",
            "docs": "/docs",
            "health": "/health",
        }

    return app
