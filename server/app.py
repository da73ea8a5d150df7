"""FastAPI application factory."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.dependencies import get_orchestrator
from server.routes import health, research
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler: start and stop the orchestrator's cache sweeper."""
    logger.info("FastAPI server starting up")

    required_keys = ["API_KEYS"]
    missing = [k for k in required_keys if not os.getenv(k)]
    if missing:
        logger.warning(f"Missing environment variables: {missing}")

    provider = app.dependency_overrides.get(get_orchestrator, get_orchestrator)
    orchestrator = None
    try:
        orchestrator = provider()
        orchestrator.start()
    except ValueError as e:
        logger.warning(
            f"Research orchestrator not configured: {e}",
            extra={"extra_fields": {"error": str(e)}},
        )

    yield

    if orchestrator is not None:
        await orchestrator.aclose()
    logger.info("FastAPI server shutting down")


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="Research Aggregation API",
        description="Multi-source research with synthesis and fact-checking",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(research.router)

    return app
