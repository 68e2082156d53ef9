"""FastAPI application factory for the development backend.

Application entry point with lifespan management, middleware,
and router registration.
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assistant_client import __version__
from assistant_client.api.chat import router as chat_router
from assistant_client.api.conversations import router as conversations_router
from assistant_client.api.store import ConversationStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info("Starting development chat backend...")
    yield
    logger.info("Shutting down development chat backend...")


def create_app(require_auth: bool | None = None) -> FastAPI:
    """Create and configure the development backend.

    Args:
        require_auth: Reject requests without a bearer token. Defaults to
            the DEV_BACKEND_REQUIRE_AUTH environment variable.

    Returns:
        Configured FastAPI application instance.
    """
    if require_auth is None:
        require_auth = os.getenv("DEV_BACKEND_REQUIRE_AUTH", "").lower() in {"1", "true", "yes"}

    application = FastAPI(
        title="Assistant Development Backend",
        description=(
            "In-memory stand-in for the hosted chat backend. Streams echo replies "
            "as Server-Sent Events and keeps conversations for the lifetime of "
            "the process."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.store = ConversationStore()
    application.state.require_auth = require_auth

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(chat_router)
    api.include_router(conversations_router)

    @api.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "assistant-dev-backend"}

    application.include_router(api)
    return application
