"""Main application entry point.

Runs the NiceGUI chat interface, either alone against a configured backend
or mounted on the in-memory development backend (port 8000).
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _register_pages() -> None:
    from assistant_client.ui import chat_page, login_page  # noqa: F401 - Registers the pages


def run_integrated() -> None:
    """Run the development backend with NiceGUI mounted on the same server.

    FastAPI serves /api, NiceGUI serves the pages. Both on port 8000, so
    page and API share an origin.
    """
    import uvicorn
    from nicegui import ui

    from assistant_client.api.app import create_app

    port = int(os.getenv("PORT", "8000"))
    os.environ.setdefault("API_BASE_URL", f"http://localhost:{port}/api")
    os.environ.setdefault("PAGE_ORIGIN", f"http://localhost:{port}")

    app = create_app()
    _register_pages()

    ui.run_with(
        app,
        title="Assistant",
        favicon="🤖",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "assistant-client-secret"),
    )

    logger.info(f"Starting integrated server on http://localhost:{port}")
    logger.info(f"API docs available at http://localhost:{port}/docs")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_ui() -> None:
    """Run only the NiceGUI interface against API_BASE_URL."""
    from nicegui import ui

    from assistant_client.services import get_services

    _register_pages()
    config = get_services().config
    logger.info(f"Using chat backend at {config.api_base_url}")
    if config.is_cross_origin:
        logger.info("Backend is cross-origin; credentials travel as bearer tokens")

    ui.run(
        title="Assistant",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "assistant-client-secret"),
    )


def main() -> None:
    """Application entry point.

    Set RUN_MODE=ui to run only the interface against an existing backend.
    Default is integrated mode (development backend and UI on port 8000).
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting assistant client in {mode} mode")

    if mode == "ui":
        run_ui()
    else:
        run_integrated()


if __name__ in {"__main__", "__mp_main__"}:
    main()
