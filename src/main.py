"""Application entry point.

Runs the FastAPI completion service with the NiceGUI chat page mounted on
the same server, or both as separate servers.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _host() -> str:
    return os.getenv("HOST", "0.0.0.0")


def _port() -> int:
    return int(os.getenv("PORT", "8000"))


def run_integrated() -> None:
    """Serve the API and the chat page from one process.

    The chat page talks to the API over HTTP on the same port, so
    API_BASE_URL defaults to this server.
    """
    import uvicorn
    from nicegui import ui

    port = _port()
    os.environ.setdefault("API_BASE_URL", f"http://localhost:{port}")

    from src.api.app import create_app
    from src.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="Streaming Chat",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "streaming-chat-secret"),
    )

    logger.info(f"Starting integrated server on http://localhost:{port}")
    logger.info(f"API docs available at http://localhost:{port}/docs")
    logger.info(f"Chat UI available at http://localhost:{port}/")

    uvicorn.run(
        app,
        host=_host(),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the API and the chat page as separate servers.

    API on PORT (default 8000), chat page on 8080.
    """
    import asyncio
    import subprocess

    async def run_servers() -> None:
        logger.info(f"Starting completion API on http://localhost:{_port()}")
        logger.info("Starting chat UI on http://localhost:8080")

        api_proc = subprocess.Popen(
            [
                sys.executable,
                "-m",
                "uvicorn",
                "src.api.app:app",
                "--host",
                _host(),
                "--port",
                str(_port()),
            ]
        )
        ui_proc = subprocess.Popen(
            [sys.executable, "-c", "from src.ui.chat_page import main; main()"]
        )

        try:
            while api_proc.poll() is None and ui_proc.poll() is None:
                await asyncio.sleep(1)
        except KeyboardInterrupt:
            logger.info("Shutting down servers...")
        finally:
            for proc in (api_proc, ui_proc):
                proc.terminate()
                proc.wait()

    asyncio.run(run_servers())


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run the API and UI on different ports.
    Default is integrated mode (both on PORT).
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting streaming chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
