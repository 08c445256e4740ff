"""
Visit analysis service entry point.

Serves the scoring API over HTTP, or runs the offline console demo.

Usage:
    HTTP server:  python main.py serve
    Console mode: python main.py console
"""

import logging
import sys

from visit_analysis.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the FastAPI app under uvicorn on the configured host and port."""
    import uvicorn

    logger.info(
        "Starting %s on %s:%d", settings.service_name, settings.server.host, settings.server.port
    )
    uvicorn.run(
        "visit_analysis.api:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_server()
