"""
METAMEDIA CORE — Main Entry Point
Serves the dashboard uplink API.
"""
import uvicorn
from metamedia_core.config.settings import get_settings
from metamedia_core.utils.logger import setup_logging, get_logger

logger = get_logger("main")


def run_api():
    """Run the FastAPI application."""
    settings = get_settings()
    setup_logging()
    logger.info("starting_metamedia_core", version=settings.version, port=settings.port)
    uvicorn.run(
        "metamedia_core.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run_api()
