"""Main entry point - runs the API server."""

import logging

import uvicorn

from tempwallet.config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    settings = get_settings()

    # Configure logging
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info("Starting tempwallet...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Network client: {settings.network_provider}, dry run: {settings.dry_run}")
    if not settings.master_key:
        logger.warning("MASTER_KEY not set - wallet seeds will be stored unencrypted")

    uvicorn.run(
        "tempwallet.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
