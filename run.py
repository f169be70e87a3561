#!/usr/bin/env python3
"""
Run the Partner Intake Engine web server locally.
"""

import logging

import uvicorn

from utils.config import Config
from utils.logging_setup import configure_logging


logger = logging.getLogger(__name__)


def main():
    """Start the web server."""
    config = Config.load()
    configure_logging(config.log_level)

    logger.info("Starting Partner Intake Engine on http://%s:%d", config.host, config.port)
    logger.info("Press Ctrl+C to stop")

    uvicorn.run(
        "web.app:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()
