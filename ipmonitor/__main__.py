"""Entry point: ``python -m ipmonitor``."""

import logging
import sys

import uvicorn

from ipmonitor.core.config import get_settings
from ipmonitor.core.logging import configure_logging
from ipmonitor.main import create_app


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger("ipmonitor")
    logger.info("Starting IP Monitor application...")

    app = create_app(settings)
    logger.info("Web server listening on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
