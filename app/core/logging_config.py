# app/core/logging_config.py
"""
Logging setup shared by the server (app.main) and the headless client
(app.cli.watch_stock).

Library loggers that log per request or per frame are held at WARNING so the
relay's own connect / disconnect lines stay readable.
"""

import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Transport and database libraries; uvicorn.access would log every relayed frame
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "aiohttp",
    "websockets",
    "sqlalchemy",
    "sqlalchemy.engine",
    "aiosqlite",
    "asyncpg",
    "uvicorn.access",
)


def configure_logging(log_level: str = None):
    """
    Configure the root handler and per-library levels.

    Args:
        log_level: Level name; falls back to the LOG_LEVEL environment
            variable, then INFO
    """
    log_level = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()]
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # App loggers follow the configured level even if the root was set earlier
    logging.getLogger("app").setLevel(level)
    logging.getLogger("__main__").setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at level: {log_level}")
