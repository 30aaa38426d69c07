"""
TextCollector — Logging Setup
==============================

What:  One logging configuration shared by the API and the CLI.
How:   basicConfig with a stdout handler; RequestIDLogFilter puts a
       request_id on every record ("-" outside a request).
Who:   main.lifespan at server startup, cli.main before each command.
"""

import logging
import sys

from textcollector.middleware.request_id import RequestIDLogFilter

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Called once, before anything else logs."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Third-party libraries log every statement/connection at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
