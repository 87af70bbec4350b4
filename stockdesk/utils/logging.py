from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, g, has_request_context
from flask.logging import default_handler

LOG_FORMAT = "%(asctime)s [%(levelname)s] [req=%(request_id)s] %(name)s: %(message)s"
LOG_FILENAME = "stockdesk.log"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id assigned to the current request."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = getattr(g, "request_id", None) if has_request_context() else None
        record.request_id = request_id or "-"
        return True


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    logger.addHandler(handler)


def configure_logging(app: Flask) -> Path:
    """Send the ``stockdesk`` loggers and ``app.logger`` to stdout and a rotating file.

    Calling this again for another app reuses the handlers already installed.
    """

    level = logging.getLevelName(app.config.get("LOG_LEVEL") or "INFO")
    if not isinstance(level, int):
        level = logging.INFO

    logs_dir = Path(app.config.get("LOG_DIR") or Path(app.root_path).parent / "logs")
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / LOG_FILENAME

    service_logger = logging.getLogger("stockdesk")
    service_logger.setLevel(level)
    # stockdesk and app.logger share a name, so one set of handlers serves both
    app.logger.setLevel(level)
    app.logger.removeHandler(default_handler)

    installed = service_logger.handlers
    if not any(type(handler) is logging.StreamHandler for handler in installed):
        _attach(service_logger, logging.StreamHandler(sys.stdout), level)
    if not any(
        isinstance(handler, RotatingFileHandler) and handler.baseFilename == str(log_path.absolute())
        for handler in installed
    ):
        _attach(
            service_logger,
            RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5),
            level,
        )

    return log_path
