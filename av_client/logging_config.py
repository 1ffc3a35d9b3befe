import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict


class JsonFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings for structured logging.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "logger": record.name,
            "thread": record.threadName,
        }

        # av_* fields passed via extra={"context": {...}}
        if hasattr(record, "context") and isinstance(record.context, dict):  # type: ignore[attr-defined]
            log_record.update(record.context)  # type: ignore[attr-defined]

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def configure_logging() -> logging.Logger:
    """
    Configures the root logger based on environment variables.
    ENV: LOG_FORMAT (JSON | TEXT) - Defaults to TEXT if missing
    ENV: LOG_LEVEL (DEBUG | INFO | WARNING | ERROR) - Defaults to INFO
    """
    logger = logging.getLogger()

    # idempotent configuration
    if logger.handlers:
        return logger

    log_format = os.environ.get("LOG_FORMAT", "TEXT").strip().upper()
    log_level_str = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

    level = getattr(logging, log_level_str, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    # stdout carries the CLI's results
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if log_format == "JSON":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(module)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger.addHandler(handler)

    # httpx logs every request URL at INFO, API key included
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logger
