"""
Logging setup for the research engine.

Every module obtains its logger through get_logger(__name__). Records are written
as JSON lines to rotating files so that per-query context (query id, adapter,
orchestrator state) survives into log aggregation. Structured context is passed
with ``extra={"extra_fields": {...}}``.

Environment:
    LOG_LEVEL: root log level (default INFO)
    LOG_DIR: directory for log files (default ./logs)
    LOG_TO_CONSOLE: "true" to mirror WARNING and above to stderr
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class JsonFormatter(logging.Formatter):
    """Render a LogRecord as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        return json.dumps(payload, default=str)


class LoggerConfig:
    """Process-wide logging configuration, applied once."""

    LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_TO_CONSOLE = os.getenv("LOG_TO_CONSOLE", "false").lower() == "true"
    MAX_BYTES = 5 * 1024 * 1024
    BACKUP_COUNT = 3

    _initialized = False

    @classmethod
    def _file_handler(cls, filename: str, level: int, formatter: logging.Formatter):
        handler = logging.handlers.RotatingFileHandler(
            cls.LOG_DIR / filename,
            maxBytes=cls.MAX_BYTES,
            backupCount=cls.BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    @classmethod
    def setup_logging(cls) -> None:
        """
        Configure the root logger.

        Safe to call repeatedly; only the first call installs handlers.
        """
        if cls._initialized:
            return

        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))
        root_logger.handlers.clear()

        formatter = JsonFormatter()
        root_logger.addHandler(cls._file_handler("research.log", logging.INFO, formatter))
        root_logger.addHandler(cls._file_handler("error.log", logging.ERROR, formatter))

        if cls.LOG_LEVEL == "DEBUG":
            root_logger.addHandler(cls._file_handler("debug.log", logging.DEBUG, formatter))

        if cls.LOG_TO_CONSOLE:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(
                logging.Formatter(
                    fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            root_logger.addHandler(console_handler)

        # httpx logs every request at INFO; keep research logs readable
        logging.getLogger("httpx").setLevel(logging.WARNING)

        cls._initialized = True

        logging.getLogger(__name__).info(
            "Logging configured",
            extra={
                "extra_fields": {
                    "log_level": cls.LOG_LEVEL,
                    "log_dir": str(cls.LOG_DIR),
                    "console_logging": cls.LOG_TO_CONSOLE,
                }
            },
        )


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger with the research engine configuration applied.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Aggregation done", extra={"extra_fields": {"source_count": 7}})
    """
    LoggerConfig.setup_logging()
    return logging.getLogger(name)
