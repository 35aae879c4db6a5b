"""Logging setup for mediafold commands.

Console output is plain text; the optional log file receives one JSON object
per line. Fields attached with LogContext appear in both.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_config import LoggingConfig

CONTEXT_ATTR = "context_fields"

_CONSOLE_PATTERNS = {
    "simple": "%(levelname)-8s | %(name)s | %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
}


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTR, None) or {}


class StructuredFormatter(logging.Formatter):
    """JSON lines formatter."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(_context_of(record))

        if record.exc_info:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain text formatter that appends context fields to the message line."""

    def __init__(self, style: str = "simple") -> None:
        super().__init__(fmt=_CONSOLE_PATTERNS[style], datefmt="%Y-%m-%d %H:%M:%S")

    def formatMessage(self, record: logging.LogRecord) -> str:
        text = super().formatMessage(record)
        context = _context_of(record)
        if context:
            text += " | " + " ".join(f"{key}={value}" for key, value in context.items())
        return text


def setup_logging(config: Optional[LoggingConfig] = None, level: Optional[str] = None) -> None:
    """Configure the root logger from a LoggingConfig.

    Args:
        config: Logging settings (defaults when None)
        level: Level overriding the configured one
    """
    config = config or LoggingConfig()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or config.level).upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    if config.format == "json":
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter(config.format))
    root_logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogContext:
    """Attach fields to every record created inside the block.

    Nested contexts extend the outer fields; inner values win.

    Example:
        >>> with LogContext(logger, folder="pages/blog"):
        ...     logger.info("Listing")
    """

    def __init__(self, logger: logging.Logger, **fields: Any) -> None:
        self.logger = logger
        self.fields = fields
        self._previous_factory = None

    def __enter__(self) -> "LogContext":
        previous = self._previous_factory = logging.getLogRecordFactory()
        fields = self.fields

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            setattr(record, CONTEXT_ATTR, {**_context_of(record), **fields})
            return record

        logging.setLogRecordFactory(record_factory)
        self.logger.debug(f"Log context entered: {fields!r}")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        logging.setLogRecordFactory(self._previous_factory)
