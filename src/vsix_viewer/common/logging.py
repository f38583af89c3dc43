"""Structured logging for the viewer.

Log calls attach machine-readable fields with
``extra={"extra_fields": {...}}``, and LogContext adds ``context_fields`` to
every record created inside it. The JSON formatter merges both into the
emitted object; the text formatters ignore them.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "asyncio", "multipart")

_BYTES_PER_MB = 1024 * 1024


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }
            # ViewerError and subclasses carry keyword context
            context = getattr(exc, "context", None)
            if isinstance(context, dict) and context:
                payload["exception"]["context"] = context

        payload.update(getattr(record, "context_fields", None) or {})
        payload.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(payload, default=str)


class DetailedFormatter(logging.Formatter):
    """Text lines with timestamp and call site, for log files read by people."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


class SimpleFormatter(logging.Formatter):
    """Short text lines for the terminal."""

    def __init__(self) -> None:
        super().__init__(fmt="%(levelname)-8s | %(name)s | %(message)s")


FORMATTERS: Dict[str, Callable[[], logging.Formatter]] = {
    "simple": SimpleFormatter,
    "detailed": DetailedFormatter,
    "json": StructuredFormatter,
}


def setup_logging(
    level: str = "INFO",
    format: str = "simple",
    log_file: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Install the viewer's handlers on the root logger.

    Any handlers already on the root logger are removed first, so calling
    this twice does not duplicate output.

    Args:
        level: Log level name, case-insensitive
        format: Console format: simple, detailed or json
        log_file: Optional rotating log file, always written as JSON
        max_file_size_mb: Rotation threshold for ``log_file``
        backup_count: Rotated files to keep
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(FORMATTERS.get(format, SimpleFormatter)())
    root.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * _BYTES_PER_MB,
            backupCount=backup_count,
            encoding="utf-8",
        )
        rotating.setFormatter(StructuredFormatter())
        root.addHandler(rotating)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogContext:
    """Attach fields to every record created inside a ``with`` block.

    Nested contexts stack: inner fields are added on top of outer ones, and
    fields passed explicitly through ``extra_fields`` win over both.
    """

    def __init__(self, logger: logging.Logger, **fields: Any) -> None:
        self.logger = logger
        self.fields = fields
        self._previous_factory: Optional[Callable[..., logging.LogRecord]] = None

    def __enter__(self) -> "LogContext":
        previous = logging.getLogRecordFactory()
        self._previous_factory = previous
        fields = self.fields

        def factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            record.context_fields = {**(getattr(record, "context_fields", None) or {}), **fields}
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._previous_factory is not None:
            logging.setLogRecordFactory(self._previous_factory)
            self._previous_factory = None
