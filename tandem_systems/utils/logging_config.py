"""
Logging configuration for the Tandem systems toolkit.

Console lines carry the facility, model and system a message is about when
the caller passes them as ``extra`` (or logs through ``bind``). The optional
file handler writes one JSON object per line.

Usage:
    from tandem_systems.utils.logging_config import get_logger, bind

    logger = get_logger(__name__)
    logger.info("Scanning model", extra={"model_urn": "urn:adsk.dtm:..."})

    log = bind(logger, facility_urn=facility_urn)
    log.warning("Model listing failed")
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple, Union


DEFAULT_LOG_LEVEL = os.environ.get("TANDEM_LOG_LEVEL", "INFO").upper()

LOG_DIR = Path(os.environ.get("TANDEM_LOG_DIR", "logs"))

CONTEXT_KEYS: Tuple[str, ...] = ("facility_urn", "model_urn", "system_id")

QUIET_LOGGERS = ("urllib3", "requests")


def _context(record: logging.LogRecord) -> dict:
    return {key: getattr(record, key) for key in CONTEXT_KEYS if hasattr(record, key)}


def _level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


class TandemFormatter(logging.Formatter):
    """Console formatter; appends ``[key=value, ...]`` context and colors by level."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, stream=None):
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, "isatty") and stream.isatty()
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if context:
            line += " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"
        if not self.use_colors:
            return line
        return f"{self.LEVEL_COLORS.get(record.levelno, '')}{line}{self.RESET}"


class FileFormatter(logging.Formatter):
    """JSON-lines formatter for file output."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if hasattr(record, "error_type"):
            entry["error_type"] = record.error_type
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter whose bound context is merged under any per-call ``extra``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def bind(logger: logging.Logger, **context: Any) -> ContextAdapter:
    """Attach facility/model/system context to every record of ``logger``."""
    unknown = set(context) - set(CONTEXT_KEYS)
    if unknown:
        raise ValueError(f"Unknown log context keys: {sorted(unknown)}")
    return ContextAdapter(logger, context)


def setup_logging(
    level: Union[str, int] = DEFAULT_LOG_LEVEL,
    log_to_file: bool = False,
    log_file: Optional[str] = None,
) -> Optional[Path]:
    """
    Configure the root logger.

    Console output goes to stderr.

    Args:
        level: Console log level (name or number)
        log_to_file: Also write DEBUG and above to a JSON-lines file
        log_file: File path (default: logs/tandem_YYYYMMDD.log)

    Returns:
        Path of the log file, if one was configured
    """
    root = logging.getLogger()
    console_level = _level(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(TandemFormatter(stream=sys.stderr))
    console.setLevel(console_level)
    root.addHandler(console)

    log_path = None
    if log_to_file:
        log_path = Path(log_file) if log_file else LOG_DIR / f"tandem_{datetime.now():%Y%m%d}.log"
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(FileFormatter())
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG if log_to_file else console_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return log_path


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


_initialized = False


def ensure_logging() -> None:
    """Set up logging once; later calls are no-ops."""
    global _initialized
    if not _initialized:
        setup_logging()
        _initialized = True
