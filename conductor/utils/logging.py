"""Logging setup shared by the conductor commands.

Records may carry catalog context (namespace, edit, storage action, score
path). Both formatters render it: the JSON formatter as top-level keys, the
plain formatter as a ``[key=value ...]`` suffix.
"""

import logging
import sys
import json
from typing import Optional, Dict, Any
from datetime import datetime, timezone

CONTEXT_ATTRIBUTE = "catalog_context"


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTRIBUTE, None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable lines, with the catalog context appended."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = _context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            line = f"{line} [{pairs}]"
        return line


def setup_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Use structured JSON logging if True
        log_file: Optional log file path
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = StructuredFormatter() if structured else StandardFormatter()

    # stdout is kept for edit scripts and catalogs
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
    logging.getLogger("sqlglot").setLevel(logging.WARNING)


class CatalogLogger(logging.LoggerAdapter):
    """Attaches catalog context to every record it emits.

    Context given at construction applies to every record; a ``context``
    keyword on a single call adds to it for that record only.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        context = dict(self.extra)
        context.update(kwargs.pop("context", None) or {})
        kwargs.setdefault("extra", {})[CONTEXT_ATTRIBUTE] = context
        return msg, kwargs


def get_contextual_logger(
    name: str, context: Optional[Dict[str, Any]] = None
) -> CatalogLogger:
    """Get a logger that tags its records with catalog context.

    Example:
        >>> logger = get_contextual_logger(__name__, {"namespace": "shop"})
        >>> logger.debug("Staged edit", context={"edit": "DROP TABLE shop.t"})
    """
    return CatalogLogger(logging.getLogger(name), context or {})
