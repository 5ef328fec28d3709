"""Logging for indexsync.

Every logger handed around the codebase is a ``ContextualLogger``: a ``LoggerAdapter``
that carries a set of dimensions (collection id, index id, component, ...) which are
appended to each record. ``with_context`` derives a child logger with extra dimensions.
"""

import logging
import sys
from typing import Any, Dict, Optional

from indexsync.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s%(dimensions)s"


class _DimensionsFormatter(logging.Formatter):
    """Renders the record's dimensions as trailing ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        dimensions = getattr(record, "dimensions_dict", None) or {}
        record.dimensions = (
            " " + " ".join(f"{k}={v}" for k, v in dimensions.items()) if dimensions else ""
        )
        return super().format(record)


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches dimensions to every record."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[Dict[str, Any]] = None):
        """Initialize the contextual logger.

        Args:
            logger: Underlying stdlib logger
            dimensions: Key/value pairs attached to every record
        """
        super().__init__(logger, {})
        self.dimensions: Dict[str, Any] = dict(dimensions or {})

    def process(self, msg, kwargs):
        """Inject dimensions into the record's ``extra``."""
        extra = kwargs.setdefault("extra", {})
        extra["dimensions_dict"] = {**self.dimensions, **extra.get("dimensions_dict", {})}
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with the given dimensions merged into the current ones."""
        merged = {**self.dimensions, **{k: v for k, v in dimensions.items() if v is not None}}
        return ContextualLogger(self.logger, merged)


class LoggerConfigurator:
    """Creates configured loggers."""

    _handler: Optional[logging.Handler] = None

    @classmethod
    def _get_handler(cls) -> logging.Handler:
        if cls._handler is None:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(_DimensionsFormatter(_FORMAT))
            cls._handler = handler
        return cls._handler

    @classmethod
    def configure_logger(
        cls, name: str, dimensions: Optional[Dict[str, Any]] = None
    ) -> ContextualLogger:
        """Configure and return a contextual logger.

        Args:
            name: Logger name
            dimensions: Initial dimensions attached to every record

        Returns:
            ContextualLogger wrapping the named stdlib logger
        """
        base = logging.getLogger(name)
        handler = cls._get_handler()
        if handler not in base.handlers:
            base.addHandler(handler)
        base.setLevel(logging.DEBUG if settings.LOCAL_DEVELOPMENT else settings.LOG_LEVEL)
        base.propagate = False
        return ContextualLogger(base, dimensions)


logger = LoggerConfigurator.configure_logger("indexsync")
