"""Contextual logging for the exporter.

``logger.with_context(database="HR")`` returns a child logger whose records
carry the given dimensions; the formatter renders them after the message.
"""

import logging
import sys
from typing import Any, MutableMapping

_LOGGER_NAME = "mssql_exporter"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s%(context)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying key/value dimensions."""

    def __init__(self, base: logging.Logger, dimensions: dict[str, Any] | None = None):
        super().__init__(base, dimensions or {})

    @property
    def dimensions(self) -> dict[str, Any]:
        return dict(self.extra or {})

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with ``dimensions`` merged into the current ones."""
        return ContextualLogger(self.logger, {**self.dimensions, **dimensions})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["context_dimensions"] = self.dimensions
        kwargs["extra"] = extra
        return msg, kwargs


class _ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        dimensions = getattr(record, "context_dimensions", None) or {}
        record.context = (
            " " + " ".join(f"{key}={value}" for key, value in dimensions.items())
            if dimensions
            else ""
        )
        return super().format(record)


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the exporter logger."""
    base = logging.getLogger(_LOGGER_NAME)
    for handler in list(base.handlers):
        base.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_ContextFormatter(_FORMAT))
    base.addHandler(handler)
    base.setLevel(level.upper())


logger = ContextualLogger(logging.getLogger(_LOGGER_NAME))
