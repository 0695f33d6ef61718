"""Console logging adapter.

Outputs structured logs to stdout using structlog.
- Development: human-readable console renderer with colors
- Testing/CI/production: JSON renderer for machine parsing

Errors passed as ``error=`` are flattened by a processor, so every backend
sees the same fields:
- exceptions: error_type, error_message
- DomainError results: error_code, error_message (plus operation for
  repository failures)

Implementation does NOT inherit from LoggerProtocol (PEP 544 structural
subtyping).
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from accessgate.core.errors import DomainError


def flatten_error(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Replace the ``error`` entry by flat, serialisable fields."""
    error = event_dict.pop("error", None)
    if isinstance(error, DomainError):
        event_dict["error_code"] = error.code.value
        event_dict["error_message"] = error.message
        operation = getattr(error, "operation", None)
        if operation is not None:
            event_dict.setdefault("failed_operation", operation)
    elif isinstance(error, BaseException):
        event_dict["error_type"] = type(error).__name__
        event_dict["error_message"] = str(error)
    elif error is not None:
        event_dict["error"] = error
    return event_dict


def build_processors(*, use_json: bool) -> list[Any]:
    """Processor chain ending in the JSON or console renderer."""
    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    return [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        flatten_error,
        renderer,
    ]


class ConsoleAdapter:
    """Structured console logger.

    Args:
        use_json (bool): JSON output when True, human-readable when False.
        level (str): Minimum level name (DEBUG, INFO, ...). Unknown names
            fall back to INFO.
    """

    def __init__(self, *, use_json: bool = False, level: str = "INFO") -> None:
        structlog.configure(
            processors=build_processors(use_json=use_json),
            wrapper_class=structlog.make_filtering_bound_logger(
                logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
            ),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
            cache_logger_on_first_use=True,
        )
        self._logger = structlog.get_logger()

    @classmethod
    def _wrap(cls, logger: Any) -> ConsoleAdapter:
        adapter = cls.__new__(cls)
        adapter._logger = logger
        return adapter

    def debug(self, message: str, /, **context: Any) -> None:
        self._logger.debug(message, **context)

    def info(self, message: str, /, **context: Any) -> None:
        self._logger.info(message, **context)

    def warning(self, message: str, /, **context: Any) -> None:
        self._logger.warning(message, **context)

    def error(
        self,
        message: str,
        /,
        *,
        error: Exception | DomainError | None = None,
        **context: Any,
    ) -> None:
        """Log an error; ``error`` is flattened by flatten_error."""
        self._logger.error(message, error=error, **context)

    def critical(
        self,
        message: str,
        /,
        *,
        error: Exception | DomainError | None = None,
        **context: Any,
    ) -> None:
        """Log a critical message; ``error`` is flattened by flatten_error."""
        self._logger.critical(message, error=error, **context)

    def bind(self, **context: Any) -> ConsoleAdapter:
        """Return new adapter with bound context.

        Args:
            **context: Context to bind to all subsequent logs.

        Returns:
            ConsoleAdapter: New adapter instance with bound context.
        """
        return self._wrap(self._logger.bind(**context))
