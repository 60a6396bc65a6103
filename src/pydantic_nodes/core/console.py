"""A WebConsole backed by the standard logging module."""

import logging
from typing import Any


class LoggingConsole:
    """WebConsole implementation that forwards to a ``logging.Logger``.

    ``success`` messages are logged at INFO with ``extra={"success": True}``
    so handlers can colour them differently.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize the console.

        Args:
            logger: Logger to write to. Defaults to this module's logger.

        """
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def _format(content: tuple[Any, ...]) -> str:
        return " ".join(str(part) for part in content)

    def info(self, *content: Any) -> None:
        """Log an informational message."""
        self.logger.info(self._format(content), extra={"success": False})

    def success(self, *content: Any) -> None:
        """Log a success message."""
        self.logger.info(self._format(content), extra={"success": True})

    def error(self, *content: Any) -> None:
        """Log an error message."""
        self.logger.error(self._format(content))
