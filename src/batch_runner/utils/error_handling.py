"""Standardized error handling utilities."""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def log_and_ignore(
    error: Exception,
    message: str,
    *,
    logger_instance: Optional[logging.Logger] = None,
    level: int = logging.WARNING,
) -> None:
    """
    Log an error and ignore it (don't re-raise).

    Use for non-critical errors that should not interrupt the flow.

    Args:
        error: Exception to log
        message: Context message to log
        logger_instance: Logger to use (defaults to module logger)
        level: Log level (default: WARNING)
    """
    log = logger_instance or logger
    log.log(level, f"{message}: {error}")


class ErrorContext:
    """
    Context manager for handling errors with consistent logging.

    Usage:
        with ErrorContext("stopping container db_1", raise_on_error=False):
            container.stop()
    """

    def __init__(
        self,
        operation: str,
        *,
        raise_on_error: bool = True,
        default_value: Any = None,
        logger_instance: Optional[logging.Logger] = None,
        log_level: int = logging.ERROR,
    ):
        """
        Initialize error context.

        Args:
            operation: Description of the operation
            raise_on_error: Whether to re-raise exceptions
            default_value: Value to return if error and not raising
            logger_instance: Logger to use
            log_level: Log level for errors
        """
        self.operation = operation
        self.raise_on_error = raise_on_error
        self.default_value = default_value
        self.logger = logger_instance or logger
        self.log_level = log_level
        self.error: Optional[Exception] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False
        # Interrupts always propagate
        if not issubclass(exc_type, Exception):
            return False

        self.error = exc_val
        self.logger.log(
            self.log_level,
            f"Error during {self.operation}: {exc_val}",
        )
        return not self.raise_on_error

    def get_result(self, result: Any = None) -> Any:
        """
        Get result or default value if error occurred.

        Args:
            result: The actual result (if operation succeeded)

        Returns:
            Result if no error, default_value if error occurred
        """
        if self.error is not None:
            return self.default_value
        return result
