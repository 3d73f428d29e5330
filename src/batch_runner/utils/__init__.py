"""Shared utility functions for the batch runner."""

from .error_handling import ErrorContext, log_and_ignore
from .rich_logging import BatchLogFormatter, BatchLogger, setup_logging
from .subprocess_utils import (
    SubprocessError,
    check_command_exists,
    get_command_output,
    run_command,
)

__all__ = [
    # Error handling
    "ErrorContext",
    "log_and_ignore",
    # Logging
    "BatchLogFormatter",
    "BatchLogger",
    "setup_logging",
    # Subprocess utilities
    "SubprocessError",
    "check_command_exists",
    "get_command_output",
    "run_command",
]
