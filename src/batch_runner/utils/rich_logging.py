"""Console logging with per-batch context and colored levels."""

import logging
import sys
from datetime import datetime
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "batch_runner"


class BatchLogFormatter(logging.Formatter):
    """Custom formatter with batch context."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with context."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        batch_context = ""
        if hasattr(record, "batch_index"):
            batch_context = f"[batch-{record.batch_index}] "

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, "")
            reset = "\033[0m"
        else:
            level_color = ""
            reset = ""

        line = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{batch_context}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class BatchLogger(logging.LoggerAdapter):
    """Logger adapter that tags every record with its batch index."""

    def __init__(self, logger: logging.Logger, batch_index: int):
        super().__init__(logger, {})
        self.batch_index = batch_index

    def process(self, msg, kwargs):
        """Add batch context to log record."""
        extra = dict(kwargs.get("extra") or {})
        extra["batch_index"] = self.batch_index
        kwargs["extra"] = extra
        return msg, kwargs

    def progress(self, message: str):
        """Log a progress step, shown only in verbose runs."""
        self.debug(message)


def setup_logging(
    verbose: bool = False,
    stream: Optional[TextIO] = None,
    use_colors: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the package logger for a CLI run.

    Args:
        verbose: Emit progress (DEBUG) records in addition to results
        stream: Output stream (defaults to stdout)
        use_colors: Force ANSI colors on/off (defaults to stream.isatty())

    Returns:
        The configured package logger
    """
    stream = stream or sys.stdout
    if use_colors is None:
        use_colors = stream.isatty() if hasattr(stream, "isatty") else False

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(BatchLogFormatter(use_colors=use_colors))
    logger.addHandler(handler)

    return logger
