"""Error types and user-friendly translation."""

from .exceptions import (
    BatchRunnerError,
    CleanupError,
    ConfigError,
    ContainerError,
    ContainerNotReadyError,
    ContainerStartError,
    DiscoveryError,
    TestCommandError,
)
from .translator import ErrorTranslator, UserFriendlyError

__all__ = [
    "BatchRunnerError",
    "CleanupError",
    "ConfigError",
    "ContainerError",
    "ContainerNotReadyError",
    "ContainerStartError",
    "DiscoveryError",
    "TestCommandError",
    "ErrorTranslator",
    "UserFriendlyError",
]
