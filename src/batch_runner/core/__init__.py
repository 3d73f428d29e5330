"""Core models and configuration."""

from .config import ContainerConfig, ReadinessConfig, RunConfig, load_run_config
from .discovery import discover_test_files
from .partition import Batch, partition_files

__all__ = [
    "ContainerConfig",
    "ReadinessConfig",
    "RunConfig",
    "load_run_config",
    "discover_test_files",
    "Batch",
    "partition_files",
]
