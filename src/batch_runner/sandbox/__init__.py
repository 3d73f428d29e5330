"""Database containers for isolated batch runs."""

from ..core.config import ContainerConfig
from .base import ContainerManager
from .cli_manager import CliContainerManager
from .docker_manager import DockerContainerManager
from .readiness import calculate_backoff, wait_until_ready


def create_container_manager(config: ContainerConfig) -> ContainerManager:
    """Build the manager for the configured runtime."""
    if config.runtime == "cli":
        return CliContainerManager(config)
    return DockerContainerManager(config)


__all__ = [
    "ContainerManager",
    "CliContainerManager",
    "DockerContainerManager",
    "calculate_backoff",
    "create_container_manager",
    "wait_until_ready",
]
