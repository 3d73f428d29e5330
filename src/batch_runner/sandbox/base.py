"""Container lifecycle interface."""

from abc import ABC, abstractmethod

from ..core.config import ContainerConfig


class ContainerManager(ABC):
    """Starts and tears down one database container per batch.

    Containers are addressed by name only; no handle is kept in process.
    """

    def __init__(self, config: ContainerConfig):
        self.config = config

    @abstractmethod
    def start(self, name: str, port: int) -> None:
        """Launch a detached database container publishing `port` on the host.

        Raises:
            ContainerStartError: If the runtime refuses to launch it
        """

    @abstractmethod
    def cleanup(self, name: str) -> None:
        """Stop and force-remove the named container. Never raises."""

    @abstractmethod
    def is_ready(self, name: str) -> bool:
        """Return True once the database inside the container accepts connections."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check whether the container runtime is reachable."""

    def pg_isready_command(self):
        """Readiness probe run inside the container."""
        return ["pg_isready", "-U", self.config.user, "-d", self.config.database]
