"""Docker SDK backed container lifecycle."""

import logging
import threading
from typing import Optional

import docker
from docker.errors import DockerException, NotFound

from ..core.config import ContainerConfig
from ..errors import ContainerStartError
from ..utils.error_handling import ErrorContext
from .base import ContainerManager

logger = logging.getLogger(__name__)


class DockerContainerManager(ContainerManager):
    """Manage batch database containers through the Docker Engine API.

    One client is shared by every batch thread; docker-py clients are safe to
    use concurrently, only their creation is guarded.
    """

    def __init__(
        self,
        config: ContainerConfig,
        client: Optional[docker.DockerClient] = None,
    ):
        """Initialize Docker container manager.

        Args:
            config: Image, credentials and port mapping for every container
            client: Pre-built Docker client (created from env if not provided)
        """
        super().__init__(config)
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> docker.DockerClient:
        """Lazy-initialize Docker client."""
        with self._client_lock:
            if self._client is None:
                try:
                    client = docker.from_env()
                    client.ping()
                except DockerException as e:
                    raise ConnectionError(
                        f"Failed to connect to Docker daemon. Is Docker running? {e}"
                    ) from e
                self._client = client
        return self._client

    def start(self, name: str, port: int) -> None:
        """Create the database container as `name` and start it, publishing host `port`.

        Created and started in two steps so a container that was created but
        refused to start (host port taken) is removed again instead of
        holding on to its name.
        """
        logger.debug(
            f"Starting {self.config.image} container {name}: "
            f"host port {port} -> {self.config.container_port}/tcp"
        )
        try:
            container = self.client.containers.create(
                self.config.image,
                name=name,
                environment=self.config.container_env(),
                ports={f"{self.config.container_port}/tcp": port},
            )
        except Exception as e:
            raise ContainerStartError(name, port, str(e)) from e

        try:
            container.start()
        except Exception as e:
            with ErrorContext(f"removing container {name} after failed start", raise_on_error=False,
                              logger_instance=logger, log_level=logging.WARNING):
                container.remove(force=True)
            raise ContainerStartError(name, port, str(e)) from e

        logger.debug(f"Container {name} started ({container.short_id})")

    def cleanup(self, name: str) -> None:
        """Stop then force-remove the container; failures are only logged."""
        logger.debug(f"Stopping and removing container: {name}")
        try:
            container = self.client.containers.get(name)
        except NotFound:
            logger.debug(f"Container {name} already gone")
            return
        except Exception as e:
            logger.warning(f"Failed to look up container {name} for cleanup: {e}")
            return

        with ErrorContext(f"stopping container {name}", raise_on_error=False,
                          logger_instance=logger, log_level=logging.WARNING):
            container.stop()
        with ErrorContext(f"removing container {name}", raise_on_error=False,
                          logger_instance=logger, log_level=logging.WARNING):
            container.remove(force=True)

    def is_ready(self, name: str) -> bool:
        """Run pg_isready inside the container."""
        try:
            container = self.client.containers.get(name)
            result = container.exec_run(self.pg_isready_command())
        except Exception as e:
            logger.debug(f"Readiness probe for {name} failed: {e}")
            return False
        return result.exit_code == 0

    def health_check(self) -> bool:
        """Check if Docker is available and working."""
        try:
            self.client.ping()
            return True
        except Exception as e:
            logger.warning(f"Docker health check failed: {e}")
            return False
