"""Container lifecycle through a runtime CLI (docker, podman)."""

import logging
import subprocess
from typing import List

from ..core.config import ContainerConfig
from ..errors import CleanupError, ContainerStartError
from ..utils.error_handling import log_and_ignore
from ..utils.subprocess_utils import (
    SubprocessError,
    check_command_exists,
    get_command_output,
    run_command,
)
from .base import ContainerManager

logger = logging.getLogger(__name__)


class CliContainerManager(ContainerManager):
    """Drive the container runtime by shelling out to its CLI.

    Equivalent to `docker run --name <name> -e ... -p <port>:5432 -d postgres`
    followed by `docker stop` and `docker rm` at the end of the batch.
    """

    def __init__(self, config: ContainerConfig, command_timeout: int = 120):
        super().__init__(config)
        self.binary = config.runtime_binary
        self.command_timeout = command_timeout

    def build_run_command(self, name: str, port: int) -> List[str]:
        cmd = [self.binary, "run", "--name", name]
        for key, value in self.config.container_env().items():
            cmd.extend(["-e", f"{key}={value}"])
        cmd.extend(["-p", f"{port}:{self.config.container_port}", "-d", self.config.image])
        return cmd

    def start(self, name: str, port: int) -> None:
        cmd = self.build_run_command(name, port)
        logger.debug(f"Starting PostgreSQL container with command: {' '.join(cmd)}")
        try:
            container_id = get_command_output(cmd, timeout=self.command_timeout)
        except SubprocessError as e:
            reason = e.stderr.strip() or str(e)
            raise ContainerStartError(name, port, reason) from e
        except OSError as e:
            # Runtime binary missing or not executable
            raise ContainerStartError(name, port, f"{self.binary}: {e}") from e

        logger.debug(f"Container {name} started ({container_id[:12]})")

    def cleanup(self, name: str) -> None:
        logger.debug(f"Stopping and removing container: {name}")
        for action in (["stop", name], ["rm", "-f", name]):
            cmd = [self.binary] + action
            try:
                result = run_command(cmd, check=False, timeout=self.command_timeout)
            except (OSError, subprocess.TimeoutExpired) as e:
                log_and_ignore(e, f"Cleanup command failed: {' '.join(cmd)}", logger_instance=logger)
                continue
            if result.returncode != 0:
                error = CleanupError(
                    name, f"exit status {result.returncode}: {(result.stderr or '').strip()}"
                )
                log_and_ignore(error, f"Cleanup command failed: {' '.join(cmd)}", logger_instance=logger)

    def is_ready(self, name: str) -> bool:
        cmd = [self.binary, "exec", name] + self.pg_isready_command()
        try:
            result = run_command(cmd, check=False, timeout=self.command_timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Readiness probe for {name} failed: {e}")
            return False
        return result.returncode == 0

    def health_check(self) -> bool:
        if not check_command_exists(self.binary):
            logger.warning(f"Container runtime '{self.binary}' not found in PATH")
            return False
        try:
            result = run_command([self.binary, "info"], check=False, timeout=self.command_timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"{self.binary} health check failed: {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"{self.binary} health check failed: {(result.stderr or '').strip()}")
            return False
        return True
