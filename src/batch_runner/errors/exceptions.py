"""Exception hierarchy for batch test runs."""

from pathlib import Path
from typing import Optional


class BatchRunnerError(Exception):
    """Base class for all batch runner errors."""


class ConfigError(BatchRunnerError, ValueError):
    """Invalid run configuration, rejected before any work starts."""


class DiscoveryError(BatchRunnerError):
    """Walking the test folder failed (missing root, permission denied)."""

    def __init__(self, root: Path, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"Failed to find test files in {root}: {reason}")


class ContainerError(BatchRunnerError):
    """Base class for container runtime failures."""

    def __init__(self, container_name: str, message: str):
        self.container_name = container_name
        super().__init__(message)


class ContainerStartError(ContainerError):
    """The container runtime refused to launch a batch container."""

    def __init__(self, container_name: str, port: int, reason: str):
        self.port = port
        self.reason = reason
        super().__init__(
            container_name,
            f"Failed to start container {container_name} on port {port}: {reason}",
        )


class ContainerNotReadyError(ContainerError):
    """The database inside a container never reported ready."""

    def __init__(self, container_name: str, attempts: int):
        self.attempts = attempts
        super().__init__(
            container_name,
            f"Container {container_name} not ready after {attempts} attempts",
        )


class CleanupError(ContainerError):
    """Stopping or removing a container failed. Never escapes cleanup."""


class TestCommandError(BatchRunnerError):
    """A test command exited non-zero for one file."""

    __test__ = False  # keep pytest from collecting this as a test class

    def __init__(
        self,
        test_file: Path,
        returncode: Optional[int],
        timed_out: bool = False,
    ):
        self.test_file = test_file
        self.returncode = returncode
        self.timed_out = timed_out
        if timed_out:
            detail = "timed out"
        else:
            detail = f"exit status {returncode}"
        super().__init__(f"Test failed for file {test_file}: {detail}")
