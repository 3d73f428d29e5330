"""Run one batch of test files against its own database container."""

import logging
import os
import shlex
import subprocess
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from ..errors import ContainerNotReadyError, ContainerStartError, TestCommandError
from ..sandbox.base import ContainerManager
from ..sandbox.readiness import wait_until_ready
from ..utils.error_handling import ErrorContext
from ..utils.rich_logging import BatchLogger
from ..utils.subprocess_utils import run_command
from .config import RunConfig
from .partition import Batch

logger = logging.getLogger(__name__)


class BatchStatus(str, Enum):
    """Outcome of one batch."""
    PASSED = "passed"
    FAILED = "failed"        # A test command exited non-zero
    ERROR = "error"          # Container could not be started or never became ready
    CANCELLED = "cancelled"  # Run aborted before this batch finished


@dataclass
class BatchResult:
    """What happened to one batch."""
    index: int
    container_name: str
    port: int
    status: BatchStatus
    files_total: int
    files_run: int = 0
    failed_file: Optional[Path] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == BatchStatus.PASSED

    @property
    def files_skipped(self) -> int:
        return self.files_total - self.files_run


class BatchExecutor:
    """Start a container, run the test command once per file, always clean up.

    Files run strictly in order and the first failing file ends the batch.
    Any error inside the batch becomes an error result, so sibling batches
    are unaffected; only a ContainerStartError under the abort policy is
    raised.
    """

    def __init__(
        self,
        config: RunConfig,
        manager: ContainerManager,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize batch executor.

        Args:
            config: Run configuration (command, shell, readiness, error policy)
            manager: Container lifecycle backend
            cancel_event: Set by the orchestrator to stop batches early
            sleep: Sleep function used by the readiness wait
        """
        self.config = config
        self.manager = manager
        self.cancel_event = cancel_event or threading.Event()
        self._sleep = sleep

    def build_command(self, test_file: Path) -> str:
        """Compose the shell command line for one file."""
        return f"{self.config.test_command} {shlex.quote(str(test_file))}"

    def build_env(self, port: int) -> Dict[str, str]:
        """Inherited environment overlaid with this batch's connection settings."""
        env = dict(os.environ)
        env.update(self.config.container.connection_env(port))
        return env

    def run(self, batch: Batch) -> BatchResult:
        """Execute every file of the batch against a fresh container.

        Raises:
            ContainerStartError: If the container fails to start and the
                run is configured to abort on container errors
        """
        log = BatchLogger(logger, batch.index)
        started = time.time()
        result = BatchResult(
            index=batch.index,
            container_name=batch.container_name,
            port=batch.port,
            status=BatchStatus.PASSED,
            files_total=batch.size,
        )

        if self.cancel_event.is_set():
            log.progress(f"Run cancelled, not starting {batch.container_name}")
            result.status = BatchStatus.CANCELLED
            return result

        try:
            self.manager.start(batch.container_name, batch.port)
        except ContainerStartError as e:
            if self.config.on_container_error == "abort":
                raise
            log.error(str(e))
            result.status = BatchStatus.ERROR
            result.error = str(e)
            result.duration_seconds = time.time() - started
            return result
        except Exception as e:
            log.exception(f"Could not start {batch.container_name}: {e}")
            result.status = BatchStatus.ERROR
            result.error = f"{type(e).__name__}: {e}"
            result.duration_seconds = time.time() - started
            return result

        try:
            log.progress(
                f"Container {batch.container_name} started on port {batch.port}. "
                "Waiting for PostgreSQL to be ready..."
            )
            wait_until_ready(
                self.manager, batch.container_name, self.config.readiness, sleep=self._sleep
            )
            self._run_files(batch, result, log)
        except ContainerNotReadyError as e:
            log.error(str(e))
            result.status = BatchStatus.ERROR
            result.error = str(e)
        except Exception as e:
            log.exception(f"Batch stopped by unexpected error: {e}")
            result.status = BatchStatus.ERROR
            result.error = f"{type(e).__name__}: {e}"
        finally:
            with ErrorContext(f"cleaning up container {batch.container_name}", raise_on_error=False,
                              logger_instance=logger, log_level=logging.WARNING):
                self.manager.cleanup(batch.container_name)
            result.duration_seconds = time.time() - started

        if result.success:
            log.info(f"Completed batch in container {batch.container_name} on port {batch.port}")
        return result

    def _run_files(self, batch: Batch, result: BatchResult, log: BatchLogger) -> None:
        env = self.build_env(batch.port)

        for test_file in batch.files:
            if self.cancel_event.is_set():
                log.warning(
                    f"Run cancelled, skipping {batch.size - result.files_run} remaining file(s)"
                )
                result.status = BatchStatus.CANCELLED
                return

            try:
                self._run_one(test_file, env, log)
            except TestCommandError as e:
                result.files_run += 1
                log.error(str(e))
                result.status = BatchStatus.FAILED
                result.failed_file = test_file
                result.error = str(e)
                return
            result.files_run += 1

    def _run_one(self, test_file: Path, env: Dict[str, str], log: BatchLogger) -> None:
        """Run the test command for one file with output streamed live.

        Raises:
            TestCommandError: On non-zero exit or timeout
        """
        command = self.build_command(test_file)
        log.progress(f"Running command: {command}")

        try:
            completed = run_command(
                command,
                shell=True,
                executable=self.config.shell,
                env=env,
                capture_output=False,
                check=False,
                timeout=self.config.test_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise TestCommandError(test_file, None, timed_out=True) from e

        if completed.returncode != 0:
            raise TestCommandError(test_file, completed.returncode)
