"""Fan batches out to concurrent executors and join them."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..errors import ContainerStartError
from ..sandbox import ContainerManager, create_container_manager
from .batch_executor import BatchExecutor, BatchResult, BatchStatus
from .config import RunConfig
from .discovery import discover_test_files
from .partition import Batch, partition_files

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Aggregated batch outcomes of one run."""
    files_discovered: int
    results: List[BatchResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def failed_batches(self) -> List[BatchResult]:
        return [r for r in self.results if not r.success]

    @property
    def summary(self) -> str:
        """Human-readable summary."""
        if not self.results:
            return f"No test files matched ({self.files_discovered} discovered)"
        passed = sum(1 for r in self.results if r.status == BatchStatus.PASSED)
        return (
            f"{passed}/{len(self.results)} batches passed "
            f"({self.files_discovered} files) in {self.duration_seconds:.1f}s"
        )


class Orchestrator:
    """Discover, partition, and run every batch concurrently.

    One thread per batch with no cap, so every container of the run is up at
    the same time. Batch failures never stop siblings unless the run is
    configured with on_container_error="abort".
    """

    def __init__(
        self,
        config: RunConfig,
        manager: Optional[ContainerManager] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.manager = manager or create_container_manager(config.container)
        self.cancel_event = threading.Event()
        self.executor = BatchExecutor(config, self.manager, self.cancel_event, sleep=sleep)

    def plan(self) -> List[Batch]:
        """Discover test files and assign them to batches.

        Raises:
            DiscoveryError: If the test folder cannot be walked
            ConfigError: If the batches would not fit the port range
        """
        files = discover_test_files(self.config.root_path, self.config.file_pattern)
        batches = partition_files(
            files,
            self.config.batch_size,
            self.config.base_port,
            self.config.container.name_prefix,
        )
        logger.debug(
            f"Found {len(files)} test files, running {len(batches)} batch(es) "
            f"of up to {self.config.batch_size}"
        )
        return batches

    def run(self) -> RunSummary:
        """Run every batch and wait for all of them.

        Raises:
            DiscoveryError: Before any container is started
            ContainerStartError: Only with on_container_error="abort", after
                all in-flight batches have cleaned up
        """
        started = time.time()
        batches = self.plan()
        files_discovered = sum(b.size for b in batches)

        if not batches:
            logger.info(f"No files matching '{self.config.file_pattern}' under {self.config.root_path}")
            return RunSummary(files_discovered=0)

        if not self.manager.health_check():
            logger.warning("Container runtime health check failed, batch containers will likely not start")

        results: List[BatchResult] = []
        first_error: Optional[ContainerStartError] = None

        with ThreadPoolExecutor(max_workers=len(batches), thread_name_prefix="batch") as pool:
            futures = [pool.submit(self._run_batch, batch) for batch in batches]

            try:
                for future in futures:
                    try:
                        results.append(future.result())
                    except ContainerStartError as e:
                        logger.error(str(e))
                        if first_error is None:
                            first_error = e
            except KeyboardInterrupt:
                logger.warning("Interrupted, waiting for running batches to clean up their containers")
                self.cancel_event.set()
                raise

        if first_error is not None:
            raise first_error

        return RunSummary(
            files_discovered=files_discovered,
            results=results,
            duration_seconds=time.time() - started,
        )

    def _run_batch(self, batch: Batch) -> BatchResult:
        try:
            return self.executor.run(batch)
        except ContainerStartError:
            # Stop siblings at their next file boundary; they still clean up
            self.cancel_event.set()
            raise
