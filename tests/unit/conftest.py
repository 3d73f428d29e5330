"""Shared fixtures for unit tests."""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Set

import pytest

from batch_runner.core.config import ContainerConfig, RunConfig
from batch_runner.errors import ContainerStartError
from batch_runner.sandbox.base import ContainerManager
from batch_runner.utils.rich_logging import ROOT_LOGGER_NAME


class FakeContainerManager(ContainerManager):
    """Records lifecycle calls instead of talking to a container runtime."""

    def __init__(
        self,
        config: Optional[ContainerConfig] = None,
        fail_start: Optional[Set[str]] = None,
        ready: bool = True,
        healthy: bool = True,
    ):
        super().__init__(config or ContainerConfig())
        self.fail_start = fail_start or set()
        self.ready = ready
        self.healthy = healthy
        self.started: List[tuple] = []
        self.cleaned: List[str] = []
        self.probes: List[str] = []
        self._lock = threading.Lock()

    def start(self, name: str, port: int) -> None:
        if name in self.fail_start:
            raise ContainerStartError(name, port, "Bind for 0.0.0.0 failed: port is already allocated")
        with self._lock:
            self.started.append((name, port))

    def cleanup(self, name: str) -> None:
        with self._lock:
            self.cleaned.append(name)

    def is_ready(self, name: str) -> bool:
        with self._lock:
            self.probes.append(name)
        return self.ready

    def health_check(self) -> bool:
        return self.healthy


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging() so handlers do not leak between tests."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_manager():
    return FakeContainerManager()


@pytest.fixture
def make_config(tmp_path):
    """Build a RunConfig rooted at tmp_path with no warm-up delay."""
    def _make(**overrides):
        data = {
            "root_path": tmp_path,
            "readiness": {"mode": "delay", "warmup_seconds": 0},
        }
        data.update(overrides)
        return RunConfig(**data)
    return _make


@pytest.fixture
def make_tree():
    """Create empty files (and parent directories) under a root."""
    def _make(root: Path, names: List[str]) -> None:
        for name in names:
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
    return _make


@pytest.fixture
def make_manager():
    """Factory for fakes with failing starts or probes."""
    return FakeContainerManager
