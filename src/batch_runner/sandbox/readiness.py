"""Wait for a freshly started database container to accept connections."""

import logging
import time
from typing import Callable

from ..core.config import ReadinessConfig
from ..errors import ContainerNotReadyError
from .base import ContainerManager

logger = logging.getLogger(__name__)


def calculate_backoff(readiness: ReadinessConfig, attempt: int) -> float:
    """
    Delay after a failed probe.

    Formula: initial * multiplier^(attempt-1), capped at max_backoff
    """
    backoff = readiness.initial_backoff * (readiness.multiplier ** (attempt - 1))
    return min(backoff, readiness.max_backoff)


def wait_until_ready(
    manager: ContainerManager,
    name: str,
    readiness: ReadinessConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until the container is usable.

    "delay" mode sleeps a fixed warm-up period and verifies nothing.
    "probe" mode polls pg_isready with exponential backoff.

    Raises:
        ContainerNotReadyError: If every probe attempt failed
    """
    if readiness.mode == "delay":
        logger.debug(
            f"Waiting {readiness.warmup_seconds:g}s for PostgreSQL in {name} to be ready"
        )
        sleep(readiness.warmup_seconds)
        return

    for attempt in range(1, readiness.max_attempts + 1):
        if manager.is_ready(name):
            logger.debug(f"PostgreSQL in {name} ready after {attempt} probe(s)")
            return
        if attempt < readiness.max_attempts:
            delay = calculate_backoff(readiness, attempt)
            logger.debug(
                f"PostgreSQL in {name} not ready (attempt {attempt}/{readiness.max_attempts}), "
                f"retrying in {delay:g}s"
            )
            sleep(delay)

    raise ContainerNotReadyError(name, readiness.max_attempts)
