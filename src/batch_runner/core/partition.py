"""Split a discovered file list into container-sized batches."""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from ..errors import ConfigError

MAX_PORT = 65535


@dataclass(frozen=True)
class Batch:
    """A contiguous slice of the file list bound to one container."""
    index: int  # 1-based
    files: Tuple[Path, ...]
    container_name: str
    port: int

    @property
    def size(self) -> int:
        return len(self.files)


def container_name_for(name_prefix: str, index: int) -> str:
    return f"{name_prefix}_{index}"


def partition_files(
    files: Sequence[Path],
    batch_size: int,
    base_port: int,
    name_prefix: str = "postgres_test",
) -> List[Batch]:
    """Slice files into batches of batch_size, the last one holding the remainder.

    Batch i (1-based) gets container `<name_prefix>_<i>` on port
    `base_port + i`, so names and ports never collide within a run.

    Raises:
        ConfigError: If batch_size < 1 or the last port would exceed 65535
    """
    if batch_size < 1:
        raise ConfigError(f"batch_size must be >= 1, got {batch_size}")

    batch_count = -(-len(files) // batch_size)
    if base_port + batch_count > MAX_PORT:
        raise ConfigError(
            f"{batch_count} batches starting at base port {base_port} "
            f"would need port {base_port + batch_count} (max {MAX_PORT})"
        )

    batches = []
    for start in range(0, len(files), batch_size):
        index = start // batch_size + 1
        batches.append(Batch(
            index=index,
            files=tuple(files[start:start + batch_size]),
            container_name=container_name_for(name_prefix, index),
            port=base_port + index,
        ))
    return batches
