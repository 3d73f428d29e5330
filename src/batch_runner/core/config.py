"""Run configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigError

logger = logging.getLogger(__name__)


class ContainerConfig(BaseModel):
    """Database container settings shared by every batch of a run."""
    model_config = {"frozen": True}

    runtime: Literal["sdk", "cli"] = "sdk"
    runtime_binary: str = "docker"  # Only used by the cli runtime (docker, podman)
    image: str = "postgres"
    name_prefix: str = "postgres_test"
    container_port: int = 5432
    host: str = "localhost"

    # Same credentials everywhere; isolation comes from one container per batch
    user: str = "test"
    password: str = "test"
    database: str = "testdb"

    @field_validator('name_prefix')
    @classmethod
    def validate_name_prefix(cls, v: str) -> str:
        if not v or not all(c.isalnum() or c in "_.-" for c in v):
            raise ValueError(f"name_prefix must be a valid container name, got '{v}'")
        return v

    def container_env(self) -> Dict[str, str]:
        """Environment passed to the database image at launch."""
        return {
            "POSTGRES_USER": self.user,
            "POSTGRES_PASSWORD": self.password,
            "POSTGRES_DB": self.database,
        }

    def connection_env(self, port: int) -> Dict[str, str]:
        """Connection variables exported to each test command."""
        return {
            "POSTGRES_HOST": self.host,
            "POSTGRES_PORT": str(port),
            **self.container_env(),
        }


class ReadinessConfig(BaseModel):
    """How a batch decides its database is ready to accept connections."""
    model_config = {"frozen": True}

    mode: Literal["delay", "probe"] = "delay"
    warmup_seconds: float = 5.0
    max_attempts: int = 10
    initial_backoff: float = 0.5
    max_backoff: float = 5.0
    multiplier: float = 2.0

    @field_validator('warmup_seconds', 'initial_backoff', 'max_backoff')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"must be >= 0, got {v}")
        return v

    @field_validator('max_attempts')
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_attempts must be >= 1, got {v}")
        return v


class RunConfig(BaseSettings):
    """Immutable configuration for one run of the batch test runner."""
    model_config = SettingsConfigDict(
        env_prefix="TEST_RUNNER_",
        env_nested_delimiter="__",
        frozen=True,
        extra="forbid",
    )

    root_path: Path = Field(default=Path("."))
    batch_size: int = 25
    test_command: str = "go test"
    base_port: int = 5433
    file_pattern: str = "*_test.go"
    verbose: bool = False

    container: ContainerConfig = Field(default_factory=ContainerConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)

    # "isolate" records a failed start on its batch only; "abort" ends the run
    on_container_error: Literal["isolate", "abort"] = "isolate"
    # Exit non-zero when any batch did not pass
    strict: bool = False
    test_timeout: Optional[float] = None  # Per-file limit in seconds
    shell: str = "/bin/sh"

    @field_validator('batch_size')
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"batch_size must be >= 1, got {v}")
        return v

    @field_validator('base_port')
    @classmethod
    def validate_base_port(cls, v: int) -> int:
        if not 0 < v < 65535:
            raise ValueError(f"base_port must be between 1 and 65534, got {v}")
        return v

    @field_validator('test_command', 'file_pattern')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator('test_timeout')
    @classmethod
    def validate_test_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"test_timeout must be > 0, got {v}")
        return v


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand ${VAR} references in config data.

    Args:
        data: Config data to process
        _path: Internal tracking for error messages (e.g., "container.password")
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                f"Environment variable '{env_var}' not set (referenced at config path: {_path or 'root'}). "
                f"The literal string '{data}' will be used, which may cause errors."
            )
            return data
        return value
    return data


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overrides into base, recursing into nested sections. None values are skipped."""
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        elif isinstance(value, dict):
            nested = _deep_merge({}, value)
            if nested:
                merged[key] = nested
        else:
            merged[key] = value
    return merged


def _load_yaml_file(config_path: Path) -> Dict[str, Any]:
    """Read a YAML config file into a dict."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping at the top level")
    return _expand_env_vars(data)


def load_run_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> RunConfig:
    """Build the run configuration.

    Precedence, highest first: explicit overrides (CLI flags), the YAML file,
    TEST_RUNNER_* environment variables, built-in defaults.

    Raises:
        ConfigError: If the file is unreadable or any value fails validation
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        data = _load_yaml_file(config_path)
        logger.debug(f"Loaded config file {config_path}")

    data = _deep_merge(data, overrides or {})

    try:
        return RunConfig(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
