"""Tests for subprocess_utils."""

import subprocess
from pathlib import Path

import pytest

from batch_runner.utils.subprocess_utils import (
    SubprocessError,
    check_command_exists,
    get_command_output,
    run_command,
)


def test_subprocess_error_includes_context():
    """Test SubprocessError includes all context."""
    error = SubprocessError(
        cmd="docker run postgres",
        returncode=None,
        stderr="error message",
        stdout="output",
        cwd=Path("/tmp"),
        timed_out=True,
    )

    assert error.cmd == "docker run postgres"
    assert error.returncode is None
    assert error.stderr == "error message"
    assert error.stdout == "output"
    assert error.cwd == Path("/tmp")
    assert error.timed_out is True
    assert "/tmp" in str(error)
    assert "timed out" in str(error)


def test_run_command_success():
    """Test run_command succeeds for valid command."""
    result = run_command(["echo", "hello"], check=True)
    assert result.returncode == 0
    assert "hello" in result.stdout


def test_run_command_failure_raises():
    """Test run_command raises SubprocessError on failure."""
    with pytest.raises(SubprocessError) as exc_info:
        run_command(["false"], check=True)

    assert exc_info.value.returncode != 0
    assert exc_info.value.timed_out is False


def test_run_command_failure_no_check():
    """Test run_command does not raise when check=False."""
    result = run_command(["false"], check=False)
    assert result.returncode != 0


def test_run_command_timeout_with_check():
    """Test run_command converts timeouts to SubprocessError when checking."""
    with pytest.raises(SubprocessError) as exc_info:
        run_command(["sleep", "10"], check=True, timeout=1)

    assert exc_info.value.timed_out is True


def test_run_command_timeout_without_check():
    """Test run_command lets TimeoutExpired through when not checking."""
    with pytest.raises(subprocess.TimeoutExpired):
        run_command(["sleep", "10"], check=False, timeout=1)


def test_run_command_shell_with_env():
    """Test shell execution sees the provided environment."""
    result = run_command(
        "echo $POSTGRES_PORT",
        shell=True,
        executable="/bin/sh",
        env={"POSTGRES_PORT": "5434", "PATH": "/usr/bin:/bin"},
    )
    assert result.stdout.strip() == "5434"


def test_run_command_with_cwd(tmp_path):
    """Test run_command respects cwd parameter."""
    (tmp_path / "test.txt").write_text("content")

    result = run_command(["ls"], cwd=tmp_path, check=True)
    assert "test.txt" in result.stdout


def test_check_command_exists_true():
    """Test check_command_exists returns True for existing command."""
    assert check_command_exists("echo") is True


def test_check_command_exists_false():
    """Test check_command_exists returns False for non-existing command."""
    assert check_command_exists("nonexistent_command_12345") is False


def test_get_command_output_strips_whitespace():
    """Test get_command_output strips whitespace."""
    output = get_command_output(["echo", "  hello  "])
    assert output == "hello"
