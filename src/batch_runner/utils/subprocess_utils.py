"""Standardized subprocess utilities for command execution."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Exception raised when a subprocess command fails."""

    def __init__(
        self,
        cmd: str,
        returncode: Optional[int],
        stderr: str,
        stdout: str = "",
        cwd: Optional[Path] = None,
        timed_out: bool = False,
    ):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        self.cwd = cwd
        self.timed_out = timed_out

        if timed_out:
            headline = f"Command timed out: {cmd}"
        else:
            headline = f"Command failed with exit code {returncode}: {cmd}"
        if cwd is not None:
            headline += f" (cwd: {cwd})"
        super().__init__(f"{headline}\nstderr: {stderr}")


def _cmd_to_str(cmd: Union[str, List[str]]) -> str:
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def run_command(
    cmd: Union[str, List[str]],
    *,
    cwd: Optional[Path] = None,
    capture_output: bool = True,
    check: bool = True,
    timeout: Optional[float] = None,
    env: Optional[dict] = None,
    shell: bool = False,
    executable: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command with standardized error handling.

    With capture_output=False the child inherits this process's stdout and
    stderr, so its output streams live.

    Args:
        cmd: Command to run (string or list)
        cwd: Working directory
        capture_output: Capture stdout/stderr
        check: Raise exception on non-zero exit
        timeout: Timeout in seconds
        env: Full environment for the child (None inherits ours)
        shell: Use shell execution
        executable: Shell binary to use when shell=True

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        SubprocessError: If check=True and the command fails or times out
        subprocess.TimeoutExpired: If check=False and timeout exceeded
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            env=env,
            shell=shell,
            executable=executable,
            check=False,  # We handle check ourselves for better error messages
        )
    except subprocess.TimeoutExpired as e:
        logger.error(f"Command timed out after {timeout}s: {_cmd_to_str(cmd)}")
        if not check:
            raise
        # TimeoutExpired carries bytes even in text mode
        stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        raise SubprocessError(
            cmd=_cmd_to_str(cmd),
            returncode=None,
            stderr=stderr,
            cwd=cwd,
            timed_out=True,
        ) from e

    if check and result.returncode != 0:
        raise SubprocessError(
            cmd=_cmd_to_str(cmd),
            returncode=result.returncode,
            stderr=result.stderr or "",
            stdout=result.stdout or "",
            cwd=cwd,
        )

    return result


def check_command_exists(command: str) -> bool:
    """
    Check if a command exists in PATH.

    Args:
        command: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    try:
        result = subprocess.run(
            ["which", command],
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0
    except OSError:
        return False


def get_command_output(
    cmd: Union[str, List[str]],
    *,
    cwd: Optional[Path] = None,
    timeout: Optional[float] = 30,
) -> str:
    """
    Run a command and return its output (stdout).

    Args:
        cmd: Command to run
        cwd: Working directory
        timeout: Timeout in seconds

    Returns:
        Command stdout as string (stripped)

    Raises:
        SubprocessError: If command fails
    """
    result = run_command(cmd, cwd=cwd, check=True, timeout=timeout)
    return result.stdout.strip()
