"""Tests for the runtime-CLI container manager."""

import subprocess
from unittest.mock import patch

import pytest

from batch_runner.core.config import ContainerConfig
from batch_runner.errors import ContainerStartError
from batch_runner.sandbox.cli_manager import CliContainerManager
from batch_runner.utils.subprocess_utils import SubprocessError

MODULE = "batch_runner.sandbox.cli_manager"


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def manager():
    return CliContainerManager(ContainerConfig())


class TestStart:

    def test_run_command_matches_docker_cli(self, manager):
        assert manager.build_run_command("postgres_test_1", 5434) == [
            "docker", "run", "--name", "postgres_test_1",
            "-e", "POSTGRES_USER=test",
            "-e", "POSTGRES_PASSWORD=test",
            "-e", "POSTGRES_DB=testdb",
            "-p", "5434:5432", "-d", "postgres",
        ]

    def test_podman_binary(self):
        manager = CliContainerManager(ContainerConfig(runtime="cli", runtime_binary="podman"))

        assert manager.build_run_command("db_1", 6001)[0] == "podman"

    def test_start_success(self, manager):
        with patch(f"{MODULE}.get_command_output", return_value="abc123def4567890") as get_output:
            manager.start("postgres_test_1", 5434)

        get_output.assert_called_once()
        assert get_output.call_args.args[0][:2] == ["docker", "run"]

    def test_start_failure_uses_runtime_stderr(self, manager):
        error = SubprocessError(
            cmd="docker run ...",
            returncode=125,
            stderr="docker: Error response from daemon: port is already allocated.\n",
        )
        with patch(f"{MODULE}.get_command_output", side_effect=error):
            with pytest.raises(ContainerStartError) as exc_info:
                manager.start("postgres_test_1", 5434)

        assert exc_info.value.reason == "docker: Error response from daemon: port is already allocated."

    def test_missing_binary(self):
        manager = CliContainerManager(ContainerConfig(runtime_binary="no-such-runtime-12345"))

        with pytest.raises(ContainerStartError, match="no-such-runtime-12345"):
            manager.start("postgres_test_1", 5434)


class TestCleanup:

    def test_stop_then_force_remove(self, manager):
        with patch(f"{MODULE}.run_command", return_value=_completed()) as run:
            manager.cleanup("postgres_test_1")

        assert [c.args[0] for c in run.call_args_list] == [
            ["docker", "stop", "postgres_test_1"],
            ["docker", "rm", "-f", "postgres_test_1"],
        ]
        assert all(c.kwargs["check"] is False for c in run.call_args_list)

    def test_failures_are_swallowed(self, manager, caplog):
        with patch(f"{MODULE}.run_command",
                   side_effect=[_completed(1, stderr="No such container"), OSError("gone")]):
            manager.cleanup("postgres_test_1")

        assert "Cleanup command failed: docker stop postgres_test_1: exit status 1: No such container" in caplog.text
        assert "gone" in caplog.text


class TestReadiness:

    def test_exec_pg_isready(self, manager):
        with patch(f"{MODULE}.run_command", return_value=_completed(0)) as run:
            assert manager.is_ready("postgres_test_1") is True

        assert run.call_args.args[0] == [
            "docker", "exec", "postgres_test_1", "pg_isready", "-U", "test", "-d", "testdb",
        ]

    def test_not_ready(self, manager):
        with patch(f"{MODULE}.run_command", return_value=_completed(1)):
            assert manager.is_ready("postgres_test_1") is False


class TestHealthCheck:

    def test_binary_missing(self, manager):
        with patch(f"{MODULE}.check_command_exists", return_value=False):
            assert manager.health_check() is False

    def test_info_ok(self, manager):
        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_command", return_value=_completed(0)):
            assert manager.health_check() is True

    def test_info_fails(self, manager):
        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_command", return_value=_completed(1, stderr="Cannot connect")):
            assert manager.health_check() is False
