"""Command line entry point: `test-runner`."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.batch_executor import BatchStatus
from ..core.config import load_run_config
from ..core.orchestrator import Orchestrator, RunSummary
from ..errors import BatchRunnerError, ErrorTranslator
from ..utils.rich_logging import setup_logging


console = Console()

STATUS_STYLES = {
    BatchStatus.PASSED: "green",
    BatchStatus.FAILED: "red",
    BatchStatus.ERROR: "red",
    BatchStatus.CANCELLED: "yellow",
}


def _print_error(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/]")
    friendly = ErrorTranslator().translate(error)
    if not friendly.show_technical:
        console.print(ErrorTranslator().format_for_cli(friendly))


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="Test batches")
    table.add_column("Batch", justify="right")
    table.add_column("Container")
    table.add_column("Port", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Status")
    table.add_column("Detail")

    for result in summary.results:
        style = STATUS_STYLES.get(result.status, "white")
        detail = ""
        if result.failed_file is not None:
            detail = str(result.failed_file)
        elif result.error:
            detail = result.error
        table.add_row(
            str(result.index),
            result.container_name,
            str(result.port),
            f"{result.files_run}/{result.files_total}",
            f"[{style}]{result.status.value}[/]",
            escape(detail),
        )

    console.print(table)
    console.print(summary.summary)


@click.command(name="test-runner")
@click.option("--test-folder", "-f", default=None, help="Path to the folder containing test files [default: .]")
@click.option("--block-size", "-b", type=int, default=None, help="Number of test files per PostgreSQL container [default: 25]")
@click.option("--test-command", "-c", default=None, help="Command to execute each test file [default: go test]")
@click.option("--base-port", "-p", type=int, default=None, help="Base port for PostgreSQL containers [default: 5433]")
@click.option("--file-pattern", "-P", default=None, help="File pattern to match test files [default: *_test.go]")
@click.option("--verbose", "-v", is_flag=True, default=None, help="Enable verbose output")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="YAML file with run settings")
@click.option("--image", default=None, help="Database image [default: postgres]")
@click.option("--runtime", type=click.Choice(["sdk", "cli"]), default=None,
              help="Talk to Docker through its API (sdk) or its command line (cli) [default: sdk]")
@click.option("--readiness", type=click.Choice(["delay", "probe"]), default=None,
              help="Fixed warm-up delay or pg_isready polling [default: delay]")
@click.option("--warmup", type=float, default=None, help="Warm-up delay in seconds for --readiness delay [default: 5]")
@click.option("--on-container-error", type=click.Choice(["isolate", "abort"]), default=None,
              help="Fail only the affected batch, or abort the whole run [default: isolate]")
@click.option("--strict/--no-strict", default=None, help="Exit 1 when any batch fails")
@click.option("--timeout", "test_timeout", type=float, default=None, help="Per-file test command timeout in seconds")
def cli(test_folder, block_size, test_command, base_port, file_pattern, verbose, config_path,
        image, runtime, readiness, warmup, on_container_error, strict, test_timeout):
    """Parallel test runner with PostgreSQL containers."""
    overrides = {
        "root_path": test_folder,
        "batch_size": block_size,
        "test_command": test_command,
        "base_port": base_port,
        "file_pattern": file_pattern,
        "verbose": verbose,
        "on_container_error": on_container_error,
        "strict": strict,
        "test_timeout": test_timeout,
        "container": {"image": image, "runtime": runtime},
        "readiness": {"mode": readiness, "warmup_seconds": warmup},
    }

    try:
        config = load_run_config(config_path, overrides)
        setup_logging(verbose=config.verbose)
        summary = Orchestrator(config).run()
    except BatchRunnerError as e:
        _print_error(e)
        sys.exit(1)

    if summary.results:
        _print_summary(summary)
    console.print("All test batches completed.")

    if config.strict and not summary.success:
        sys.exit(1)


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
