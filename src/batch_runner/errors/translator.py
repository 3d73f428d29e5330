"""Translate container runtime and discovery errors to actionable messages."""

import re
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class UserFriendlyError:
    """User-friendly error representation."""
    original_error: Exception
    title: str
    explanation: str
    actions: List[str]
    documentation: Optional[str] = None
    show_technical: bool = False


class ErrorTranslator:
    """Translate technical errors to user-friendly messages."""

    ERROR_PATTERNS = {
        # Host port collisions between runs or with a local postgres
        r"port is already allocated|address already in use|bind.*failed": {
            "title": "Host port already in use",
            "explanation": "Another process or container is bound to one of the batch ports. "
                           "Each batch uses base port + batch index.",
            "actions": [
                "Pick a free range: test-runner --base-port 6433",
                "List running containers: docker ps",
                "Stop a local PostgreSQL listening on the same port",
            ],
        },

        # Leftover container from an interrupted run
        r"Conflict.*container name|is already in use by container": {
            "title": "Container name already taken",
            "explanation": "A container from a previous, interrupted run still exists with the same name.",
            "actions": [
                "Remove it: docker rm -f <name>",
                "List leftovers: docker ps -a --filter name=postgres_test_",
            ],
        },

        # Runtime daemon unreachable
        r"Cannot connect to the Docker daemon|Failed to connect to Docker daemon|"
        r"docker.*not found|No such file or directory.*docker": {
            "title": "Container runtime unavailable",
            "explanation": "The Docker daemon could not be reached, so no database container can be started.",
            "actions": [
                "Start Docker and retry",
                "Check permissions on the Docker socket",
                "Use another runtime: test-runner --runtime cli with runtime_binary: podman in the config file",
            ],
        },

        # Image problems
        r"pull access denied|manifest unknown|No such image|ImageNotFound": {
            "title": "Database image not available",
            "explanation": "The configured image could not be found locally or pulled from the registry.",
            "actions": [
                "Check the image name: test-runner --image postgres:16",
                "Pull it manually: docker pull <image>",
            ],
        },

        # Discovery
        r"DiscoveryError": {
            "title": "Test folder could not be scanned",
            "explanation": "The test folder is missing or a directory inside it is not readable.",
            "actions": [
                "Check the path passed to --test-folder",
                "Check directory permissions",
            ],
        },

        # Configuration
        r"ConfigError": {
            "title": "Invalid configuration",
            "explanation": "A command-line option or config file value is out of range.",
            "actions": [
                "Run: test-runner --help",
                "Check the YAML file passed to --config",
            ],
        },
    }

    def translate(self, error: Exception) -> UserFriendlyError:
        """Convert exception to user-friendly format."""
        error_str = str(error)
        error_type = type(error).__name__
        full_error = f"{error_type}: {error_str}"

        for pattern, translation in self.ERROR_PATTERNS.items():
            if re.search(pattern, full_error, re.IGNORECASE):
                return UserFriendlyError(
                    original_error=error,
                    title=translation["title"],
                    explanation=translation["explanation"],
                    actions=translation["actions"],
                    documentation=translation.get("documentation"),
                    show_technical=False
                )

        return UserFriendlyError(
            original_error=error,
            title="Unexpected error",
            explanation=str(error),
            actions=[
                "Re-run with --verbose for the container and command log",
            ],
            show_technical=True
        )

    def format_for_cli(self, friendly_error: UserFriendlyError) -> str:
        """Format error for CLI display."""
        output = f"[bold red]{friendly_error.title}[/]\n\n"
        output += f"{friendly_error.explanation}\n\n"

        output += "[bold]How to fix:[/]\n"
        for i, action in enumerate(friendly_error.actions, 1):
            output += f"  {i}. {action}\n"

        if friendly_error.documentation:
            output += f"\n[dim]Learn more: {friendly_error.documentation}[/]"

        if friendly_error.show_technical:
            output += f"\n\n[dim]Technical details:[/]\n[dim]{friendly_error.original_error}[/]"

        return output
