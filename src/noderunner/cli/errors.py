"""
Standardized error handling and exit codes for the noderunner CLI.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for noderunner."""

    SUCCESS = 0
    """All candidates were attempted."""

    GENERAL_ERROR = 1
    """A node failed to start and fail_on_error is set."""

    USER_ERROR = 2
    """Bad configuration or working directory (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Working directory 'build/nodes' is not a directory",
        ...     solution="Run ./gradlew deployNodes, then cd build/nodes",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}", highlight=False, soft_wrap=True)

    if reason:
        console.print(f"[dim]{reason}[/dim]", highlight=False, soft_wrap=True)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}", highlight=False, soft_wrap=True)


__all__ = ["ExitCode", "console", "print_error"]
