"""
Exceptions raised by the node launcher.
"""

from __future__ import annotations

from pathlib import Path


class LauncherError(Exception):
    """Base exception for launcher errors."""


class WorkingDirectoryError(LauncherError):
    """The directory to scan for node homes does not exist."""

    def __init__(self, working_dir: Path) -> None:
        self.working_dir = working_dir
        super().__init__(f"Working directory '{working_dir}' is not a directory")


class MonitoringAgentNotFoundError(LauncherError):
    """The drivers directory does not hold exactly one monitoring agent jar."""

    def __init__(
        self,
        drivers_dir: Path,
        pattern: str,
        matches: list[str],
        reason: str | None = None,
    ) -> None:
        self.drivers_dir = drivers_dir
        self.pattern = pattern
        self.matches = matches
        if reason is None:
            if matches:
                reason = f"found {len(matches)} candidates ({', '.join(matches)})"
            else:
                reason = "found none"
        super().__init__(
            f"Expected exactly one monitoring agent matching '{pattern}' "
            f"in {drivers_dir}, {reason}"
        )


__all__ = [
    "LauncherError",
    "MonitoringAgentNotFoundError",
    "WorkingDirectoryError",
]
