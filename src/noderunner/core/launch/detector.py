"""
Environment probing for the node launcher.

Resolves the host OS family, whether a display is available, and whether
`screen` is installed. The result is an immutable EnvironmentInfo built once
per run and threaded through every launch decision.
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess

from noderunner.core.launch.models import EnvironmentInfo, Platform

logger = logging.getLogger(__name__)


def detect_platform(os_name: str | None = None) -> Platform:
    """
    Map a host-identifying string to a platform family.

    Args:
        os_name: Host OS name (defaults to platform.system())

    Returns:
        MACOS for anything mentioning mac/darwin, WINDOWS for anything
        mentioning win, LINUX otherwise

    Examples:
        >>> detect_platform("Mac OS X")
        <Platform.MACOS: 'macos'>
        >>> detect_platform("Windows 10")
        <Platform.WINDOWS: 'windows'>
        >>> detect_platform("FreeBSD")
        <Platform.LINUX: 'linux'>
    """
    name = (os_name if os_name is not None else platform.system() or "generic").lower()
    # "darwin" contains "win", so the mac check must come first
    if "mac" in name or "darwin" in name:
        return Platform.MACOS
    if "win" in name:
        return Platform.WINDOWS
    return Platform.LINUX


def is_display_headless(host: Platform) -> bool:
    """
    Check whether the display subsystem is unavailable.

    Only X11/Wayland hosts can lack a display; macOS and Windows always
    report one.
    """
    if host != Platform.LINUX:
        return False
    return not (os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))


def is_inside_tmux() -> bool:
    """
    Check if we're currently running inside a tmux session.

    Returns:
        True if TMUX environment variable is set and non-empty
    """
    return bool(os.environ.get("TMUX"))


class MultiplexerProbe:
    """
    Memoized check for an installed `screen` binary.

    The external locate query runs at most once per probe instance. If the
    query itself cannot run, screen is reported unavailable.
    """

    def __init__(self, program: str = "screen", host: Platform | None = None) -> None:
        self.program = program
        self.host = host if host is not None else detect_platform()
        self._available: bool | None = None

    def available(self) -> bool:
        if self._available is None:
            self._available = self._query()
        return self._available

    def _query(self) -> bool:
        locator = "where" if self.host == Platform.WINDOWS else "which"
        try:
            result = subprocess.run(
                [locator, self.program],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.debug("Could not run '%s %s': %s", locator, self.program, e)
            return False
        found = result.returncode == 0 and len(result.stdout.splitlines()) == 1
        logger.debug("%s available: %s", self.program, found)
        return found


def probe_environment(
    headless_flag: bool = False,
    *,
    os_name: str | None = None,
    multiplexer: MultiplexerProbe | None = None,
    check_multiplexer: bool = True,
) -> EnvironmentInfo:
    """
    Build the environment descriptor for one run.

    Args:
        headless_flag: Headless mode explicitly requested on the command line
        os_name: Host OS name override (defaults to platform.system())
        multiplexer: Probe to consult for screen (a new one if None)
        check_multiplexer: Skip the screen query entirely when False

    Returns:
        EnvironmentInfo describing the host
    """
    host = detect_platform(os_name)
    headless = headless_flag or is_display_headless(host)

    has_multiplexer = False
    if check_multiplexer and host != Platform.WINDOWS:
        if multiplexer is None:
            multiplexer = MultiplexerProbe(host=host)
        has_multiplexer = multiplexer.available()

    return EnvironmentInfo(
        platform=host,
        is_headless=headless,
        has_multiplexer=has_multiplexer,
        in_tmux=is_inside_tmux(),
    )


__all__ = [
    "MultiplexerProbe",
    "detect_platform",
    "is_display_headless",
    "is_inside_tmux",
    "probe_environment",
]
