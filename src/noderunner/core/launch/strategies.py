"""
Launch strategies: how a built java command is started and presented.

The strategy is a closed set chosen by a pure function of the environment
descriptor and the caller's screen preference. Each strategy has exactly one
spawner in SPAWNERS. Spawners never wait for the child; the only blocking
step is the settle delay after opening a macOS Terminal tab.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from noderunner.core.launch.command import (
    NO_LOCAL_SHELL_FLAG,
    applescript_string,
    unix_command,
    windows_command,
)
from noderunner.core.launch.models import (
    EnvironmentInfo,
    LaunchRequest,
    Platform,
    RunningProcess,
)

logger = logging.getLogger(__name__)

# Exit codes that close the window quietly: clean exit and SIGTERM (128 + 15)
KEEP_OPEN_FRAGMENT = "rc=$?; [ $rc -eq 0 -o $rc -eq 143 ] || sh"

MAC_TERMINAL_SCRIPT = """\
tell app "Terminal"
activate
delay 0.5
tell app "System Events" to tell process "Terminal" to keystroke "t" using command down
delay 0.5
do script "{command}" in selected tab of the front window
end tell
"""


class LaunchStrategy(str, Enum):
    """How a node process is started and presented."""

    HEADLESS = "headless"  # Inherit our stdio, stderr to a log file
    UNIX_SCREEN = "unix_screen"  # Detached screen session
    LINUX_TERMINAL = "linux_terminal"  # tmux window or terminal emulator window
    MAC_TERMINAL_TAB = "mac_terminal_tab"  # New Terminal.app tab via AppleScript
    WINDOWS_START = "windows_start"  # cmd "start" in a new console


def select_strategy(env: EnvironmentInfo, use_screen: bool = False) -> LaunchStrategy:
    """
    Choose a launch strategy.

    Args:
        env: Environment descriptor for this run
        use_screen: Caller asked for screen sessions

    Returns:
        The strategy for every candidate in this environment

    Examples:
        >>> env = EnvironmentInfo(platform=Platform.LINUX, is_headless=True)
        >>> select_strategy(env)
        <LaunchStrategy.HEADLESS: 'headless'>
    """
    if env.is_headless:
        return LaunchStrategy.HEADLESS
    if env.platform == Platform.WINDOWS:
        return LaunchStrategy.WINDOWS_START
    if use_screen and env.has_multiplexer:
        return LaunchStrategy.UNIX_SCREEN
    if env.platform == Platform.MACOS:
        return LaunchStrategy.MAC_TERMINAL_TAB
    return LaunchStrategy.LINUX_TERMINAL


def node_label(request: LaunchRequest, strategy: LaunchStrategy) -> str:
    """Identity label for -Dname, window titles and session names."""
    if strategy == LaunchStrategy.HEADLESS:
        return request.home.name
    return f"{request.home.name}-{request.jar_name}"


def strategy_extra_args(strategy: LaunchStrategy) -> list[str]:
    """Arguments a strategy appends after the jar."""
    if strategy == LaunchStrategy.HEADLESS:
        return [NO_LOCAL_SHELL_FLAG]
    return []


class TerminalAutomation(Protocol):
    """Opens an interactive terminal tab and runs a script in it."""

    def open_tab_and_run(self, script: str, cwd: Path) -> RunningProcess: ...


class OsaScriptAutomation:
    """
    Drive Terminal.app with osascript.

    Relies on injected keystrokes and fixed delays, so it is inherently racy;
    callers add a settle delay between successive tabs.
    """

    def __init__(self, popen: Callable[..., subprocess.Popen] = subprocess.Popen) -> None:
        self._popen = popen

    def open_tab_and_run(self, script: str, cwd: Path) -> RunningProcess:
        argv = ["osascript", "-e", script]
        process = self._popen(argv, cwd=cwd)
        return RunningProcess(process=process, command_line=" ".join(argv))


@dataclass
class SpawnContext:
    """
    Collaborators and settings shared by the spawners of one run.

    Attributes:
        env: Environment descriptor for this run
        working_dir: Directory the launcher was started from (headless logs)
        terminal_emulator: Terminal used for new windows outside tmux
        settle_delay: Seconds to wait after opening a macOS Terminal tab
        popen: Process factory
        sleep: Delay function
        automation: Terminal automation for macOS tabs (osascript if None)
    """

    env: EnvironmentInfo
    working_dir: Path
    terminal_emulator: str = "xterm"
    settle_delay: float = 1.2
    popen: Callable[..., subprocess.Popen] = subprocess.Popen
    sleep: Callable[[float], None] = time.sleep
    automation: TerminalAutomation | None = field(default=None)

    def __post_init__(self) -> None:
        if self.automation is None:
            self.automation = OsaScriptAutomation(popen=self.popen)


Spawner = Callable[[list[str], LaunchRequest, str, SpawnContext], RunningProcess]


def _spawn_headless(
    command: list[str], request: LaunchRequest, label: str, ctx: SpawnContext
) -> RunningProcess:
    log_path = ctx.working_dir / f"error.{request.home.name}-{request.jar_name}.log"
    # The child keeps its own copy of the handle after Popen returns
    with log_path.open("wb") as stderr:
        process = ctx.popen(command, cwd=request.home.path, stderr=stderr)
    return RunningProcess(process=process, command_line=" ".join(command))


def _spawn_unix_screen(
    command: list[str], request: LaunchRequest, label: str, ctx: SpawnContext
) -> RunningProcess:
    inner = f"{unix_command(command)}; exit $?"
    script = "\n".join(
        [
            f"cd {shlex.quote(str(request.home.path.absolute()))}",
            f"screen -dmS {shlex.quote(label)} sh -c {shlex.quote(inner)}",
            f"echo started {shlex.quote(label)}",
        ]
    )
    argv = ["sh", "-c", script]
    process = ctx.popen(argv, cwd=request.home.path)
    return RunningProcess(process=process, command_line=unix_command(argv))


def _spawn_linux_terminal(
    command: list[str], request: LaunchRequest, label: str, ctx: SpawnContext
) -> RunningProcess:
    fragment = f"{unix_command(command)}; {KEEP_OPEN_FRAGMENT}"
    if ctx.env.in_tmux:
        argv = ["tmux", "new-window", "-n", label, fragment]
    else:
        argv = [ctx.terminal_emulator, "-T", label, "-e", "sh", "-c", fragment]
    process = ctx.popen(argv, cwd=request.home.path)
    return RunningProcess(process=process, command_line=unix_command(argv))


def _spawn_mac_terminal_tab(
    command: list[str], request: LaunchRequest, label: str, ctx: SpawnContext
) -> RunningProcess:
    home = shlex.quote(str(request.home.path.absolute()))
    shell = f"cd {home} && {unix_command(command)} && exit"
    script = MAC_TERMINAL_SCRIPT.format(command=applescript_string(shell))
    automation = ctx.automation or OsaScriptAutomation(popen=ctx.popen)
    running = automation.open_tab_and_run(script, request.home.path)
    # Let Terminal settle before the next tab's keystroke is injected
    ctx.sleep(ctx.settle_delay)
    return running


def _spawn_windows_start(
    command: list[str], request: LaunchRequest, label: str, ctx: SpawnContext
) -> RunningProcess:
    """
    Open a new console window with cmd's start builtin.

    Arguments are quoted for the MS C runtime only. cmd metacharacters
    (&, |, ^, %) in unquoted passthrough arguments are not escaped and are
    interpreted by cmd.
    """
    # The first quoted token of "start" is the window title
    command_line = f'cmd /C start "{label}" {windows_command(command)}'
    process = ctx.popen(command_line, cwd=request.home.path)
    return RunningProcess(process=process, command_line=command_line)


SPAWNERS: dict[LaunchStrategy, Spawner] = {
    LaunchStrategy.HEADLESS: _spawn_headless,
    LaunchStrategy.UNIX_SCREEN: _spawn_unix_screen,
    LaunchStrategy.LINUX_TERMINAL: _spawn_linux_terminal,
    LaunchStrategy.MAC_TERMINAL_TAB: _spawn_mac_terminal_tab,
    LaunchStrategy.WINDOWS_START: _spawn_windows_start,
}


def spawn(
    strategy: LaunchStrategy,
    command: list[str],
    request: LaunchRequest,
    label: str,
    ctx: SpawnContext,
) -> RunningProcess:
    """
    Start a built command with the given strategy.

    Raises:
        OSError: If the OS refuses to create the process
    """
    spawner = SPAWNERS[strategy]
    logger.debug("Spawning %s with %s", label, strategy.value)
    return spawner(command, request, label, ctx)


__all__ = [
    "KEEP_OPEN_FRAGMENT",
    "LaunchStrategy",
    "OsaScriptAutomation",
    "SPAWNERS",
    "SpawnContext",
    "TerminalAutomation",
    "node_label",
    "select_strategy",
    "spawn",
    "strategy_extra_args",
]
