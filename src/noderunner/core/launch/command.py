"""
Java command assembly for node launches.

Builds the argument vector for a node or web server process, resolves the
monitoring agent from a node's drivers directory, and renders argument
vectors as shell command strings for each platform.
"""

from __future__ import annotations

import os
import re
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Sequence

from noderunner.core.launch.errors import MonitoringAgentNotFoundError
from noderunner.core.launch.models import LaunchRequest

HEADLESS_FLAG = "--headless"
SCREEN_FLAG = "--screen"
CAPSULE_DEBUG_FLAG = "--capsule-debug"

# Flags consumed by the launcher and never forwarded to a node
LAUNCHER_FLAGS = frozenset({HEADLESS_FLAG, SCREEN_FLAG, CAPSULE_DEBUG_FLAG})

NO_LOCAL_SHELL_FLAG = "--no-local-shell"
CAPSULE_VERBOSE_LOG = "-Dcapsule.log=verbose"

DRIVERS_DIR = "drivers"
MONITORING_AGENT_PATTERN = r"jolokia-jvm-.*-agent\.jar$"


def filter_passthrough(args: Iterable[str]) -> list[str]:
    """Drop launcher-only flags, keeping everything else in order."""
    return [arg for arg in args if arg not in LAUNCHER_FLAGS]


def resolve_java_executable(override: str | None = None) -> str:
    """
    Find the java binary to run nodes with.

    Order: explicit override, $JAVA_HOME/bin/java, java on PATH, bare "java".
    """
    if override:
        return override
    if java_home := os.environ.get("JAVA_HOME"):
        candidate = Path(java_home) / "bin" / "java"
        return str(candidate)
    return shutil.which("java") or "java"


def resolve_monitoring_agent(
    home_path: Path,
    pattern: str = MONITORING_AGENT_PATTERN,
    drivers_dir: str = DRIVERS_DIR,
) -> str:
    """
    Find the monitoring agent jar in a node's drivers directory.

    Args:
        home_path: Node home directory
        pattern: Regex the whole agent file name must match
        drivers_dir: Name of the drivers subdirectory

    Returns:
        File name of the single matching agent jar

    Raises:
        MonitoringAgentNotFoundError: If zero or several files match, or the
            drivers directory cannot be listed
    """
    drivers = home_path / drivers_dir
    regex = re.compile(pattern)
    found: list[str] = []
    if drivers.is_dir():
        try:
            found = sorted(
                entry.name
                for entry in drivers.iterdir()
                if entry.is_file() and regex.fullmatch(entry.name)
            )
        except OSError as e:
            raise MonitoringAgentNotFoundError(
                drivers, pattern, [], reason=f"cannot list it ({e})"
            ) from e
    if len(found) != 1:
        raise MonitoringAgentNotFoundError(drivers, pattern, found)
    return found[0]


def capsule_jvm_args(
    debug_port: int | None,
    monitoring_port: int | None,
    agent_file: str | None,
    drivers_dir: str = DRIVERS_DIR,
) -> list[str]:
    """JVM options the capsule passes on to the node's own JVM."""
    options: list[str] = []
    if debug_port is not None:
        options.append(
            f"-agentlib:jdwp=transport=dt_socket,server=y,suspend=n,address={debug_port}"
        )
    if monitoring_port is not None and agent_file is not None:
        options.append(f"-javaagent:{drivers_dir}/{agent_file}=port={monitoring_port}")
    return options


def build_java_command(
    request: LaunchRequest,
    agent_file: str | None,
    *,
    java_path: str,
    label: str,
    extra_args: Sequence[str] = (),
    drivers_dir: str = DRIVERS_DIR,
) -> list[str]:
    """
    Assemble the argument vector for one node launch.

    Args:
        request: Launch request for the candidate
        agent_file: Resolved monitoring agent file name, if any
        java_path: Java executable to run
        label: Identity label passed as -Dname
        extra_args: Strategy-specific arguments placed after the jar
        drivers_dir: Drivers subdirectory the agent lives in

    Returns:
        Argument vector, executable first

    Example:
        >>> build_java_command(request, "jolokia-jvm-1.3.7-agent.jar",
        ...                    java_path="/usr/bin/java", label="partyA-corda.jar")
        ['/usr/bin/java', '-Dname=partyA-corda.jar',
         '-Dcapsule.jvm.args=-agentlib:jdwp=... -javaagent:drivers/...=port=7005',
         '-jar', 'corda.jar']
    """
    command = [java_path]
    command.extend(request.jvm_args)
    command.append(f"-Dname={label}")

    jvm_options = capsule_jvm_args(
        request.debug_port, request.monitoring_port, agent_file, drivers_dir
    )
    if jvm_options:
        command.append(f"-Dcapsule.jvm.args={' '.join(jvm_options)}")

    command.extend(["-jar", request.jar_name])
    command.extend(extra_args)
    command.extend(filter_passthrough(request.args))
    return command


def unix_command(argv: Sequence[str]) -> str:
    """Render argv for a POSIX shell; shlex.split() gives argv back."""
    return shlex.join(argv)


def windows_command(argv: Sequence[str]) -> str:
    """Render argv with MS C runtime quoting, as CreateProcess expects."""
    return subprocess.list2cmdline(argv)


def applescript_string(text: str) -> str:
    """Escape text for use inside a double-quoted AppleScript string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


__all__ = [
    "CAPSULE_DEBUG_FLAG",
    "CAPSULE_VERBOSE_LOG",
    "DRIVERS_DIR",
    "HEADLESS_FLAG",
    "LAUNCHER_FLAGS",
    "MONITORING_AGENT_PATTERN",
    "NO_LOCAL_SHELL_FLAG",
    "SCREEN_FLAG",
    "applescript_string",
    "build_java_command",
    "capsule_jvm_args",
    "filter_passthrough",
    "resolve_java_executable",
    "resolve_monitoring_agent",
    "unix_command",
    "windows_command",
]
