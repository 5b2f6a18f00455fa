"""
Data models for the node launcher.

Defines typed inputs and outputs for environment probing, node home
matching, port allocation, and launch outcomes.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Union


class Platform(str, Enum):
    """Host operating system family."""

    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"


class JarVariant(str, Enum):
    """Which companion executable of a node home is being launched."""

    NODE = "node"  # Primary node process
    WEBSERVER = "webserver"  # Auxiliary web-facing process


class PortCategory(str, Enum):
    """Purpose of a reserved port."""

    DEBUG = "debug"
    MONITORING = "monitoring"


class FailureReason(str, Enum):
    """Why a candidate did not produce a running process."""

    ARTIFACT_MISSING = "artifact_missing"  # Required jar absent (skip)
    CONFIG_MISMATCH = "config_mismatch"  # node.conf absent or predicate false (skip)
    AGENT_UNRESOLVED = "agent_unresolved"  # Monitoring agent not uniquely found
    SPAWN_REJECTED = "spawn_rejected"  # OS refused to create the process

    @property
    def is_skip(self) -> bool:
        """Whether this reason means the candidate was never attempted."""
        return self in (FailureReason.ARTIFACT_MISSING, FailureReason.CONFIG_MISMATCH)


@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Environment probe result.

    Computed once per run and passed to every launch decision, so strategy
    selection never consults hidden global state.

    Attributes:
        platform: Host OS family
        is_headless: No display available, or headless mode was requested
        has_multiplexer: `screen` is installed
        in_tmux: Running inside an active tmux session
    """

    platform: Platform
    is_headless: bool
    has_multiplexer: bool = False
    in_tmux: bool = False


@dataclass
class NodeHome:
    """
    A directory holding one participant's jars and configuration.

    Configuration lines are read lazily, at most once, and only when a
    predicate asks for them.
    """

    path: Path
    conf_name: str = "node.conf"
    _conf_lines: list[str] | None = field(default=None, init=False, repr=False)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def conf_path(self) -> Path:
        return self.path / self.conf_name

    def has_jar(self, jar_name: str) -> bool:
        return (self.path / jar_name).is_file()

    def has_conf(self) -> bool:
        return self.conf_path.is_file()

    def conf_lines(self) -> list[str]:
        """Lines of node.conf, or an empty list when the file is absent."""
        if self._conf_lines is None:
            if self.has_conf():
                text = self.conf_path.read_text(encoding="utf-8", errors="replace")
                self._conf_lines = text.splitlines()
            else:
                self._conf_lines = []
        return self._conf_lines


@dataclass(frozen=True)
class JarTypeSpec:
    """
    A launchable variant: the jar it needs and the node.conf predicate
    that must hold for it to apply.
    """

    variant: JarVariant
    jar_name: str
    accepts_conf: Callable[[list[str]], bool]


@dataclass(frozen=True)
class PortLease:
    """A port reserved for one candidate."""

    category: PortCategory
    value: int


@dataclass(frozen=True)
class LaunchRequest:
    """
    Everything needed to build and spawn one candidate.

    Attributes:
        home: Node home to launch from
        spec: Jar variant being launched
        debug_port: Allocated debug port (None to omit the debug agent)
        monitoring_port: Allocated monitoring port (None to omit the agent)
        args: Caller-supplied passthrough arguments (unfiltered)
        jvm_args: Extra JVM-level options placed before the jar
        headless: Headless mode in effect
        use_screen: Caller asked for a `screen` session
    """

    home: NodeHome
    spec: JarTypeSpec
    debug_port: int | None
    monitoring_port: int | None
    args: tuple[str, ...] = ()
    jvm_args: tuple[str, ...] = ()
    headless: bool = False
    use_screen: bool = False

    @property
    def jar_name(self) -> str:
        return self.spec.jar_name

    @property
    def variant(self) -> JarVariant:
        return self.spec.variant


@dataclass(frozen=True)
class RunningProcess:
    """A spawned process and the human-readable command that started it."""

    process: subprocess.Popen
    command_line: str


@dataclass(frozen=True)
class Started:
    """Outcome of a candidate whose process was accepted by the OS."""

    home: NodeHome
    variant: JarVariant
    process: subprocess.Popen
    command_line: str
    debug_port: int | None = None
    monitoring_port: int | None = None


@dataclass(frozen=True)
class Failed:
    """Outcome of a candidate that was skipped or could not be started."""

    home: NodeHome
    variant: JarVariant
    reason: FailureReason
    detail: str = ""
    debug_port: int | None = None  # Ports stay consumed even when the spawn fails
    monitoring_port: int | None = None


LaunchOutcome = Union[Started, Failed]


@dataclass
class RunReport:
    """Outcomes of one launcher run, in enumeration order. Append-only."""

    outcomes: list[LaunchOutcome] = field(default_factory=list)

    def record(self, outcome: LaunchOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def started(self) -> list[Started]:
        return [o for o in self.outcomes if isinstance(o, Started)]

    @property
    def failed(self) -> list[Failed]:
        """Attempts that did not produce a process (skips excluded)."""
        return [o for o in self.outcomes if isinstance(o, Failed) and not o.reason.is_skip]

    @property
    def skipped(self) -> list[Failed]:
        return [o for o in self.outcomes if isinstance(o, Failed) and o.reason.is_skip]

    @property
    def attempts(self) -> list[LaunchOutcome]:
        """Candidates that matched and were allocated ports."""
        return [o for o in self.outcomes if isinstance(o, Started) or not o.reason.is_skip]


__all__ = [
    "EnvironmentInfo",
    "Failed",
    "FailureReason",
    "JarTypeSpec",
    "JarVariant",
    "LaunchOutcome",
    "LaunchRequest",
    "NodeHome",
    "Platform",
    "PortCategory",
    "PortLease",
    "RunReport",
    "RunningProcess",
    "Started",
]
