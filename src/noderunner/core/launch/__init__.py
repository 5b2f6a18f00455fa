"""
Launch service for discovering and starting node homes.

This package provides the core logic for the `noderunner` command:
probing the host environment, finding node homes, allocating debug and
monitoring ports, building java commands, and starting each node with a
platform-appropriate strategy.

Modules:
    detector: Platform, display and screen detection
    scanner: Node home discovery
    matcher: Jar variant applicability (node, web server)
    ports: Debug and monitoring port allocation
    command: Java command assembly and shell quoting
    strategies: Strategy selection and process spawning
    orchestrator: NodeRunner, which sequences a whole run
    models: Data models (EnvironmentInfo, LaunchRequest, RunReport, ...)

Example Usage:
    >>> from noderunner.core.launch import NodeRunner
    >>> report = NodeRunner.from_config().run(headless=True)
    >>> print(f"Started {len(report.started)} processes")
"""

from noderunner.core.launch.command import (
    LAUNCHER_FLAGS,
    build_java_command,
    filter_passthrough,
    resolve_monitoring_agent,
    unix_command,
    windows_command,
)
from noderunner.core.launch.detector import (
    MultiplexerProbe,
    detect_platform,
    probe_environment,
)
from noderunner.core.launch.errors import (
    LauncherError,
    MonitoringAgentNotFoundError,
    WorkingDirectoryError,
)
from noderunner.core.launch.matcher import default_jar_types, evaluate, matches
from noderunner.core.launch.models import (
    EnvironmentInfo,
    Failed,
    FailureReason,
    JarTypeSpec,
    JarVariant,
    LaunchOutcome,
    LaunchRequest,
    NodeHome,
    Platform,
    PortCategory,
    PortLease,
    RunReport,
    RunningProcess,
    Started,
)
from noderunner.core.launch.orchestrator import NodeRunner
from noderunner.core.launch.ports import PortAllocator
from noderunner.core.launch.scanner import scan_node_homes
from noderunner.core.launch.strategies import (
    LaunchStrategy,
    SpawnContext,
    TerminalAutomation,
    select_strategy,
    spawn,
)

__all__ = [
    # Detector
    "MultiplexerProbe",
    "detect_platform",
    "probe_environment",
    # Discovery and matching
    "scan_node_homes",
    "default_jar_types",
    "evaluate",
    "matches",
    # Ports
    "PortAllocator",
    # Commands
    "LAUNCHER_FLAGS",
    "build_java_command",
    "filter_passthrough",
    "resolve_monitoring_agent",
    "unix_command",
    "windows_command",
    # Strategies
    "LaunchStrategy",
    "SpawnContext",
    "TerminalAutomation",
    "select_strategy",
    "spawn",
    # Orchestrator
    "NodeRunner",
    # Errors
    "LauncherError",
    "MonitoringAgentNotFoundError",
    "WorkingDirectoryError",
    # Models
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
