"""
Node runner: starts every launchable node home under a working directory.

Sequences scanning, matching, port allocation, strategy selection, command
building and spawning. Each run owns its own PortAllocator and environment
descriptor, so repeated runs in one process never share state. A failure on
one candidate is recorded and the run moves on to the next.

Usage:
    >>> from noderunner.core.launch.orchestrator import NodeRunner
    >>> runner = NodeRunner.from_config()
    >>> report = runner.run(["--some-node-flag"], headless=True)
    >>> len(report.started)
    3
"""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path
from typing import Callable, Sequence

from noderunner.core.config.loader import load_config
from noderunner.core.config.models import NodeRunnerConfig
from noderunner.core.launch.command import (
    CAPSULE_DEBUG_FLAG,
    CAPSULE_VERBOSE_LOG,
    HEADLESS_FLAG,
    SCREEN_FLAG,
    build_java_command,
    resolve_java_executable,
    resolve_monitoring_agent,
)
from noderunner.core.launch.detector import MultiplexerProbe, detect_platform, probe_environment
from noderunner.core.launch.errors import MonitoringAgentNotFoundError
from noderunner.core.launch.matcher import default_jar_types, evaluate
from noderunner.core.launch.models import (
    EnvironmentInfo,
    Failed,
    FailureReason,
    JarTypeSpec,
    LaunchOutcome,
    LaunchRequest,
    NodeHome,
    RunReport,
    Started,
)
from noderunner.core.launch.ports import PortAllocator
from noderunner.core.launch.scanner import scan_node_homes
from noderunner.core.launch.strategies import (
    SpawnContext,
    TerminalAutomation,
    node_label,
    select_strategy,
    spawn,
    strategy_extra_args,
)

logger = logging.getLogger(__name__)

Reporter = Callable[[str], None]


class NodeRunner:
    """
    Launch all node homes found under a working directory.

    Example:
        >>> runner = NodeRunner(NodeRunnerConfig(), Path("build/nodes"))
        >>> report = runner.run([], headless=True)
        >>> [o.variant for o in report.started]
        [<JarVariant.NODE: 'node'>, <JarVariant.NODE: 'node'>, <JarVariant.WEBSERVER: 'webserver'>]
    """

    def __init__(
        self,
        config: NodeRunnerConfig,
        working_dir: Path,
        *,
        os_name: str | None = None,
        multiplexer: MultiplexerProbe | None = None,
        automation: TerminalAutomation | None = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
        reporter: Reporter | None = None,
    ) -> None:
        """
        Initialize the runner with its collaborators.

        Args:
            config: noderunner configuration
            working_dir: Directory whose subdirectories are node homes
            os_name: Host OS name override (platform.system() if None)
            multiplexer: screen probe (a fresh one per run if None)
            automation: macOS Terminal automation (osascript if None)
            popen: Process factory used by every strategy
            sleep: Delay function used for the macOS settle delay
            reporter: Receives progress lines (logged at INFO if None)
        """
        self._config = config
        self._working_dir = working_dir
        self._os_name = os_name
        self._multiplexer = multiplexer
        self._automation = automation
        self._popen = popen
        self._sleep = sleep
        self._reporter = reporter
        self._jar_types = default_jar_types(marker=config.webserver_marker)

    @classmethod
    def from_config(
        cls,
        config: NodeRunnerConfig | None = None,
        working_dir: Path | None = None,
        **kwargs,
    ) -> NodeRunner:
        """Create a runner, loading config and using cwd when not given."""
        if working_dir is None:
            working_dir = Path.cwd()
        if config is None:
            config = load_config(working_dir)
        return cls(config, working_dir, **kwargs)

    @property
    def config(self) -> NodeRunnerConfig:
        return self._config

    @property
    def working_dir(self) -> Path:
        return self._working_dir

    @property
    def jar_types(self) -> list[JarTypeSpec]:
        """Variants in the order they are tried for each home."""
        return list(self._jar_types)

    def _report(self, message: str) -> None:
        if self._reporter is not None:
            self._reporter(message)
        else:
            logger.info(message)

    def probe(self, headless: bool, use_screen: bool) -> EnvironmentInfo:
        """Build this run's environment descriptor."""
        host = detect_platform(self._os_name)
        multiplexer = self._multiplexer or MultiplexerProbe(host=host)
        return probe_environment(
            headless,
            os_name=host.value,
            multiplexer=multiplexer,
            # screen is only consulted when it was asked for
            check_multiplexer=use_screen,
        )

    def run(
        self,
        args: Sequence[str] = (),
        *,
        headless: bool = False,
        use_screen: bool = False,
        capsule_debug: bool = False,
    ) -> RunReport:
        """
        Start every launchable node home.

        Launcher flags found in args are honored as if passed as keywords,
        and are stripped before args reach a node.

        Args:
            args: Passthrough arguments for every node
            headless: Force headless mode
            use_screen: Prefer screen sessions where available
            capsule_debug: Turn on verbose capsule logging

        Returns:
            RunReport with one outcome per (home, variant)

        Raises:
            WorkingDirectoryError: If the working directory does not exist
        """
        args = tuple(args)
        headless = headless or HEADLESS_FLAG in args
        use_screen = use_screen or SCREEN_FLAG in args
        capsule_debug = capsule_debug or CAPSULE_DEBUG_FLAG in args

        env = self.probe(headless, use_screen)
        allocator = PortAllocator(
            self._config.ports.debug_base, self._config.ports.monitoring_base
        )
        ctx = SpawnContext(
            env=env,
            working_dir=self._working_dir,
            terminal_emulator=self._config.terminal_emulator,
            settle_delay=self._config.mac_settle_delay,
            popen=self._popen,
            sleep=self._sleep,
            automation=self._automation,
        )
        jvm_args = ([CAPSULE_VERBOSE_LOG] if capsule_debug else []) + list(
            self._config.jvm_args
        )
        java_path = resolve_java_executable(self._config.java_executable)

        self._report(f"isHeadless: {env.is_headless}")
        self._report(f"Starting nodes in {self._working_dir}")

        report = RunReport()
        homes = scan_node_homes(self._working_dir, conf_name=self._config.node_conf)
        for home in homes:
            for spec in self._jar_types:
                skip = evaluate(home, spec)
                if skip is not None:
                    logger.debug("Skipping %s in %s: %s", spec.jar_name, home.path, skip.value)
                    report.record(Failed(home=home, variant=spec.variant, reason=skip))
                    continue

                debug_port = allocator.next_debug_port()
                monitoring_port = allocator.next_monitoring_port()
                self._report(
                    f"Starting {spec.jar_name} in {home.path} on debug port {debug_port}"
                )
                request = LaunchRequest(
                    home=home,
                    spec=spec,
                    debug_port=debug_port,
                    monitoring_port=monitoring_port,
                    args=args,
                    jvm_args=tuple(jvm_args),
                    headless=env.is_headless,
                    use_screen=use_screen,
                )
                report.record(self._launch(request, env, ctx, java_path))

        self._report(f"Started {len(report.started)} processes")
        self._report("Finished starting nodes")
        return report

    def _launch(
        self,
        request: LaunchRequest,
        env: EnvironmentInfo,
        ctx: SpawnContext,
        java_path: str,
    ) -> LaunchOutcome:
        home: NodeHome = request.home
        strategy = select_strategy(env, request.use_screen)
        label = node_label(request, strategy)

        try:
            agent_file = resolve_monitoring_agent(
                home.path,
                self._config.monitoring_agent_pattern,
                self._config.drivers_dir,
            )
        except MonitoringAgentNotFoundError as e:
            logger.error("Not starting %s in %s: %s", request.jar_name, home.path, e)
            return Failed(
                home=home,
                variant=request.variant,
                reason=FailureReason.AGENT_UNRESOLVED,
                detail=str(e),
                debug_port=request.debug_port,
                monitoring_port=request.monitoring_port,
            )

        command = build_java_command(
            request,
            agent_file,
            java_path=java_path,
            label=label,
            extra_args=strategy_extra_args(strategy),
            drivers_dir=self._config.drivers_dir,
        )

        try:
            running = spawn(strategy, command, request, label, ctx)
        except OSError as e:
            logger.error("Failed to start %s in %s: %s", request.jar_name, home.path, e)
            return Failed(
                home=home,
                variant=request.variant,
                reason=FailureReason.SPAWN_REJECTED,
                detail=str(e),
                debug_port=request.debug_port,
                monitoring_port=request.monitoring_port,
            )

        logger.debug("Started %s: %s", label, running.command_line)
        return Started(
            home=home,
            variant=request.variant,
            process=running.process,
            command_line=running.command_line,
            debug_port=request.debug_port,
            monitoring_port=request.monitoring_port,
        )


__all__ = ["NodeRunner", "Reporter"]
