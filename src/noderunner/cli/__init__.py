"""
noderunner CLI - Main application entry point.

Starts every node found under the current directory. Launcher flags
(--headless, --screen, --capsule-debug) are consumed here; every other
argument is forwarded unchanged to each node.
"""

import logging
import sys
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from noderunner import __version__
from noderunner.cli.errors import ExitCode, console, print_error
from noderunner.core.config import ConfigError, load_config, load_layered_env
from noderunner.core.config.loader import PROJECT_CONFIG_NAME
from noderunner.core.launch import (
    LauncherError,
    NodeRunner,
    RunReport,
    WorkingDirectoryError,
)

app = typer.Typer(
    name="noderunner",
    help="Start every deployed node under the current directory",
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for a launcher run.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _report(message: str) -> None:
    console.print(message, markup=False, highlight=False, soft_wrap=True)


def _print_failures(report: RunReport) -> None:
    if not report.failed:
        return
    table = Table(title="Nodes not started", show_header=True, header_style="bold")
    table.add_column("Node")
    table.add_column("Variant")
    table.add_column("Reason", style="red")
    table.add_column("Detail", overflow="fold")
    for outcome in report.failed:
        table.add_row(
            escape(outcome.home.name),
            outcome.variant.value,
            outcome.reason.value,
            escape(outcome.detail),
        )
    console.print(table)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def main(
    ctx: typer.Context,
    headless: bool = typer.Option(
        False,
        "--headless",
        help="Run nodes inline without opening terminal windows",
    ),
    screen: bool = typer.Option(
        False,
        "--screen",
        help="Start each node in a detached screen session when screen is installed",
    ),
    capsule_debug: bool = typer.Option(
        False,
        "--capsule-debug",
        help="Enable verbose capsule logging in every node",
    ),
) -> None:
    """
    Start the node and web server of every node directory.

    Each subdirectory of the current directory holding corda.jar and node.conf
    is started; corda-webserver.jar is started too when node.conf has a
    webAddress. Nodes get debug ports from 5005 and monitoring ports from 7005.

    Examples:
        cd build/nodes && noderunner
        noderunner --headless
        noderunner --screen --capsule-debug
    """
    working_dir = Path.cwd()
    load_layered_env(project_dir=working_dir)

    try:
        config = load_config(working_dir)
    except ConfigError as e:
        print_error(
            "Invalid noderunner configuration",
            reason=escape(str(e)),
            solution=f"Check {PROJECT_CONFIG_NAME} and ~/.config/noderunner/config.json",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    setup_logging(config.debug)
    logging.getLogger(__name__).debug("noderunner %s", __version__)

    runner = NodeRunner.from_config(config, working_dir, reporter=_report)
    try:
        report = runner.run(
            list(ctx.args),
            headless=headless,
            use_screen=screen,
            capsule_debug=capsule_debug,
        )
    except WorkingDirectoryError as e:
        print_error(
            escape(str(e)),
            solution="Run ./gradlew deployNodes, then cd build/nodes",
        )
        raise typer.Exit(ExitCode.USER_ERROR)
    except LauncherError as e:
        print_error(escape(str(e)))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    _print_failures(report)

    if report.failed and config.fail_on_error:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def cli_main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "cli_main", "setup_logging"]
