"""
Tests for the noderunner CLI.

Tests flag handling, passthrough forwarding, the failure summary and exit
codes. NodeRunner is mocked so no processes are started.
"""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from noderunner.cli import app
from noderunner.core.launch import (
    Failed,
    FailureReason,
    JarVariant,
    NodeHome,
    RunReport,
    Started,
    WorkingDirectoryError,
)

runner = CliRunner()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an isolated directory with no user config."""
    project = tmp_path / "nodes"
    project.mkdir()
    monkeypatch.chdir(project)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("NODERUNNER_FAIL_ON_ERROR", "NODERUNNER_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return project


@pytest.fixture
def mock_runner():
    with patch("noderunner.cli.NodeRunner") as node_runner_cls:
        instance = node_runner_cls.from_config.return_value
        instance.run.return_value = RunReport()
        yield node_runner_cls


def failed_report(project_dir: Path) -> RunReport:
    home = NodeHome(project_dir / "partyA")
    report = RunReport()
    report.record(
        Started(
            home=NodeHome(project_dir / "notary"),
            variant=JarVariant.NODE,
            process=MagicMock(spec=subprocess.Popen),
            command_line="java -jar corda.jar",
        )
    )
    report.record(
        Failed(
            home=home,
            variant=JarVariant.NODE,
            reason=FailureReason.AGENT_UNRESOLVED,
            detail="Expected exactly one monitoring agent [found none]",
        )
    )
    return report


class TestMainCommand:
    """Test the noderunner command."""

    def test_no_flags(self, project_dir: Path, mock_runner: MagicMock) -> None:
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        _, kwargs = mock_runner.from_config.return_value.run.call_args
        assert kwargs == {"headless": False, "use_screen": False, "capsule_debug": False}

    def test_launcher_flags(self, project_dir: Path, mock_runner: MagicMock) -> None:
        result = runner.invoke(app, ["--headless", "--screen", "--capsule-debug"])

        assert result.exit_code == 0
        args, kwargs = mock_runner.from_config.return_value.run.call_args
        assert args[0] == []
        assert kwargs == {"headless": True, "use_screen": True, "capsule_debug": True}

    def test_passthrough_in_order(self, project_dir: Path, mock_runner: MagicMock) -> None:
        result = runner.invoke(
            app, ["--base-directory", "x", "--headless", "--log-to-console", "extra"]
        )

        assert result.exit_code == 0
        args, kwargs = mock_runner.from_config.return_value.run.call_args
        assert args[0] == ["--base-directory", "x", "--log-to-console", "extra"]
        assert kwargs["headless"] is True

    def test_working_dir_is_cwd(self, project_dir: Path, mock_runner: MagicMock) -> None:
        runner.invoke(app, [])
        args, kwargs = mock_runner.from_config.call_args
        assert args[1].resolve() == project_dir.resolve()
        assert kwargs["reporter"] is not None

    def test_failures_summarized(self, project_dir: Path, mock_runner: MagicMock) -> None:
        mock_runner.from_config.return_value.run.return_value = failed_report(project_dir)

        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "Nodes not started" in result.output
        assert "agent_unresolved" in result.output
        assert "partyA" in result.output

    def test_fail_on_error(self, project_dir: Path, mock_runner: MagicMock) -> None:
        (project_dir / ".noderunner.json").write_text(json.dumps({"fail_on_error": True}))
        mock_runner.from_config.return_value.run.return_value = failed_report(project_dir)

        result = runner.invoke(app, [])

        assert result.exit_code == 1

    def test_fail_on_error_without_failures(
        self, project_dir: Path, mock_runner: MagicMock
    ) -> None:
        (project_dir / ".noderunner.json").write_text(json.dumps({"fail_on_error": True}))
        result = runner.invoke(app, [])
        assert result.exit_code == 0

    def test_invalid_config(self, project_dir: Path, mock_runner: MagicMock) -> None:
        (project_dir / ".noderunner.json").write_text(json.dumps({"ports": {"debug_base": -1}}))

        result = runner.invoke(app, [])

        assert result.exit_code == 2
        assert "Invalid noderunner configuration" in result.output
        assert ".noderunner.json" in result.output
        mock_runner.from_config.assert_not_called()

    def test_missing_working_dir(self, project_dir: Path, mock_runner: MagicMock) -> None:
        mock_runner.from_config.return_value.run.side_effect = WorkingDirectoryError(
            project_dir / "gone"
        )

        result = runner.invoke(app, [])

        assert result.exit_code == 2
        assert "is not a directory" in result.output
        assert "deployNodes" in result.output

    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--headless" in result.output
        assert "--screen" in result.output
        assert "--capsule-debug" in result.output


class TestEndToEnd:
    """Run the real NodeRunner with process creation stubbed out."""

    def test_headless_run(
        self, project_dir: Path, make_home, party_a_conf, fake_popen, monkeypatch
    ) -> None:
        monkeypatch.setenv("JAVA_HOME", "/opt/jdk")
        make_home(project_dir, "notary")
        make_home(
            project_dir, "partyA", jars=("corda.jar", "corda-webserver.jar"), conf=party_a_conf
        )
        from noderunner.core.launch import NodeRunner

        real_from_config = NodeRunner.from_config

        def from_config(config, working_dir, **kwargs):
            return real_from_config(config, working_dir, popen=fake_popen, **kwargs)

        with patch("noderunner.cli.NodeRunner.from_config", side_effect=from_config):
            result = runner.invoke(app, ["--headless"])

        assert result.exit_code == 0
        assert "isHeadless: True" in result.output
        assert "on debug port 5007" in result.output
        assert "Started 3 processes" in result.output
        assert fake_popen.call_count == 3
