"""
Pytest configuration and shared fixtures.

Provides fixtures for node directory layouts, a fake process factory, and a
predictable host environment.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

AGENT_JAR = "jolokia-jvm-1.3.7-agent.jar"

NOTARY_CONF = """\
myLegalName : "O=Notary Service,L=Zurich,C=CH"
p2pAddress : "localhost:10002"
rpcSettings {
    address : "localhost:10003"
}
notary : { validating : false }
"""

PARTY_A_CONF = """\
myLegalName : "O=PartyA,L=London,C=GB"
p2pAddress : "localhost:10005"
rpcSettings {
    address : "localhost:10006"
}
webAddress : "localhost:10007"
"""


def _make_node_home(
    root: Path,
    name: str,
    *,
    jars: tuple[str, ...] = ("corda.jar",),
    conf: str | None = NOTARY_CONF,
    agents: tuple[str, ...] = (AGENT_JAR,),
) -> Path:
    """Create a node directory with the given jars, node.conf and drivers."""
    home = root / name
    home.mkdir(parents=True)
    for jar in jars:
        (home / jar).write_bytes(b"PK")
    if conf is not None:
        (home / "node.conf").write_text(conf)
    drivers = home / "drivers"
    drivers.mkdir()
    for agent in agents:
        (drivers / agent).write_bytes(b"PK")
    return home


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def make_home():
    """Factory creating a node directory: make_home(root, name, jars=..., conf=..., agents=...)."""
    return _make_node_home


@pytest.fixture
def notary_conf():
    return NOTARY_CONF


@pytest.fixture
def party_a_conf():
    return PARTY_A_CONF


@pytest.fixture
def nodes_dir(tmp_path):
    """
    Provide a deployNodes-style directory.

    Creates:
    - notary/  (corda.jar, node.conf without webAddress)
    - partyA/  (corda.jar, corda-webserver.jar, node.conf with webAddress)
    """
    root = tmp_path / "nodes"
    root.mkdir()
    _make_node_home(root, "notary", conf=NOTARY_CONF)
    _make_node_home(
        root,
        "partyA",
        jars=("corda.jar", "corda-webserver.jar"),
        conf=PARTY_A_CONF,
    )
    return root


# ==============================================================================
# Process and Environment Fixtures
# ==============================================================================


@pytest.fixture
def fake_popen():
    """A Popen replacement that records calls and returns mock processes."""
    popen = MagicMock(name="popen")
    popen.side_effect = lambda *args, **kwargs: MagicMock(spec=subprocess.Popen)
    return popen


@pytest.fixture
def linux_desktop(monkeypatch):
    """A Linux session with a display, outside tmux, with a fixed java."""
    monkeypatch.setenv("DISPLAY", ":0")
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    monkeypatch.delenv("TMUX", raising=False)
    monkeypatch.setenv("JAVA_HOME", "/opt/jdk")
    for name in (
        "NODERUNNER_DEBUG_PORT_BASE",
        "NODERUNNER_MONITORING_PORT_BASE",
        "NODERUNNER_JAVA",
        "NODERUNNER_TERMINAL",
        "NODERUNNER_FAIL_ON_ERROR",
        "NODERUNNER_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
