"""
Node home discovery.
"""

from __future__ import annotations

from pathlib import Path

from noderunner.core.launch.errors import WorkingDirectoryError
from noderunner.core.launch.models import NodeHome


def scan_node_homes(working_dir: Path, conf_name: str = "node.conf") -> list[NodeHome]:
    """
    List the immediate subdirectories of working_dir as launch candidates.

    Candidates are sorted by name so port assignment is reproducible.

    Args:
        working_dir: Directory holding one subdirectory per node
        conf_name: Name of the node configuration file inside each home

    Returns:
        One NodeHome per direct subdirectory

    Raises:
        WorkingDirectoryError: If working_dir is not a directory
    """
    if not working_dir.is_dir():
        raise WorkingDirectoryError(working_dir)

    homes = [
        NodeHome(path=entry, conf_name=conf_name)
        for entry in working_dir.iterdir()
        if entry.is_dir()
    ]
    return sorted(homes, key=lambda home: home.name)


__all__ = ["scan_node_homes"]
