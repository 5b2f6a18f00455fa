"""
Jar variant matching.

Decides whether a node home can launch a given variant. A variant applies
when its jar is present, node.conf is present, and the variant's predicate
holds over node.conf. Anything else is a skip, never an error; an
unreadable node.conf counts as a mismatch.
"""

from __future__ import annotations

import logging

from noderunner.core.launch.models import FailureReason, JarTypeSpec, JarVariant, NodeHome

logger = logging.getLogger(__name__)

NODE_JAR = "corda.jar"
WEBSERVER_JAR = "corda-webserver.jar"
WEBSERVER_MARKER = "webAddress"


def node_jar_type(jar_name: str = NODE_JAR) -> JarTypeSpec:
    """The primary node process; applies whenever its jar is present."""
    return JarTypeSpec(
        variant=JarVariant.NODE,
        jar_name=jar_name,
        accepts_conf=lambda lines: True,
    )


def webserver_jar_type(
    jar_name: str = WEBSERVER_JAR, marker: str = WEBSERVER_MARKER
) -> JarTypeSpec:
    """The web server; also needs a node.conf line mentioning the marker."""
    return JarTypeSpec(
        variant=JarVariant.WEBSERVER,
        jar_name=jar_name,
        accepts_conf=lambda lines: any(marker in line for line in lines),
    )


def default_jar_types(marker: str = WEBSERVER_MARKER) -> list[JarTypeSpec]:
    """Variants in launch order: node first, then web server."""
    return [node_jar_type(), webserver_jar_type(marker=marker)]


def evaluate(home: NodeHome, spec: JarTypeSpec) -> FailureReason | None:
    """
    Check a variant against a node home.

    Returns:
        None if the variant applies, otherwise the skip reason
    """
    if not home.has_jar(spec.jar_name):
        return FailureReason.ARTIFACT_MISSING
    if not home.has_conf():
        return FailureReason.CONFIG_MISMATCH
    try:
        lines = home.conf_lines()
    except OSError as e:
        logger.warning("Cannot read %s: %s", home.conf_path, e)
        return FailureReason.CONFIG_MISMATCH
    if not spec.accepts_conf(lines):
        return FailureReason.CONFIG_MISMATCH
    return None


def matches(home: NodeHome, spec: JarTypeSpec) -> bool:
    return evaluate(home, spec) is None


__all__ = [
    "NODE_JAR",
    "WEBSERVER_JAR",
    "WEBSERVER_MARKER",
    "default_jar_types",
    "evaluate",
    "matches",
    "node_jar_type",
    "webserver_jar_type",
]
