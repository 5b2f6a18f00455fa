"""
Configuration data models for noderunner.

These models define the structure of .noderunner.json and
~/.config/noderunner/config.json files, with validation via Pydantic.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PortsConfig(BaseModel):
    """
    Base ports for debugger and monitoring agents.

    Each matched candidate takes the next port from both counters.
    """
    debug_base: int = Field(
        default=5005,
        ge=1,
        le=65535,
        description="First port handed to a JDWP debug agent"
    )
    monitoring_base: int = Field(
        default=7005,
        ge=1,
        le=65535,
        description="First port handed to a Jolokia monitoring agent"
    )


class NodeRunnerConfig(BaseModel):
    """
    Main noderunner configuration.

    Combines all configuration sections. Loaded from:
    1. Hardcoded defaults
    2. User config (~/.config/noderunner/config.json)
    3. Project config (.noderunner.json in the working directory)
    4. Environment variables (NODERUNNER_*)
    """
    ports: PortsConfig = Field(default_factory=PortsConfig)
    node_conf: str = Field(
        default="node.conf",
        min_length=1,
        description="Node configuration file inside each node home"
    )
    webserver_marker: str = Field(
        default="webAddress",
        min_length=1,
        description="node.conf substring that enables the web server"
    )
    drivers_dir: str = Field(
        default="drivers",
        min_length=1,
        description="Subdirectory holding the monitoring agent jar"
    )
    monitoring_agent_pattern: str = Field(
        default=r"jolokia-jvm-.*-agent\.jar$",
        description="Regex matching the monitoring agent file name"
    )
    java_executable: Optional[str] = Field(
        default=None,
        description="Java binary to run nodes with (JAVA_HOME or PATH if unset)"
    )
    jvm_args: list[str] = Field(
        default_factory=list,
        description="Extra JVM options for every node"
    )
    terminal_emulator: str = Field(
        default="xterm",
        min_length=1,
        description="Terminal used for new windows on Linux outside tmux"
    )
    mac_settle_delay: float = Field(
        default=1.2,
        ge=0.0,
        description="Seconds to wait after opening each macOS Terminal tab"
    )
    fail_on_error: bool = Field(
        default=False,
        description="Exit non-zero when any matched node failed to start"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    @field_validator("monitoring_agent_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid monitoring_agent_pattern: {e}") from e
        return v
