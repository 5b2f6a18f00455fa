"""
Configuration models and loading.

This module provides Pydantic models for noderunner configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    ConfigError,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import NodeRunnerConfig, PortsConfig

__all__ = [
    # Models
    "NodeRunnerConfig",
    "PortsConfig",
    # Loader functions
    "ConfigError",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
