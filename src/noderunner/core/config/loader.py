"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import NodeRunnerConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = ".noderunner.json"


class ConfigError(Exception):
    """Merged configuration failed validation."""


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/noderunner/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "noderunner" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .noderunner.json in the working directory."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"ports": {"debug_base": 5005}}, {"ports": {"monitoring_base": 8000}})
        {'ports': {'debug_base': 5005, 'monitoring_base': 8000}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring config at %s: top level is not an object", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        # A broken config file should not stop nodes from starting
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _env_flag(value: str) -> bool:
    return value.lower() not in ("false", "0", "no", "")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        NODERUNNER_DEBUG_PORT_BASE - overrides ports.debug_base
        NODERUNNER_MONITORING_PORT_BASE - overrides ports.monitoring_base
        NODERUNNER_JAVA - overrides java_executable
        NODERUNNER_TERMINAL - overrides terminal_emulator
        NODERUNNER_FAIL_ON_ERROR - overrides fail_on_error
        NODERUNNER_DEBUG - overrides debug
    """
    result = config_dict.copy()

    for env_name, key in (
        ("NODERUNNER_DEBUG_PORT_BASE", "debug_base"),
        ("NODERUNNER_MONITORING_PORT_BASE", "monitoring_base"),
    ):
        if port_str := os.environ.get(env_name):
            try:
                port = int(port_str)
            except ValueError:
                logger.warning("Invalid %s value '%s', ignoring", env_name, port_str)
                continue
            ports = dict(result.get("ports") or {})
            ports[key] = port
            result["ports"] = ports

    if java := os.environ.get("NODERUNNER_JAVA"):
        result["java_executable"] = java

    if terminal := os.environ.get("NODERUNNER_TERMINAL"):
        result["terminal_emulator"] = terminal

    if (fail_str := os.environ.get("NODERUNNER_FAIL_ON_ERROR")) is not None:
        result["fail_on_error"] = _env_flag(fail_str)

    if (debug_str := os.environ.get("NODERUNNER_DEBUG")) is not None:
        result["debug"] = _env_flag(debug_str)

    return result


def load_config(project_dir: Path | None = None) -> NodeRunnerConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (NODERUNNER_*)
        2. Project config (.noderunner.json)
        3. User config (~/.config/noderunner/config.json)
        4. Defaults from NodeRunnerConfig

    Each call builds a fresh config; nothing is cached between runs.

    Raises:
        ConfigError: If the merged config fails Pydantic validation
    """
    merged: dict[str, Any] = {}

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    try:
        return NodeRunnerConfig(**merged)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
