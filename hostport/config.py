"""Configuration management for hostport.

This module handles loading and accessing configuration from:
1. hostport.toml file in the data directory
2. Environment variables (HOSTPORT_* prefix)
3. Default values

Environment variables override config file values, which override defaults.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import toml

from hostport.core.constants import (
    DEFAULT_BACKLOG,
    DEFAULT_BIND_HOST,
    DEFAULT_PORT_RANGE,
)


@dataclass
class PortConfig:
    """Candidate port configuration."""

    range: str = DEFAULT_PORT_RANGE
    backlog: int = DEFAULT_BACKLOG


@dataclass
class NetworkConfig:
    """Bind address configuration."""

    bind_host: str = DEFAULT_BIND_HOST
    prefer_ipv6: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    ports: PortConfig = field(default_factory=PortConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_data_dir() -> Path:
    """Directory holding hostport.toml."""
    data_dir_str = os.environ.get("HOSTPORT_DATA_DIR")
    if data_dir_str:
        return Path(data_dir_str)
    # Default: ~/.hostport on Unix or %APPDATA%/hostport on Windows
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "hostport"
    return Path.home() / ".hostport"


def _get_env_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            pass
    return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is not None:
        return value.lower() in ("1", "true", "yes", "on")
    return default


def _get_env_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key) or default


def _load_config_file() -> dict[str, Any]:
    """Load configuration from hostport.toml file."""
    config_path = get_data_dir() / "hostport.toml"
    if not config_path.exists():
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError):
        return {}


def _apply_file_config(config: Config, file_config: dict[str, Any]) -> Config:
    """Apply configuration from file to config object."""
    if "ports" in file_config:
        ports = file_config["ports"]
        config.ports.range = str(ports.get("range", config.ports.range))
        config.ports.backlog = ports.get("backlog", config.ports.backlog)

    if "network" in file_config:
        network = file_config["network"]
        config.network.bind_host = network.get("bind_host", config.network.bind_host)
        config.network.prefer_ipv6 = network.get(
            "prefer_ipv6", config.network.prefer_ipv6
        )

    if "logging" in file_config:
        logging = file_config["logging"]
        config.logging.log_level = logging.get("log_level", config.logging.log_level)

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    config.ports.range = _get_env_str("HOSTPORT_PORT_RANGE", config.ports.range)
    config.ports.backlog = _get_env_int("HOSTPORT_BACKLOG", config.ports.backlog)

    config.network.bind_host = _get_env_str(
        "HOSTPORT_BIND_HOST", config.network.bind_host
    )
    config.network.prefer_ipv6 = _get_env_bool(
        "HOSTPORT_PREFER_IPV6", config.network.prefer_ipv6
    )

    config.logging.log_level = _get_env_str(
        "HOSTPORT_LOG_LEVEL", config.logging.log_level
    )
    return config


def load_config() -> Config:
    """Load configuration from defaults, file, and environment.

    Priority (highest to lowest):
    1. Environment variables (HOSTPORT_*)
    2. hostport.toml file
    3. Default values

    Returns:
        Config: The loaded configuration object
    """
    config = Config()

    file_config = _load_config_file()
    if file_config:
        config = _apply_file_config(config, file_config)

    return _apply_env_overrides(config)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from file and environment."""
    global _config
    _config = load_config()
    return _config


__all__ = [
    "Config",
    "PortConfig",
    "NetworkConfig",
    "LoggingConfig",
    "get_data_dir",
    "load_config",
    "get_config",
    "reload_config",
]
