"""Configuration loading."""

import os
from typing import Any, Dict, Optional

import yaml

from constants import CONFIG_FILE_ENV, DEFAULT_CONFIG_EXAMPLE_FILE, DEFAULT_CONFIG_FILE


class ConfigError(ValueError):
    """Configuration is missing or invalid."""


def config_path() -> str:
    """Get configuration file path."""
    return os.environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load and validate configuration file."""
    path = path or config_path()
    if not os.path.exists(path):
        raise ConfigError(
            f"Configuration file '{path}' not found. "
            f"Please copy '{DEFAULT_CONFIG_EXAMPLE_FILE}' to '{path}' "
            f"and update with your settings."
        )

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in '{path}': {e}")

    if not config:
        raise ConfigError(f"'{path}' is empty")
    if not isinstance(config, dict):
        raise ConfigError(f"'{path}' must contain a mapping")

    return validate_config(config)


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate required keys and fill in optional sections."""
    if 'mqtt' not in config:
        raise ConfigError("Missing 'mqtt' section in configuration")

    mqtt_config = config.get('mqtt') or {}
    if 'host' not in mqtt_config:
        raise ConfigError("Missing 'mqtt.host' in configuration")
    if 'port' not in mqtt_config:
        raise ConfigError("Missing 'mqtt.port' in configuration")
    try:
        mqtt_config['port'] = int(mqtt_config['port'])
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid 'mqtt.port' in configuration: {mqtt_config['port']!r}")

    config['zigbee2mqtt'] = config.get('zigbee2mqtt') or {}
    config['beacon'] = config.get('beacon') or {}

    processes = config.get('processes')
    if processes is not None and not isinstance(processes, list):
        raise ConfigError("'processes' must be a list")
    if processes and config.get('processes_url'):
        raise ConfigError("Use either 'processes' or 'processes_url', not both")

    return config
