"""Configuration for the LibreLinkUp status monitor"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import ConfigurationError
from .regions import resolve_region
from .types import GlucoseUnit

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config.yaml'
DEFAULT_CLIENT_VERSION = '4.12.0'
DEFAULT_UPDATE_INTERVAL = 10

# environment variable -> key in the ``libre_link_up`` section of config.yaml
ENV_KEYS = {
    'LIBRE_REGION': 'region',
    'LIBRE_USERNAME': 'username',
    'LIBRE_PASSWORD': 'password',
    'LIBRE_CONNECTION_ID': 'connection_id',
    'LIBRE_GLUCOSE_UNITS': 'glucose_units',
    'LIBRE_LOW_WARNING': 'low_warning_enabled',
    'LIBRE_HIGH_WARNING': 'high_warning_enabled',
    'LIBRE_BACKGROUND_WARNING': 'background_warning_enabled',
    'LIBRE_UPDATE_INTERVAL': 'update_interval',
    'LIBRE_CLIENT_VERSION': 'client_version',
}

UNIT_ALIASES = {
    'milligrams': GlucoseUnit.MILLIGRAMS,
    'mg/dl': GlucoseUnit.MILLIGRAMS,
    'millimolar': GlucoseUnit.MILLIMOLAR,
    'mmol/l': GlucoseUnit.MILLIMOLAR,
}


@dataclass(frozen=True)
class LinkUpConfig:
    """Read-only snapshot of the user settings, taken once per tick"""
    region: str
    username: str
    password: str
    connection_id: str = ''
    glucose_units: GlucoseUnit = GlucoseUnit.MILLIGRAMS
    low_warning_enabled: bool = True
    high_warning_enabled: bool = True
    background_warning_enabled: bool = True
    update_interval: float = DEFAULT_UPDATE_INTERVAL
    client_version: str = DEFAULT_CLIENT_VERSION


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {config_path}: {e}") from e
    return config.get('libre_link_up') or {}


def _to_bool(value: Union[str, bool, None], default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _to_unit(value: Optional[str]) -> GlucoseUnit:
    if value is None or value == '':
        return GlucoseUnit.MILLIGRAMS
    try:
        return UNIT_ALIASES[str(value).strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown glucose unit '{value}'. Use 'milligrams' or 'millimolar'."
        ) from None


def _to_interval(value: Any) -> float:
    if value is None or value == '':
        return DEFAULT_UPDATE_INTERVAL
    try:
        interval = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid update interval '{value}'") from None
    if interval <= 0:
        raise ConfigurationError(f"Update interval must be positive, got {value}")
    return interval


def load_config(config_path: Optional[Union[str, Path]] = None) -> LinkUpConfig:
    """
    Load configuration from environment variables or config file

    Environment variables take precedence over the ``libre_link_up`` section
    of ``config.yaml``.

    Raises:
        ConfigurationError: If settings are missing or invalid
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    settings = dict(_read_yaml(path))

    for env_name, key in ENV_KEYS.items():
        value = os.getenv(env_name)
        if value is not None:
            settings[key] = value

    username = settings.get('username')
    password = settings.get('password')
    region = settings.get('region')
    if not username or not password:
        raise ConfigurationError(
            "LibreLinkUp credentials not found. Set LIBRE_USERNAME and LIBRE_PASSWORD "
            "environment variables or configure them in config.yaml"
        )
    if not region:
        raise ConfigurationError(
            "LibreLinkUp region not configured. Set LIBRE_REGION or region in config.yaml"
        )
    # fail fast on unknown regions
    resolve_region(region)

    return LinkUpConfig(
        region=str(region).strip().upper(),
        username=str(username),
        password=str(password),
        connection_id=str(settings.get('connection_id') or ''),
        glucose_units=_to_unit(settings.get('glucose_units')),
        low_warning_enabled=_to_bool(settings.get('low_warning_enabled'), True),
        high_warning_enabled=_to_bool(settings.get('high_warning_enabled'), True),
        background_warning_enabled=_to_bool(settings.get('background_warning_enabled'), True),
        update_interval=_to_interval(settings.get('update_interval')),
        client_version=str(settings.get('client_version') or DEFAULT_CLIENT_VERSION),
    )
