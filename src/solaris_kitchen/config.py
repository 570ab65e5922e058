"""
Kitchen configuration.

Environment variables (optionally from a .env file) select where things are
read and written. The network topology and zone template default to the fixed
kitchen layout; a YAML file can override individual values:

    network:
      etherstub: stub0
      gateway: 192.168.0.1/24
    zone:
      zonepath: /zones/template
"""

import dataclasses
import os
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml
from dotenv import load_dotenv

from .kitchen_models import ConfigurationError, NetworkTopology, ZoneTemplate

T = TypeVar("T", NetworkTopology, ZoneTemplate)


class Config:
    """Loads and manages configuration from environment variables."""

    load_dotenv()

    KITCHEN_CONFIG = os.getenv("KITCHEN_CONFIG")
    KITCHEN_ROOT = os.getenv("KITCHEN_ROOT", "/")
    KITCHEN_RESOLV_CONF = os.getenv("KITCHEN_RESOLV_CONF", "/etc/resolv.conf")
    KITCHEN_DOMAIN = os.getenv("KITCHEN_DOMAIN")
    KITCHEN_LOG_LEVEL = os.getenv("KITCHEN_LOG_LEVEL", "INFO")


def load_kitchen_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load topology overrides from YAML.

    No path means no overrides. An explicit path that does not exist is an
    error.
    """
    if config_path is None:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Kitchen config not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Kitchen config {path} must be a mapping")

    unknown = set(data) - {"network", "zone"}
    if unknown:
        raise ConfigurationError(f"Unknown sections in {path}: {', '.join(sorted(unknown))}")

    return data


def _build(cls: Type[T], overrides: Any, section: str) -> T:
    if overrides is None:
        return cls()
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"'{section}' section must be a mapping")

    known = {f.name for f in dataclasses.fields(cls)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{section}': {', '.join(sorted(unknown))}")

    try:
        return cls(**{key: str(value) for key, value in overrides.items()})
    except ValueError as e:
        raise ConfigurationError(f"Invalid '{section}' settings: {e}") from e


def build_topology(config: Dict[str, Any]) -> NetworkTopology:
    return _build(NetworkTopology, config.get("network"), "network")


def build_zone_template(config: Dict[str, Any]) -> ZoneTemplate:
    return _build(ZoneTemplate, config.get("zone"), "zone")
