"""
Unified configuration loader - lightweight dataclass-free config objects
========================================================================

This module is responsible for:
1. Reading and completing every section of system_config.json
2. Attribute-style (and dict-style) access to configuration values
3. Resolving paths relative to the config file
4. Reading the destination address list (ip_address.txt) with a built-in fallback

Config file location:
- Default: system_config.json at the repository root, then config/system_config.json
- Environment variable: BODYOSC_CONFIG=path/to/config.json
- Argument: load_config(config_path="path/to/config.json")

Usage:
```python
from bodyosc.core.config_loader import get_config, parse_ip_addresses, read_ip_address_csv

config = get_config()  # singleton
print(config.network.port)
print(config.tracking.reference_joint)
addresses = parse_ip_addresses(read_ip_address_csv(config.resolve_ip_address_file()))
```
"""
from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Any

from .constants import Constants


# ============================================================================
# Config objects
# ============================================================================

def _wrap(value: Any) -> Any:
    """JSON value -> config value (objects become DictConfig, recursively)"""
    if isinstance(value, dict):
        return DictConfig(**value)
    if isinstance(value, list):
        return [_wrap(item) for item in value]
    return value


def _unwrap(value: Any) -> Any:
    if isinstance(value, DictConfig):
        return value.to_dict()
    if isinstance(value, list):
        return [_unwrap(item) for item in value]
    return value


class DictConfig:
    """
    Config section with attribute access (config.network.port) and the
    read-only half of the dict API (get, [], in)
    """

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, _wrap(value))

    def _public_items(self):
        return [(k, v) for k, v in vars(self).items() if not k.startswith("_")]

    def get(self, key: str, default=None):
        return getattr(self, key, default)

    def __getitem__(self, key: str):
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def __contains__(self, key: str) -> bool:
        return not key.startswith("_") and hasattr(self, key)

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dicts/lists again"""
        return {key: _unwrap(value) for key, value in self._public_items()}

    def __repr__(self):
        return f"{type(self).__name__}({dict(self._public_items())})"


class SystemConfig(DictConfig):
    """
    Top-level system configuration

    Attributes:
        system: system information
        logging: logging configuration
        paths: path configuration
        network: OSC destinations (port, address prefix, bundling)
        tracking: subject tracker configuration
        timer: frame timer configuration
        sensor: sensor driver selection
        telemetry: status publishing configuration
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._config_path: Optional[Path] = None

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    def set_config_path(self, path: Path) -> None:
        """Relative paths in the config are resolved against this file's directory"""
        self._config_path = Path(path)

    def resolve_path(self, path_str: Optional[str]) -> Optional[Path]:
        """
        Existing file for a config path value

        Returns:
            the absolute/config-relative path, or None when empty or missing
        """
        if not path_str:
            return None

        path = Path(path_str)
        if not path.is_absolute():
            if self._config_path is None:
                raise RuntimeError(f"Cannot resolve '{path_str}': config file path unknown")
            path = self._config_path.parent / path

        return path if path.exists() else None

    def resolve_ip_address_file(self) -> Optional[Path]:
        """Resolve the destination address file (paths.ip_address_file)"""
        path_str = getattr(self.paths, "ip_address_file", Constants.IP_ADDRESS_FILE_NAME)
        return self.resolve_path(path_str)


# Sections completed when missing from the JSON file
DEFAULT_SECTIONS: Dict[str, Dict[str, Any]] = {
    "system": {"name": "bodyosc", "version": "1.0.0"},
    "logging": {
        "level": "INFO",
        "enable_console": True,
        "enable_file": False,
        "file_rotation": "daily",
        "max_size_mb": 20,
    },
    "paths": {
        "logs_dir": "logs",
        "ip_address_file": Constants.IP_ADDRESS_FILE_NAME,
    },
    "network": {
        "port": Constants.DEFAULT_PORT,
        "default_ip_addresses": Constants.DEFAULT_IP_ADDRESS_CSV,
        "address_prefix": Constants.DEFAULT_ADDRESS_PREFIX,
        "bundle": True,
        "send_hands": True,
    },
    "tracking": {
        "reference_joint": Constants.REFERENCE_JOINT,
        "log_switches": True,
    },
    "timer": {
        "window_seconds": Constants.FPS_WINDOW_SECONDS,
        "history_size": Constants.FPS_HISTORY_SIZE,
    },
    "sensor": {
        "driver": "mock",
        "body_count": Constants.BODY_COUNT,
        "body_fps": 30.0,
        "face_fps": 15.0,
        "mock_subjects": 2,
    },
    "telemetry": {
        "log_enabled": True,
        "log_interval": 150,
    },
}


# ============================================================================
# Loader (singleton)
# ============================================================================

CONFIG_FILE_NAME = "system_config.json"
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_config_instance: Optional[SystemConfig] = None


def _default_config_path() -> Path:
    """BODYOSC_CONFIG, else the first existing of root/ and config/ (root/ if neither)"""
    config_env = os.getenv("BODYOSC_CONFIG")
    if config_env:
        return Path(config_env)

    candidates = [PROJECT_ROOT / CONFIG_FILE_NAME, PROJECT_ROOT / "config" / CONFIG_FILE_NAME]
    return next((path for path in candidates if path.exists()), candidates[0])


def _merge_defaults(raw_data: Dict[str, Any]) -> Dict[str, Any]:
    """Complete missing sections and keys from DEFAULT_SECTIONS (file values win)"""
    for section, defaults in DEFAULT_SECTIONS.items():
        current = raw_data.get(section)
        if isinstance(current, dict):
            raw_data[section] = {**copy.deepcopy(defaults), **current}
        else:
            raw_data[section] = copy.deepcopy(defaults)
    return raw_data


def load_config(config_path: Optional[str | Path] = None) -> SystemConfig:
    """
    Read and complete system_config.json

    Args:
        config_path: explicit file; when None: env BODYOSC_CONFIG, then
                     <root>/system_config.json, then <root>/config/system_config.json

    Returns:
        SystemConfig with every default section present

    Raises:
        FileNotFoundError: no such file
        ValueError: not valid JSON, or the top level is not an object
    """
    path = Path(config_path) if config_path is not None else _default_config_path()
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        raw_data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise ValueError(f"Configuration root must be a JSON object: {path}")

    config = SystemConfig(**_merge_defaults(raw_data))
    config.set_config_path(path)
    return config


def get_config(config_path: Optional[str | Path] = None, reload: bool = False) -> SystemConfig:
    """
    Shared SystemConfig, loaded on first use

    Args:
        config_path: file to load (ignored once loaded unless reload=True)
        reload: discard the cached instance and load again
    """
    global _config_instance

    if reload or _config_instance is None:
        _config_instance = load_config(config_path)
    return _config_instance


# ============================================================================
# Environment overrides
# ============================================================================

def _as_port(value: str) -> int:
    port = int(value)
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return port


# variable -> (section, key, converter)
ENV_OVERRIDES = {
    "BODYOSC_LOG_LEVEL": ("logging", "level", str.upper),
    "BODYOSC_OSC_PORT": ("network", "port", _as_port),
    "BODYOSC_SENSOR": ("sensor", "driver", str.lower),
}


def apply_env_overrides(config: SystemConfig) -> SystemConfig:
    """
    Apply ENV_OVERRIDES (priority: ENV > system_config.json > defaults)

    Values that fail conversion are reported and ignored.

    Returns:
        the same config object, updated in place
    """
    # logger itself reads this module at import time
    from .logger import logger

    for variable, (section, key, convert) in ENV_OVERRIDES.items():
        raw = os.getenv(variable)
        if not raw:
            continue
        try:
            value = convert(raw.strip())
        except ValueError as e:
            logger.warning(f"Ignoring {variable}={raw!r}: {e}")
            continue
        setattr(config[section], key, value)

    return config


# ============================================================================
# Destination addresses
# ============================================================================

def read_ip_address_csv(
    path: Optional[str | Path],
    default_csv: str = Constants.DEFAULT_IP_ADDRESS_CSV
) -> str:
    """
    Read the first line of the address file

    A missing, unreadable or empty file falls back to default_csv.

    Args:
        path: address file path (None means "use the default")
        default_csv: built-in comma-separated address list

    Returns:
        comma-separated address string
    """
    if path is None:
        return default_csv

    try:
        with Path(path).open("r", encoding="utf-8") as f:
            first_line = f.readline().strip()
    except OSError:
        return default_csv

    return first_line or default_csv


def parse_ip_addresses(csv_text: str) -> List[str]:
    """Split a comma-separated address string, dropping blanks and duplicates"""
    addresses: List[str] = []
    for item in csv_text.split(","):
        address = item.strip()
        if address and address not in addresses:
            addresses.append(address)
    return addresses
