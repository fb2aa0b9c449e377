# relayboard/app/loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from relayboard.app.config import RelayBoardConfig
from relayboard.core.errors import ConfigError

ROOT_KEY = "relayboard"

# field name -> schema type
CONFIG_SCHEMA: Dict[str, str] = {
    "host": "str",
    "port": "int",
    "connect_timeout_s": "float",
    "read_timeout_s": "float",
}


def load_config(path: str | Path) -> RelayBoardConfig:
    """
    Load a RelayBoardConfig from YAML:

        relayboard:
          host: 10.0.0.5
          port: 17123
    """
    full_path = Path(path)
    if not full_path.exists():
        raise ConfigError(
            f"Missing config file: {full_path}",
            hint="Check the --config path.",
            details={"path": str(full_path)},
        )

    try:
        with open(full_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Config file {full_path} is not valid YAML.",
            hint=str(e),
            details={"path": str(full_path)},
        ) from None

    if not isinstance(data, dict) or not isinstance(data.get(ROOT_KEY), dict):
        raise ConfigError(
            f"Config file {full_path} is missing the '{ROOT_KEY}' root node.",
            hint=f"Put host/port under a top-level '{ROOT_KEY}:' mapping.",
            details={"path": str(full_path)},
        )

    return config_from_mapping(data[ROOT_KEY])


def config_from_mapping(values: Mapping[str, Any]) -> RelayBoardConfig:
    """Validate and cast a flat mapping into a RelayBoardConfig."""
    resolved: Dict[str, Any] = {}

    for key in values:
        if key not in CONFIG_SCHEMA:
            raise ConfigError(
                f"Unknown config key '{key}'.",
                hint=f"Valid keys: {sorted(CONFIG_SCHEMA.keys())}",
                details={"key": key},
            )

    for name, type_name in CONFIG_SCHEMA.items():
        if name not in values or values[name] is None:
            continue
        try:
            resolved[name] = _cast_value(values[name], type_name)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid value for config key '{name}'.",
                hint=str(e),
                details={"key": name, "value": values[name], "expected_type": type_name},
            ) from None

    port = resolved.get("port")
    if port is not None and not 1 <= port <= 65535:
        raise ConfigError(
            f"Port {port} out of range.",
            hint="Use a TCP port between 1 and 65535.",
            details={"key": "port", "value": port},
        )

    for name in ("connect_timeout_s", "read_timeout_s"):
        if name in resolved and resolved[name] <= 0:
            raise ConfigError(
                f"'{name}' must be positive.",
                details={"key": name, "value": resolved[name]},
            )

    return RelayBoardConfig(**resolved)


def _cast_value(value: Any, type_name: str) -> Any:
    if type_name == "str":
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        return value.strip()

    if type_name == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        return value

    if type_name == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        return float(value)

    raise TypeError(f"Unknown schema type '{type_name}'")
