from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from .schema import ConfigurationError, Settings

DEFAULT_CONFIG_PATH = Path("config/default.yaml")
OVERRIDES_ENV_VAR = "STUDY_PLANNER_CONFIG_OVERRIDES"


def read_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file into a dictionary, returning an empty mapping when the file is blank."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries, letting override values replace base entries."""
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            result[key] = merge_dicts(base[key], value)
        else:
            result[key] = value
    return result


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Read configuration, apply environment overrides, and return validated Settings.

    An explicit `config_path` must exist. Without one, `config/default.yaml` is used
    when present and built-in defaults otherwise. JSON overrides from
    `STUDY_PLANNER_CONFIG_OVERRIDES` are merged with `merge_dicts` before the payload
    is validated against `Settings`. Any failure surfaces as `ConfigurationError`.
    """

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if config_path or path.exists():
        try:
            data = read_yaml(path)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    else:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")

    overrides_env = os.getenv(OVERRIDES_ENV_VAR)
    if overrides_env:
        try:
            overrides = json.loads(overrides_env)
        except json.JSONDecodeError as err:
            raise ConfigurationError(
                f"Failed to parse {OVERRIDES_ENV_VAR} env var as JSON."
            ) from err
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"{OVERRIDES_ENV_VAR} must be a JSON object.")
        data = merge_dicts(data, overrides)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    return settings
