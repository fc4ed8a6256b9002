"""Loading config.yaml and the environment into validated settings."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

# Searched in order when --config is not given
DEFAULT_CONFIG_LOCATIONS = [
    Path("config.yaml"),
    Path("config") / "config.yaml",
]

_SCHEMA_HINTS = [
    "Review config.example.yaml for correct format",
    "Check that all required fields are present",
    "Verify field types match the expected schema",
]

_TYPE_ERRORS = {"string_type", "int_type", "float_type", "bool_type"}


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Read the YAML config and the environment, and validate both.

    Without ``config_path`` the locations in DEFAULT_CONFIG_LOCATIONS are
    tried in order. Settings that are valid but look unintended are reported
    through ``warnings.warn``.

    Returns:
        (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If no file is found, or the file or environment is invalid
    """
    config_dict = _read_yaml(_find_config_file(config_path))

    soft_problems = check_for_warnings(config_dict)
    if soft_problems:
        emit_warnings(soft_problems)

    return _validate(config_dict), load_environment_config()


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            suggestions=["Copy config.example.yaml to config.yaml", "Or pass --config PATH"],
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=["Indent with spaces, not tabs", "Check brackets and quotes are closed"],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file {config_file}: {e}",
            suggestions=["Check file permissions"],
        ) from e

    if raw is None or raw == {}:
        raise ConfigurationError(
            f"Configuration file is empty: {config_file}",
            suggestions=["Start from config.example.yaml; at least a 'source' section is needed"],
        )
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(raw).__name__}",
            suggestions=["Start from config.example.yaml"],
        )
    return raw


def _validate(config_dict: Dict[str, Any]) -> AppConfig:
    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=format_validation_errors(e),
            suggestions=_SCHEMA_HINTS,
        ) from e


def format_validation_errors(error: ValidationError) -> List[str]:
    """Render each pydantic error as one line naming the offending field path."""
    lines = []
    for item in error.errors():
        field_path = " -> ".join(str(part) for part in item["loc"]) or "config"
        kind = item["type"]

        if kind == "missing":
            lines.append(f"Missing required field: {field_path}")
        elif kind in _TYPE_ERRORS:
            lines.append(
                f"Invalid type for '{field_path}': expected {kind[:-len('_type')]}, "
                f"got {item.get('input')!r}"
            )
        elif "enum" in kind:
            lines.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            lines.append(f"{field_path}: {item['msg']}")
    return lines


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    if config_path is not None:
        if config_path.exists():
            return config_path
        raise ConfigurationError(
            f"Specified configuration file not found: {config_path}",
            suggestions=["Check the --config path"],
        )

    found = next((path for path in DEFAULT_CONFIG_LOCATIONS if path.exists()), None)
    if found is None:
        raise ConfigurationError(
            "Configuration file not found",
            errors=[f"Tried: {path}" for path in DEFAULT_CONFIG_LOCATIONS],
            suggestions=["Copy config.example.yaml to config.yaml", "Or pass --config PATH"],
        )
    return found


def validate_config_file(config_path: Optional[Path] = None) -> bool:
    """
    Check a config file against the schema without reading the environment.

    The file is located the same way load_config() locates it. Prints the
    outcome and returns True when the file is valid.
    """
    try:
        config_path = _find_config_file(config_path)
        _validate(_read_yaml(config_path))
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False

    print(f"✓ Configuration file {config_path} is valid")
    return True
