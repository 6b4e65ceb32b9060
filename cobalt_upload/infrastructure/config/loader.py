"""
Reading and writing upload server configuration.

Settings come from an optional YAML or JSON file; ``COBALT_UPLOAD_*``
environment variables are applied on top of whatever the file holds.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from .models import ApplicationConfig


def _parse_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes', 'on', 'enabled')


# variable suffix -> (dotted config path, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "DEBUG": ("debug", _parse_bool),
    "ENVIRONMENT": ("environment", str),
    "HOST": ("server.host", str),
    "PORT": ("server.port", int),
    "PUBLIC_URL": ("server.public_url", str),
    "UPLOAD_DIR": ("upload.upload_directory", str),
    "MAX_SIZE": ("upload.max_size", int),
    "CHUNK_SIZE": ("upload.chunk_size", int),
    "SHUTDOWN_TIMEOUT": ("shutdown.timeout", float),
    "LOG_LEVEL": ("logging.level", str),
    "LOG_DIR": ("logging.log_directory", str),
}


class ConfigLoader:
    """Builds ApplicationConfig from a file and the environment."""

    def __init__(self, env_prefix: str = "COBALT_UPLOAD_") -> None:
        self._env_prefix = env_prefix

    def load_config(self, config_file: Optional[str] = None) -> ApplicationConfig:
        """
        Load configuration from file and environment variables.

        Args:
            config_file: YAML (.yaml/.yml) or JSON (.json) file, optional

        Returns:
            Validated configuration

        Raises:
            FileNotFoundError: If config_file does not exist
            ValueError: If the file or an environment value cannot be used
        """
        data = self._read_file(Path(config_file)) if config_file else {}
        data = _deep_merge(data, self._environment_overrides())

        config = ApplicationConfig.from_dict(data)
        config.config_file_path = config_file
        return config

    def save_config(self, config: ApplicationConfig, file_path: str, format: str = "yaml") -> None:
        """
        Write configuration to file_path as yaml or json.

        Raises:
            ValueError: For an unknown format or when the file cannot be written
        """
        data = config.to_dict()
        data.pop("config_file_path", None)

        fmt = format.lower()
        if fmt not in ("yaml", "json"):
            raise ValueError(f"Unsupported format: {format}")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                if fmt == "yaml":
                    yaml.safe_dump(data, f, default_flow_style=False, indent=2)
                else:
                    json.dump(data, f, indent=2)
        except OSError as e:
            raise ValueError(f"Error writing {fmt.upper()} to {file_path}: {e}") from e

    def _read_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        if suffix in ('.yaml', '.yml'):
            parse, kind, parse_error = yaml.safe_load, "YAML", yaml.YAMLError
        elif suffix == '.json':
            parse, kind, parse_error = json.load, "JSON", json.JSONDecodeError
        else:
            raise ValueError(f"Unsupported configuration file format: {suffix}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return parse(f) or {}  # type: ignore[no-any-return]
        except parse_error as e:
            raise ValueError(f"Invalid {kind} in {path}: {e}") from e
        except OSError as e:
            raise ValueError(f"Error reading {path}: {e}") from e

    def _environment_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}

        for suffix, (config_path, convert) in ENV_OVERRIDES.items():
            env_var = self._env_prefix + suffix
            raw = os.getenv(env_var)
            if raw is None:
                continue
            try:
                value = convert(raw)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {env_var}: {raw} ({e})") from e

            *parents, leaf = config_path.split('.')
            target = overrides
            for key in parents:
                target = target.setdefault(key, {})
            target[leaf] = value

        return overrides


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
