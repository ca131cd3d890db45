"""Configuration loader for sqlserver-tasks."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from sqlserver_tasks.errors import TasksError
from sqlserver_tasks.models import DatabaseConfig


class ConfigLoader:
    """Loads a YAML file mapping environment names to connection settings."""

    def load(self, config_path: Optional[str]) -> Dict[str, Dict[str, Any]]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise TasksError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise TasksError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise TasksError("Config file must contain a YAML mapping at the root.")

        supported = DatabaseConfig.supported_keys()
        for env_name, settings in parsed.items():
            if not isinstance(settings, dict):
                raise TasksError(f"Environment '{env_name}' must be a YAML mapping.")
            unknown = sorted(set(map(str, settings.keys())) - supported)
            if unknown:
                unknown_list = ", ".join(unknown)
                raise TasksError(f"Unknown configuration keys in '{env_name}': {unknown_list}")

        return {str(env_name): settings for env_name, settings in parsed.items()}

    def environment(self, configs: Dict[str, Dict[str, Any]], name: str) -> DatabaseConfig:
        if name not in configs:
            available = ", ".join(sorted(configs)) or "<none>"
            raise TasksError(f"Environment '{name}' not found. Available: {available}")
        return DatabaseConfig.from_mapping(configs[name])
