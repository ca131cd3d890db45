"""Shared domain models for sqlserver-tasks."""

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from .constants import DEFAULT_DRIVER, DEFAULT_DUMP_COMMAND
from .errors import TasksError
from .errors_catalog import actionable_error


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for one environment, read once at construction."""

    adapter: str
    database: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    collation: Optional[str] = None
    driver: str = DEFAULT_DRIVER
    dump_command: str = DEFAULT_DUMP_COMMAND
    dump_timeout: Optional[float] = None

    @classmethod
    def supported_keys(cls):
        return {field.name for field in fields(cls)}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "DatabaseConfig":
        values = {str(key): value for key, value in mapping.items()}

        unknown = sorted(set(values) - cls.supported_keys())
        if unknown:
            raise TasksError(f"Unknown configuration keys: {', '.join(unknown)}")
        if not values.get("adapter"):
            raise TasksError(actionable_error("missing_config_key", key="adapter"))

        for key, cast in (("port", int), ("dump_timeout", float)):
            if values.get(key) is None:
                continue
            try:
                values[key] = cast(values[key])
            except (TypeError, ValueError) as exc:
                raise TasksError(f"Invalid {key}: {values[key]!r}") from exc
        for key in ("driver", "dump_command"):
            if values.get(key) is None:
                values.pop(key, None)

        return cls(**values)

    def merge(self, **changes: Any) -> "DatabaseConfig":
        return replace(self, **changes)

    def require(self, key: str) -> Any:
        value = getattr(self, key, None)
        if value is None or value == "":
            raise TasksError(actionable_error("missing_config_key", key=key))
        return value
