"""Actionable error catalog for sqlserver-tasks."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "database_exists": {
        "what": "Database '{database}' already exists.",
        "next": "Drop it first with `sqlserver-tasks drop` or pick another database name.",
    },
    "dump_failed": {
        "what": "Error dumping database '{database}' with {command}.",
        "next": "Check that {command} is installed and the server accepts the configured credentials.",
    },
    "missing_config_key": {
        "what": "Configuration is missing the '{key}' key.",
        "next": "Add `{key}` to the environment section of your database configuration.",
    },
    "unknown_adapter": {
        "what": "No database tasks registered for adapter '{adapter}'.",
        "next": "Use `adapter: sqlserver` or register a task class for this adapter.",
    },
    "host_unresolvable": {
        "what": "Could not resolve database host '{host}'.",
        "next": "Check the `host` value and your DNS settings.",
    },
    "no_connection": {
        "what": "No database connection has been established.",
        "next": "Call `establish_connection` with a configuration before using the connection.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
