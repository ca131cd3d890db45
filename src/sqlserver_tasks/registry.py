"""Adapter registry that routes database tasks to the right implementation."""

import logging
import re
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from .errors import DatabaseAlreadyExists, TasksError
from .errors_catalog import actionable_error
from .models import DatabaseConfig
from .services.local_hosts import is_local_host

ConfigLike = Union[DatabaseConfig, Mapping[str, Any]]


class DatabaseTasks:
    """Looks up the task class registered for a configuration's adapter."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("sqlserver_tasks")
        self._tasks: List[Tuple[re.Pattern, type]] = []
        self._local_checks: List[Callable[[DatabaseConfig], bool]] = []

    @staticmethod
    def _config(config: ConfigLike) -> DatabaseConfig:
        if isinstance(config, DatabaseConfig):
            return config
        return DatabaseConfig.from_mapping(config)

    def register_task(self, pattern: str, task_class: type):
        self._tasks.append((re.compile(pattern), task_class))

    def register_local_check(self, check: Callable[[DatabaseConfig], bool]):
        self._local_checks.append(check)

    def class_for_adapter(self, adapter: str) -> type:
        for pattern, task_class in reversed(self._tasks):
            if pattern.search(adapter):
                return task_class
        raise TasksError(actionable_error("unknown_adapter", adapter=adapter))

    def task_for(self, config: ConfigLike):
        config = self._config(config)
        task_class = self.class_for_adapter(config.adapter)
        return task_class(config, logger=self.logger)

    def local_database(self, config: ConfigLike) -> bool:
        config = self._config(config)
        return is_local_host(config) or any(check(config) for check in self._local_checks)

    def create(self, config: ConfigLike):
        self.task_for(config).create()

    def drop(self, config: ConfigLike):
        self.task_for(config).drop()

    def purge(self, config: ConfigLike):
        self.task_for(config).purge()

    def charset(self, config: ConfigLike) -> str:
        return self.task_for(config).charset()

    def collation(self, config: ConfigLike) -> str:
        return self.task_for(config).collation()

    def structure_dump(self, config: ConfigLike, filename: str, extra_flags=None):
        self.task_for(config).structure_dump(filename, extra_flags)

    def structure_load(self, config: ConfigLike, filename: str, extra_flags=None):
        self.task_for(config).structure_load(filename, extra_flags)

    def _each_local_configuration(self, configs: Mapping[str, ConfigLike]):
        for name, raw_config in configs.items():
            config = self._config(raw_config)
            if not config.database:
                continue
            if self.local_database(config):
                yield name, config
            else:
                self.logger.warning(
                    "This task only modifies local databases. %s is on a remote host.",
                    config.database,
                )

    def create_all(self, configs: Mapping[str, ConfigLike]) -> List[str]:
        created = []
        for name, config in self._each_local_configuration(configs):
            try:
                self.create(config)
            except DatabaseAlreadyExists:
                self.logger.warning("Database '%s' already exists", config.database)
                continue
            created.append(name)
        return created

    def drop_all(self, configs: Mapping[str, ConfigLike]) -> List[str]:
        dropped = []
        for name, config in self._each_local_configuration(configs):
            self.drop(config)
            dropped.append(name)
        return dropped


database_tasks = DatabaseTasks()
