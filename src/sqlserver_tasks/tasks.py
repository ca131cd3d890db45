import logging
import re
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Union

from sqlalchemy.exc import DBAPIError

from .constants import DEFAULT_COLLATION, MASTER_DATABASE
from .errors import DatabaseAlreadyExists, DumpError, TasksError
from .errors_catalog import actionable_error
from .models import DatabaseConfig
from .registry import database_tasks
from .services.command_runner import CommandRunner
from .services.connection import ConnectionHandler
from .services.dump_filter import normalize_dump
from .services.local_hosts import is_private_host

logger = logging.getLogger("sqlserver_tasks")

ALREADY_EXISTS_RE = re.compile(r"database .* already exists", flags=re.IGNORECASE)


def database_already_exists(message: str) -> bool:
    return ALREADY_EXISTS_RE.search(message) is not None


def _driver_message(exc: DBAPIError) -> str:
    return str(exc.orig) if exc.orig is not None else str(exc)


class SQLServerDatabaseTasks:
    """Create, drop, dump and load a SQL Server database."""

    def __init__(
        self,
        configuration: Union[DatabaseConfig, Mapping],
        connection_handler: Optional[ConnectionHandler] = None,
        command_runner: Optional[CommandRunner] = None,
        logger: logging.Logger = logger,
    ):
        if not isinstance(configuration, DatabaseConfig):
            configuration = DatabaseConfig.from_mapping(configuration)
        self.configuration = configuration
        self.logger = logger
        self.connection_handler = connection_handler or ConnectionHandler(logger=logger)
        self.command_runner = command_runner or CommandRunner(logger=logger)

    @property
    def connection(self):
        if self.connection_handler.engine is None:
            self.establish_connection(self.configuration)
        return self.connection_handler.connection

    @property
    def default_collation(self) -> str:
        return self.configuration.collation or DEFAULT_COLLATION

    def establish_connection(self, config: DatabaseConfig):
        self.connection_handler.establish_connection(config)

    def establish_master_connection(self):
        self.establish_connection(self.configuration.merge(database=MASTER_DATABASE))

    def create(self, master_established: bool = False):
        database = self.configuration.require("database")
        if not master_established:
            self.establish_master_connection()

        # master is active here; the target database does not exist yet.
        try:
            self.connection_handler.connection.create_database(
                database, collation=self.default_collation
            )
        except DBAPIError as exc:
            if database_already_exists(_driver_message(exc)):
                raise DatabaseAlreadyExists(
                    actionable_error("database_exists", database=database)
                ) from exc
            raise

        self.logger.info("Created database '%s'", database)
        self.establish_connection(self.configuration)

    def drop(self):
        database = self.configuration.require("database")
        self.establish_master_connection()
        self.connection.drop_database(database)
        self.logger.info("Dropped database '%s'", database)

    def charset(self) -> str:
        return self.connection.charset()

    def collation(self) -> str:
        return self.connection.collation()

    def purge(self):
        self.connection_handler.clear_active_connections()
        self.drop()
        self.create(True)

    def build_dump_command(
        self, filename: str, extra_flags: Optional[Sequence[str]] = None
    ) -> List[str]:
        config = self.configuration
        server = config.host or "localhost"
        if config.port:
            server = f"{server}:{config.port}"

        command = [
            config.dump_command,
            "-S",
            server,
            "-D",
            config.require("database"),
            "-U",
            config.require("username"),
            "-P",
            config.require("password"),
            "-o",
            str(filename),
        ]
        command.extend(extra_flags or [])
        command.extend(self.connection.tables())
        command.extend(self.connection.views())
        return command

    def structure_dump(self, filename: str, extra_flags: Optional[Sequence[str]] = None):
        command = self.build_dump_command(filename, extra_flags)
        database = self.configuration.database

        try:
            self.command_runner.run(
                command,
                check=True,
                capture_output=True,
                timeout=self.configuration.dump_timeout,
                secrets=[self.configuration.password],
            )
        except TasksError as exc:
            message = actionable_error("dump_failed", database=database, command=command[0])
            raise DumpError(f"{message}\n{exc}") from exc

        path = Path(filename)
        dump = normalize_dump(path.read_text(encoding="utf-8"))
        if not dump.endswith("\n"):
            dump += "\n"
        path.write_text(dump, encoding="utf-8")
        self.logger.info("Dumped structure of '%s' to %s", database, filename)

    def structure_load(self, filename: str, extra_flags: Optional[Sequence[str]] = None):
        sql = Path(filename).read_text(encoding="utf-8")
        self.connection.execute(sql)
        self.logger.info("Loaded structure from %s", filename)


database_tasks.register_task(r"sqlserver", SQLServerDatabaseTasks)
database_tasks.register_local_check(is_private_host)
