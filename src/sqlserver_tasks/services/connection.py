"""SQL Server connection services built on SQLAlchemy."""

from typing import Any, Callable, List, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, Engine

from sqlserver_tasks.errors import TasksError
from sqlserver_tasks.errors_catalog import actionable_error
from sqlserver_tasks.models import DatabaseConfig


def quote_identifier(name: str) -> str:
    return "[" + name.replace("]", "]]") + "]"


def build_url(config: DatabaseConfig) -> URL:
    return URL.create(
        "mssql+pyodbc",
        username=config.username,
        password=config.password,
        host=config.host or "localhost",
        port=config.port,
        database=config.database,
        query={"driver": config.driver},
    )


class SQLServerConnection:
    """The handful of driver calls the database tasks need."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _autocommit(self):
        # CREATE/DROP DATABASE refuse to run inside a transaction.
        return self.engine.connect().execution_options(isolation_level="AUTOCOMMIT")

    def _select_value(self, query: str) -> Any:
        with self.engine.connect() as conn:
            return conn.execute(text(query)).scalar()

    def create_database(self, name: str, collation: Optional[str] = None):
        statement = f"CREATE DATABASE {quote_identifier(name)}"
        if collation:
            statement = f"{statement} COLLATE {collation}"
        with self._autocommit() as conn:
            conn.exec_driver_sql(statement)

    def drop_database(self, name: str):
        quoted = quote_identifier(name)
        with self._autocommit() as conn:
            conn.exec_driver_sql(f"ALTER DATABASE {quoted} SET SINGLE_USER WITH ROLLBACK IMMEDIATE")
            conn.exec_driver_sql(f"DROP DATABASE {quoted}")

    def charset(self) -> str:
        return self._select_value("SELECT DATABASEPROPERTYEX(DB_NAME(), 'SqlCharSetName')")

    def collation(self) -> str:
        return self._select_value("SELECT DATABASEPROPERTYEX(DB_NAME(), 'Collation')")

    def tables(self) -> List[str]:
        return inspect(self.engine).get_table_names()

    def views(self) -> List[str]:
        return inspect(self.engine).get_view_names()

    def execute(self, sql: str):
        with self.engine.begin() as conn:
            conn.exec_driver_sql(sql)


class ConnectionHandler:
    """Owns the single active engine, like a host ORM's base model does."""

    def __init__(self, logger, engine_factory: Callable[..., Engine] = create_engine):
        self.logger = logger
        self.engine_factory = engine_factory
        self.engine: Optional[Engine] = None
        self.config: Optional[DatabaseConfig] = None

    def establish_connection(self, config: DatabaseConfig) -> Engine:
        self.clear_active_connections()
        self.logger.debug(
            "Connecting to %s on %s", config.database or "<default>", config.host or "localhost"
        )
        self.engine = self.engine_factory(build_url(config))
        self.config = config
        return self.engine

    @property
    def connection(self) -> SQLServerConnection:
        if self.engine is None:
            raise TasksError(actionable_error("no_connection"))
        return SQLServerConnection(self.engine)

    def clear_active_connections(self):
        if self.engine is not None:
            self.engine.dispose()
