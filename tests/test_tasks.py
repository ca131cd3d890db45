import subprocess

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from sqlserver_tasks.errors import DatabaseAlreadyExists, DumpError, TasksError
from sqlserver_tasks.tasks import SQLServerDatabaseTasks, database_already_exists

CONFIG = {
    "adapter": "sqlserver",
    "host": "db.local",
    "port": 1433,
    "database": "app_dev",
    "username": "sa",
    "password": "s3cret",
}


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeConnection:
    def __init__(self, handler):
        self.handler = handler

    def create_database(self, name, collation=None):
        self.handler.calls.append(("create_database", name, collation))
        if self.handler.create_error is not None:
            raise self.handler.create_error

    def drop_database(self, name):
        self.handler.calls.append(("drop_database", name))

    def charset(self):
        return "iso_1"

    def collation(self):
        return "SQL_Latin1_General_CP1_CI_AS"

    def tables(self):
        return ["users", "posts"]

    def views(self):
        return ["active_users"]

    def execute(self, sql):
        self.handler.calls.append(("execute", sql))


class FakeHandler:
    def __init__(self, create_error=None):
        self.engine = None
        self.calls = []
        self.create_error = create_error

    def establish_connection(self, config):
        self.engine = object()
        self.calls.append(("establish", config.database))

    @property
    def connection(self):
        return FakeConnection(self)

    def clear_active_connections(self):
        self.calls.append(("clear",))


class FakeRunner:
    def __init__(self, returncode=0, dump_text="", stderr=""):
        self.returncode = returncode
        self.dump_text = dump_text
        self.stderr = stderr
        self.commands = []
        self.kwargs = []

    def run(self, cmd, **kwargs):
        self.commands.append(cmd)
        self.kwargs.append(kwargs)
        if self.returncode != 0:
            if kwargs.get("check", True):
                raise TasksError(f"Command failed ({self.returncode}): {cmd[0]}\n{self.stderr}")
            return subprocess.CompletedProcess(cmd, self.returncode, stdout="", stderr=self.stderr)
        output = cmd[cmd.index("-o") + 1]
        with open(output, "w", encoding="utf-8") as file_obj:
            file_obj.write(self.dump_text)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def build_tasks(config=None, handler=None, runner=None):
    return SQLServerDatabaseTasks(
        config or CONFIG,
        connection_handler=handler or FakeHandler(),
        command_runner=runner or FakeRunner(),
        logger=DummyLogger(),
    )


def _already_exists_error():
    return ProgrammingError(
        "CREATE DATABASE [app_dev]",
        {},
        Exception("Database 'app_dev' already exists. Choose a different database name."),
    )


def test_create_switches_to_master_then_to_configured_database():
    handler = FakeHandler()

    build_tasks(handler=handler).create()

    assert handler.calls == [
        ("establish", "master"),
        ("create_database", "app_dev", "SQL_Latin1_General_CP1_CI_AS"),
        ("establish", "app_dev"),
    ]


def test_create_uses_configured_collation():
    handler = FakeHandler()
    config = dict(CONFIG, collation="Latin1_General_100_CI_AS")

    build_tasks(config=config, handler=handler).create()

    assert ("create_database", "app_dev", "Latin1_General_100_CI_AS") in handler.calls


def test_create_with_master_established_skips_master_connection():
    handler = FakeHandler()

    build_tasks(handler=handler).create(master_established=True)

    assert handler.calls[0] == ("create_database", "app_dev", "SQL_Latin1_General_CP1_CI_AS")


def test_create_raises_database_already_exists():
    handler = FakeHandler(create_error=_already_exists_error())

    with pytest.raises(DatabaseAlreadyExists, match="app_dev"):
        build_tasks(handler=handler).create()


def test_create_reraises_other_driver_errors_unchanged():
    error = OperationalError("CREATE DATABASE [app_dev]", {}, Exception("Login failed for user 'sa'."))
    handler = FakeHandler(create_error=error)

    with pytest.raises(OperationalError) as excinfo:
        build_tasks(handler=handler).create()

    assert excinfo.value is error


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Database 'app_dev' already exists. Choose a different database name.", True),
        ("DATABASE app already EXISTS", True),
        ("There is already an object named 'users' in the database.", False),
        ("Login failed for user 'sa'.", False),
        ("Cannot drop database 'app' because it is currently in use.", False),
    ],
)
def test_database_already_exists_classification(message, expected):
    assert database_already_exists(message) is expected


def test_drop_connects_to_master_first():
    handler = FakeHandler()

    build_tasks(handler=handler).drop()

    assert handler.calls == [("establish", "master"), ("drop_database", "app_dev")]


def test_purge_clears_drops_and_recreates():
    handler = FakeHandler()

    build_tasks(handler=handler).purge()

    assert handler.calls == [
        ("clear",),
        ("establish", "master"),
        ("drop_database", "app_dev"),
        ("create_database", "app_dev", "SQL_Latin1_General_CP1_CI_AS"),
        ("establish", "app_dev"),
    ]


def test_charset_and_collation_connect_lazily():
    handler = FakeHandler()
    tasks = build_tasks(handler=handler)

    assert tasks.charset() == "iso_1"
    assert tasks.collation() == "SQL_Latin1_General_CP1_CI_AS"
    assert handler.calls == [("establish", "app_dev")]


def test_missing_database_key_is_reported():
    config = {"adapter": "sqlserver", "host": "db.local"}

    with pytest.raises(TasksError, match="missing the 'database' key"):
        build_tasks(config=config).drop()


def test_structure_dump_builds_command_and_rewrites_file(tmp_path):
    dump_file = tmp_path / "structure.sql"
    runner = FakeRunner(
        dump_text=(
            "USE app_dev\n"
            "GO\n"
            "CREATE TABLE [dbo].[users]\n"
            "\t( id int NOT NULL\n"
            "\t, name nvarchar(8000) NULL\n"
            "\t)\n"
            "GO"
        )
    )

    build_tasks(runner=runner).structure_dump(str(dump_file), ["-A"])

    assert runner.commands == [
        [
            "defncopy-ttds",
            "-S",
            "db.local:1433",
            "-D",
            "app_dev",
            "-U",
            "sa",
            "-P",
            "s3cret",
            "-o",
            str(dump_file),
            "-A",
            "users",
            "posts",
            "active_users",
        ]
    ]
    assert runner.kwargs[0]["secrets"] == ["s3cret"]
    assert runner.kwargs[0]["check"] is True
    assert dump_file.read_text(encoding="utf-8") == (
        "CREATE TABLE [dbo].[users]\n"
        "\t( [id] int NOT NULL\n"
        "\t, [name] nvarchar(4000) NULL\n"
        "\t)\n"
        "GO\n"
    )


def test_structure_dump_without_port(tmp_path):
    runner = FakeRunner()
    config = {key: value for key, value in CONFIG.items() if key != "port"}

    build_tasks(config=config, runner=runner).structure_dump(str(tmp_path / "s.sql"))

    assert runner.commands[0][1:3] == ["-S", "db.local"]


def test_structure_dump_without_host_targets_localhost(tmp_path):
    runner = FakeRunner()
    config = {key: value for key, value in CONFIG.items() if key != "host"}

    build_tasks(config=config, runner=runner).structure_dump(str(tmp_path / "s.sql"))

    assert runner.commands[0][1:3] == ["-S", "localhost:1433"]


def test_structure_dump_fails_on_non_zero_exit(tmp_path):
    runner = FakeRunner(returncode=1, stderr="Login failed")

    with pytest.raises(DumpError, match="Error dumping database 'app_dev'") as excinfo:
        build_tasks(runner=runner).structure_dump(str(tmp_path / "structure.sql"))

    assert "Login failed" in str(excinfo.value)


def test_structure_dump_wraps_runner_errors(tmp_path):
    class MissingToolRunner:
        def run(self, cmd, **_kwargs):
            raise TasksError(f"Required command not found: {cmd[0]}.")

    with pytest.raises(DumpError, match="defncopy-ttds"):
        build_tasks(runner=MissingToolRunner()).structure_dump(str(tmp_path / "s.sql"))


def test_structure_load_executes_file_contents(tmp_path):
    handler = FakeHandler()
    schema = tmp_path / "structure.sql"
    schema.write_text("CREATE TABLE t (id int)\n", encoding="utf-8")

    build_tasks(handler=handler).structure_load(str(schema), None)

    assert handler.calls[-1] == ("execute", "CREATE TABLE t (id int)\n")
