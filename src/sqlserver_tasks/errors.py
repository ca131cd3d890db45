"""Domain errors for sqlserver-tasks."""


class TasksError(RuntimeError):
    """Raised when a database task cannot continue safely."""


class DatabaseAlreadyExists(TasksError):
    """Raised when the database to create is already present on the server."""


class DumpError(TasksError):
    """Raised when the schema dump utility fails."""
