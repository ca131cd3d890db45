"""
sqlserver-tasks - Database management tasks for SQL Server
"""

__version__ = "0.1.0"

from .errors import DatabaseAlreadyExists, DumpError, TasksError
from .registry import DatabaseTasks, database_tasks
from .tasks import SQLServerDatabaseTasks

__all__ = [
    "DatabaseAlreadyExists",
    "DatabaseTasks",
    "DumpError",
    "SQLServerDatabaseTasks",
    "TasksError",
    "database_tasks",
]
