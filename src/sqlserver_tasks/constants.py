"""Shared constants for sqlserver-tasks."""

DEFAULT_COLLATION = "SQL_Latin1_General_CP1_CI_AS"
DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"
DEFAULT_DUMP_COMMAND = "defncopy-ttds"
MASTER_DATABASE = "master"

LOCAL_HOSTS = ("127.0.0.1", "localhost")
LOCAL_NETWORKS = ("192.168.0.0/16", "10.0.0.0/8", "172.16.0.0/12")

DEFAULT_CONFIG_PATH = "config/database.yml"
DEFAULT_ENVIRONMENT = "development"
