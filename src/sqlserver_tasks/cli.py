import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_PATH, DEFAULT_ENVIRONMENT
from .errors import TasksError
from .registry import database_tasks
from .services.config_loader import ConfigLoader

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _configure_logging(verbose: bool, log_file):
    logger = logging.getLogger("sqlserver_tasks")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


def _current_config(ctx):
    try:
        return ConfigLoader().environment(ctx.obj["configs"], ctx.obj["env"])
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML database configuration. Defaults to {DEFAULT_CONFIG_PATH} if present.",
)
@click.option(
    "--env",
    "env_name",
    default=lambda: os.environ.get("SQLSERVER_TASKS_ENV", DEFAULT_ENVIRONMENT),
    show_default=DEFAULT_ENVIRONMENT,
    help="Environment section of the configuration to use.",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(ctx, config, env_name, verbose, log_file):
    """Create, drop, dump and load SQL Server databases."""
    _configure_logging(verbose, log_file)

    resolved_config = config
    if resolved_config is None:
        default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_PATH)
        if os.path.exists(default_config_path):
            resolved_config = default_config_path

    try:
        configs = ConfigLoader().load(resolved_config)
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc

    if not configs:
        raise click.ClickException(
            f"No database configuration found. Pass --config or create {DEFAULT_CONFIG_PATH}."
        )

    ctx.obj = {"configs": configs, "env": env_name}


@main.command()
@click.option("--all", "all_envs", is_flag=True, help="Create every local database in the config.")
@click.pass_context
def create(ctx, all_envs):
    """Create the database."""
    try:
        if all_envs:
            created = database_tasks.create_all(ctx.obj["configs"])
            console.print(f"[green]Created: {', '.join(created) or 'nothing'}[/green]")
            return
        config = _current_config(ctx)
        database_tasks.create(config)
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Created database '{config.database}'.[/green]")


@main.command()
@click.option("--all", "all_envs", is_flag=True, help="Drop every local database in the config.")
@click.pass_context
def drop(ctx, all_envs):
    """Drop the database."""
    try:
        if all_envs:
            dropped = database_tasks.drop_all(ctx.obj["configs"])
            console.print(f"[green]Dropped: {', '.join(dropped) or 'nothing'}[/green]")
            return
        config = _current_config(ctx)
        database_tasks.drop(config)
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Dropped database '{config.database}'.[/green]")


@main.command()
@click.pass_context
def purge(ctx):
    """Drop and recreate the database."""
    config = _current_config(ctx)
    try:
        database_tasks.purge(config)
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Purged database '{config.database}'.[/green]")


@main.command()
@click.pass_context
def charset(ctx):
    """Print the database character set."""
    config = _current_config(ctx)
    try:
        click.echo(database_tasks.charset(config))
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command()
@click.pass_context
def collation(ctx):
    """Print the database collation."""
    config = _current_config(ctx)
    try:
        click.echo(database_tasks.collation(config))
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command("structure-dump")
@click.argument("filename", type=click.Path(dir_okay=False))
@click.option(
    "--extra-flag",
    "extra_flags",
    multiple=True,
    help="Extra argument passed to the dump utility. Repeat for several.",
)
@click.pass_context
def structure_dump(ctx, filename, extra_flags):
    """Dump the database schema to FILENAME."""
    config = _current_config(ctx)
    try:
        database_tasks.structure_dump(config, filename, list(extra_flags))
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Schema written to {filename}.[/green]")


@main.command("structure-load")
@click.argument("filename", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def structure_load(ctx, filename):
    """Load the database schema from FILENAME."""
    config = _current_config(ctx)
    try:
        database_tasks.structure_load(config, filename)
    except TasksError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]Schema loaded from {filename}.[/green]")


if __name__ == "__main__":
    main()
