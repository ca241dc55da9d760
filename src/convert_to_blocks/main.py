"""CLI entrypoint for convert-to-blocks."""

import logging
from pathlib import Path

import rich_click as click

from convert_to_blocks import __version__
from convert_to_blocks.config import resolve_log_level
from convert_to_blocks.migration.controllers import (
    MigrationCliController,
    MigrationDbCommand,
    MigrationStartCommand,
)
from convert_to_blocks.migration.errors import MigrationError

click.rich_click.USE_MARKDOWN = True
MIGRATION_CONTROLLER = MigrationCliController()
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version=__version__, prog_name="convert-to-blocks")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging verbosity. Defaults to CONVERT_TO_BLOCKS_LOG_LEVEL or WARNING.",
)
def convert_to_blocks(log_level: str | None) -> None:
    """Convert classic editor posts to blocks."""

    try:
        level = resolve_log_level(log_level)
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@convert_to_blocks.group()
def migration() -> None:
    """Bulk migration commands."""


@migration.command("start")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--post_type",
    "--post-type",
    "post_type",
    default=None,
    help="Comma delimited list of post types to migrate. Defaults to post,page.",
)
@click.option(
    "--per_page",
    "--per-page",
    "per_page",
    default=None,
    help="Number of posts to migrate per batch. Defaults to no limit.",
)
@click.option("--page", default=None, help="Page number to start migration from. Defaults to 1.")
@click.option("--only", default=None, help="Comma delimited list of post ids to migrate.")
@click.option(
    "--catalog",
    is_flag=True,
    default=False,
    help="Only migrate classic editor tagged posts. Requires an indexed Block Catalog.",
)
@click.option(
    "--reset",
    is_flag=True,
    default=False,
    help="Stop any currently running migration and reset the migration state.",
)
def migration_start(  # noqa: PLR0913
    db_path: Path | None,
    post_type: str | None,
    per_page: str | None,
    page: str | None,
    only: str | None,
    catalog: bool,
    reset: bool,
) -> None:
    """Start a migration and follow it until the browser agent finishes.

    The command prints the URL that must be opened in a browser to connect it to the CLI.
    """

    try:
        lines = MIGRATION_CONTROLLER.start(
            MigrationStartCommand(
                db_path=db_path,
                post_type=post_type,
                per_page=per_page,
                page=page,
                only=only,
                catalog=catalog,
                reset=reset,
            ),
        )
    except (MigrationError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@migration.command("stop")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def migration_stop(db_path: Path | None) -> None:
    """Stop the currently running migration if active."""

    try:
        result = MIGRATION_CONTROLLER.stop(MigrationDbCommand(db_path=db_path))
    except (MigrationError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)


@migration.command("status")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def migration_status(db_path: Path | None) -> None:
    """Print the status of the currently running migration."""

    try:
        lines = MIGRATION_CONTROLLER.status(MigrationDbCommand(db_path=db_path))
    except (MigrationError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@migration.command("init-db")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def migration_init_db(db_path: Path | None) -> None:
    """Create or upgrade the shared migration-state database."""

    try:
        lines = MIGRATION_CONTROLLER.init_db(MigrationDbCommand(db_path=db_path))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    convert_to_blocks()
