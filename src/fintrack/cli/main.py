"""Main CLI entry point."""

import dataclasses

import click
from fintrack.config import Settings
from fintrack.database.factories import create_sqlite_database
from fintrack.logging_setup import configure_logging

# Import and register all commands at module level
from fintrack.cli.commands import (
    account,
    add,
    import_cmd,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINTRACK_DB_PATH environment variable)",
    envvar="FINTRACK_DB_PATH",
)
@click.option(
    "--owner",
    help="Owner whose ledger the command acts on (overrides FINTRACK_OWNER)",
    envvar="FINTRACK_OWNER",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides FINTRACK_LOG_LEVEL)",
    envvar="FINTRACK_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, owner: str | None, log_level: str | None):
    """Fintrack - Ledger and CSV import tool.

    Keep account balances in step with their transactions and import
    transactions from CSV exports without double-counting.
    """
    ctx.ensure_object(dict)

    settings = Settings.from_env()
    overrides = {
        name: value
        for name, value in (("db_path", db_path), ("owner_id", owner), ("log_level", log_level))
        if value
    }
    settings = dataclasses.replace(settings, **overrides)
    configure_logging(settings.log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["owner"] = settings.owner_id
        ctx.obj["settings"] = settings


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
import_cmd.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
