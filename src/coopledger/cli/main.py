"""Main CLI entry point."""

import logging

import click
from coopledger.config import DB_PATH_ENV_VAR, DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV_VAR
from coopledger.database.factories import create_sqlite_database

# Import and register all commands at module level
from coopledger.cli.commands import (
    account,
    import_cmd,
    init_coa,
    reconcile,
    report,
    transaction,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV_VAR} environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=DEFAULT_LOG_LEVEL,
    show_default=True,
    envvar=LOG_LEVEL_ENV_VAR,
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """coopledger - Cooperative bookkeeping and financial reports.

    Keep a chart of accounts, record deposits and withdrawals with split
    categories, reconcile bank statements and build Profit & Loss, Balance
    Sheet and General Ledger reports.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init_coa.register_commands(cli)
account.register_commands(cli)
transaction.register_commands(cli)
import_cmd.register_commands(cli)
reconcile.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
