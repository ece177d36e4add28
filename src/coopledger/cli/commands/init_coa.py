"""Initialize the default chart of accounts."""

import click
from coopledger.config import DEFAULT_CHART
from coopledger.domain.coa import CoaService


@click.command("init-coa")
@click.pass_context
def init_coa(ctx):
    """Create the five masters and their default submenus.

    Does nothing when a chart of accounts already exists.
    """
    db = ctx.obj["db"]
    service = CoaService(db)

    if not service.seed_chart():
        click.echo("Chart of accounts already exists.")
        return

    submenu_count = sum(len(submenus) for _, _, _, submenus in DEFAULT_CHART)
    click.echo(f"Created {len(DEFAULT_CHART)} masters and {submenu_count} submenus.")


def register_commands(cli):
    """Register init-coa command with main CLI."""
    cli.add_command(init_coa)
