"""CSV import command."""

import click
from coopledger.cli.error_handling import handle_domain_error
from coopledger.domain.csv_import import CSVImportService
from coopledger.domain.errors import DomainError


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--account", "account_id", type=int, required=True, help="Asset account ID to import into")
@click.option("--all-or-nothing", is_flag=True, help="Import nothing if any row is invalid")
@click.pass_context
def import_csv(ctx, csv_file: str, account_id: int, all_or_nothing: bool):
    """Import uncategorized transactions from a CSV file.

    The file needs date and amount columns; description and type are
    optional. Without a type, negative amounts become withdrawals.
    """
    db = ctx.obj["db"]
    service = CSVImportService(db)

    try:
        result = service.import_csv(csv_file, account_id, all_or_nothing=all_or_nothing)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
