"""Chart of accounts commands."""

import click
from coopledger.cli.error_handling import handle_domain_error
from coopledger.cli.formatting import format_money
from coopledger.domain.coa import CoaService
from coopledger.domain.entities import MasterName
from coopledger.domain.errors import DomainError

MASTER_CHOICES = click.Choice([m.value for m in MasterName], case_sensitive=False)


def _master_value(value: str) -> str:
    for master in MasterName:
        if master.value.lower() == value.lower():
            return master.value
    return value


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("submenu_id", type=int)
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--code", help="Account code (generated from the master's range if omitted)")
@click.option("--currency", help="Currency label (defaults to Rp)")
@click.option("--description", help="Account description")
@click.pass_context
def create_account(ctx, submenu_id: int, name: str, code: str | None, currency: str | None, description: str | None):
    """Create a new account under a submenu.

    Examples:
        coopledger account create 1 "Bank BCA"
        coopledger account create 6 "Office Rent" --code 5105
    """
    db = ctx.obj["db"]
    service = CoaService(db)

    try:
        account_id = service.create_account(
            submenu_id=submenu_id, name=name, code=code, currency=currency, description=description
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    account = service.get_account(account_id)
    click.echo(f"Created account '{account.name}' (ID: {account_id}, code: {account.code})")


@account_group.command("list")
@click.option("--type", "master_type", type=MASTER_CHOICES, default="Assets", show_default=True, help="Master type")
@click.pass_context
def list_accounts(ctx, master_type: str):
    """List active accounts of one master, grouped by submenu."""
    db = ctx.obj["db"]
    service = CoaService(db)

    listing = service.list_accounts_by_type(_master_value(master_type))
    counts = " | ".join(f"{t}: {listing['account_counts'][t]}" for t in listing["account_types"])
    click.echo(f"\n{listing['current_type']} ({counts})")

    if not listing["accounts_by_submenu"]:
        click.echo("No submenus found. Run 'coopledger init-coa' first.")
        return

    click.echo("-" * 72)
    for submenu_name, group in listing["accounts_by_submenu"].items():
        click.echo(f"{submenu_name} (submenu ID: {group['submenu_id']})")
        if not group["accounts"]:
            click.echo("    (no accounts)")
        for acc in group["accounts"]:
            click.echo(
                f"    ID: {acc.id:3d} | {acc.code or '':>6s} | {acc.name:28s} | "
                f"{format_money(acc.balance, acc.currency)}"
            )


@account_group.command("show")
@click.argument("account_id", type=int)
@click.pass_context
def show_account(ctx, account_id: int):
    """Show an account with its submenu and master."""
    db = ctx.obj["db"]
    service = CoaService(db)

    try:
        detail = service.get_account_detail(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    acc = detail.account
    click.echo(f"\nAccount {acc.id}: {acc.name}")
    click.echo(f"  Code: {acc.code or '-'}")
    click.echo(f"  Under: {detail.master_name.value} > {detail.submenu_name}")
    click.echo(f"  Currency: {acc.currency}")
    click.echo(f"  Balance: {format_money(acc.balance, acc.currency)}")
    if acc.last_transaction:
        click.echo(f"  Last transaction: {acc.last_transaction}")
    if acc.description:
        click.echo(f"  Description: {acc.description}")
    if not acc.is_active:
        click.echo("  Status: inactive")


@account_group.command("update")
@click.argument("account_id", type=int)
@click.option("--name", help="New account name")
@click.option("--code", help="New account code")
@click.option("--currency", help="New currency label")
@click.option("--description", help="New description")
@click.pass_context
def update_account(
    ctx, account_id: int, name: str | None, code: str | None, currency: str | None, description: str | None
):
    """Update account fields; omitted options keep their value."""
    db = ctx.obj["db"]
    service = CoaService(db)

    try:
        service.update_account(account_id, name=name, code=code, currency=currency, description=description)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated account {account_id}")


@account_group.command("delete")
@click.argument("account_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account_id: int, yes: bool):
    """Deactivate an account; its transactions stay in the ledger."""
    db = ctx.obj["db"]
    service = CoaService(db)

    account = service.get_account(account_id)
    if account is None:
        click.echo(f"Error: Account {account_id} not found", err=True)
        ctx.exit(1)
        return

    if not yes and not click.confirm(f"Are you sure you want to delete account '{account.name}' (ID: {account_id})?"):
        click.echo("Deletion cancelled.")
        return

    service.delete_account(account_id)
    click.echo(f"Deleted account '{account.name}'")


@account_group.command("submenus")
@click.argument("master_type", type=MASTER_CHOICES)
@click.pass_context
def list_submenus(ctx, master_type: str):
    """List the submenus of a master in display order."""
    db = ctx.obj["db"]
    service = CoaService(db)

    try:
        submenus = service.list_submenus(_master_value(master_type))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not submenus:
        click.echo("No submenus found.")
        return
    for submenu in submenus:
        click.echo(f"ID: {submenu.id:3d} | {submenu.code or '':>6s} | {submenu.name}")


@account_group.command("add-submenu")
@click.argument("master_type", type=MASTER_CHOICES)
@click.argument("name", metavar="SUBMENU_NAME")
@click.option("--code", help="Submenu code")
@click.option("--description", default="", help="Submenu description")
@click.pass_context
def add_submenu(ctx, master_type: str, name: str, code: str | None, description: str):
    """Add a submenu to a master."""
    db = ctx.obj["db"]
    service = CoaService(db)

    try:
        submenu_id = service.create_submenu(_master_value(master_type), name, code=code, description=description)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created submenu '{name}' (ID: {submenu_id})")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
