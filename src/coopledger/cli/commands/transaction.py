"""Transaction management commands."""

import click
from coopledger.cli.error_handling import handle_domain_error
from coopledger.cli.formatting import format_money
from coopledger.domain.entities import Category, CategoryType, SplitLine
from coopledger.domain.errors import DomainError
from coopledger.domain.transaction import TransactionService
from coopledger.utils.amount_parser import parse_amount
from coopledger.utils.date_parser import parse_date

TYPE_CHOICES = click.Choice(["Deposit", "Withdrawal"], case_sensitive=False)


def parse_category(value: str) -> Category:
    """Parse ``account:12``, ``submenu:3`` or ``master:1``; a bare id is an account.

    Raises:
        ValueError: If the value is malformed
    """
    kind, sep, raw_id = value.strip().partition(":")
    if not sep:
        kind, raw_id = CategoryType.ACCOUNT.value, kind
    try:
        return Category(CategoryType(kind.strip().lower()), int(raw_id))
    except ValueError:
        raise ValueError(f"Invalid category '{value}'. Use account:<id>, submenu:<id> or master:<id>") from None


def parse_split(value: str) -> SplitLine:
    """Parse ``AMOUNT=CATEGORY[=DESCRIPTION]``, e.g. ``300000=account:12=Rent``."""
    parts = value.split("=", 2)
    if len(parts) < 2:
        raise ValueError(f"Invalid split '{value}'. Use AMOUNT=CATEGORY[=DESCRIPTION]")
    amount = abs(parse_amount(parts[0]))
    description = parts[2] if len(parts) == 3 else ""
    return SplitLine(amount=amount, category=parse_category(parts[1]), description=description)


def _parse_inputs(ctx, date_text, amount_text, category_text, split_texts):
    """Parse date, amount, category and split options, exiting on bad input."""
    parsed = {}
    try:
        if date_text is not None:
            parsed["transaction_date"] = parse_date(date_text)
        if amount_text is not None:
            parsed["amount"] = abs(parse_amount(amount_text))
        if category_text is not None:
            parsed["category"] = parse_category(category_text) if category_text else None
        if split_texts:
            parsed["splits"] = [parse_split(text) for text in split_texts]
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    return parsed


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", "account_id", type=int, required=True, help="Asset account ID")
@click.option("--type", "transaction_type", type=TYPE_CHOICES, required=True, help="Deposit or Withdrawal")
@click.option("--amount", required=True, help="Transaction amount (e.g., 1500000 or 'Rp 1.500.000')")
@click.option("--date", "date_text", default="today", show_default=True, help="Transaction date")
@click.option("--description", default="", help="Transaction description")
@click.option("--category", help="Category: account:<id>, submenu:<id> or master:<id>")
@click.option("--split", "splits", multiple=True, help="Split row AMOUNT=CATEGORY[=DESCRIPTION] (repeatable)")
@click.option("--customer", help="Customer ID")
@click.option("--vendor", help="Vendor name")
@click.option("--notes", default="", help="Notes")
@click.option("--sender", default="", help="Sender name")
@click.pass_context
def add_transaction(
    ctx,
    account_id: int,
    transaction_type: str,
    amount: str,
    date_text: str,
    description: str,
    category: str | None,
    splits: tuple[str, ...],
    customer: str | None,
    vendor: str | None,
    notes: str,
    sender: str,
):
    """Record a deposit or withdrawal.

    Examples:
        coopledger transaction add --account 1 --type Deposit --amount 1000000 --category account:3
        coopledger transaction add --account 1 --type Withdrawal --amount 500000 \\
            --split 300000=account:7=Rent --split 200000=account:8
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    parsed = _parse_inputs(ctx, date_text, amount, category, splits)

    try:
        transaction_id = service.record_transaction(
            account_id=account_id,
            transaction_type=transaction_type,
            amount=parsed["amount"],
            transaction_date=parsed["transaction_date"],
            description=description,
            category=parsed.get("category"),
            splits=parsed.get("splits"),
            customer_id=customer,
            vendor_id=vendor,
            notes=notes,
            sender_name=sender,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created transaction {transaction_id}")


@transaction_group.command("list")
@click.option("--account", "account_id", type=int, help="Only transactions of this account")
@click.option("--verbose", "-v", is_flag=True, help="Show split rows and notes")
@click.pass_context
def list_transactions(ctx, account_id: int | None, verbose: bool):
    """List transactions, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    views = service.list_transactions(account_id=account_id)
    if not views:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(views)} transaction(s):")
    click.echo("-" * 110)
    click.echo(f"{'ID':<6} {'Date':<12} {'Type':<11} {'Amount':>20} {'Account':<20} {'Category':<20} {'Description'}")
    click.echo("-" * 110)
    for view in views:
        txn = view.transaction
        flags = ("R" if view.is_reconciled else " ") + ("*" if txn.reviewed else " ")
        click.echo(
            f"{txn.id:<6} {str(txn.transaction_date):<12} {txn.transaction_type.value:<11} "
            f"{format_money(txn.amount):>20} {view.account_name[:20]:<20} {view.category_name[:20]:<20} "
            f"{flags} {(txn.description or '')[:30]}"
        )
        if verbose:
            for split in view.splits:
                click.echo(f"{'':<31}{format_money(split.split.amount):>20}   -> {split.category_name} {split.split.description}")
            if txn.notes:
                click.echo(f"{'':<31}Notes: {txn.notes}")


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction with its splits."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        view = service.get_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    txn = view.transaction
    click.echo(f"\nTransaction ID: {txn.id}")
    click.echo(f"  Date: {txn.transaction_date}")
    click.echo(f"  Type: {txn.transaction_type.value}")
    click.echo(f"  Amount: {format_money(txn.amount)}")
    click.echo(f"  Account: {view.account_name} (ID: {txn.account_id})")
    click.echo(f"  Category: {view.category_name}")
    if txn.description:
        click.echo(f"  Description: {txn.description}")
    if txn.customer_id:
        click.echo(f"  Customer: {txn.customer_id}")
    if txn.vendor_id:
        click.echo(f"  Vendor: {txn.vendor_id}")
    if txn.notes:
        click.echo(f"  Notes: {txn.notes}")
    click.echo(f"  Reviewed: {'yes' if txn.reviewed else 'no'}")
    click.echo(f"  Reconciled: {'yes' if view.is_reconciled else 'no'}")
    if view.splits:
        click.echo("  Splits:")
        for split in view.splits:
            line = f"    {format_money(split.split.amount)} -> {split.category_name}"
            if split.split.description:
                line += f" ({split.split.description})"
            click.echo(line)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", "account_id", type=int, help="New Asset account ID")
@click.option("--type", "transaction_type", type=TYPE_CHOICES, help="Deposit or Withdrawal")
@click.option("--amount", help="New amount")
@click.option("--date", "date_text", help="New date")
@click.option("--description", help="New description")
@click.option("--category", help="New category, or empty string to clear")
@click.option("--split", "splits", multiple=True, help="Replace split rows AMOUNT=CATEGORY[=DESCRIPTION]")
@click.option("--notes", help="New notes")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    account_id: int | None,
    transaction_type: str | None,
    amount: str | None,
    date_text: str | None,
    description: str | None,
    category: str | None,
    splits: tuple[str, ...],
    notes: str | None,
):
    """Update a transaction.

    Only the given fields change. Without --category or --split the current
    categorization is kept.
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    parsed = _parse_inputs(ctx, date_text, amount, category, splits)

    try:
        if category is None and not splits:
            current = service.get_transaction(transaction_id)
            parsed["category"] = current.transaction.category
            parsed["splits"] = [
                SplitLine(s.split.amount, s.split.category, s.split.description) for s in current.splits
            ]
        service.update_transaction(
            transaction_id,
            account_id=account_id,
            transaction_type=transaction_type,
            description=description,
            notes=notes,
            **parsed,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction and reverse its balance effect."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("review")
@click.argument("transaction_id", type=int)
@click.pass_context
def review_transaction(ctx, transaction_id: int) -> None:
    """Toggle the reviewed flag of a transaction."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        reviewed = service.toggle_reviewed(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Transaction {transaction_id} marked as {'reviewed' if reviewed else 'not reviewed'}")


@transaction_group.command("recompute")
@click.option("--account", "account_id", type=int, help="Only this account")
@click.pass_context
def recompute_balances(ctx, account_id: int | None) -> None:
    """Rebuild cached account balances from the ledger."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        if account_id is not None:
            balances = {account_id: service.recompute_balance(account_id)}
        else:
            balances = service.recompute_all_balances()
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    for recomputed_id, balance in balances.items():
        click.echo(f"Account {recomputed_id}: {format_money(balance)}")
    click.echo(f"Recomputed {len(balances)} account balance(s).")


@transaction_group.command("check-splits")
@click.pass_context
def check_splits(ctx) -> None:
    """List split transactions whose splits do not add up to the amount."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    issues = service.find_unallocated_splits()
    if not issues:
        click.echo("All split transactions are fully allocated.")
        return

    click.echo(f"\n{len(issues)} split transaction(s) not fully allocated:")
    click.echo("-" * 100)
    for issue in issues:
        click.echo(
            f"{issue['id']:<6} {str(issue['transaction_date']):<12} {issue['account_name'][:20]:<20} "
            f"amount {format_money(issue['transaction_amount'])} | "
            f"split {format_money(issue['total_split_amount'])} | "
            f"remaining {format_money(issue['remaining_unallocated'])}"
        )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
