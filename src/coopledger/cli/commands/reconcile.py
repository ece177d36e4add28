"""Bank reconciliation commands."""

import click
from coopledger.cli.error_handling import handle_domain_error
from coopledger.cli.formatting import format_money
from coopledger.domain.errors import DomainError
from coopledger.domain.reconciliation import MatchSummary, ReconciliationDetail, ReconciliationService
from coopledger.utils.amount_parser import parse_amount
from coopledger.utils.date_parser import parse_date


def _parse_balance_or_exit(ctx, value: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid closing balance: {e}", err=True)
        ctx.exit(1)


def _echo_summary(summary: MatchSummary) -> None:
    click.echo(f"  Matched balance: {format_money(summary.matched_balance)}")
    click.echo(f"  Difference: {format_money(summary.difference)}")
    click.echo(f"  Unmatched transactions: {summary.unmatched_count}")


def _echo_detail(detail: ReconciliationDetail) -> None:
    rec = detail.reconciliation
    account_name = detail.account.name if detail.account else f"Account {rec.account_id}"
    click.echo(f"\nReconciliation {rec.id}: {account_name} ({rec.status.value})")
    click.echo(f"  Statement end date: {rec.statement_end_date}")
    click.echo(f"  Starting balance: {format_money(rec.starting_balance)}")
    click.echo(f"  Closing balance: {format_money(rec.closing_balance)}")
    click.echo(f"  Matched balance: {format_money(detail.matched_balance)}")
    click.echo(f"  Difference: {format_money(rec.difference)}")
    if rec.reconciled_on:
        click.echo(f"  Reconciled on: {rec.reconciled_on}")
    click.echo("-" * 90)
    for line in detail.transactions:
        txn = line.transaction
        mark = "[x]" if line.is_matched else "[ ]"
        click.echo(
            f"{mark} {txn.id:<6} {str(txn.transaction_date):<12} {txn.transaction_type.value:<11} "
            f"{format_money(txn.amount):>20}  {(txn.description or '')[:30]}"
        )
    if not detail.transactions:
        click.echo("No transactions.")


@click.group()
def reconcile_group():
    """Reconcile accounts against bank statements."""
    pass


@reconcile_group.command("status")
@click.argument("account_id", type=int)
@click.pass_context
def reconciliation_status(ctx, account_id: int):
    """Show the active reconciliation and history of an account."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        state = service.get_state(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\n{state.account.name}")
    click.echo(f"  Starting balance for next reconciliation: {format_money(state.starting_balance)}")
    if state.active:
        click.echo(
            f"  In progress: reconciliation {state.active.id} "
            f"(statement end {state.active.statement_end_date}, difference {format_money(state.active.difference)})"
        )
    if not state.history:
        click.echo("  No completed reconciliations.")
        return
    click.echo("  Completed:")
    for rec in state.history:
        click.echo(
            f"    {rec.id:<5} {str(rec.statement_end_date):<12} closing {format_money(rec.closing_balance)}"
            f" | reconciled on {rec.reconciled_on}"
        )


@reconcile_group.command("start")
@click.argument("account_id", type=int)
@click.option("--statement-date", required=True, help="Statement end date")
@click.option("--closing-balance", required=True, help="Closing balance on the statement")
@click.pass_context
def start_reconciliation(ctx, account_id: int, statement_date: str, closing_balance: str):
    """Start reconciling an account up to a statement end date."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        end_date = parse_date(statement_date)
    except ValueError as e:
        click.echo(f"Error: Invalid statement date: {e}", err=True)
        ctx.exit(1)
        return
    balance = _parse_balance_or_exit(ctx, closing_balance)

    try:
        reconciliation_id = service.start(account_id, end_date, balance)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Started reconciliation {reconciliation_id}")


@reconcile_group.command("show")
@click.argument("reconciliation_id", type=int)
@click.pass_context
def show_reconciliation(ctx, reconciliation_id: int):
    """Show a reconciliation with every transaction and its match state."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        detail = service.process(reconciliation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _echo_detail(detail)
    click.echo(f"Unmatched transactions: {detail.unmatched_count}")


@reconcile_group.command("match")
@click.argument("reconciliation_id", type=int)
@click.argument("transaction_ids", type=int, nargs=-1, required=True)
@click.pass_context
def toggle_match(ctx, reconciliation_id: int, transaction_ids: tuple[int, ...]):
    """Toggle the matched state of one or more transactions."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    summary = None
    try:
        for transaction_id in transaction_ids:
            summary = service.toggle_match(reconciliation_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Toggled {len(transaction_ids)} transaction(s)")
    _echo_summary(summary)


@reconcile_group.command("remove")
@click.argument("reconciliation_id", type=int)
@click.argument("transaction_ids", type=int, nargs=-1, required=True)
@click.pass_context
def remove_items(ctx, reconciliation_id: int, transaction_ids: tuple[int, ...]):
    """Remove transactions from a reconciliation."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        summary = service.remove_items(reconciliation_id, list(transaction_ids))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Removed {len(transaction_ids)} transaction(s)")
    _echo_summary(summary)


@reconcile_group.command("set-closing")
@click.argument("reconciliation_id", type=int)
@click.argument("closing_balance")
@click.pass_context
def set_closing_balance(ctx, reconciliation_id: int, closing_balance: str):
    """Change the statement closing balance."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)
    balance = _parse_balance_or_exit(ctx, closing_balance)

    try:
        summary = service.update_closing_balance(reconciliation_id, balance)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo("Closing balance updated")
    _echo_summary(summary)


@reconcile_group.command("complete")
@click.argument("reconciliation_id", type=int)
@click.pass_context
def complete_reconciliation(ctx, reconciliation_id: int):
    """Complete a reconciliation whose difference is zero."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        reconciliation = service.complete(reconciliation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Reconciliation {reconciliation.id} completed on {reconciliation.reconciled_on}")


@reconcile_group.command("cancel")
@click.argument("reconciliation_id", type=int)
@click.pass_context
def cancel_reconciliation(ctx, reconciliation_id: int):
    """Cancel an in-progress reconciliation."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        service.cancel(reconciliation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Reconciliation {reconciliation_id} cancelled")


@reconcile_group.command("view")
@click.argument("reconciliation_id", type=int)
@click.pass_context
def view_reconciliation(ctx, reconciliation_id: int):
    """Show the matched transactions of a reconciliation."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        detail = service.view(reconciliation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _echo_detail(detail)


def register_commands(cli):
    """Register reconcile commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
