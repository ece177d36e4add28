"""Financial report commands."""

from datetime import date

import click
from coopledger.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from coopledger.cli.formatting import format_money
from coopledger.domain.balance_sheet import BalanceSheetService
from coopledger.domain.general_ledger import GeneralLedgerService
from coopledger.domain.profit_loss import COMPARE_PERIODS, ProfitLossService
from coopledger.domain.report_export import (
    balance_sheet_rows,
    general_ledger_rows,
    profit_loss_rows,
    write_csv,
)
from coopledger.utils.date_parser import parse_date


def _export(payload, rows_builder, csv_path: str | None) -> None:
    if csv_path:
        path = write_csv(csv_path, rows_builder(payload))
        click.echo(f"\nWrote {path}")


def _echo_section(title: str, section: dict, total_label: str) -> None:
    click.echo(f"\n{title}")
    for row in section["accounts"]:
        click.echo(f"  {row['account_name'][:40]:<40} {format_money(row['total'], row['currency']):>22}")
    click.echo(f"  {total_label:<40} {format_money(section['total']):>22}")


@click.group()
def report_group():
    """Build financial reports."""
    pass


@report_group.command("profit-loss")
@click.option("--start-date", help="Start date (defaults to January 1 of this year)")
@click.option("--end-date", help="End date (defaults to today)")
@period_options
@click.option("--compare", type=click.Choice(COMPARE_PERIODS), help="Add a comparison period")
@click.option("--compare-start", help="Comparison start date (custom comparison)")
@click.option("--compare-end", help="Comparison end date (custom comparison)")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False), help="Also write the report to a CSV file")
@click.pass_context
def profit_loss(ctx, start_date, end_date, compare, compare_start, compare_end, csv_path, **period_kwargs):
    """Profit & Loss for a period.

    Examples:
        coopledger report profit-loss --this-year
        coopledger report profit-loss --start-date 2024-01-01 --end-date 2024-03-31 --compare previous_year
    """
    db = ctx.obj["db"]
    service = ProfitLossService(db)
    today = date.today()
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
        default_range=(date(today.year, 1, 1), today),
    )

    payload = service.build_payload(
        {
            "start_date": start,
            "end_date": end,
            "compare_enabled": compare is not None,
            "compare_period": compare or "custom",
            "compare_start_date": compare_start or "",
            "compare_end_date": compare_end or "",
        },
        today=today,
    )
    data = payload["report_data"]

    click.echo(f"\nProfit & Loss: {payload['start_date']} to {payload['end_date']}")
    click.echo("=" * 66)
    _echo_section("INCOME", data["income"], "Total Income")
    _echo_section("COST OF GOODS SOLD", data["cogs"], "Total Cost of Goods Sold")
    click.echo(f"\n{'Gross Profit':<42} {format_money(data['gross_profit']):>22} ({data['gross_profit_percentage']:.1f}%)")
    _echo_section("OPERATING EXPENSES", data["operating_expenses"], "Total Operating Expenses")
    click.echo("=" * 66)
    click.echo(f"{'Net Profit':<42} {format_money(data['net_profit']):>22} ({data['net_profit_percentage']:.1f}%)")

    if payload["comparison_data"] is not None:
        dates = payload["comparison_dates"]
        compared = payload["comparison_data"]
        click.echo(f"\nCompared with {dates['start']} to {dates['end']}:")
        click.echo(f"  {'Total Income':<40} {format_money(compared['total_income']):>22}")
        click.echo(f"  {'Gross Profit':<40} {format_money(compared['gross_profit']):>22}")
        click.echo(f"  {'Net Profit':<40} {format_money(compared['net_profit']):>22}")

    _export(payload, profit_loss_rows, csv_path)


@report_group.command("balance-sheet")
@click.option("--as-of", "as_of", help="Report date (defaults to today)")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False), help="Also write the report to a CSV file")
@click.pass_context
def balance_sheet(ctx, as_of: str | None, csv_path: str | None):
    """Balance Sheet as of a date."""
    db = ctx.obj["db"]
    service = BalanceSheetService(db)

    as_of_date = None
    if as_of:
        try:
            as_of_date = parse_date(as_of)
        except ValueError as e:
            click.echo(f"Error: Invalid date: {e}", err=True)
            ctx.exit(1)
            return

    payload = service.build_payload({"as_of_date": as_of_date})
    data = payload["report_data"]

    click.echo(f"\nBalance Sheet as of {payload['as_of_date']}")
    for title, section, total_key in (
        ("ASSETS", data["assets"], "total_assets"),
        ("LIABILITIES", data["liabilities"], "total_liabilities"),
        ("EQUITY", data["equity"], "total_equity"),
    ):
        click.echo("=" * 66)
        click.echo(title)
        for category_name, category in section["categories"].items():
            click.echo(f"  {category_name}")
            for row in category["accounts"]:
                if row["balance"] != 0:
                    click.echo(f"    {row['account_name'][:38]:<38} {format_money(row['balance']):>22}")
            click.echo(f"  {'Total ' + category_name:<40} {format_money(category['total']):>22}")
        click.echo(f"{'Total ' + title.title():<42} {format_money(data[total_key]):>22}")

    click.echo("=" * 66)
    click.echo(f"{'Total Liabilities + Equity':<42} {format_money(data['total_liabilities_equity']):>22}")
    if not data["is_balanced"]:
        click.echo("Warning: assets do not equal liabilities plus equity.", err=True)

    _export(payload, balance_sheet_rows, csv_path)


@report_group.command("ledger")
@click.option("--start-date", help="Start date (defaults to January 1 of this year)")
@click.option("--end-date", help="End date (defaults to December 31 of this year)")
@period_options
@click.option(
    "--accounts",
    "account_filter",
    default="all",
    show_default=True,
    help="all, master_<id>, submenu_<id> or account_<id>",
)
@click.option("--contact", "contact_filter", default="all", show_default=True, help="all, customer_<id> or vendor_<name>")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False), help="Also write the report to a CSV file")
@click.pass_context
def general_ledger(ctx, start_date, end_date, account_filter, contact_filter, csv_path, **period_kwargs):
    """General ledger with running balances per account."""
    db = ctx.obj["db"]
    service = GeneralLedgerService(db)
    today = date.today()
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
        default_range=(date(today.year, 1, 1), date(today.year, 12, 31)),
    )

    payload = service.build_payload(
        {"start_date": start, "end_date": end, "account_filter": account_filter, "contact_filter": contact_filter},
        today=today,
    )

    click.echo(f"\nAccount Transactions: {payload['start_date']} to {payload['end_date']}")
    if not payload["report_data"]:
        click.echo("No transactions found.")
    for ledger in payload["report_data"]:
        click.echo("=" * 100)
        click.echo(f"{ledger['account_name']} ({ledger['master_name']} > {ledger['submenu_name']})")
        click.echo(f"{'Date':<12} {'Description':<34} {'Debit':>16} {'Credit':>16} {'Balance':>18}")
        click.echo(f"{'':<12} {'Starting Balance':<34} {'':>16} {'':>16} {ledger['starting_balance']:>18,.2f}")
        for row in ledger["transactions"]:
            debit = f"{row['debit']:,.2f}" if row["debit"] > 0 else ""
            credit = f"{row['credit']:,.2f}" if row["credit"] > 0 else ""
            click.echo(
                f"{row['date']:<12} {row['description'][:34]:<34} {debit:>16} {credit:>16} {row['balance']:>18,.2f}"
            )
        click.echo(
            f"{'':<12} {'Totals and Ending Balance':<34} {ledger['total_debit']:>16,.2f} "
            f"{ledger['total_credit']:>16,.2f} {ledger['ending_balance']:>18,.2f}"
        )

    _export(payload, general_ledger_rows, csv_path)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
