"""CLI helpers for date range resolution."""

from datetime import date

import click

from coopledger.utils.date_parser import PERIODS, get_date_range, parse_date


def period_options(func):
    """Attach one ``--<period>`` flag per named period."""
    for period in reversed(PERIODS):
        func = click.option(
            f"--{period}",
            f"period_{period.replace('-', '_')}",
            is_flag=True,
            help=f"Limit to {period.replace('-', ' ')}",
        )(func)
    return func


def period_flags_from(kwargs: dict) -> dict[str, bool]:
    """Pop the period flags added by ``period_options`` into a period -> flag map."""
    return {period: kwargs.pop(f"period_{period.replace('-', '_')}", False) for period in PERIODS}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)
    flag_names = ", ".join(f"--{period}" for period in PERIODS)

    if period_count > 1:
        click.echo(f"Error: Only one period option ({flag_names}) can be specified at a time.", err=True)
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                break
    else:
        if start_date:
            try:
                start = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if default_range is not None:
            start = start or default_range[0]
            end = end or default_range[1]

    return start, end
