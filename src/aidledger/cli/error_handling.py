"""CLI error handling helpers."""

from datetime import date
from decimal import Decimal

import click

from aidledger.domain.errors import DomainError
from aidledger.utils.amount_parser import parse_amount, parse_quantity
from aidledger.utils.date_parser import parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def amount_or_exit(ctx: click.Context, value: str | None) -> Decimal | None:
    """Parse an optional money option, exiting on bad input."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def quantity_or_exit(ctx: click.Context, value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return parse_quantity(value)
    except ValueError as e:
        click.echo(f"Error: Invalid quantity format: {e}", err=True)
        ctx.exit(1)


def date_or_exit(ctx: click.Context, value: str | None) -> date | None:
    """Parse an optional date option, exiting on bad input."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
