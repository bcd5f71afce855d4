"""Warehouse commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import (
    amount_or_exit,
    date_or_exit,
    handle_domain_error,
    quantity_or_exit,
)
from aidledger.domain.entities import MovementCategory, MovementType
from aidledger.domain.warehouse import WarehouseService
from aidledger.utils.date_parser import get_month_range


@click.group()
def warehouse_group():
    """Record warehouse movements and check stock."""
    pass


def _record(ctx, movement_type: str, category, description, item, quantity, value, date_str, in_branch):
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        movement_id = WarehouseService(ctx.obj["db"]).record_movement(
            ctx.obj["principal"],
            movement_type,
            category,
            description=description,
            item_name=item,
            quantity=quantity_or_exit(ctx, quantity),
            value=amount_or_exit(ctx, value),
            date=date_or_exit(ctx, date_str),
            branch_id=branch_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded {movement_type} movement {movement_id}")


_CATEGORIES = [c.value for c in MovementCategory]


@warehouse_group.command("in")
@click.option("--category", type=click.Choice(_CATEGORIES), default="product", show_default=True)
@click.option("--description", required=True)
@click.option("--item", help="Item name (product movements)")
@click.option("--quantity")
@click.option("--value", help="Cash value")
@click.option("--date", "date_str")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def inbound(ctx, category, description, item, quantity, value, date_str, in_branch):
    """Record goods or cash coming in.

    Examples:
        aidledger warehouse in --item "رز" --quantity 50 --description "Donation from market"
        aidledger warehouse in --category cash --value 200 --description "Box collection"
    """
    _record(ctx, "inbound", category, description, item, quantity, value, date_str, in_branch)


@warehouse_group.command("out")
@click.option("--category", type=click.Choice(_CATEGORIES), default="product", show_default=True)
@click.option("--description", required=True)
@click.option("--item", help="Item name (product movements)")
@click.option("--quantity")
@click.option("--value", help="Cash value")
@click.option("--date", "date_str")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def outbound(ctx, category, description, item, quantity, value, date_str, in_branch):
    """Record goods or cash going out. Goods may not exceed stock."""
    _record(ctx, "outbound", category, description, item, quantity, value, date_str, in_branch)


@warehouse_group.command("list")
@click.option("--type", "movement_type", type=click.Choice([t.value for t in MovementType]))
@click.option("--start-date")
@click.option("--end-date")
@click.option("--this-month", is_flag=True)
@click.option("--last-month", is_flag=True)
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_movements(ctx, movement_type, start_date, end_date, this_month, last_month, in_branch):
    """List movements, newest first."""
    if this_month and last_month:
        click.echo("Error: Use only one of --this-month and --last-month.", err=True)
        ctx.exit(1)
    if this_month or last_month:
        start, end = get_month_range("this-month" if this_month else "last-month")
    else:
        start, end = date_or_exit(ctx, start_date), date_or_exit(ctx, end_date)

    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        movements = WarehouseService(ctx.obj["db"]).list_movements(
            ctx.obj["principal"],
            branch_id=branch_id,
            movement_type=movement_type,
            start_date=start,
            end_date=end,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not movements:
        click.echo("No movements found.")
        return
    for m in movements:
        what = f"{m.item_name} x {m.quantity}" if m.category == MovementCategory.PRODUCT else f"{m.value:,.2f}"
        click.echo(f"ID: {m.id:4d} | {m.date} | {m.type.value:8s} | {what:20s} | {m.description}")


@warehouse_group.command("update")
@click.argument("movement_id", type=int)
@click.option("--type", "movement_type", type=click.Choice([t.value for t in MovementType]))
@click.option("--category", type=click.Choice(_CATEGORIES))
@click.option("--description")
@click.option("--item")
@click.option("--quantity")
@click.option("--value")
@click.option("--date", "date_str")
@click.pass_context
def update_movement(ctx, movement_id, movement_type, category, description, item, quantity, value, date_str):
    """Edit a movement."""
    try:
        WarehouseService(ctx.obj["db"]).update_movement(
            ctx.obj["principal"],
            movement_id,
            movement_type=movement_type,
            category=category,
            description=description,
            item_name=item,
            quantity=quantity_or_exit(ctx, quantity),
            value=amount_or_exit(ctx, value),
            date=date_or_exit(ctx, date_str),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated movement {movement_id}")


@warehouse_group.command("delete")
@click.argument("movement_id", type=int)
@click.pass_context
def delete_movement(ctx, movement_id: int):
    """Delete a movement."""
    try:
        WarehouseService(ctx.obj["db"]).delete_movement(ctx.obj["principal"], movement_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted movement {movement_id}")


@warehouse_group.command("stock")
@click.argument("item", required=False)
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def show_stock(ctx, item, in_branch):
    """Show stock of ITEM, or of every item in stock, plus cash on hand."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    service = WarehouseService(ctx.obj["db"])
    principal = ctx.obj["principal"]
    try:
        if item:
            click.echo(f"{item}: {service.stock(principal, item, branch_id=branch_id)}")
            return
        inventory = service.inventory(principal, branch_id=branch_id)
        cash = service.cash(principal, branch_id=branch_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not inventory:
        click.echo("No items in stock.")
    for name, quantity in inventory.items():
        click.echo(f"{name:25s} {quantity:>10}")
    click.echo(f"Cash on hand: {cash:,.2f}")


def register_commands(cli):
    """Register warehouse commands with main CLI."""
    cli.add_command(warehouse_group, name="warehouse")
