"""Product and product operation commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import (
    amount_or_exit,
    date_or_exit,
    handle_domain_error,
    quantity_or_exit,
)
from aidledger.domain.entities import OperationType, ProductStatus
from aidledger.domain.product import PRODUCT_CATEGORIES, ProductService


@click.group()
def product_group():
    """Manage products and their operations."""
    pass


@product_group.command("create")
@click.argument("name")
@click.option("--category", type=click.Choice(PRODUCT_CATEGORIES), default="raw", show_default=True)
@click.option("--unit", default="kg", show_default=True)
@click.option("--notes")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def create_product(ctx, name: str, category: str, unit: str, notes, in_branch):
    """Create a product with zero stock."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        product_id = ProductService(ctx.obj["db"]).create_product(
            ctx.obj["principal"], name=name, category=category, unit=unit, notes=notes, branch_id=branch_id
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created product '{name}' (ID: {product_id})")


@product_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in ProductStatus]))
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_products(ctx, status, in_branch):
    """List products with their totals."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        products = ProductService(ctx.obj["db"]).list_products(
            ctx.obj["principal"], branch_id=branch_id, status=status
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not products:
        click.echo("No products found.")
        return
    for p in products:
        click.echo(
            f"ID: {p.id:4d} | {p.name:20s} | {p.current_quantity:>10} {p.unit:4s} | "
            f"cost {p.total_cost:>10,.2f} | revenue {p.total_revenue:>10,.2f} | {p.status.value}"
        )


@product_group.command("show")
@click.argument("product_id", type=int)
@click.pass_context
def show_product(ctx, product_id: int):
    """Show a product and its operation log."""
    service = ProductService(ctx.obj["db"])
    try:
        product = service.get_product(ctx.obj["principal"], product_id)
        operations = service.list_operations(ctx.obj["principal"], product_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Product {product.id}: {product.name} ({product.category}, {product.status.value})")
    click.echo(f"  Quantity:   {product.current_quantity} {product.unit}")
    click.echo(f"  Cost:       {product.total_cost:,.2f}")
    click.echo(f"  Revenue:    {product.total_revenue:,.2f}")
    click.echo(f"  Net profit: {product.net_profit:,.2f}")
    if operations:
        click.echo("  Operations:")
        for op in operations:
            click.echo(
                f"    #{op.id} {op.date} {op.type.value:9s} qty {op.quantity} "
                f"{op.amount_type.value} {op.amount:,.2f} - {op.description}"
            )


@product_group.command("update")
@click.argument("product_id", type=int)
@click.option("--name")
@click.option("--category", type=click.Choice(PRODUCT_CATEGORIES))
@click.option("--unit")
@click.option("--notes")
@click.pass_context
def update_product(ctx, product_id: int, name, category, unit, notes):
    """Edit a product's descriptive fields."""
    try:
        ProductService(ctx.obj["db"]).update_product(
            ctx.obj["principal"], product_id, name=name, category=category, unit=unit, notes=notes
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated product {product_id}")


@product_group.command("archive")
@click.argument("product_id", type=int)
@click.option("--undo", is_flag=True, help="Unarchive instead")
@click.pass_context
def archive_product(ctx, product_id: int, undo: bool):
    """Archive (or unarchive) a product."""
    service = ProductService(ctx.obj["db"])
    try:
        if undo:
            service.unarchive_product(ctx.obj["principal"], product_id)
        else:
            service.archive_product(ctx.obj["principal"], product_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Product {product_id} {'unarchived' if undo else 'archived'}")


@product_group.command("delete")
@click.argument("product_id", type=int)
@click.pass_context
def delete_product(ctx, product_id: int):
    """Delete a product."""
    try:
        ProductService(ctx.obj["db"]).delete_product(ctx.obj["principal"], product_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted product {product_id}")


@product_group.command("op")
@click.argument("product_id", type=int)
@click.argument("op_type", metavar="TYPE", type=click.Choice([t.value for t in OperationType]))
@click.option("--description", required=True)
@click.option("--quantity", default="0")
@click.option("--amount", default="0")
@click.option("--date", "date_str", help="Operation date (default: today)")
@click.option("--target", "target_product_id", type=int, help="Product receiving a transform")
@click.option("--target-quantity", default="0", help="Quantity the target receives")
@click.pass_context
def apply_operation(ctx, product_id, op_type, description, quantity, amount, date_str, target_product_id, target_quantity):
    """Record an operation on a product.

    Examples:
        aidledger product op 1 purchase --description "Olives" --quantity 100 --amount 250
        aidledger product op 1 sale --description "Market" --quantity 20 --amount 90
        aidledger product op 1 transform --description "Pressing" --quantity 50 --target 2 --target-quantity 8
    """
    try:
        operation = ProductService(ctx.obj["db"]).apply_operation(
            ctx.obj["principal"],
            product_id,
            op_type,
            description=description,
            quantity=quantity_or_exit(ctx, quantity),
            amount=amount_or_exit(ctx, amount),
            date=date_or_exit(ctx, date_str),
            target_product_id=target_product_id,
            target_quantity=quantity_or_exit(ctx, target_quantity),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded {op_type} operation {operation.id} on product {product_id}")


@product_group.command("amend")
@click.argument("operation_id", type=int)
@click.option("--description")
@click.option("--quantity")
@click.option("--amount")
@click.option("--target-quantity")
@click.option("--date", "date_str")
@click.pass_context
def amend_operation(ctx, operation_id: int, description, quantity, amount, target_quantity, date_str):
    """Edit an operation; only the difference is applied."""
    try:
        ProductService(ctx.obj["db"]).amend_operation(
            ctx.obj["principal"],
            operation_id,
            description=description,
            quantity=quantity_or_exit(ctx, quantity),
            amount=amount_or_exit(ctx, amount),
            target_quantity=quantity_or_exit(ctx, target_quantity),
            date=date_or_exit(ctx, date_str),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Amended operation {operation_id}")


@product_group.command("reverse")
@click.argument("operation_id", type=int)
@click.pass_context
def reverse_operation(ctx, operation_id: int):
    """Delete an operation and undo its effect."""
    try:
        ProductService(ctx.obj["db"]).reverse_operation(ctx.obj["principal"], operation_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reversed operation {operation_id}")


def register_commands(cli):
    """Register product commands with main CLI."""
    cli.add_command(product_group, name="product")
