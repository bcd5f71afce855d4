"""Treasury commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import amount_or_exit, date_or_exit, handle_domain_error
from aidledger.domain.treasury import TreasuryService


@click.group()
def treasury_group():
    """Record income and expenses."""
    pass


def _record(ctx, kind: str, amount, description, date_str, category, reference, donor, in_branch, notebook=None):
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        txn_id = TreasuryService(ctx.obj["db"]).create_transaction(
            ctx.obj["principal"],
            kind,
            amount=amount_or_exit(ctx, amount),
            description=description,
            transaction_date=date_or_exit(ctx, date_str),
            category=category,
            reference=reference,
            donor=donor,
            branch_id=branch_id,
            notebook=notebook,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded {kind} {txn_id}")


@treasury_group.command("income")
@click.option("--amount", required=True)
@click.option("--description", required=True)
@click.option("--donor", help="Donor name or ID (created if the name is new)")
@click.option("--notebook", help="Notebook name or ID in the target branch (created if the name is new)")
@click.option("--date", "date_str")
@click.option("--category", default="general", show_default=True)
@click.option("--reference")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def income(ctx, amount, description, donor, notebook, date_str, category, reference, in_branch):
    """Record an income, crediting the donor if one is given.

    Examples:
        aidledger treasury income --amount 500 --description "Ramadan" --donor "Abu Omar"
    """
    _record(ctx, "income", amount, description, date_str, category, reference, donor, in_branch, notebook)


@treasury_group.command("expense")
@click.option("--amount", required=True)
@click.option("--description", required=True)
@click.option("--date", "date_str")
@click.option("--category", default="general", show_default=True)
@click.option("--reference")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def expense(ctx, amount, description, date_str, category, reference, in_branch):
    """Record an expense."""
    _record(ctx, "expense", amount, description, date_str, category, reference, None, in_branch)


@treasury_group.command("list")
@click.option("--limit", type=int)
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_transactions(ctx, limit, in_branch):
    """List transactions and the balance."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    service = TreasuryService(ctx.obj["db"])
    try:
        transactions = service.list_transactions(ctx.obj["principal"], branch_id=branch_id, limit=limit)
        totals = service.totals(ctx.obj["principal"], branch_id=branch_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    for t in transactions:
        sign = "+" if t.type.value == "income" else "-"
        donor = f" [{t.donor_name_snapshot}]" if t.donor_name_snapshot else ""
        if t.notebook_name_snapshot:
            donor += f" ({t.notebook_name_snapshot})"
        click.echo(f"ID: {t.id:4d} | {t.transaction_date} | {sign}{t.amount:>10,.2f} | {t.description}{donor}")
    click.echo("-" * 60)
    click.echo(f"Income:  {totals.income_total:>12,.2f}")
    click.echo(f"Expense: {totals.expense_total:>12,.2f}")
    click.echo(f"Balance: {totals.balance:>12,.2f}")


@treasury_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--type", "kind", type=click.Choice(["income", "expense"]))
@click.option("--amount")
@click.option("--description")
@click.option("--donor")
@click.option("--notebook")
@click.option("--date", "date_str")
@click.option("--category")
@click.option("--reference")
@click.pass_context
def update_transaction(
    ctx, transaction_id, kind, amount, description, donor, notebook, date_str, category, reference
):
    """Edit a transaction; donor and notebook totals follow the change."""
    try:
        TreasuryService(ctx.obj["db"]).update_transaction(
            ctx.obj["principal"],
            transaction_id,
            transaction_type=kind,
            amount=amount_or_exit(ctx, amount),
            description=description,
            category=category,
            reference=reference,
            transaction_date=date_or_exit(ctx, date_str),
            donor=donor,
            notebook=notebook,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@treasury_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int):
    """Delete a transaction; an income is taken off its donor and notebook totals."""
    try:
        TreasuryService(ctx.obj["db"]).delete_transaction(ctx.obj["principal"], transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register treasury commands with main CLI."""
    cli.add_command(treasury_group, name="treasury")
