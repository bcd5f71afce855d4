"""Loan fund, loan and repayment commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import amount_or_exit, date_or_exit, handle_domain_error
from aidledger.domain.entities import LoanStatus
from aidledger.domain.loan import LoanService


@click.group()
def loan_group():
    """Manage interest-free loans and the lending fund."""
    pass


@loan_group.command("fund")
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def fund_summary(ctx, in_branch):
    """Show the lending fund summary."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        summary = LoanService(ctx.obj["db"]).fund_summary(ctx.obj["principal"], branch_id=branch_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Total fund:      {summary.total_fund:>12,.2f}")
    click.echo(f"Disbursed:       {summary.total_disbursed:>12,.2f}")
    click.echo(f"Repaid:          {summary.total_repaid:>12,.2f}")
    click.echo(f"Available:       {summary.available_fund:>12,.2f}")


@loan_group.group("capital")
def capital_group():
    """Manage contributions to the lending fund."""
    pass


@capital_group.command("add")
@click.option("--amount", required=True, help="Contribution amount")
@click.option("--source", required=True, help="Where the money came from")
@click.option("--date", "date_str", help="Contribution date (default: today)")
@click.option("--notes")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def add_capital(ctx, amount: str, source: str, date_str, notes, in_branch):
    """Add money to the lending fund.

    Examples:
        aidledger loan capital add --amount 5000 --source "Zakat committee"
    """
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        capital_id = LoanService(ctx.obj["db"]).add_capital(
            ctx.obj["principal"],
            amount=amount_or_exit(ctx, amount),
            source=source,
            date=date_or_exit(ctx, date_str),
            notes=notes,
            branch_id=branch_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded capital entry {capital_id}")


@capital_group.command("list")
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_capital(ctx, in_branch):
    """List fund contributions."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        entries = LoanService(ctx.obj["db"]).list_capital(ctx.obj["principal"], branch_id=branch_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not entries:
        click.echo("No capital entries found.")
        return
    for c in entries:
        click.echo(f"ID: {c.id:4d} | {c.date} | {c.amount:>12,.2f} | {c.source}")


@capital_group.command("update")
@click.argument("capital_id", type=int)
@click.option("--amount")
@click.option("--source")
@click.option("--notes")
@click.option("--date", "date_str")
@click.pass_context
def update_capital(ctx, capital_id: int, amount, source, notes, date_str):
    """Edit a contribution."""
    try:
        LoanService(ctx.obj["db"]).update_capital(
            ctx.obj["principal"],
            capital_id,
            amount=amount_or_exit(ctx, amount),
            source=source,
            notes=notes,
            date=date_or_exit(ctx, date_str),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated capital entry {capital_id}")


@capital_group.command("delete")
@click.argument("capital_id", type=int)
@click.pass_context
def delete_capital(ctx, capital_id: int):
    """Remove a contribution."""
    try:
        LoanService(ctx.obj["db"]).delete_capital(ctx.obj["principal"], capital_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted capital entry {capital_id}")


@loan_group.command("create")
@click.argument("beneficiary_name")
@click.option("--amount", required=True, help="Loan principal")
@click.option("--start-date", help="Disbursement date (default: today)")
@click.option("--due-date", help="Due date")
@click.option("--national-id")
@click.option("--phone")
@click.option("--notes")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def create_loan(ctx, beneficiary_name, amount, start_date, due_date, national_id, phone, notes, in_branch):
    """Disburse a loan from the branch's fund.

    Examples:
        aidledger loan create "Abu Khaled" --amount 1500 --due-date 2025-12-31
    """
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        loan_id = LoanService(ctx.obj["db"]).create_loan(
            ctx.obj["principal"],
            beneficiary_name=beneficiary_name,
            amount=amount_or_exit(ctx, amount),
            start_date=date_or_exit(ctx, start_date),
            due_date=date_or_exit(ctx, due_date),
            national_id=national_id,
            phone=phone,
            notes=notes,
            branch_id=branch_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created loan {loan_id} for '{beneficiary_name}'")


@loan_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in LoanStatus]))
@click.option("--search", help="Match name, phone or national ID")
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_loans(ctx, status, search, in_branch):
    """List loans."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        loans = LoanService(ctx.obj["db"]).list_loans(
            ctx.obj["principal"], branch_id=branch_id, status=status, search=search
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not loans:
        click.echo("No loans found.")
        return
    for loan in loans:
        click.echo(
            f"ID: {loan.id:4d} | {loan.beneficiary_name:25s} | {loan.amount:>10,.2f} | "
            f"paid {loan.amount_paid:>10,.2f} | {loan.status.value}"
        )


@loan_group.command("show")
@click.argument("loan_id", type=int)
@click.pass_context
def show_loan(ctx, loan_id: int):
    """Show a loan and its repayments."""
    try:
        loan = LoanService(ctx.obj["db"]).get_loan(ctx.obj["principal"], loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Loan {loan.id}: {loan.beneficiary_name}")
    click.echo(f"  Amount:    {loan.amount:,.2f}")
    click.echo(f"  Paid:      {loan.amount_paid:,.2f}")
    click.echo(f"  Remaining: {loan.remaining_amount:,.2f}")
    click.echo(f"  Status:    {loan.status.value}")
    if loan.repayments:
        click.echo("  Repayments:")
        for index, repayment in enumerate(loan.repayments):
            note = f" ({repayment.notes})" if repayment.notes else ""
            click.echo(f"    [{index}] {repayment.date} {repayment.amount:,.2f}{note}")


@loan_group.command("update")
@click.argument("loan_id", type=int)
@click.option("--beneficiary-name")
@click.option("--amount")
@click.option("--due-date")
@click.option("--national-id")
@click.option("--phone")
@click.option("--notes")
@click.pass_context
def update_loan(ctx, loan_id: int, beneficiary_name, amount, due_date, national_id, phone, notes):
    """Edit a loan."""
    try:
        loan = LoanService(ctx.obj["db"]).update_loan(
            ctx.obj["principal"],
            loan_id,
            beneficiary_name=beneficiary_name,
            amount=amount_or_exit(ctx, amount),
            due_date=date_or_exit(ctx, due_date),
            national_id=national_id,
            phone=phone,
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated loan {loan_id} ({loan.status.value})")


@loan_group.command("delete")
@click.argument("loan_id", type=int)
@click.pass_context
def delete_loan(ctx, loan_id: int):
    """Delete a loan."""
    try:
        LoanService(ctx.obj["db"]).delete_loan(ctx.obj["principal"], loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted loan {loan_id}")


@loan_group.command("repay")
@click.argument("loan_id", type=int)
@click.option("--amount", required=True)
@click.option("--date", "date_str", help="Repayment date (default: today)")
@click.option("--notes")
@click.pass_context
def repay(ctx, loan_id: int, amount: str, date_str, notes):
    """Record a repayment.

    Examples:
        aidledger loan repay 3 --amount 100
    """
    try:
        loan = LoanService(ctx.obj["db"]).add_repayment(
            ctx.obj["principal"],
            loan_id,
            amount=amount_or_exit(ctx, amount),
            date=date_or_exit(ctx, date_str),
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Recorded repayment on loan {loan_id}: paid {loan.amount_paid:,.2f} of "
        f"{loan.amount:,.2f} ({loan.status.value})"
    )


@loan_group.command("edit-repayment")
@click.argument("loan_id", type=int)
@click.argument("index", type=int)
@click.option("--amount")
@click.option("--date", "date_str")
@click.option("--notes")
@click.pass_context
def edit_repayment(ctx, loan_id: int, index: int, amount, date_str, notes):
    """Edit the repayment at INDEX (as shown by 'loan show')."""
    try:
        loan = LoanService(ctx.obj["db"]).update_repayment(
            ctx.obj["principal"],
            loan_id,
            index,
            amount=amount_or_exit(ctx, amount),
            date=date_or_exit(ctx, date_str),
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated repayment {index}: paid {loan.amount_paid:,.2f} ({loan.status.value})")


@loan_group.command("delete-repayment")
@click.argument("loan_id", type=int)
@click.argument("index", type=int)
@click.pass_context
def delete_repayment(ctx, loan_id: int, index: int):
    """Remove the repayment at INDEX."""
    try:
        loan = LoanService(ctx.obj["db"]).delete_repayment(ctx.obj["principal"], loan_id, index)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed repayment {index}: paid {loan.amount_paid:,.2f} ({loan.status.value})")


@loan_group.command("default")
@click.argument("loan_id", type=int)
@click.pass_context
def mark_defaulted(ctx, loan_id: int):
    """Mark a loan as defaulted."""
    try:
        LoanService(ctx.obj["db"]).mark_defaulted(ctx.obj["principal"], loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Loan {loan_id} marked defaulted")


@loan_group.command("reactivate")
@click.argument("loan_id", type=int)
@click.pass_context
def reactivate(ctx, loan_id: int):
    """Clear a loan's defaulted status."""
    try:
        LoanService(ctx.obj["db"]).reactivate(ctx.obj["principal"], loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Loan {loan_id} reactivated")


def register_commands(cli):
    """Register loan commands with main CLI."""
    cli.add_command(loan_group, name="loan")
