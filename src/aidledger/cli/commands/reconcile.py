"""Reconciliation command."""

import click

from aidledger.cli.error_handling import handle_domain_error
from aidledger.domain.reconcile import ReconciliationService


@click.command("reconcile")
@click.option(
    "--scope",
    type=click.Choice(["products", "loans", "donors", "notebooks", "all"]),
    default="all",
    show_default=True,
)
@click.option("--fix", is_flag=True, help="Reset drifted counters from their logs")
@click.pass_context
def reconcile(ctx, scope: str, fix: bool):
    """Check running totals against their logs.

    Donor checks need a superadmin.

    Examples:
        aidledger reconcile
        aidledger reconcile --scope products --fix
    """
    service = ReconciliationService(ctx.obj["db"])
    principal = ctx.obj["principal"]
    drifts = []
    try:
        if scope in ("products", "all"):
            drifts.extend(service.check_products(principal, fix=fix))
        if scope in ("loans", "all"):
            drifts.extend(service.check_loans(principal, fix=fix))
        if scope in ("donors", "all"):
            drifts.extend(service.check_donors(principal, fix=fix))
        if scope in ("notebooks", "all"):
            drifts.extend(service.check_notebooks(principal, fix=fix))
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not drifts:
        click.echo("No drift found.")
        return
    for d in drifts:
        click.echo(f"{d.kind} {d.entity_id}: {d.field} recorded {d.recorded}, derived {d.derived}")
    click.echo(f"{len(drifts)} drifted value(s){' fixed' if fix else ''}")


def register_commands(cli):
    """Register reconcile command with main CLI."""
    cli.add_command(reconcile)
