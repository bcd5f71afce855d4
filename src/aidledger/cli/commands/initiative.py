"""Initiative commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import amount_or_exit, date_or_exit, handle_domain_error
from aidledger.domain.entities import InitiativeStatus
from aidledger.domain.initiative import InitiativeService


@click.group()
def initiative_group():
    """Manage initiatives (programs)."""
    pass


@initiative_group.command("create")
@click.argument("name")
@click.option("--description", required=True)
@click.option("--date", "date_str")
@click.option("--amount", default="0", help="Budget of the initiative")
@click.option("--status", type=click.Choice([s.value for s in InitiativeStatus]), default="planned")
@click.option("--in-branch", help="Target branch; superadmins omitting it create one per active branch")
@click.pass_context
def create_initiative(ctx, name, description, date_str, amount, status, in_branch):
    """Create an initiative.

    Examples:
        aidledger initiative create "Winter blankets" --description "Blanket drive"
    """
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        created = InitiativeService(ctx.obj["db"]).create_initiative(
            ctx.obj["principal"],
            name=name,
            description=description,
            date=date_or_exit(ctx, date_str),
            total_amount=amount_or_exit(ctx, amount),
            status=status,
            branch_id=branch_id,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    ids = ", ".join(str(i) for i in created)
    click.echo(f"Created initiative '{name}' in {len(created)} branch(es) (ID: {ids})")


@initiative_group.command("list")
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_initiatives(ctx, in_branch):
    """List initiatives."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        initiatives = InitiativeService(ctx.obj["db"]).list_initiatives(
            ctx.obj["principal"], branch_id=branch_id
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not initiatives:
        click.echo("No initiatives found.")
        return
    for i in initiatives:
        click.echo(f"ID: {i.id:4d} | {i.date} | {i.name:25s} | {i.status.value:9s} | branch {i.branch_id}")


def register_commands(cli):
    """Register initiative commands with main CLI."""
    cli.add_command(initiative_group, name="initiative")
