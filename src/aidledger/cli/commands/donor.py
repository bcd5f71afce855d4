"""Donor commands."""

import click

from aidledger.cli.error_handling import handle_domain_error
from aidledger.domain.donor import DonorService


@click.group()
def donor_group():
    """Browse donors and repair their links."""
    pass


@donor_group.command("list")
@click.option("--limit", type=int, help="Show only the top N donors")
@click.pass_context
def list_donors(ctx, limit):
    """List donors, biggest total first."""
    donors = DonorService(ctx.obj["db"]).list_donors(limit=limit)
    if not donors:
        click.echo("No donors found.")
        return
    for d in donors:
        last = d.last_donation_date or "-"
        click.echo(f"ID: {d.id:4d} | {d.name:25s} | {d.total_donated:>12,.2f} | {d.donations_count:3d} | {last}")


@donor_group.command("show")
@click.argument("donor", metavar="DONOR")
@click.pass_context
def show_donor(ctx, donor: str):
    """Show a donor's donations. DONOR can be a name or ID."""
    service = DonorService(ctx.obj["db"])
    try:
        entity = service.find_donor(donor)
        history = service.donation_history(entity.id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Donor {entity.id}: {entity.name}")
    click.echo(f"  Total: {entity.total_donated:,.2f} in {entity.donations_count} donation(s)")
    for t in history:
        click.echo(f"  {t.transaction_date} {t.amount:>10,.2f} {t.description}")


@donor_group.command("relink")
@click.argument("donor_id", type=int)
@click.pass_context
def relink(ctx, donor_id: int):
    """Link old income entries recorded under this donor's name."""
    try:
        linked = DonorService(ctx.obj["db"]).relink(ctx.obj["principal"], donor_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Linked {linked} transaction(s) to donor {donor_id}")


def register_commands(cli):
    """Register donor commands with main CLI."""
    cli.add_command(donor_group, name="donor")
