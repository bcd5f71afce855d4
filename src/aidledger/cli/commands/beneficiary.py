"""Beneficiary commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import amount_or_exit, handle_domain_error
from aidledger.domain.beneficiary import MARITAL_STATUSES, BeneficiaryService, build_profile


@click.group()
def beneficiary_group():
    """Manage beneficiaries and their priority."""
    pass


@beneficiary_group.command("add")
@click.argument("name")
@click.option("--national-id", help="National ID number")
@click.option("--phone", help="Phone number")
@click.option("--income", default="0", help="Monthly income")
@click.option("--spouse-income", default="0", help="Spouse's monthly income")
@click.option("--rent", default="0", help="Monthly rent")
@click.option("--family", type=int, default=1, help="Household size")
@click.option("--marital-status", type=click.Choice(MARITAL_STATUSES), default="single")
@click.option("--sick", is_flag=True, help="Beneficiary is sick")
@click.option("--spouse-sick", is_flag=True, help="Spouse is sick")
@click.option("--sick-children", type=int, default=0, help="Number of sick unmarried children")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def add_beneficiary(
    ctx,
    name: str,
    national_id,
    phone,
    income: str,
    spouse_income: str,
    rent: str,
    family: int,
    marital_status: str,
    sick: bool,
    spouse_sick: bool,
    sick_children: int,
    in_branch,
):
    """Add a beneficiary; the priority is computed from the profile.

    Examples:
        aidledger beneficiary add "Umm Ahmad" --income 300 --rent 150 --family 5
        aidledger beneficiary add "Abu Khaled" --income 0 --sick --marital-status married
    """
    profile = build_profile(
        income=amount_or_exit(ctx, income),
        spouse_income=amount_or_exit(ctx, spouse_income),
        rental_cost=amount_or_exit(ctx, rent),
        family_members=family,
        marital_status=marital_status,
        beneficiary_sick=sick,
        spouse_sick=spouse_sick,
        sick_unmarried_children=sick_children,
    )
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    service = BeneficiaryService(ctx.obj["db"])
    try:
        beneficiary_id = service.create_beneficiary(
            ctx.obj["principal"],
            name=name,
            profile=profile,
            national_id=national_id,
            phone=phone,
            branch_id=branch_id,
        )
        beneficiary = service.get_beneficiary(ctx.obj["principal"], beneficiary_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added beneficiary {beneficiary_id} '{name}' with priority {beneficiary.priority}")


@beneficiary_group.command("list")
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_beneficiaries(ctx, in_branch):
    """List beneficiaries, most in need first."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        beneficiaries = BeneficiaryService(ctx.obj["db"]).list_beneficiaries(
            ctx.obj["principal"], branch_id=branch_id
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not beneficiaries:
        click.echo("No beneficiaries found.")
        return
    for b in beneficiaries:
        click.echo(f"ID: {b.id:4d} | P{b.priority:<2d} | {b.name:25s} | {b.phone or '-'}")


@beneficiary_group.command("update")
@click.argument("beneficiary_id", type=int)
@click.option("--name")
@click.option("--national-id")
@click.option("--phone")
@click.option("--income")
@click.option("--spouse-income")
@click.option("--rent")
@click.option("--family", type=int)
@click.option("--marital-status", type=click.Choice(MARITAL_STATUSES))
@click.option("--sick/--not-sick", default=None)
@click.option("--spouse-sick/--spouse-not-sick", default=None)
@click.option("--sick-children", type=int)
@click.pass_context
def update_beneficiary(
    ctx,
    beneficiary_id: int,
    name,
    national_id,
    phone,
    income,
    spouse_income,
    rent,
    family,
    marital_status,
    sick,
    spouse_sick,
    sick_children,
):
    """Update a beneficiary and recompute the priority."""
    service = BeneficiaryService(ctx.obj["db"])
    try:
        updated = service.update_beneficiary(
            ctx.obj["principal"],
            beneficiary_id,
            name=name,
            national_id=national_id,
            phone=phone,
            income=amount_or_exit(ctx, income),
            spouse_income=amount_or_exit(ctx, spouse_income),
            rental_cost=amount_or_exit(ctx, rent),
            family_members=family,
            marital_status=marital_status,
            beneficiary_sick=sick,
            spouse_sick=spouse_sick,
            sick_unmarried_children=sick_children,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated beneficiary {beneficiary_id}; priority is now {updated.priority}")


@beneficiary_group.command("delete")
@click.argument("beneficiary_id", type=int)
@click.pass_context
def delete_beneficiary(ctx, beneficiary_id: int):
    """Delete a beneficiary."""
    try:
        BeneficiaryService(ctx.obj["db"]).delete_beneficiary(ctx.obj["principal"], beneficiary_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted beneficiary {beneficiary_id}")


def register_commands(cli):
    """Register beneficiary commands with main CLI."""
    cli.add_command(beneficiary_group, name="beneficiary")
