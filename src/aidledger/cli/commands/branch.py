"""Branch management commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import handle_domain_error
from aidledger.domain.branch import BranchService


@click.group()
def branch_group():
    """Manage branches (superadmin only)."""
    pass


@branch_group.command("create")
@click.argument("name")
@click.argument("code")
@click.option("--address", help="Branch address")
@click.option("--phone", help="Branch phone number")
@click.pass_context
def create_branch(ctx, name: str, code: str, address: str | None, phone: str | None):
    """Create a branch.

    Examples:
        aidledger branch create "Cairo" cai
        aidledger branch create "Zarqa" ZRQ --phone 0791234567
    """
    service = BranchService(ctx.obj["db"])
    try:
        branch_id = service.create_branch(
            ctx.obj["principal"], name=name, code=code, address=address, phone=phone
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created branch '{name}' ({code.strip().upper()}, ID: {branch_id})")


@branch_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide deactivated branches")
@click.pass_context
def list_branches(ctx, active_only: bool):
    """List branches."""
    branches = BranchService(ctx.obj["db"]).list_branches(active_only=active_only)
    if not branches:
        click.echo("No branches found.")
        return

    click.echo("\nBranches:")
    click.echo("-" * 60)
    for b in branches:
        state = "active" if b.is_active else "inactive"
        click.echo(f"ID: {b.id:3d} | {b.code:6s} | {b.name:25s} | {state}")


@branch_group.command("update")
@click.argument("branch", metavar="BRANCH")
@click.option("--name", help="New name")
@click.option("--code", help="New code")
@click.option("--address", help="New address")
@click.option("--phone", help="New phone")
@click.pass_context
def update_branch(ctx, branch: str, name, code, address, phone):
    """Update a branch. BRANCH can be an ID, code or name."""
    branch_id = resolve_branch_or_exit(ctx, branch)
    service = BranchService(ctx.obj["db"])
    try:
        service.update_branch(
            ctx.obj["principal"], branch_id, name=name, code=code, address=address, phone=phone
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated branch {branch_id}")


@branch_group.command("deactivate")
@click.argument("branch", metavar="BRANCH")
@click.pass_context
def deactivate_branch(ctx, branch: str):
    """Deactivate a branch."""
    _set_active(ctx, branch, False)


@branch_group.command("activate")
@click.argument("branch", metavar="BRANCH")
@click.pass_context
def activate_branch(ctx, branch: str):
    """Reactivate a branch."""
    _set_active(ctx, branch, True)


def _set_active(ctx, branch: str, is_active: bool) -> None:
    branch_id = resolve_branch_or_exit(ctx, branch)
    try:
        BranchService(ctx.obj["db"]).set_active(ctx.obj["principal"], branch_id, is_active)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Branch {branch_id} {'activated' if is_active else 'deactivated'}")


def register_commands(cli):
    """Register branch commands with main CLI."""
    cli.add_command(branch_group, name="branch")
