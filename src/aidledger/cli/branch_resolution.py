"""CLI helpers for branch and principal resolution."""

from __future__ import annotations

import click

from aidledger.domain.branch import BranchService
from aidledger.domain.entities import Principal, Role
from aidledger.utils.branch_resolver import resolve_branch


def resolve_branch_or_exit(ctx: click.Context, branch: str | int | None) -> int | None:
    """Resolve a branch ID, code or name, or exit with a CLI error."""
    if branch is None:
        return None
    try:
        return resolve_branch(BranchService(ctx.obj["db"]), branch)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def build_principal(ctx: click.Context, user: str, role: str, branch: str | None) -> Principal:
    """Build the acting principal from the global options."""
    branch_id = resolve_branch_or_exit(ctx, branch)
    branch_name = None
    if branch_id is not None:
        branch_name = BranchService(ctx.obj["db"]).get_branch(branch_id).name
    return Principal(user_id=user, role=Role(role), branch_id=branch_id, branch_name=branch_name)
