"""Notebook commands."""

import click

from aidledger.cli.branch_resolution import resolve_branch_or_exit
from aidledger.cli.error_handling import handle_domain_error
from aidledger.domain.notebook import NotebookService


@click.group()
def notebook_group():
    """Manage collection notebooks."""
    pass


@notebook_group.command("create")
@click.argument("name")
@click.option("--notes")
@click.option("--in-branch", help="Target branch (superadmin only)")
@click.pass_context
def create_notebook(ctx, name: str, notes, in_branch):
    """Create a notebook.

    Examples:
        aidledger notebook create "Friday box" --in-branch NTH
    """
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        notebook_id = NotebookService(ctx.obj["db"]).create_notebook(
            ctx.obj["principal"], name, notes=notes, branch_id=branch_id
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created notebook '{name.strip()}' (ID: {notebook_id})")


@notebook_group.command("list")
@click.option("--limit", type=int)
@click.option("--in-branch", help="Only this branch (superadmin only)")
@click.pass_context
def list_notebooks(ctx, limit, in_branch):
    """List notebooks, most recently used first."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    try:
        notebooks = NotebookService(ctx.obj["db"]).list_notebooks(
            ctx.obj["principal"], branch_id=branch_id, limit=limit
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    if not notebooks:
        click.echo("No notebooks found.")
        return
    for n in notebooks:
        last = n.last_used_date or "-"
        click.echo(
            f"ID: {n.id:4d} | {n.name:25s} | {n.total_amount:>12,.2f} | {n.transactions_count:3d} | {last}"
        )


@notebook_group.command("show")
@click.argument("notebook", metavar="NOTEBOOK")
@click.option("--in-branch", help="Branch to look the name up in (superadmin only)")
@click.pass_context
def show_notebook(ctx, notebook: str, in_branch):
    """Show a notebook's income. NOTEBOOK can be a name or ID."""
    branch_id = resolve_branch_or_exit(ctx, in_branch)
    service = NotebookService(ctx.obj["db"])
    principal = ctx.obj["principal"]
    try:
        entity = service.find_notebook(principal, notebook, branch_id=branch_id)
        history = service.history(principal, entity.id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Notebook {entity.id}: {entity.name}")
    click.echo(f"  Total: {entity.total_amount:,.2f} in {entity.transactions_count} transaction(s)")
    for t in history:
        click.echo(f"  {t.transaction_date} {t.amount:>10,.2f} {t.description}")


@notebook_group.command("rename")
@click.argument("notebook_id", type=int)
@click.argument("name")
@click.pass_context
def rename_notebook(ctx, notebook_id: int, name: str):
    """Rename a notebook and the name shown on its transactions."""
    try:
        renamed = NotebookService(ctx.obj["db"]).update_notebook(
            ctx.obj["principal"], notebook_id, name=name
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed notebook {notebook_id} ({renamed} transaction(s) updated)")


@notebook_group.command("delete")
@click.argument("notebook_id", type=int)
@click.pass_context
def delete_notebook(ctx, notebook_id: int):
    """Delete a notebook; its transactions are kept but unlinked."""
    try:
        unlinked = NotebookService(ctx.obj["db"]).delete_notebook(ctx.obj["principal"], notebook_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted notebook {notebook_id} ({unlinked} transaction(s) unlinked)")


def register_commands(cli):
    """Register notebook commands with main CLI."""
    cli.add_command(notebook_group, name="notebook")
