"""Main CLI entry point."""

import logging

import click

from aidledger.cli.branch_resolution import build_principal
from aidledger.database.factories import create_sqlite_database
from aidledger.domain.entities import Role

# Import and register all commands at module level
from aidledger.cli.commands import (
    branch,
    beneficiary,
    loan,
    product,
    warehouse,
    treasury,
    donor,
    notebook,
    initiative,
    reconcile,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides AIDLEDGER_DB_PATH environment variable)",
    envvar="AIDLEDGER_DB_PATH",
)
@click.option("--user", default="cli", show_default=True, envvar="AIDLEDGER_USER", help="Acting user ID")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.SUPERADMIN.value,
    show_default=True,
    envvar="AIDLEDGER_ROLE",
    help="Role of the acting user",
)
@click.option("--branch", envvar="AIDLEDGER_BRANCH", help="Branch (ID, code or name) of the acting user")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="AIDLEDGER_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, user: str, role: str, branch: str | None, log_level: str):
    """Aidledger - charity branch ledger.

    Track beneficiaries, the interest-free loan fund, products, warehouse
    stock, donations and initiatives across branches.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["principal"] = build_principal(ctx, user, role, branch)


# Register all commands
branch.register_commands(cli)
beneficiary.register_commands(cli)
loan.register_commands(cli)
product.register_commands(cli)
warehouse.register_commands(cli)
treasury.register_commands(cli)
donor.register_commands(cli)
notebook.register_commands(cli)
initiative.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
