"""End-to-end tests driving the command line."""

from aidledger.cli.main import cli


def _run(cli_runner, temp_db, *args, role=None, branch=None):
    argv = ["--db-path", temp_db.database_path]
    if role:
        argv += ["--role", role]
    if branch:
        argv += ["--branch", branch]
    return cli_runner.invoke(cli, argv + list(args))


def _setup_branches(cli_runner, temp_db):
    result = _run(cli_runner, temp_db, "branch", "create", "North Office", "nth")
    assert result.exit_code == 0
    assert "Created branch 'North Office' (NTH, ID: 1)" in result.output
    result = _run(cli_runner, temp_db, "branch", "create", "South Office", "sth")
    assert result.exit_code == 0


def test_branch_list(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "branch", "list")

    assert result.exit_code == 0
    assert "North Office" in result.output
    assert "STH" in result.output


def test_loan_workflow(cli_runner, temp_db):
    """Capital → over-fund rejection → loan → repayment → summary."""
    _setup_branches(cli_runner, temp_db)

    result = _run(
        cli_runner, temp_db,
        "loan", "capital", "add", "--amount", "5000", "--source", "Zakat", "--in-branch", "NTH",
    )
    assert result.exit_code == 0
    assert "Recorded capital entry 1" in result.output

    result = _run(cli_runner, temp_db, "loan", "create", "Abu Khaled", "--amount", "6000", "--in-branch", "NTH")
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "not enough" in result.output

    result = _run(cli_runner, temp_db, "loan", "create", "Abu Khaled", "--amount", "1,500", "--in-branch", "NTH")
    assert result.exit_code == 0
    assert "Created loan 1 for 'Abu Khaled'" in result.output

    result = _run(cli_runner, temp_db, "loan", "repay", "1", "--amount", "1500")
    assert result.exit_code == 0
    assert "(completed)" in result.output

    result = _run(cli_runner, temp_db, "loan", "show", "1")
    assert result.exit_code == 0
    assert "Status:    completed" in result.output
    assert "[0]" in result.output

    result = _run(cli_runner, temp_db, "loan", "fund", "--in-branch", "NTH")
    assert result.exit_code == 0
    assert "5,000.00" in result.output


def test_south_fund_is_separate(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)
    _run(cli_runner, temp_db, "loan", "capital", "add", "--amount", "5000", "--source", "Zakat", "--in-branch", "NTH")

    result = _run(cli_runner, temp_db, "loan", "create", "Umm Ali", "--amount", "100", "--in-branch", "STH")

    assert result.exit_code == 1
    assert "Loan fund balance" in result.output


def test_product_workflow(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "product", "create", "Olives", "--in-branch", "NTH")
    assert result.exit_code == 0
    assert "Created product 'Olives' (ID: 1)" in result.output

    result = _run(
        cli_runner, temp_db,
        "product", "op", "1", "purchase", "--description", "Harvest", "--quantity", "100", "--amount", "250",
    )
    assert result.exit_code == 0
    assert "Recorded purchase operation" in result.output

    result = _run(
        cli_runner, temp_db,
        "product", "op", "1", "sale", "--description", "Market", "--quantity", "120", "--amount", "90",
    )
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = _run(
        cli_runner, temp_db,
        "product", "op", "1", "sale", "--description", "Market", "--quantity", "20", "--amount", "90",
    )
    assert result.exit_code == 0

    result = _run(cli_runner, temp_db, "product", "show", "1")
    assert result.exit_code == 0
    assert "Revenue:    90.00" in result.output
    assert "Net profit: -160.00" in result.output


def test_warehouse_workflow(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(
        cli_runner, temp_db,
        "warehouse", "in", "--item", "Rice", "--quantity", "10", "--description", "Donation", "--in-branch", "NTH",
    )
    assert result.exit_code == 0
    assert "Recorded inbound movement 1" in result.output

    result = _run(
        cli_runner, temp_db,
        "warehouse", "out", "--item", "Rice ", "--quantity", "3", "--description", "Families", "--in-branch", "NTH",
    )
    assert result.exit_code == 0

    result = _run(
        cli_runner, temp_db,
        "warehouse", "out", "--item", "Rice", "--quantity", "50", "--description", "Too much", "--in-branch", "NTH",
    )
    assert result.exit_code == 1
    assert "Available quantity" in result.output

    result = _run(cli_runner, temp_db, "warehouse", "stock", "Rice", "--in-branch", "NTH")
    assert result.exit_code == 0
    assert "Rice: 7" in result.output

    result = _run(cli_runner, temp_db, "warehouse", "stock", "--in-branch", "STH")
    assert result.exit_code == 0
    assert "No items in stock." in result.output


def test_income_updates_donor(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    for amount in ("40", "60"):
        result = _run(
            cli_runner, temp_db,
            "treasury", "income", "--amount", amount, "--description", "Gift", "--donor", "Abu Omar",
            "--in-branch", "NTH",
        )
        assert result.exit_code == 0

    result = _run(cli_runner, temp_db, "donor", "show", "abu omar")
    assert result.exit_code == 0
    assert "Donor 1: Abu Omar" in result.output
    assert "Total: 100.00 in 2 donation(s)" in result.output


def test_notebook_workflow(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "notebook", "create", "Friday Box", "--in-branch", "NTH")
    assert result.exit_code == 0
    assert "Created notebook 'Friday Box' (ID: 1)" in result.output

    result = _run(cli_runner, temp_db, "notebook", "create", "friday box", "--in-branch", "NTH")
    assert result.exit_code == 1
    assert "already exists" in result.output

    result = _run(
        cli_runner, temp_db,
        "treasury", "income", "--amount", "75", "--description", "Friday", "--notebook", "FRIDAY BOX",
        "--in-branch", "NTH",
    )
    assert result.exit_code == 0

    result = _run(cli_runner, temp_db, "notebook", "show", "1")
    assert result.exit_code == 0
    assert "Total: 75.00 in 1 transaction(s)" in result.output

    result = _run(cli_runner, temp_db, "notebook", "delete", "1")
    assert result.exit_code == 0
    assert "(1 transaction(s) unlinked)" in result.output


def test_initiative_fans_out(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "initiative", "create", "Winter blankets", "--description", "Blanket drive")
    assert result.exit_code == 0
    assert "in 2 branch(es)" in result.output

    result = _run(cli_runner, temp_db, "initiative", "list", role="admin", branch="STH")
    assert result.exit_code == 0
    assert result.output.count("Winter blankets") == 1


def test_reconcile_clean_ledger(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)
    _run(cli_runner, temp_db, "treasury", "income", "--amount", "40", "--description", "Gift", "--donor", "Abu Omar",
         "--in-branch", "NTH")

    result = _run(cli_runner, temp_db, "reconcile")

    assert result.exit_code == 0
    assert "No drift found." in result.output


def test_branch_admin_cannot_reconcile_donors(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "reconcile", "--scope", "donors", role="admin", branch="NTH")

    assert result.exit_code == 1
    assert "superadmin only" in result.output


def test_plain_user_is_rejected(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "loan", "list", role="user", branch="NTH")

    assert result.exit_code == 1
    assert "not allowed" in result.output


def test_superadmin_needs_branch_to_create(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "product", "create", "Olives")

    assert result.exit_code == 1
    assert "branch required" in result.output


def test_unknown_branch_option(cli_runner, temp_db):
    result = _run(cli_runner, temp_db, "loan", "list", "--in-branch", "Nowhere")

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_invalid_amount(cli_runner, temp_db):
    _setup_branches(cli_runner, temp_db)

    result = _run(cli_runner, temp_db, "loan", "create", "X", "--amount", "lots", "--in-branch", "NTH")

    assert result.exit_code == 1
    assert "Invalid amount format" in result.output
