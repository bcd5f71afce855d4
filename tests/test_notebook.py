"""Tests for notebooks and their running totals."""

from datetime import date
from decimal import Decimal

import pytest

from aidledger.domain.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError


def _income(service, principal, amount, notebook=None, **kwargs):
    return service.create_transaction(
        principal, "income", Decimal(amount), "Box collection", notebook=notebook, **kwargs
    )


class TestNotebookResolution:
    def test_names_match_per_branch(self, notebook_service, branches):
        north, south = branches
        first = notebook_service.resolve_notebook("Friday Box", north)
        second = notebook_service.resolve_notebook("  friday box ", north)
        elsewhere = notebook_service.resolve_notebook("Friday Box", south)

        assert first.id == second.id
        assert first.name == "Friday Box"
        assert first.name_normalized == "friday box"
        assert elsewhere.id != first.id
        assert elsewhere.branch_id == south

    def test_numeric_reference_must_be_in_branch(self, notebook_service, branches):
        north, south = branches
        notebook = notebook_service.resolve_notebook("Friday Box", north)

        assert notebook_service.resolve_notebook(str(notebook.id), north).id == notebook.id
        with pytest.raises(ValidationError, match="another branch"):
            notebook_service.resolve_notebook(notebook.id, south)
        with pytest.raises(NotFoundError):
            notebook_service.resolve_notebook("999", north)

    def test_create_rejects_duplicate_in_branch(self, notebook_service, north_admin, south_member):
        notebook_service.create_notebook(north_admin, "Friday Box")

        with pytest.raises(ConflictError):
            notebook_service.create_notebook(north_admin, "FRIDAY BOX ")
        notebook_service.create_notebook(south_member, "Friday Box")

    def test_empty_name_is_rejected(self, notebook_service, north_admin):
        with pytest.raises(ValidationError, match="name is required"):
            notebook_service.create_notebook(north_admin, "  ")

    def test_other_branch_notebook_is_hidden(self, notebook_service, north_admin, south_member):
        notebook_id = notebook_service.create_notebook(north_admin, "Friday Box")

        with pytest.raises(ForbiddenError):
            notebook_service.get_notebook(south_member, notebook_id)
        assert notebook_service.list_notebooks(south_member) == []


class TestNotebookTotals:
    def test_income_adds_and_delete_takes_back(self, treasury_service, notebook_service, north_admin):
        txn_id = _income(treasury_service, north_admin, "250", notebook="Friday Box", transaction_date=date(2024, 4, 2))

        notebook = notebook_service.find_notebook(north_admin, "friday box")
        txn = treasury_service.get_transaction(north_admin, txn_id)
        assert notebook.total_amount == Decimal("250")
        assert notebook.transactions_count == 1
        assert notebook.last_used_date == date(2024, 4, 2)
        assert txn.notebook_id == notebook.id
        assert txn.notebook_name_snapshot == "Friday Box"

        treasury_service.delete_transaction(north_admin, txn_id)

        notebook = notebook_service.get_notebook(north_admin, notebook.id)
        assert notebook.total_amount == Decimal("0")
        assert notebook.transactions_count == 0

    def test_update_moves_income_between_notebooks(self, treasury_service, notebook_service, north_admin):
        txn_id = _income(treasury_service, north_admin, "100", notebook="Friday Box")

        treasury_service.update_transaction(north_admin, txn_id, amount=Decimal("80"), notebook="Mosque Box")

        friday = notebook_service.find_notebook(north_admin, "Friday Box")
        mosque = notebook_service.find_notebook(north_admin, "Mosque Box")
        assert (friday.total_amount, friday.transactions_count) == (Decimal("0"), 0)
        assert (mosque.total_amount, mosque.transactions_count) == (Decimal("80"), 1)

    def test_amount_edit_keeps_notebook(self, treasury_service, notebook_service, north_admin):
        txn_id = _income(treasury_service, north_admin, "100", notebook="Friday Box")

        treasury_service.update_transaction(north_admin, txn_id, amount=Decimal("130"))

        notebook = notebook_service.find_notebook(north_admin, "Friday Box")
        assert notebook.total_amount == Decimal("130")
        assert notebook.transactions_count == 1
        assert treasury_service.get_transaction(north_admin, txn_id).notebook_id == notebook.id

    def test_switch_to_expense_drops_notebook(self, treasury_service, notebook_service, north_admin):
        txn_id = _income(treasury_service, north_admin, "100", notebook="Friday Box")

        treasury_service.update_transaction(north_admin, txn_id, transaction_type="expense")

        notebook = notebook_service.find_notebook(north_admin, "Friday Box")
        txn = treasury_service.get_transaction(north_admin, txn_id)
        assert notebook.transactions_count == 0
        assert txn.notebook_id is None
        assert txn.notebook_name_snapshot is None

    def test_expense_cannot_name_notebook(self, treasury_service, notebook_service, north_admin):
        with pytest.raises(ValidationError, match="notebook"):
            treasury_service.create_transaction(
                north_admin, "expense", Decimal("10"), "Transport", notebook="Friday Box"
            )
        assert notebook_service.list_notebooks(north_admin) == []

    def test_backdated_income_keeps_latest_use(self, treasury_service, notebook_service, north_admin):
        _income(treasury_service, north_admin, "10", notebook="Friday Box", transaction_date=date(2024, 5, 1))
        _income(treasury_service, north_admin, "10", notebook="Friday Box", transaction_date=date(2024, 1, 1))

        notebook = notebook_service.find_notebook(north_admin, "Friday Box")
        assert notebook.last_used_date == date(2024, 5, 1)

    def test_superadmin_income_uses_target_branch_notebook(
        self, treasury_service, notebook_service, superadmin, north_admin, branches
    ):
        north, south = branches
        _income(treasury_service, superadmin, "40", notebook="Friday Box", branch_id=south)

        assert notebook_service.list_notebooks(north_admin) == []
        notebook = notebook_service.find_notebook(superadmin, "Friday Box", branch_id=south)
        assert notebook.total_amount == Decimal("40")


class TestNotebookMaintenance:
    def test_rename_updates_snapshots(self, treasury_service, notebook_service, north_admin):
        first = _income(treasury_service, north_admin, "10", notebook="Friday Box")
        second = _income(treasury_service, north_admin, "20", notebook="Friday Box")
        notebook = notebook_service.find_notebook(north_admin, "Friday Box")

        renamed = notebook_service.update_notebook(north_admin, notebook.id, name="Jumuah Box")

        assert renamed == 2
        assert notebook_service.get_notebook(north_admin, notebook.id).name == "Jumuah Box"
        for txn_id in (first, second):
            assert treasury_service.get_transaction(north_admin, txn_id).notebook_name_snapshot == "Jumuah Box"

    def test_rename_to_taken_name_conflicts(self, notebook_service, north_admin):
        notebook_service.create_notebook(north_admin, "Friday Box")
        other = notebook_service.create_notebook(north_admin, "Mosque Box")

        with pytest.raises(ConflictError):
            notebook_service.update_notebook(north_admin, other, name="friday box")
        assert notebook_service.get_notebook(north_admin, other).name == "Mosque Box"

    def test_rename_keeps_own_name_with_new_case(self, notebook_service, north_admin):
        notebook_id = notebook_service.create_notebook(north_admin, "friday box")

        notebook_service.update_notebook(north_admin, notebook_id, name="Friday Box")

        assert notebook_service.get_notebook(north_admin, notebook_id).name == "Friday Box"

    def test_delete_unlinks_transactions(self, treasury_service, notebook_service, north_admin):
        txn_id = _income(treasury_service, north_admin, "10", notebook="Friday Box")
        notebook = notebook_service.find_notebook(north_admin, "Friday Box")

        unlinked = notebook_service.delete_notebook(north_admin, notebook.id)

        txn = treasury_service.get_transaction(north_admin, txn_id)
        assert unlinked == 1
        assert txn.notebook_id is None
        assert txn.notebook_name_snapshot is None
        with pytest.raises(NotFoundError):
            notebook_service.get_notebook(north_admin, notebook.id)

        # the unlinked income can be deleted without touching any notebook
        treasury_service.delete_transaction(north_admin, txn_id)

    def test_list_and_history_are_newest_first(self, treasury_service, notebook_service, north_admin):
        _income(treasury_service, north_admin, "10", notebook="Friday Box", transaction_date=date(2024, 1, 5))
        _income(treasury_service, north_admin, "20", notebook="Mosque Box", transaction_date=date(2024, 3, 5))
        _income(treasury_service, north_admin, "30", notebook="Friday Box", transaction_date=date(2024, 2, 5))

        notebooks = notebook_service.list_notebooks(north_admin)
        friday = notebook_service.find_notebook(north_admin, "Friday Box")
        history = notebook_service.history(north_admin, friday.id)

        assert [n.name for n in notebooks] == ["Mosque Box", "Friday Box"]
        assert [t.transaction_date for t in history] == [date(2024, 2, 5), date(2024, 1, 5)]

    def test_reconcile_repairs_notebook_drift(
        self, temp_db, treasury_service, notebook_service, reconciliation_service, north_admin
    ):
        _income(treasury_service, north_admin, "10", notebook="Friday Box")
        notebook = notebook_service.find_notebook(north_admin, "Friday Box")
        temp_db.set_notebook_totals(notebook.id, Decimal("99"), 4)

        drifts = reconciliation_service.check_notebooks(north_admin, fix=True)

        assert {d.field for d in drifts} == {"total_amount", "transactions_count"}
        repaired = notebook_service.get_notebook(north_admin, notebook.id)
        assert (repaired.total_amount, repaired.transactions_count) == (Decimal("10"), 1)
        assert reconciliation_service.check_notebooks(north_admin) == []
