"""Tests for derived balances."""

from datetime import date
from decimal import Decimal

import pytest

from aidledger.domain.entities import BranchFilter
from aidledger.domain.errors import NotFoundError


@pytest.fixture
def seeded(temp_db, branches):
    """Capital, loans and movements spread over two branches and legacy rows."""
    north, south = branches
    temp_db.create_loan_capital(amount=Decimal("5000"), source="Zakat", date=date.today(), branch_id=north)
    temp_db.create_loan_capital(amount=Decimal("2000"), source="Zakat", date=date.today(), branch_id=south)
    temp_db.create_loan_capital(amount=Decimal("700"), source="Old fund", date=date.today())

    lent = temp_db.create_loan(
        beneficiary_name="A", amount=Decimal("1200"), start_date=date.today(), branch_id=north
    )
    temp_db.increment_loan_paid(lent, Decimal("200"))
    deleted = temp_db.create_loan(
        beneficiary_name="B", amount=Decimal("999"), start_date=date.today(), branch_id=north
    )
    temp_db.soft_delete_loan(deleted)

    for kind, item, quantity, branch in (
        ("inbound", "Rice", "10", north),
        ("outbound", "Rice", "3", north),
        ("inbound", "Rice", "4", south),
        ("inbound", "Rice", "1", None),
    ):
        temp_db.create_warehouse_movement(
            type=kind,
            category="product",
            description="seed",
            date=date.today(),
            item_name=item,
            quantity=Decimal(quantity),
            branch_id=branch,
        )
    gone = temp_db.create_warehouse_movement(
        type="inbound",
        category="product",
        description="mistake",
        date=date.today(),
        item_name="Rice",
        quantity=Decimal("100"),
        branch_id=north,
    )
    temp_db.soft_delete_warehouse_movement(gone)
    return north, south


class TestLoanFund:
    def test_available_fund_per_filter(self, ledger, seeded):
        north, south = seeded

        assert ledger.available_loan_fund(BranchFilter.only(north)) == Decimal("4000")
        assert ledger.available_loan_fund(BranchFilter.own_with_legacy(north)) == Decimal("4700")
        assert ledger.available_loan_fund(BranchFilter.only(south)) == Decimal("2000")
        assert ledger.available_loan_fund(BranchFilter.everything()) == Decimal("6700")

    def test_summary_excludes_deleted_loans(self, ledger, seeded):
        north, _ = seeded

        summary = ledger.loan_fund_summary(BranchFilter.only(north))

        assert summary.total_fund == Decimal("5000")
        assert summary.total_disbursed == Decimal("1200")
        assert summary.total_repaid == Decimal("200")


class TestWarehouse:
    def test_stock_per_filter(self, ledger, seeded):
        north, south = seeded

        assert ledger.warehouse_stock("Rice", BranchFilter.only(north)) == Decimal("7")
        assert ledger.warehouse_stock("Rice", BranchFilter.own_with_legacy(south)) == Decimal("5")
        assert ledger.warehouse_stock("Rice", BranchFilter.everything()) == Decimal("12")
        assert ledger.warehouse_stock("Beans", BranchFilter.everything()) == Decimal("0")

    def test_summary_and_check_agree(self, ledger, seeded):
        north, _ = seeded
        branch_filter = BranchFilter.own_with_legacy(north)

        assert ledger.warehouse_inventory(branch_filter)["Rice"] == ledger.warehouse_stock("Rice", branch_filter)

    def test_cash(self, temp_db, ledger):
        for kind, value in (("inbound", "300"), ("outbound", "120.25")):
            temp_db.create_warehouse_movement(
                type=kind, category="cash", description="cash", date=date.today(), value=Decimal(value)
            )

        assert ledger.warehouse_cash(BranchFilter.everything()) == Decimal("179.75")


class TestProducts:
    def test_product_balance(self, temp_db, ledger):
        product_id = temp_db.create_product(name="Olives", category="raw", unit="kg")
        temp_db.increment_product_totals(product_id, quantity_delta=Decimal("12.5"))

        assert ledger.product_balance(product_id) == Decimal("12.5")
        with pytest.raises(NotFoundError):
            ledger.product_balance(product_id + 1)

    def test_derived_totals_ignore_deleted_operations(self, temp_db, ledger):
        source = temp_db.create_product(name="Olives", category="raw", unit="kg")
        target = temp_db.create_product(name="Oil", category="finished", unit="l")

        def log(product_id, op_type, quantity, amount, **kwargs):
            return temp_db.create_product_operation(
                product_id=product_id,
                type=op_type,
                description=op_type,
                quantity=Decimal(quantity),
                amount=Decimal(amount),
                amount_type="revenue" if op_type == "sale" else "cost",
                date=date.today(),
                **kwargs,
            )

        log(source, "purchase", "100", "250")
        log(source, "expense", "0", "20")
        log(source, "sale", "10", "45")
        log(source, "donation", "5", "0")
        log(source, "transform", "40", "0", target_product_id=target, target_quantity=Decimal("6"))
        temp_db.soft_delete_product_operation(log(source, "sale", "30", "99"))

        source_totals = ledger.derive_product_totals(source)
        target_totals = ledger.derive_product_totals(target)

        assert (source_totals.quantity, source_totals.cost, source_totals.revenue) == (
            Decimal("45"),
            Decimal("270"),
            Decimal("45"),
        )
        assert target_totals.quantity == Decimal("6")


def test_treasury_totals(temp_db, ledger):
    for kind, amount in (("income", "100"), ("income", "50"), ("expense", "30")):
        temp_db.create_treasury_transaction(
            type=kind, amount=Decimal(amount), description=kind, transaction_date=date.today()
        )

    totals = ledger.treasury_totals(BranchFilter.everything())

    assert totals.income_total == Decimal("150")
    assert totals.expense_total == Decimal("30")
    assert totals.balance == Decimal("120")
