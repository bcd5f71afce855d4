"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from aidledger.domain import entities
from aidledger.domain.entities import BranchFilter


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_branch_returns_domain_model(self, temp_db):
        """Test that get_branch returns a domain Branch entity."""
        branch_id = temp_db.create_branch(name="North Office", code="NTH")

        branch = temp_db.get_branch(branch_id)

        assert isinstance(branch, entities.Branch)
        assert branch.id == branch_id
        assert branch.code == "NTH"
        assert branch.is_active is True
        assert isinstance(branch.created_at, datetime)

    def test_list_branches_active_only(self, temp_db):
        first = temp_db.create_branch(name="Alpha", code="ALP")
        second = temp_db.create_branch(name="Beta", code="BET")
        temp_db.update_branch(second, is_active=False)

        assert [b.id for b in temp_db.list_branches()] == [first, second]
        assert [b.id for b in temp_db.list_branches(active_only=True)] == [first]

    def test_get_loan_returns_repayments_in_order(self, temp_db):
        loan_id = temp_db.create_loan(
            beneficiary_name="Abu Khaled", amount=Decimal("900"), start_date=date(2024, 1, 1)
        )
        temp_db.add_repayment(loan_id, amount=Decimal("100"), date=date(2024, 3, 1))
        temp_db.add_repayment(loan_id, amount=Decimal("50"), date=date(2024, 2, 1), notes="cash")

        loan = temp_db.get_loan(loan_id)

        assert isinstance(loan, entities.Loan)
        assert loan.status == entities.LoanStatus.ACTIVE
        assert loan.amount == Decimal("900")
        assert loan.amount_paid == Decimal("0")
        assert [r.amount for r in loan.repayments] == [Decimal("100"), Decimal("50")]
        assert loan.repayments[1].notes == "cash"

    def test_product_starts_with_zero_totals(self, temp_db):
        product_id = temp_db.create_product(name="Olive oil", category="finished", unit="l")

        product = temp_db.get_product(product_id)

        assert isinstance(product, entities.Product)
        assert product.current_quantity == Decimal("0")
        assert product.total_cost == Decimal("0")
        assert product.status == entities.ProductStatus.ACTIVE


class TestBranchFilterQueries:
    def test_filter_selects_own_and_legacy_rows(self, temp_db):
        north = temp_db.create_branch(name="North", code="N")
        south = temp_db.create_branch(name="South", code="S")
        legacy = temp_db.create_product(name="Legacy", category="raw", unit="kg")
        own = temp_db.create_product(name="Own", category="raw", unit="kg", branch_id=north)
        other = temp_db.create_product(name="Other", category="raw", unit="kg", branch_id=south)

        def ids(branch_filter):
            return {p.id for p in temp_db.list_products(branch_filter)}

        assert ids(BranchFilter.everything()) == {legacy, own, other}
        assert ids(BranchFilter.own_with_legacy(north)) == {legacy, own}
        assert ids(BranchFilter.only(north)) == {own}
        assert ids(BranchFilter.legacy_only()) == {legacy}
        assert ids(BranchFilter()) == set()

    def test_soft_deleted_loans_leave_the_sums(self, temp_db):
        kept = temp_db.create_loan(beneficiary_name="A", amount=Decimal("300"), start_date=date.today())
        gone = temp_db.create_loan(beneficiary_name="B", amount=Decimal("200"), start_date=date.today())
        temp_db.increment_loan_paid(kept, Decimal("100"))
        temp_db.soft_delete_loan(gone)

        assert temp_db.sum_loans(BranchFilter.everything()) == (Decimal("300"), Decimal("100"))
        assert temp_db.get_loan(gone) is None
        assert temp_db.get_loan(gone, include_deleted=True).deleted_at is not None


class TestGuardedIncrements:
    def test_product_increment_refuses_negative_quantity(self, temp_db):
        product_id = temp_db.create_product(name="Wheat", category="raw", unit="kg")
        assert temp_db.increment_product_totals(product_id, quantity_delta=Decimal("5"))

        applied = temp_db.increment_product_totals(product_id, quantity_delta=Decimal("-5.001"))

        assert applied is False
        assert temp_db.get_product(product_id).current_quantity == Decimal("5")

    def test_product_increment_keeps_three_decimal_places(self, temp_db):
        product_id = temp_db.create_product(name="Salt", category="raw", unit="kg")
        temp_db.increment_product_totals(product_id, quantity_delta=Decimal("0.1"))
        temp_db.increment_product_totals(product_id, quantity_delta=Decimal("0.2"))

        assert temp_db.increment_product_totals(product_id, quantity_delta=Decimal("-0.3"))
        assert temp_db.get_product(product_id).current_quantity == Decimal("0")

    def test_loan_paid_stays_within_amount(self, temp_db):
        loan_id = temp_db.create_loan(beneficiary_name="C", amount=Decimal("100"), start_date=date.today())

        assert temp_db.increment_loan_paid(loan_id, Decimal("100")) is True
        assert temp_db.increment_loan_paid(loan_id, Decimal("0.01")) is False
        assert temp_db.increment_loan_paid(loan_id, Decimal("-100.01")) is False
        assert temp_db.get_loan(loan_id).amount_paid == Decimal("100")

    def test_donor_increment_on_missing_donor_raises(self, temp_db):
        with pytest.raises(ValueError, match="Donor 99 not found"):
            temp_db.increment_donor_totals(99, Decimal("10"), 1)


class TestTransactions:
    def test_failed_transaction_rolls_back_every_write(self, temp_db):
        created = []
        with pytest.raises(RuntimeError):
            with temp_db.transaction():
                created.append(temp_db.create_product(name="Temp", category="raw", unit="kg"))
                temp_db.increment_product_totals(created[0], quantity_delta=Decimal("3"))
                raise RuntimeError("boom")

        assert temp_db.get_product(created[0]) is None

    def test_nested_transactions_commit_once(self, temp_db):
        with temp_db.transaction():
            outer = temp_db.create_product(name="Outer", category="raw", unit="kg")
            with temp_db.transaction():
                inner = temp_db.create_product(name="Inner", category="raw", unit="kg")

        assert temp_db.get_product(outer) is not None
        assert temp_db.get_product(inner) is not None
