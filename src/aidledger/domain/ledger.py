"""Derived balances computed from the raw logs.

Every figure here takes the same ``BranchFilter`` the caller resolved once
for the request, so a summary and the check guarding a write agree.

Legacy records (no branch) form one pool shared by every branch. A branch
that has spent more than its own records hold has drawn the difference from
that pool, so a filter that includes legacy records only counts what other
branches have left of it.
"""

from decimal import Decimal
from typing import Callable, Optional

from aidledger.database.base import Database
from aidledger.domain.entities import (
    BranchFilter,
    LoanFundSummary,
    OperationType,
    ProductTotals,
    TreasuryTotals,
)
from aidledger.domain.errors import NotFoundError, not_found
from aidledger.domain.normalize import normalize_item_name

ZERO = Decimal("0")
ZERO_QUANTITY = Decimal("0.000")


def shares_legacy_pool(branch_filter: BranchFilter) -> bool:
    """True for filters that see legacy records next to (at most) one branch."""
    return not branch_filter.unrestricted and branch_filter.include_unassigned


class LedgerAggregator:
    """Read-only aggregate queries over loans, products, warehouse and treasury."""

    def __init__(self, db: Database):
        """Initialize ledger aggregator.

        Args:
            db: Database instance
        """
        self.db = db

    def loan_fund_summary(self, branch_filter: BranchFilter) -> LoanFundSummary:
        """Capital, disbursed principal and repayments for the filter."""
        summary = self._raw_fund_summary(branch_filter)
        if not shares_legacy_pool(branch_filter):
            return summary
        drawn = self._legacy_drawn_elsewhere(
            branch_filter, lambda f: self._raw_fund_summary(f).available_fund
        )
        return LoanFundSummary(
            total_fund=summary.total_fund,
            total_disbursed=summary.total_disbursed,
            total_repaid=summary.total_repaid,
            legacy_drawn_elsewhere=drawn,
        )

    def available_loan_fund(self, branch_filter: BranchFilter) -> Decimal:
        """Capital minus outstanding principal of non-deleted loans."""
        return self.loan_fund_summary(branch_filter).available_fund

    def product_balance(self, product_id: int) -> Decimal:
        """Current quantity of a product as maintained by its operations."""
        product = self.db.get_product(product_id)
        if product is None:
            raise NotFoundError(not_found("Product", product_id))
        return product.current_quantity

    def derive_product_totals(self, product_id: int) -> ProductTotals:
        """Recompute a product's totals from its non-deleted operations.

        Quantity is purchases plus transform inputs received, minus sales,
        donations and transform outputs. Cost is purchases plus expenses.
        Revenue is sales.
        """
        quantity = Decimal("0")
        cost = Decimal("0")
        revenue = Decimal("0")

        for op in self.db.list_product_operations(product_id=product_id):
            if op.type == OperationType.PURCHASE:
                quantity += op.quantity
                cost += op.amount
            elif op.type == OperationType.EXPENSE:
                cost += op.amount
            elif op.type == OperationType.SALE:
                quantity -= op.quantity
                revenue += op.amount
            else:
                quantity -= op.quantity

        for op in self.db.list_product_operations(target_product_id=product_id):
            if op.type == OperationType.TRANSFORM:
                quantity += op.target_quantity

        return ProductTotals(quantity=quantity, cost=cost, revenue=revenue)

    def warehouse_stock(
        self,
        item_name: str,
        branch_filter: BranchFilter,
        exclude_movement_id: Optional[int] = None,
    ) -> Decimal:
        """Inbound minus outbound quantity of one item."""
        item_name = normalize_item_name(item_name)

        def balance(f: BranchFilter) -> Decimal:
            inbound = self.db.sum_warehouse(f, "product", "inbound", item_name, exclude_movement_id)
            outbound = self.db.sum_warehouse(f, "product", "outbound", item_name, exclude_movement_id)
            return inbound - outbound

        stock = balance(branch_filter)
        if shares_legacy_pool(branch_filter):
            stock -= self._legacy_drawn_elsewhere(branch_filter, balance)
        return stock

    def warehouse_cash(self, branch_filter: BranchFilter) -> Decimal:
        """Inbound minus outbound value of cash movements."""
        inbound = self.db.sum_warehouse(branch_filter, "cash", "inbound")
        outbound = self.db.sum_warehouse(branch_filter, "cash", "outbound")
        return inbound - outbound

    def warehouse_inventory(self, branch_filter: BranchFilter) -> dict[str, Decimal]:
        """Items with stock on hand, by name."""
        balances = self.db.warehouse_item_balances(branch_filter)
        if shares_legacy_pool(branch_filter):
            balances = {name: self.warehouse_stock(name, branch_filter) for name in balances}
        return {
            name: quantity
            for name, quantity in sorted(balances.items())
            if quantity > ZERO_QUANTITY
        }

    def treasury_totals(self, branch_filter: BranchFilter) -> TreasuryTotals:
        income_total, expense_total = self.db.sum_treasury(branch_filter)
        return TreasuryTotals(income_total=income_total, expense_total=expense_total)

    def _raw_fund_summary(self, branch_filter: BranchFilter) -> LoanFundSummary:
        total_fund = self.db.sum_loan_capital(branch_filter)
        total_disbursed, total_repaid = self.db.sum_loans(branch_filter)
        return LoanFundSummary(
            total_fund=total_fund,
            total_disbursed=total_disbursed,
            total_repaid=total_repaid,
        )

    def _legacy_drawn_elsewhere(
        self, branch_filter: BranchFilter, balance: Callable[[BranchFilter], Decimal]
    ) -> Decimal:
        """Part of the legacy pool spent by branches outside the filter.

        Each branch whose own records are below zero has covered the gap from
        the pool. Deactivated branches count too.
        """
        drawn = ZERO
        for branch in self.db.list_branches():
            if branch.id == branch_filter.branch_id:
                continue
            own = balance(BranchFilter.only(branch.id))
            if own < ZERO:
                drawn -= own
        return drawn
