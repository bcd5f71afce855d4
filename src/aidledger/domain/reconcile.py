"""Reconciliation of running counters against their authoritative logs.

Product, donor and notebook totals and loan paid amounts are counters kept
in step with their logs on every write. This service recomputes them from the logs,
reports any drift, and optionally overwrites the counters.
"""

import logging
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import Drift, Principal
from aidledger.domain.ledger import LedgerAggregator
from aidledger.domain.loan import expected_loan_status
from aidledger.domain.product import expected_product_status

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Detects and repairs counter drift."""

    def __init__(
        self,
        db: Database,
        policy: Optional[BranchAccessPolicy] = None,
        ledger: Optional[LedgerAggregator] = None,
    ):
        self.db = db
        self.policy = policy or BranchAccessPolicy()
        self.ledger = ledger or LedgerAggregator(db)

    def check_products(
        self, principal: Principal, fix: bool = False, branch_id: Optional[int] = None
    ) -> list[Drift]:
        """Compare visible products' totals with their operations."""
        self.policy.require_authorized(principal)
        drifts = []
        for product in self.db.list_products(self.policy.resolve_filter(principal, branch_id)):
            derived = self.ledger.derive_product_totals(product.id)
            found = [
                Drift("product", product.id, name, recorded, expected)
                for name, recorded, expected in (
                    ("current_quantity", product.current_quantity, derived.quantity),
                    ("total_cost", product.total_cost, derived.cost),
                    ("total_revenue", product.total_revenue, derived.revenue),
                )
                if recorded != expected
            ]
            for drift in found:
                self._report(drift)
            if found and fix:
                with self.db.transaction():
                    self.db.set_product_totals(
                        product.id, derived.quantity, derived.cost, derived.revenue
                    )
                    repaired = self.db.get_product(product.id)
                    status = expected_product_status(repaired)
                    if status != repaired.status:
                        self.db.update_product(product.id, status=status.value)
                logger.info("Product %s totals reset from its operations", product.id)
            drifts.extend(found)
        return drifts

    def check_loans(
        self, principal: Principal, fix: bool = False, branch_id: Optional[int] = None
    ) -> list[Drift]:
        """Compare visible loans' paid amounts with their repayments."""
        self.policy.require_authorized(principal)
        drifts = []
        for loan in self.db.list_loans(self.policy.resolve_filter(principal, branch_id)):
            repaid = sum((r.amount for r in loan.repayments), Decimal("0"))
            if repaid == loan.amount_paid:
                continue
            drift = Drift("loan", loan.id, "amount_paid", loan.amount_paid, repaid)
            self._report(drift)
            drifts.append(drift)
            if fix:
                with self.db.transaction():
                    if not self.db.increment_loan_paid(loan.id, repaid - loan.amount_paid):
                        logger.warning(
                            "Loan %s repayments (%s) exceed its amount (%s); left for manual repair",
                            loan.id,
                            repaid,
                            loan.amount,
                        )
                        continue
                    repaired = self.db.get_loan(loan.id)
                    status = expected_loan_status(repaired)
                    if status != repaired.status:
                        self.db.update_loan(loan.id, status=status.value)
                logger.info("Loan %s paid amount reset to %s", loan.id, repaid)
        return drifts

    def check_donors(self, principal: Principal, fix: bool = False) -> list[Drift]:
        """Compare donor totals with their linked income transactions.

        Donors span every branch, so only superadmins may run this.
        """
        self.policy.require_superadmin(principal)
        drifts = []
        for donor in self.db.list_donors():
            income = self.db.list_donor_income(donor.id)
            total = sum((t.amount for t in income), Decimal("0"))
            count = len(income)
            found = []
            if total != donor.total_donated:
                found.append(Drift("donor", donor.id, "total_donated", donor.total_donated, total))
            if count != donor.donations_count:
                found.append(
                    Drift(
                        "donor",
                        donor.id,
                        "donations_count",
                        Decimal(donor.donations_count),
                        Decimal(count),
                    )
                )
            for drift in found:
                self._report(drift)
            if found and fix:
                self.db.set_donor_totals(donor.id, total, count)
                logger.info("Donor %s totals reset from %s transactions", donor.id, count)
            drifts.extend(found)
        return drifts

    def check_notebooks(
        self, principal: Principal, fix: bool = False, branch_id: Optional[int] = None
    ) -> list[Drift]:
        """Compare visible notebooks' totals with their linked income transactions."""
        self.policy.require_authorized(principal)
        drifts = []
        for notebook in self.db.list_notebooks(self.policy.resolve_filter(principal, branch_id)):
            income = self.db.list_notebook_income(notebook.id)
            total = sum((t.amount for t in income), Decimal("0"))
            count = len(income)
            found = []
            if total != notebook.total_amount:
                found.append(Drift("notebook", notebook.id, "total_amount", notebook.total_amount, total))
            if count != notebook.transactions_count:
                found.append(
                    Drift(
                        "notebook",
                        notebook.id,
                        "transactions_count",
                        Decimal(notebook.transactions_count),
                        Decimal(count),
                    )
                )
            for drift in found:
                self._report(drift)
            if found and fix:
                self.db.set_notebook_totals(notebook.id, total, count)
                logger.info("Notebook %s totals reset from %s transactions", notebook.id, count)
            drifts.extend(found)
        return drifts

    @staticmethod
    def _report(drift: Drift) -> None:
        logger.warning(
            "%s %s %s drifted: recorded %s, derived %s",
            drift.kind.capitalize(),
            drift.entity_id,
            drift.field,
            drift.recorded,
            drift.derived,
        )
