"""Treasury domain service: the income and expense journal."""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.donor import DonorService
from aidledger.domain.entities import (
    Principal,
    TransactionType,
    TreasuryTotals,
    TreasuryTransaction as TreasuryTransactionEntity,
)
from aidledger.domain.errors import NotFoundError, ValidationError, not_found
from aidledger.domain.ledger import LedgerAggregator
from aidledger.domain.notebook import NotebookService

logger = logging.getLogger(__name__)


class TreasuryService:
    """Service for treasury transactions and their donor and notebook side effects."""

    def __init__(
        self,
        db: Database,
        policy: Optional[BranchAccessPolicy] = None,
        donors: Optional[DonorService] = None,
        ledger: Optional[LedgerAggregator] = None,
        notebooks: Optional[NotebookService] = None,
    ):
        self.db = db
        self.policy = policy or BranchAccessPolicy()
        self.donors = donors or DonorService(db, self.policy)
        self.ledger = ledger or LedgerAggregator(db)
        self.notebooks = notebooks or NotebookService(db, self.policy)

    def create_transaction(
        self,
        principal: Principal,
        transaction_type: str,
        amount: Decimal,
        description: str,
        transaction_date: Optional[date_type] = None,
        category: str = "general",
        reference: Optional[str] = None,
        donor: Optional[str | int] = None,
        branch_id: Optional[int] = None,
        notebook: Optional[str | int] = None,
    ) -> int:
        """Record an income or expense.

        An income naming a donor resolves (or creates) the donor and adds the
        amount to the donor's totals in the same transaction. A notebook is
        resolved (or created) within the target branch and updated the same way.

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount is not positive, the description is
                missing or an expense names a donor or notebook
        """
        self.policy.require_authorized(principal)
        kind = self._parse_type(transaction_type)
        self._validate(kind, amount, description, donor, notebook)
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        txn_date = transaction_date or date_type.today()

        with self.db.transaction():
            donor_entity = self.donors.resolve_donor(donor) if donor is not None else None
            notebook_entity = (
                self.notebooks.resolve_notebook(notebook, target_branch) if notebook is not None else None
            )
            txn_id = self.db.create_treasury_transaction(
                type=kind.value,
                amount=amount,
                description=description.strip(),
                transaction_date=txn_date,
                category=category or "general",
                reference=reference,
                donor_id=donor_entity.id if donor_entity else None,
                donor_name_snapshot=donor_entity.name if donor_entity else None,
                branch_id=target_branch,
                created_by=principal.user_id,
                notebook_id=notebook_entity.id if notebook_entity else None,
                notebook_name_snapshot=notebook_entity.name if notebook_entity else None,
            )
            if donor_entity is not None:
                self.donors.record_donation(donor_entity.id, amount, txn_date)
            if notebook_entity is not None:
                self.notebooks.record_use(notebook_entity.id, amount, txn_date)

        logger.info(
            "Recorded %s of %s in branch %s (transaction %s)",
            kind.value,
            amount,
            target_branch,
            txn_id,
        )
        return txn_id

    def get_transaction(self, principal: Principal, transaction_id: int) -> TreasuryTransactionEntity:
        self.policy.require_authorized(principal)
        txn = self.db.get_treasury_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(not_found("Transaction", transaction_id))
        self.policy.ensure_visible(principal, txn.branch_id, "Transaction", transaction_id)
        return txn

    def list_transactions(
        self,
        principal: Principal,
        branch_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[TreasuryTransactionEntity]:
        self.policy.require_authorized(principal)
        branch_filter = self.policy.resolve_filter(principal, branch_id)
        return self.db.list_treasury_transactions(branch_filter, limit=limit)

    def totals(self, principal: Principal, branch_id: Optional[int] = None) -> TreasuryTotals:
        self.policy.require_authorized(principal)
        return self.ledger.treasury_totals(self.policy.resolve_filter(principal, branch_id))

    def update_transaction(
        self,
        principal: Principal,
        transaction_id: int,
        transaction_type: Optional[str] = None,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        reference: Optional[str] = None,
        transaction_date: Optional[date_type] = None,
        donor: Optional[str | int] = None,
        notebook: Optional[str | int] = None,
    ) -> None:
        """Edit a transaction, moving its donor and notebook effects to the new values.

        The old donation and notebook use (if any) are reverted and the new
        ones applied, so a changed amount or date lands on the right totals.
        An expense keeps neither.
        """
        with self.db.transaction():
            old = self.get_transaction(principal, transaction_id)
            kind = self._parse_type(transaction_type) if transaction_type else old.type
            new_amount = old.amount if amount is None else amount
            new_description = old.description if description is None else description
            new_date = transaction_date or old.transaction_date

            snapshot = old.donor_name_snapshot
            new_notebook = None
            if kind == TransactionType.EXPENSE:
                new_donor = None
                snapshot = None
            elif donor is not None:
                new_donor = self.donors.resolve_donor(donor)
            elif old.donor_id is not None:
                new_donor = self.donors.get_donor(old.donor_id)
            else:
                new_donor = None
            if kind == TransactionType.INCOME:
                if notebook is not None:
                    new_notebook = self.notebooks.resolve_notebook(notebook, old.branch_id)
                elif old.notebook_id is not None:
                    new_notebook = self.db.get_notebook(old.notebook_id)
            self._validate(kind, new_amount, new_description, donor, notebook)

            if old.type == TransactionType.INCOME and old.donor_id is not None:
                self.donors.revert_donation(old.donor_id, old.amount)
            if old.type == TransactionType.INCOME and old.notebook_id is not None:
                self.notebooks.revert_use(old.notebook_id, old.amount)

            self.db.update_treasury_transaction(
                transaction_id,
                type=kind.value,
                amount=new_amount,
                description=new_description.strip(),
                category=category or old.category,
                reference=reference if reference is not None else old.reference,
                transaction_date=new_date,
                donor_id=new_donor.id if new_donor else None,
                donor_name_snapshot=new_donor.name if new_donor else snapshot,
                notebook_id=new_notebook.id if new_notebook else None,
                notebook_name_snapshot=new_notebook.name if new_notebook else None,
            )
            if new_donor is not None:
                self.donors.record_donation(new_donor.id, new_amount, new_date)
            if new_notebook is not None:
                self.notebooks.record_use(new_notebook.id, new_amount, new_date)

        logger.info("Updated treasury transaction %s", transaction_id)

    def delete_transaction(self, principal: Principal, transaction_id: int) -> None:
        """Delete a transaction, taking an income back off its donor and notebook totals."""
        with self.db.transaction():
            txn = self.get_transaction(principal, transaction_id)
            if txn.type == TransactionType.INCOME and txn.donor_id is not None:
                self.donors.revert_donation(txn.donor_id, txn.amount)
            if txn.type == TransactionType.INCOME and txn.notebook_id is not None:
                self.notebooks.revert_use(txn.notebook_id, txn.amount)
            self.db.delete_treasury_transaction(transaction_id)

        logger.info("Deleted treasury transaction %s (%s %s)", transaction_id, txn.type.value, txn.amount)

    @staticmethod
    def _parse_type(transaction_type: str) -> TransactionType:
        try:
            return TransactionType(transaction_type)
        except ValueError:
            raise ValidationError(
                f"Unknown transaction type '{transaction_type}'. Use income or expense"
            )

    @staticmethod
    def _validate(
        kind: TransactionType,
        amount: Optional[Decimal],
        description: Optional[str],
        donor: Optional[str | int],
        notebook: Optional[str | int] = None,
    ) -> None:
        if amount is None or amount <= 0:
            raise ValidationError("Transaction amount must be positive")
        if not description or not description.strip():
            raise ValidationError("Transaction description is required")
        if kind == TransactionType.EXPENSE and donor is not None:
            raise ValidationError("Only income transactions can name a donor")
        if kind == TransactionType.EXPENSE and notebook is not None:
            raise ValidationError("Only income transactions can name a notebook")
