"""Loan domain service: lending fund, loans and repayments."""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    BranchFilter,
    Loan as LoanEntity,
    LoanCapital as LoanCapitalEntity,
    LoanFundSummary,
    LoanStatus,
    Principal,
    Repayment,
)
from aidledger.domain.errors import (
    InsufficientFundError,
    NotFoundError,
    ValidationError,
    insufficient_fund,
    not_found,
)
from aidledger.domain.ledger import LedgerAggregator

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def expected_loan_status(loan: LoanEntity) -> LoanStatus:
    """Status implied by what has been paid.

    A defaulted loan keeps its status; only ``reactivate`` clears it.
    """
    if loan.status == LoanStatus.DEFAULTED:
        return LoanStatus.DEFAULTED
    if loan.amount_paid >= loan.amount:
        return LoanStatus.COMPLETED
    return LoanStatus.ACTIVE


class LoanService:
    """Service for the lending fund, loans and their repayments."""

    def __init__(
        self,
        db: Database,
        policy: Optional[BranchAccessPolicy] = None,
        ledger: Optional[LedgerAggregator] = None,
    ):
        """Initialize loan service.

        Args:
            db: Database instance
            policy: Branch access policy
            ledger: Aggregator used for fund checks
        """
        self.db = db
        self.policy = policy or BranchAccessPolicy()
        self.ledger = ledger or LedgerAggregator(db)

    # Fund
    def fund_summary(self, principal: Principal, branch_id: Optional[int] = None) -> LoanFundSummary:
        """Fund figures for what the principal sees (superadmins may narrow)."""
        self.policy.require_authorized(principal)
        return self.ledger.loan_fund_summary(self.policy.resolve_filter(principal, branch_id))

    def add_capital(
        self,
        principal: Principal,
        amount: Decimal,
        source: str,
        date: Optional[date_type] = None,
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Record a contribution to the lending fund.

        Returns:
            Loan capital entry ID
        """
        self.policy.require_authorized(principal)
        if amount is None or amount <= ZERO:
            raise ValidationError("Capital amount must be positive")
        if not source or not source.strip():
            raise ValidationError("Capital source is required")
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        capital_id = self.db.create_loan_capital(
            amount=amount,
            source=source.strip(),
            date=date or date_type.today(),
            notes=notes,
            branch_id=target_branch,
            recorded_by=principal.user_id,
        )
        logger.info("Added %s to loan fund of branch %s", amount, target_branch)
        return capital_id

    def list_capital(
        self, principal: Principal, branch_id: Optional[int] = None
    ) -> list[LoanCapitalEntity]:
        self.policy.require_authorized(principal)
        return self.db.list_loan_capital(self.policy.resolve_filter(principal, branch_id))

    def update_capital(
        self,
        principal: Principal,
        capital_id: int,
        amount: Optional[Decimal] = None,
        source: Optional[str] = None,
        notes: Optional[str] = None,
        date: Optional[date_type] = None,
    ) -> None:
        """Edit a contribution. Lowering it may not leave the fund negative."""
        if amount is not None and amount <= ZERO:
            raise ValidationError("Capital amount must be positive")
        with self.db.transaction():
            capital = self._get_capital(principal, capital_id)
            self.db.update_loan_capital(
                capital_id, amount=amount, source=source, notes=notes, date=date
            )
            if amount is not None and amount < capital.amount:
                self._verify_fund(principal, capital.branch_id, capital.amount - amount)

    def delete_capital(self, principal: Principal, capital_id: int) -> None:
        """Remove a contribution unless loans already depend on it."""
        with self.db.transaction():
            capital = self._get_capital(principal, capital_id)
            self.db.delete_loan_capital(capital_id)
            self._verify_fund(principal, capital.branch_id, capital.amount)
        logger.info("Removed loan capital entry %s (%s)", capital_id, capital.amount)

    # Loans
    def create_loan(
        self,
        principal: Principal,
        beneficiary_name: str,
        amount: Decimal,
        start_date: Optional[date_type] = None,
        due_date: Optional[date_type] = None,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Disburse a loan from the branch's fund.

        The fund is checked before the insert and again after it, inside the
        same transaction, so two concurrent loans cannot overdraw it.

        Returns:
            Loan ID

        Raises:
            ValidationError: If the input is invalid or a superadmin gives no branch
            InsufficientFundError: If the fund cannot cover the amount
        """
        self.policy.require_authorized(principal)
        if not beneficiary_name or not beneficiary_name.strip():
            raise ValidationError("Beneficiary name is required")
        if amount is None or amount <= ZERO:
            raise ValidationError("Loan amount must be positive")
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        fund_filter = self.policy.resolve_decision_filter(principal, target_branch)

        with self.db.transaction():
            available = self.ledger.available_loan_fund(fund_filter)
            if amount > available:
                logger.warning(
                    "Rejected loan of %s for branch %s: available fund %s",
                    amount,
                    target_branch,
                    available,
                )
                raise InsufficientFundError(insufficient_fund(amount, available))
            loan_id = self.db.create_loan(
                beneficiary_name=beneficiary_name.strip(),
                amount=amount,
                start_date=start_date or date_type.today(),
                national_id=national_id,
                phone=phone,
                due_date=due_date,
                notes=notes,
                branch_id=target_branch,
                created_by=principal.user_id,
            )
            self._ensure_fund_not_negative(fund_filter, amount)

        logger.info("Loan %s of %s created in branch %s", loan_id, amount, target_branch)
        return loan_id

    def get_loan(self, principal: Principal, loan_id: int) -> LoanEntity:
        """Get a visible, non-deleted loan.

        Raises:
            NotFoundError: If the loan does not exist or is deleted
            ForbiddenError: If it belongs to another branch
        """
        self.policy.require_authorized(principal)
        loan = self.db.get_loan(loan_id)
        if loan is None:
            raise NotFoundError(not_found("Loan", loan_id))
        self.policy.ensure_visible(principal, loan.branch_id, "Loan", loan_id)
        return loan

    def list_loans(
        self,
        principal: Principal,
        branch_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[LoanEntity]:
        self.policy.require_authorized(principal)
        if status is not None:
            self._parse_status(status)
        branch_filter = self.policy.resolve_filter(principal, branch_id)
        return self.db.list_loans(branch_filter, status=status, search=search)

    def update_loan(
        self,
        principal: Principal,
        loan_id: int,
        beneficiary_name: Optional[str] = None,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        due_date: Optional[date_type] = None,
        amount: Optional[Decimal] = None,
    ) -> LoanEntity:
        """Edit a loan. Raising the principal re-checks the fund.

        Raises:
            ValidationError: If the amount is not positive or below what was paid
            InsufficientFundError: If the fund cannot cover the increase
        """
        if beneficiary_name is not None and not beneficiary_name.strip():
            raise ValidationError("Beneficiary name is required")
        with self.db.transaction():
            loan = self.get_loan(principal, loan_id)
            if amount is not None:
                if amount <= ZERO:
                    raise ValidationError("Loan amount must be positive")
                if amount < loan.amount_paid:
                    raise ValidationError(
                        f"Loan amount cannot be lower than the amount already paid ({loan.amount_paid})"
                    )
            self.db.update_loan(
                loan_id,
                beneficiary_name=beneficiary_name.strip() if beneficiary_name else None,
                national_id=national_id,
                phone=phone,
                notes=notes,
                due_date=due_date,
                amount=amount,
            )
            if amount is not None and amount > loan.amount:
                self._verify_fund(principal, loan.branch_id, amount - loan.amount)
            self._sync_status(loan_id)
        return self.db.get_loan(loan_id)

    def delete_loan(self, principal: Principal, loan_id: int) -> None:
        """Soft delete a loan, returning its outstanding principal to the fund."""
        self.get_loan(principal, loan_id)
        self.db.soft_delete_loan(loan_id)
        logger.info("Loan %s deleted", loan_id)

    def mark_defaulted(self, principal: Principal, loan_id: int) -> None:
        self.get_loan(principal, loan_id)
        self.db.update_loan(loan_id, status=LoanStatus.DEFAULTED.value)
        logger.info("Loan %s marked defaulted", loan_id)

    def reactivate(self, principal: Principal, loan_id: int) -> None:
        """Clear a defaulted status, restoring the status implied by payments."""
        loan = self.get_loan(principal, loan_id)
        if loan.status != LoanStatus.DEFAULTED:
            raise ValidationError(f"Loan {loan_id} is not defaulted")
        status = LoanStatus.COMPLETED if loan.amount_paid >= loan.amount else LoanStatus.ACTIVE
        self.db.update_loan(loan_id, status=status.value)
        logger.info("Loan %s reactivated as %s", loan_id, status.value)

    # Repayments
    def add_repayment(
        self,
        principal: Principal,
        loan_id: int,
        amount: Decimal,
        date: Optional[date_type] = None,
        notes: Optional[str] = None,
    ) -> LoanEntity:
        """Record a repayment.

        Raises:
            ValidationError: If the amount is not positive or exceeds what remains
        """
        if amount is None or amount <= ZERO:
            raise ValidationError("Repayment amount must be positive")
        with self.db.transaction():
            loan = self.get_loan(principal, loan_id)
            if loan.amount_paid + amount > loan.amount:
                logger.warning(
                    "Rejected repayment of %s on loan %s with %s remaining",
                    amount,
                    loan_id,
                    loan.remaining_amount,
                )
                raise ValidationError(
                    f"Repayment of {amount} exceeds the remaining amount ({loan.remaining_amount})"
                )
            self.db.add_repayment(
                loan_id,
                amount=amount,
                date=date or date_type.today(),
                notes=notes,
                recorded_by=principal.user_id,
            )
            self._increment_paid(loan_id, amount)
            self._sync_status(loan_id)

        logger.info("Repayment of %s recorded on loan %s", amount, loan_id)
        return self.db.get_loan(loan_id)

    def update_repayment(
        self,
        principal: Principal,
        loan_id: int,
        index: int,
        amount: Optional[Decimal] = None,
        date: Optional[date_type] = None,
        notes: Optional[str] = None,
    ) -> LoanEntity:
        """Edit the repayment at ``index`` (0 is the first recorded)."""
        if amount is not None and amount <= ZERO:
            raise ValidationError("Repayment amount must be positive")
        with self.db.transaction():
            loan = self.get_loan(principal, loan_id)
            old = self._repayment_at(loan, index)
            delta = ZERO if amount is None else amount - old.amount
            if loan.amount_paid + delta > loan.amount:
                raise ValidationError(
                    f"Repayment of {amount} exceeds the remaining amount "
                    f"({loan.remaining_amount + old.amount})"
                )
            self.db.update_repayment(loan_id, index, amount=amount, date=date, notes=notes)
            self._increment_paid(loan_id, delta)
            self._sync_status(loan_id)

        logger.info("Repayment %s on loan %s amended by %s", index, loan_id, delta)
        return self.db.get_loan(loan_id)

    def delete_repayment(self, principal: Principal, loan_id: int, index: int) -> LoanEntity:
        """Remove the repayment at ``index``; the paid total never drops below 0."""
        with self.db.transaction():
            loan = self.get_loan(principal, loan_id)
            old = self._repayment_at(loan, index)
            self.db.delete_repayment(loan_id, index)
            self._increment_paid(loan_id, -min(old.amount, loan.amount_paid))
            self._sync_status(loan_id)

        logger.info("Repayment %s of %s removed from loan %s", index, old.amount, loan_id)
        return self.db.get_loan(loan_id)

    def _get_capital(self, principal: Principal, capital_id: int) -> LoanCapitalEntity:
        self.policy.require_authorized(principal)
        capital = self.db.get_loan_capital(capital_id)
        if capital is None:
            raise NotFoundError(not_found("Loan capital entry", capital_id))
        self.policy.ensure_visible(principal, capital.branch_id, "Loan capital entry", capital_id)
        return capital

    def _verify_fund(self, principal: Principal, branch_id: Optional[int], requested: Decimal) -> None:
        fund_filter = self.policy.resolve_decision_filter(principal, branch_id)
        self._ensure_fund_not_negative(fund_filter, requested)

    def _ensure_fund_not_negative(self, fund_filter: BranchFilter, requested: Decimal) -> None:
        available = self.ledger.available_loan_fund(fund_filter)
        if available < ZERO:
            logger.warning("Fund check failed after write: available %s", available)
            raise InsufficientFundError(insufficient_fund(requested, available + requested))

    def _increment_paid(self, loan_id: int, delta: Decimal) -> None:
        if delta == ZERO:
            return
        if not self.db.increment_loan_paid(loan_id, delta):
            raise ValidationError(f"Paid amount of loan {loan_id} must stay between 0 and the loan amount")

    def _sync_status(self, loan_id: int) -> None:
        loan = self.db.get_loan(loan_id)
        status = expected_loan_status(loan)
        if status != loan.status:
            self.db.update_loan(loan_id, status=status.value)
            logger.info("Loan %s is now %s", loan_id, status.value)

    @staticmethod
    def _repayment_at(loan: LoanEntity, index: int) -> Repayment:
        if index < 0 or index >= len(loan.repayments):
            raise NotFoundError(f"Repayment {index} not found on loan {loan.id}")
        return loan.repayments[index]

    @staticmethod
    def _parse_status(status: str) -> LoanStatus:
        try:
            return LoanStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in LoanStatus)
            raise ValidationError(f"Unknown loan status '{status}'. Use one of: {valid}")
