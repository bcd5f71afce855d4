"""Donor domain service.

Donors are shared by every branch. Their totals are running counters kept in
step with income transactions; ``relink`` repairs historical transactions
recorded before donors were linked by ID.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    Donor as DonorEntity,
    Principal,
    TreasuryTransaction as TreasuryTransactionEntity,
)
from aidledger.domain.errors import NotFoundError, ValidationError, not_found
from aidledger.domain.normalize import donor_name_pattern, normalize_donor_name

logger = logging.getLogger(__name__)


class DonorService:
    """Service for resolving donors and maintaining their totals."""

    def __init__(self, db: Database, policy: Optional[BranchAccessPolicy] = None):
        """Initialize donor service.

        Args:
            db: Database instance
            policy: Branch access policy
        """
        self.db = db
        self.policy = policy or BranchAccessPolicy()

    def resolve_donor(self, name_or_id: str | int) -> DonorEntity:
        """Find a donor by ID or name, creating one for an unknown name.

        Names match case-insensitively with whitespace collapsed.

        Args:
            name_or_id: Donor ID (int or numeric string) or donor name

        Returns:
            Donor entity

        Raises:
            NotFoundError: If an ID is given and no donor has it
            ValidationError: If the name is empty
        """
        if isinstance(name_or_id, int):
            return self.get_donor(name_or_id)

        text = (name_or_id or "").strip()
        if text.isdigit():
            return self.get_donor(int(text))
        if not text:
            raise ValidationError("Donor name is required")

        normalized = normalize_donor_name(text)
        donor = self.db.get_donor_by_normalized_name(normalized)
        if donor is not None:
            return donor

        donor_id = self.db.create_donor(name=" ".join(text.split()), name_normalized=normalized)
        logger.info("Created donor %s '%s'", donor_id, text)
        return self.db.get_donor(donor_id)

    def get_donor(self, donor_id: int) -> DonorEntity:
        donor = self.db.get_donor(donor_id)
        if donor is None:
            raise NotFoundError(not_found("Donor", donor_id))
        return donor

    def find_donor(self, name_or_id: str | int) -> DonorEntity:
        """Find an existing donor by ID or name without creating one."""
        text = str(name_or_id).strip()
        if text.isdigit():
            return self.get_donor(int(text))
        donor = self.db.get_donor_by_normalized_name(normalize_donor_name(text))
        if donor is None:
            raise NotFoundError(f"Donor '{text}' not found")
        return donor

    def list_donors(self, limit: Optional[int] = None) -> list[DonorEntity]:
        """List donors, biggest total first."""
        return self.db.list_donors(limit=limit)

    def donation_history(self, donor_id: int) -> list[TreasuryTransactionEntity]:
        """Income transactions linked to a donor, oldest first."""
        self.get_donor(donor_id)
        return self.db.list_donor_income(donor_id)

    def adjust_donor_totals(
        self,
        donor_id: int,
        amount_delta: Decimal,
        count_delta: int,
        last_donation_date: Optional[date] = None,
    ) -> None:
        """Atomically move a donor's running totals."""
        try:
            self.db.increment_donor_totals(
                donor_id,
                amount_delta=amount_delta,
                count_delta=count_delta,
                last_donation_date=last_donation_date,
            )
        except ValueError:
            raise NotFoundError(not_found("Donor", donor_id))

    def record_donation(self, donor_id: int, amount: Decimal, donation_date: date) -> None:
        self.adjust_donor_totals(donor_id, amount, 1, donation_date)

    def revert_donation(self, donor_id: int, amount: Decimal) -> None:
        self.adjust_donor_totals(donor_id, -amount, -1)

    def relink(self, principal: Principal, donor_id: int) -> int:
        """Link unlinked income transactions whose donor name matches.

        Only the donor ID is set; totals are left alone. A transaction that
        cannot be linked is logged and skipped.

        Returns:
            Number of transactions linked
        """
        self.policy.require_authorized(principal)
        donor = self.get_donor(donor_id)
        pattern = donor_name_pattern(donor.name)

        linked = 0
        for txn in self.db.list_unlinked_income():
            if not txn.donor_name_snapshot or not pattern.match(txn.donor_name_snapshot):
                continue
            try:
                with self.db.transaction():
                    self.db.set_transaction_donor(txn.id, donor_id)
            except Exception:
                logger.warning(
                    "Could not link transaction %s to donor %s", txn.id, donor_id, exc_info=True
                )
                continue
            linked += 1

        logger.info("Linked %s transactions to donor %s", linked, donor_id)
        return linked
