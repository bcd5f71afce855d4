"""Initiative domain service."""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    AllActiveBranches,
    Initiative as InitiativeEntity,
    InitiativeStatus,
    Principal,
)
from aidledger.domain.errors import NotFoundError, ValidationError, not_found

logger = logging.getLogger(__name__)


class InitiativeService:
    """Service for initiatives (charity programs)."""

    def __init__(self, db: Database, policy: Optional[BranchAccessPolicy] = None):
        self.db = db
        self.policy = policy or BranchAccessPolicy()

    def create_initiative(
        self,
        principal: Principal,
        name: str,
        description: str,
        date: Optional[date_type] = None,
        total_amount: Decimal = Decimal("0"),
        status: str = "planned",
        branch_id: Optional[int] = None,
    ) -> list[int]:
        """Create an initiative.

        A superadmin who names no branch gets one copy in every active branch,
        all created in a single transaction.

        Returns:
            IDs of the created initiatives

        Raises:
            ValidationError: If fields are missing or no branch is active for a fan-out
        """
        self.policy.require_authorized(principal)
        if not name or not name.strip() or not description or not description.strip():
            raise ValidationError("Initiative name and description are required")
        if total_amount < 0:
            raise ValidationError("Initiative amount cannot be negative")
        try:
            status = InitiativeStatus(status).value
        except ValueError:
            valid = ", ".join(s.value for s in InitiativeStatus)
            raise ValidationError(f"Unknown initiative status '{status}'. Use one of: {valid}")

        target = self.policy.resolve_fanout_target(principal, branch_id)
        if isinstance(target, AllActiveBranches):
            branch_ids = [b.id for b in self.db.list_branches(active_only=True)]
            if not branch_ids:
                raise ValidationError("No active branches to create the initiative in")
        else:
            branch_ids = [target.branch_id]

        created = []
        with self.db.transaction():
            for target_branch in branch_ids:
                created.append(
                    self.db.create_initiative(
                        name=name.strip(),
                        description=description.strip(),
                        date=date or date_type.today(),
                        total_amount=total_amount,
                        status=status,
                        branch_id=target_branch,
                    )
                )

        logger.info("Initiative '%s' created in %s branch(es)", name, len(created))
        return created

    def get_initiative(self, principal: Principal, initiative_id: int) -> InitiativeEntity:
        self.policy.require_authorized(principal)
        initiative = self.db.get_initiative(initiative_id)
        if initiative is None:
            raise NotFoundError(not_found("Initiative", initiative_id))
        self.policy.ensure_visible(principal, initiative.branch_id, "Initiative", initiative_id)
        return initiative

    def list_initiatives(
        self, principal: Principal, branch_id: Optional[int] = None
    ) -> list[InitiativeEntity]:
        self.policy.require_authorized(principal)
        return self.db.list_initiatives(self.policy.resolve_filter(principal, branch_id))
