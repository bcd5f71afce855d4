"""Branch domain service."""

import logging
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import Branch as BranchEntity, Principal
from aidledger.domain.errors import ConflictError, NotFoundError, ValidationError, not_found

logger = logging.getLogger(__name__)


class BranchService:
    """Service for managing branches. Changes are reserved to superadmins."""

    def __init__(self, db: Database, policy: Optional[BranchAccessPolicy] = None):
        """Initialize branch service.

        Args:
            db: Database instance
            policy: Branch access policy
        """
        self.db = db
        self.policy = policy or BranchAccessPolicy()

    def create_branch(
        self,
        principal: Principal,
        name: str,
        code: str,
        address: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> int:
        """Create a branch.

        Args:
            principal: Caller, must be a superadmin
            name: Branch name
            code: Short code, stored uppercase
            address: Optional address
            phone: Optional phone

        Returns:
            Branch ID

        Raises:
            ForbiddenError: If the caller is not a superadmin
            ValidationError: If name or code is empty
            ConflictError: If the name or code is already taken
        """
        self.policy.require_superadmin(principal)
        name = (name or "").strip()
        code = (code or "").strip().upper()
        if not name or not code:
            raise ValidationError("Branch name and code are required")
        self._check_unique(name, code)

        branch_id = self.db.create_branch(name=name, code=code, address=address, phone=phone)
        logger.info("Branch %s '%s' (%s) created", branch_id, name, code)
        return branch_id

    def get_branch(self, branch_id: int) -> Optional[BranchEntity]:
        return self.db.get_branch(branch_id)

    def list_branches(self, active_only: bool = False) -> list[BranchEntity]:
        return self.db.list_branches(active_only=active_only)

    def update_branch(
        self,
        principal: Principal,
        branch_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        address: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> None:
        """Update a branch.

        Raises:
            NotFoundError: If the branch does not exist
            ConflictError: If the new name or code is already taken
        """
        self.policy.require_superadmin(principal)
        if self.db.get_branch(branch_id) is None:
            raise NotFoundError(not_found("Branch", branch_id))
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Branch name cannot be empty")
        if code is not None:
            code = code.strip().upper()
            if not code:
                raise ValidationError("Branch code cannot be empty")
        self._check_unique(name, code, exclude_id=branch_id)

        self.db.update_branch(branch_id, name=name, code=code, address=address, phone=phone)

    def set_active(self, principal: Principal, branch_id: int, is_active: bool) -> None:
        """Activate or deactivate a branch. Inactive branches get no fan-out copies."""
        self.policy.require_superadmin(principal)
        if self.db.get_branch(branch_id) is None:
            raise NotFoundError(not_found("Branch", branch_id))
        self.db.update_branch(branch_id, is_active=is_active)
        logger.info("Branch %s %s", branch_id, "activated" if is_active else "deactivated")

    def _check_unique(
        self, name: Optional[str], code: Optional[str], exclude_id: Optional[int] = None
    ) -> None:
        existing = self.db.find_branch_by_name_or_code(name, code, exclude_id=exclude_id)
        if existing is None:
            return
        if name is not None and existing.name == name:
            raise ConflictError(f"Branch with name '{name}' already exists")
        raise ConflictError(f"Branch with code '{code}' already exists")
