"""Branch-scoped access rules.

Every query a service runs is narrowed by the filter resolved here, and every
create resolves its target branch here. Superadmins see all branches and may
narrow to one; everyone else sees their own branch plus legacy records that
carry no branch.
"""

import logging
from typing import Optional, Union

from aidledger.domain.entities import (
    AllActiveBranches,
    BranchFilter,
    Principal,
    SingleBranch,
)
from aidledger.domain.errors import (
    ForbiddenError,
    ValidationError,
    branch_required,
    outside_branch,
)

logger = logging.getLogger(__name__)

FanoutTarget = Union[SingleBranch, AllActiveBranches]


class BranchAccessPolicy:
    """Resolves read filters and write targets for a principal."""

    def resolve_filter(
        self, principal: Principal, branch_override: Optional[int] = None
    ) -> BranchFilter:
        """Build the visibility filter for a principal.

        Args:
            principal: Authenticated caller
            branch_override: Branch to narrow to. Only honoured for superadmins.

        Returns:
            BranchFilter to apply to every aggregate of the request
        """
        if principal.is_superadmin:
            if branch_override is not None:
                return BranchFilter.only(branch_override)
            return BranchFilter.everything()

        if branch_override is not None and branch_override != principal.branch_id:
            logger.debug(
                "Ignoring branch override %s for %s user %s",
                branch_override,
                principal.role.value,
                principal.user_id,
            )

        if principal.branch_id is not None:
            return BranchFilter.own_with_legacy(principal.branch_id)
        return BranchFilter.legacy_only()

    def resolve_decision_filter(
        self, principal: Principal, branch_id: Optional[int]
    ) -> BranchFilter:
        """Filter for a fund or stock check on behalf of one branch.

        Matches what the principal sees on that branch's summary: a superadmin
        narrowed to the branch (or to legacy records for branchless ones),
        anyone else their usual own-plus-legacy view.
        """
        if principal.is_superadmin:
            if branch_id is None:
                return BranchFilter.legacy_only()
            return BranchFilter.only(branch_id)
        return self.resolve_filter(principal)

    def resolve_target_branch(
        self, principal: Principal, requested_branch_id: Optional[int] = None
    ) -> Optional[int]:
        """Resolve the branch a new record is written to.

        Raises:
            ValidationError: If a superadmin does not name a branch
        """
        if principal.is_superadmin:
            if requested_branch_id is None:
                raise ValidationError(branch_required())
            return requested_branch_id
        return principal.branch_id

    def resolve_fanout_target(
        self, principal: Principal, requested_branch_id: Optional[int] = None
    ) -> FanoutTarget:
        """Resolve the target of a create that may fan out to every branch.

        A superadmin who names no branch creates one copy per active branch
        instead of being rejected.
        """
        if principal.is_superadmin and requested_branch_id is None:
            return AllActiveBranches()
        if principal.is_superadmin:
            return SingleBranch(requested_branch_id)
        return SingleBranch(principal.branch_id)

    def require_authorized(self, principal: Principal) -> None:
        """Reject principals without ledger access (plain users)."""
        if not principal.is_authorized:
            raise ForbiddenError(f"User {principal.user_id} is not allowed to access ledger data")

    def require_superadmin(self, principal: Principal) -> None:
        if not principal.is_superadmin:
            raise ForbiddenError("Forbidden - superadmin only")

    def ensure_visible(
        self, principal: Principal, branch_id: Optional[int], kind: str, entity_id: int
    ) -> None:
        """Reject mutations of a record outside the principal's filter."""
        if not self.resolve_filter(principal).matches(branch_id):
            raise ForbiddenError(outside_branch(kind, entity_id))
