"""Utility for resolving branch references to IDs."""

from aidledger.domain.branch import BranchService
from aidledger.domain.errors import NotFoundError


def resolve_branch(branch_service: BranchService, branch: str | int) -> int:
    """Resolve a branch ID, code or name to a branch ID.

    Codes match case-insensitively, names exactly.

    Raises:
        NotFoundError: If no branch matches
    """
    if isinstance(branch, int) or str(branch).strip().isdigit():
        branch_id = int(branch)
        if branch_service.get_branch(branch_id) is None:
            raise NotFoundError(f"Branch ID {branch_id} not found")
        return branch_id

    text = str(branch).strip()
    for candidate in branch_service.list_branches():
        if candidate.code == text.upper() or candidate.name == text:
            return candidate.id

    raise NotFoundError(f"Branch '{text}' not found")
