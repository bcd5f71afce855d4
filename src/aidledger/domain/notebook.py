"""Notebook domain service.

A notebook is a named collection book within one branch. Income recorded
against a notebook adds to its running count and total, which are kept in
step with the linked treasury transactions the same way donor totals are.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    Notebook as NotebookEntity,
    Principal,
    TreasuryTransaction as TreasuryTransactionEntity,
)
from aidledger.domain.errors import ConflictError, NotFoundError, ValidationError, not_found
from aidledger.domain.normalize import normalize_notebook_name

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


class NotebookService:
    """Service for branch notebooks and their running totals."""

    def __init__(self, db: Database, policy: Optional[BranchAccessPolicy] = None):
        self.db = db
        self.policy = policy or BranchAccessPolicy()

    def create_notebook(
        self,
        principal: Principal,
        name: str,
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Create an empty notebook in the target branch.

        Returns:
            Notebook ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If the branch already has a notebook by that name
        """
        self.policy.require_authorized(principal)
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        text = self._clean_name(name)
        normalized = normalize_notebook_name(text)
        if self.db.get_notebook_by_normalized_name(normalized, target_branch) is not None:
            raise ConflictError(f"Notebook '{text}' already exists in this branch")

        notebook_id = self.db.create_notebook(
            name=text, name_normalized=normalized, branch_id=target_branch, notes=notes
        )
        logger.info("Created notebook %s '%s' in branch %s", notebook_id, text, target_branch)
        return notebook_id

    def resolve_notebook(self, name_or_id: str | int, branch_id: Optional[int]) -> NotebookEntity:
        """Find a branch's notebook by ID or name, creating one for an unknown name.

        Raises:
            NotFoundError: If an ID is given and no notebook has it
            ValidationError: If the name is empty or the ID belongs to another branch
        """
        text = str(name_or_id).strip()
        if text.isdigit():
            notebook = self._get(int(text))
            if notebook.branch_id != branch_id:
                raise ValidationError(f"Notebook {notebook.id} belongs to another branch")
            return notebook

        text = self._clean_name(text)
        normalized = normalize_notebook_name(text)
        notebook = self.db.get_notebook_by_normalized_name(normalized, branch_id)
        if notebook is not None:
            return notebook

        notebook_id = self.db.create_notebook(name=text, name_normalized=normalized, branch_id=branch_id)
        logger.info("Created notebook %s '%s' in branch %s", notebook_id, text, branch_id)
        return self.db.get_notebook(notebook_id)

    def get_notebook(self, principal: Principal, notebook_id: int) -> NotebookEntity:
        self.policy.require_authorized(principal)
        notebook = self._get(notebook_id)
        self.policy.ensure_visible(principal, notebook.branch_id, "Notebook", notebook_id)
        return notebook

    def find_notebook(
        self, principal: Principal, name_or_id: str | int, branch_id: Optional[int] = None
    ) -> NotebookEntity:
        """Find an existing notebook by ID, or by name within the target branch."""
        text = str(name_or_id).strip()
        if text.isdigit():
            return self.get_notebook(principal, int(text))
        self.policy.require_authorized(principal)
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        notebook = self.db.get_notebook_by_normalized_name(normalize_notebook_name(text), target_branch)
        if notebook is None:
            raise NotFoundError(f"Notebook '{text}' not found")
        return notebook

    def list_notebooks(
        self,
        principal: Principal,
        branch_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[NotebookEntity]:
        """List visible notebooks, most recently used first."""
        self.policy.require_authorized(principal)
        return self.db.list_notebooks(self.policy.resolve_filter(principal, branch_id), limit=limit)

    def history(
        self, principal: Principal, notebook_id: int, limit: int = HISTORY_LIMIT
    ) -> list[TreasuryTransactionEntity]:
        """Income recorded against a notebook, newest first."""
        self.get_notebook(principal, notebook_id)
        return self.db.list_notebook_income(notebook_id, limit=limit)

    def update_notebook(
        self,
        principal: Principal,
        notebook_id: int,
        name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Rename a notebook or change its notes.

        A rename rewrites the name snapshot on every linked transaction.

        Returns:
            Number of transactions whose snapshot was rewritten

        Raises:
            ConflictError: If another notebook in the branch has the new name
        """
        with self.db.transaction():
            notebook = self.get_notebook(principal, notebook_id)
            if name is None:
                self.db.update_notebook(notebook_id, notes=notes)
                return 0

            text = self._clean_name(name)
            normalized = normalize_notebook_name(text)
            other = self.db.get_notebook_by_normalized_name(normalized, notebook.branch_id)
            if other is not None and other.id != notebook_id:
                raise ConflictError(f"Notebook '{text}' already exists in this branch")
            self.db.update_notebook(notebook_id, name=text, name_normalized=normalized, notes=notes)
            renamed = self.db.set_notebook_snapshots(notebook_id, text)

        logger.info("Renamed notebook %s to '%s' (%s transactions)", notebook_id, text, renamed)
        return renamed

    def delete_notebook(self, principal: Principal, notebook_id: int) -> int:
        """Delete a notebook, leaving its transactions in place but unlinked.

        Returns:
            Number of transactions unlinked
        """
        with self.db.transaction():
            self.get_notebook(principal, notebook_id)
            unlinked = self.db.unlink_notebook_transactions(notebook_id)
            self.db.delete_notebook(notebook_id)

        logger.info("Deleted notebook %s, unlinked %s transactions", notebook_id, unlinked)
        return unlinked

    def record_use(self, notebook_id: int, amount: Decimal, used_on: date) -> None:
        self._adjust(notebook_id, amount, 1, used_on)

    def revert_use(self, notebook_id: int, amount: Decimal) -> None:
        self._adjust(notebook_id, -amount, -1)

    def _adjust(
        self,
        notebook_id: int,
        amount_delta: Decimal,
        count_delta: int,
        last_used_date: Optional[date] = None,
    ) -> None:
        try:
            self.db.increment_notebook_totals(
                notebook_id,
                amount_delta=amount_delta,
                count_delta=count_delta,
                last_used_date=last_used_date,
            )
        except ValueError:
            raise NotFoundError(not_found("Notebook", notebook_id))

    def _get(self, notebook_id: int) -> NotebookEntity:
        notebook = self.db.get_notebook(notebook_id)
        if notebook is None:
            raise NotFoundError(not_found("Notebook", notebook_id))
        return notebook

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        text = (name or "").strip()
        if not text:
            raise ValidationError("Notebook name is required")
        return text
