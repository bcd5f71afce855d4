"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ForbiddenError(DomainError):
    """Principal lacks the role or branch needed for the operation."""


class InsufficientFundError(DomainError):
    """Loan fund of the branch cannot cover the requested amount."""


class InsufficientStockError(DomainError):
    """Stock on hand cannot cover the requested quantity."""


def not_found(kind: str, entity_id: int) -> str:
    """Return message for a missing entity."""
    return f"{kind} {entity_id} not found"


def branch_required() -> str:
    """Return message when a superadmin omits the target branch."""
    return "branch required: select a branch before recording this entry"


def insufficient_fund(requested: Decimal, available: Decimal) -> str:
    """Return message when the loan fund cannot cover a request."""
    return f"Loan fund balance ({available}) is not enough for {requested}"


def insufficient_stock(available: Decimal, requested: Decimal) -> str:
    """Return message when stock cannot cover a request."""
    return f"Available quantity ({available}) is not enough for {requested}"


def outside_branch(kind: str, entity_id: int) -> str:
    """Return message for a record outside the principal's branch."""
    return f"{kind} {entity_id} belongs to another branch"
