"""Product domain service.

Quantity, cost and revenue of a product only move through operations. Each
operation has an exact inverse, so deleting one restores the totals it
changed and editing one applies only the difference.
"""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    AmountType,
    OperationType,
    Principal,
    Product as ProductEntity,
    ProductOperation as ProductOperationEntity,
    ProductStatus,
    ProductTotals,
)
from aidledger.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    insufficient_stock,
    not_found,
)

logger = logging.getLogger(__name__)

PRODUCT_CATEGORIES = ("raw", "finished", "byproduct")
ZERO = Decimal("0")

# Operations that take stock out of the source product.
_STOCK_CONSUMING = (OperationType.SALE, OperationType.DONATION, OperationType.TRANSFORM)


def operation_effect(op_type: OperationType, quantity: Decimal, amount: Decimal) -> ProductTotals:
    """Change an operation makes to its source product's totals."""
    if op_type == OperationType.PURCHASE:
        return ProductTotals(quantity=quantity, cost=amount, revenue=ZERO)
    if op_type == OperationType.EXPENSE:
        return ProductTotals(quantity=ZERO, cost=amount, revenue=ZERO)
    if op_type == OperationType.SALE:
        return ProductTotals(quantity=-quantity, cost=ZERO, revenue=amount)
    # donation and transform only consume stock
    return ProductTotals(quantity=-quantity, cost=ZERO, revenue=ZERO)


def amount_type_for(op_type: OperationType) -> AmountType:
    return AmountType.REVENUE if op_type == OperationType.SALE else AmountType.COST


def expected_product_status(product: ProductEntity) -> ProductStatus:
    """Status a product should carry given its quantity.

    Archived products stay archived.
    """
    if product.status == ProductStatus.ARCHIVED:
        return ProductStatus.ARCHIVED
    if product.current_quantity <= ZERO:
        return ProductStatus.DEPLETED
    return ProductStatus.ACTIVE


class ProductService:
    """Service for managing products and applying their operations."""

    def __init__(self, db: Database, policy: Optional[BranchAccessPolicy] = None):
        """Initialize product service.

        Args:
            db: Database instance
            policy: Branch access policy (a default one is created if omitted)
        """
        self.db = db
        self.policy = policy or BranchAccessPolicy()

    def create_product(
        self,
        principal: Principal,
        name: str,
        category: str = "raw",
        unit: str = "kg",
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Create a product with zero totals.

        Returns:
            Product ID

        Raises:
            ValidationError: If name is empty, category is unknown or a
                superadmin gives no branch
        """
        self.policy.require_authorized(principal)
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if category not in PRODUCT_CATEGORIES:
            raise ValidationError(
                f"Unknown product category '{category}'. Use one of: {', '.join(PRODUCT_CATEGORIES)}"
            )
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        product_id = self.db.create_product(
            name=name.strip(), category=category, unit=unit, notes=notes, branch_id=target_branch
        )
        logger.info("Product %s '%s' created in branch %s", product_id, name, target_branch)
        return product_id

    def get_product(self, principal: Principal, product_id: int) -> ProductEntity:
        """Get a visible product.

        Raises:
            NotFoundError: If the product does not exist or is deleted
            ForbiddenError: If it belongs to another branch
        """
        self.policy.require_authorized(principal)
        product = self.db.get_product(product_id)
        if product is None:
            raise NotFoundError(not_found("Product", product_id))
        self.policy.ensure_visible(principal, product.branch_id, "Product", product_id)
        return product

    def list_products(
        self,
        principal: Principal,
        branch_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[ProductEntity]:
        """List products visible to the principal."""
        self.policy.require_authorized(principal)
        branch_filter = self.policy.resolve_filter(principal, branch_id)
        return self.db.list_products(branch_filter, status=status)

    def update_product(
        self,
        principal: Principal,
        product_id: int,
        name: Optional[str] = None,
        category: Optional[str] = None,
        unit: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Update descriptive fields. Totals cannot be edited here."""
        self.get_product(principal, product_id)
        if category is not None and category not in PRODUCT_CATEGORIES:
            raise ValidationError(f"Unknown product category '{category}'")
        self.db.update_product(product_id, name=name, category=category, unit=unit, notes=notes)

    def archive_product(self, principal: Principal, product_id: int) -> None:
        self.get_product(principal, product_id)
        self.db.update_product(product_id, status=ProductStatus.ARCHIVED.value)
        logger.info("Product %s archived", product_id)

    def unarchive_product(self, principal: Principal, product_id: int) -> None:
        """Return an archived product to the status its quantity implies."""
        product = self.get_product(principal, product_id)
        status = ProductStatus.DEPLETED if product.current_quantity <= ZERO else ProductStatus.ACTIVE
        self.db.update_product(product_id, status=status.value)

    def delete_product(self, principal: Principal, product_id: int) -> None:
        """Soft delete a product."""
        self.get_product(principal, product_id)
        self.db.soft_delete_product(product_id)
        logger.info("Product %s deleted", product_id)

    def list_operations(self, principal: Principal, product_id: int) -> list[ProductOperationEntity]:
        """List a product's non-deleted operations, newest first."""
        self.get_product(principal, product_id)
        return self.db.list_product_operations(product_id=product_id)

    def apply_operation(
        self,
        principal: Principal,
        product_id: int,
        op_type: str,
        description: str,
        quantity: Decimal = ZERO,
        amount: Decimal = ZERO,
        date: Optional[date_type] = None,
        target_product_id: Optional[int] = None,
        target_quantity: Decimal = ZERO,
    ) -> ProductOperationEntity:
        """Record an operation and apply it to the product's totals.

        A sale, donation or transform may not take more than the product
        holds. A transform may name a target product that receives
        ``target_quantity``.

        Returns:
            The recorded operation

        Raises:
            ValidationError: If the input is incomplete or invalid
            InsufficientStockError: If the product cannot cover the quantity
        """
        op = self._parse_type(op_type)
        if not description or not description.strip():
            raise ValidationError("Operation description is required")
        quantity = Decimal(quantity or 0)
        amount = Decimal(amount or 0)
        target_quantity = Decimal(target_quantity or 0)
        self._validate_numbers(op, quantity, amount, target_quantity)
        if target_product_id is not None and op != OperationType.TRANSFORM:
            raise ValidationError("Only transform operations may name a target product")

        with self.db.transaction():
            product = self.get_product(principal, product_id)
            target = None
            if target_product_id is not None:
                if target_product_id == product_id:
                    raise ValidationError("A product cannot be transformed into itself")
                target = self.get_product(principal, target_product_id)

            effect = operation_effect(op, quantity, amount)
            if op in _STOCK_CONSUMING and quantity > product.current_quantity:
                logger.warning(
                    "Rejected %s of %s from product %s holding %s",
                    op.value,
                    quantity,
                    product_id,
                    product.current_quantity,
                )
                raise InsufficientStockError(insufficient_stock(product.current_quantity, quantity))

            operation_id = self.db.create_product_operation(
                product_id=product_id,
                type=op.value,
                description=description.strip(),
                quantity=quantity,
                amount=amount,
                amount_type=amount_type_for(op).value,
                date=date or date_type.today(),
                branch_id=product.branch_id,
                target_product_id=target_product_id,
                target_quantity=target_quantity,
                recorded_by=principal.user_id,
            )
            self._increment(product_id, effect, requested=quantity)
            if target is not None:
                self._increment(
                    target.id,
                    ProductTotals(quantity=target_quantity, cost=ZERO, revenue=ZERO),
                    requested=target_quantity,
                )
                self._refresh_status(target.id)
            self._refresh_status(product_id)

        logger.info(
            "Applied %s operation %s to product %s (quantity %s, amount %s)",
            op.value,
            operation_id,
            product_id,
            quantity,
            amount,
        )
        return self.db.get_product_operation(operation_id)

    def reverse_operation(self, principal: Principal, operation_id: int) -> None:
        """Soft delete an operation and undo its effect.

        Raises:
            NotFoundError: If the operation does not exist or is deleted
            InsufficientStockError: If undoing it would leave a negative
                quantity (for example a purchase whose stock was already sold)
        """
        with self.db.transaction():
            operation = self._get_operation(principal, operation_id)
            effect = operation_effect(operation.type, operation.quantity, operation.amount)
            self._increment(
                operation.product_id,
                ProductTotals(quantity=-effect.quantity, cost=-effect.cost, revenue=-effect.revenue),
                requested=operation.quantity,
            )
            if operation.target_product_id is not None:
                self._increment(
                    operation.target_product_id,
                    ProductTotals(quantity=-operation.target_quantity, cost=ZERO, revenue=ZERO),
                    requested=operation.target_quantity,
                )
                self._refresh_status(operation.target_product_id)
            self.db.soft_delete_product_operation(operation_id)
            self._refresh_status(operation.product_id)

        logger.info(
            "Reversed %s operation %s on product %s",
            operation.type.value,
            operation_id,
            operation.product_id,
        )

    def amend_operation(
        self,
        principal: Principal,
        operation_id: int,
        description: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        amount: Optional[Decimal] = None,
        target_quantity: Optional[Decimal] = None,
        date: Optional[date_type] = None,
    ) -> ProductOperationEntity:
        """Edit an operation, applying only the difference to the totals.

        Raises:
            NotFoundError: If the operation does not exist or is deleted
            InsufficientStockError: If the new values would leave a negative
                quantity
        """
        with self.db.transaction():
            old = self._get_operation(principal, operation_id)
            new_quantity = old.quantity if quantity is None else Decimal(quantity)
            new_amount = old.amount if amount is None else Decimal(amount)
            new_target_quantity = (
                old.target_quantity if target_quantity is None else Decimal(target_quantity)
            )
            self._validate_numbers(old.type, new_quantity, new_amount, new_target_quantity)
            if description is not None and not description.strip():
                raise ValidationError("Operation description is required")

            old_effect = operation_effect(old.type, old.quantity, old.amount)
            new_effect = operation_effect(old.type, new_quantity, new_amount)
            delta = ProductTotals(
                quantity=new_effect.quantity - old_effect.quantity,
                cost=new_effect.cost - old_effect.cost,
                revenue=new_effect.revenue - old_effect.revenue,
            )

            product = self.db.get_product(old.product_id)
            if product is None:
                raise NotFoundError(not_found("Product", old.product_id))
            if product.current_quantity + delta.quantity < ZERO:
                logger.warning(
                    "Rejected edit of operation %s: product %s would hold %s",
                    operation_id,
                    old.product_id,
                    product.current_quantity + delta.quantity,
                )
                raise InsufficientStockError(
                    "New quantity would make the product balance negative"
                )

            self._increment(old.product_id, delta, requested=new_quantity)
            if old.target_product_id is not None:
                target_delta = new_target_quantity - old.target_quantity
                self._increment(
                    old.target_product_id,
                    ProductTotals(quantity=target_delta, cost=ZERO, revenue=ZERO),
                    requested=-target_delta,
                )
                self._refresh_status(old.target_product_id)

            self.db.update_product_operation(
                operation_id,
                description=description.strip() if description is not None else None,
                quantity=new_quantity,
                amount=new_amount,
                target_quantity=new_target_quantity,
                date=date,
            )
            self._refresh_status(old.product_id)

        logger.info("Amended operation %s on product %s", operation_id, old.product_id)
        return self.db.get_product_operation(operation_id)

    def _get_operation(self, principal: Principal, operation_id: int) -> ProductOperationEntity:
        self.policy.require_authorized(principal)
        operation = self.db.get_product_operation(operation_id)
        if operation is None:
            raise NotFoundError(not_found("Operation", operation_id))
        self.policy.ensure_visible(principal, operation.branch_id, "Operation", operation_id)
        return operation

    def _increment(self, product_id: int, delta: ProductTotals, requested: Decimal) -> None:
        """Apply a guarded increment, failing if any total would go negative."""
        if delta.quantity == ZERO and delta.cost == ZERO and delta.revenue == ZERO:
            return
        applied = self.db.increment_product_totals(
            product_id,
            quantity_delta=delta.quantity,
            cost_delta=delta.cost,
            revenue_delta=delta.revenue,
        )
        if not applied:
            product = self.db.get_product(product_id)
            available = product.current_quantity if product is not None else ZERO
            logger.warning(
                "Guarded update of product %s rejected (quantity %s, delta %s)",
                product_id,
                available,
                delta.quantity,
            )
            raise InsufficientStockError(insufficient_stock(available, abs(requested)))

    def _refresh_status(self, product_id: int) -> None:
        product = self.db.get_product(product_id)
        if product is None:
            return
        status = expected_product_status(product)
        if status != product.status:
            self.db.update_product(product_id, status=status.value)

    @staticmethod
    def _parse_type(op_type: str) -> OperationType:
        try:
            return OperationType(op_type)
        except ValueError:
            valid = ", ".join(t.value for t in OperationType)
            raise ValidationError(f"Unknown operation type '{op_type}'. Use one of: {valid}")

    @staticmethod
    def _validate_numbers(
        op: OperationType, quantity: Decimal, amount: Decimal, target_quantity: Decimal
    ) -> None:
        if quantity < ZERO or amount < ZERO or target_quantity < ZERO:
            raise ValidationError("Quantities and amounts cannot be negative")
        if op in _STOCK_CONSUMING and quantity == ZERO:
            raise ValidationError(f"A {op.value} operation needs a quantity")
