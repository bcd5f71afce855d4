"""Warehouse domain service.

Stock is never stored: it is the sum of inbound minus outbound movements of
an item. Item names are normalized on write so spelling variants of the same
item share one balance.
"""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    MovementCategory,
    MovementType,
    Principal,
    WarehouseMovement as WarehouseMovementEntity,
)
from aidledger.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    insufficient_stock,
    not_found,
)
from aidledger.domain.ledger import LedgerAggregator
from aidledger.domain.normalize import normalize_item_name

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class WarehouseService:
    """Service for recording warehouse movements against derived stock."""

    def __init__(
        self,
        db: Database,
        policy: Optional[BranchAccessPolicy] = None,
        ledger: Optional[LedgerAggregator] = None,
    ):
        self.db = db
        self.policy = policy or BranchAccessPolicy()
        self.ledger = ledger or LedgerAggregator(db)

    def record_movement(
        self,
        principal: Principal,
        movement_type: str,
        category: str,
        description: str,
        item_name: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        value: Optional[Decimal] = None,
        date: Optional[date_type] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Record an inbound or outbound movement.

        An outbound product movement may not exceed the item's stock. The
        stock is read before the insert and re-read after it inside the same
        transaction.

        Returns:
            Movement ID

        Raises:
            ValidationError: If the movement is incomplete
            InsufficientStockError: If an outbound movement exceeds the stock
        """
        self.policy.require_authorized(principal)
        kind, cat = self._parse(movement_type, category)
        item_name = self._validate(cat, description, item_name, quantity, value)
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        stock_filter = self.policy.resolve_decision_filter(principal, target_branch)

        with self.db.transaction():
            if kind == MovementType.OUTBOUND and cat == MovementCategory.PRODUCT:
                stock = self.ledger.warehouse_stock(item_name, stock_filter)
                if quantity > stock:
                    logger.warning(
                        "Rejected outbound of %s %s from branch %s holding %s",
                        quantity,
                        item_name,
                        target_branch,
                        stock,
                    )
                    raise InsufficientStockError(insufficient_stock(stock, quantity))

            movement_id = self.db.create_warehouse_movement(
                type=kind.value,
                category=cat.value,
                description=description.strip(),
                date=date or date_type.today(),
                item_name=item_name,
                quantity=quantity,
                value=value,
                branch_id=target_branch,
                recorded_by=principal.user_id,
            )
            if kind == MovementType.OUTBOUND and cat == MovementCategory.PRODUCT:
                self._ensure_stock(item_name, stock_filter, quantity)

        logger.info(
            "Recorded %s %s movement %s in branch %s",
            kind.value,
            cat.value,
            movement_id,
            target_branch,
        )
        return movement_id

    def get_movement(self, principal: Principal, movement_id: int) -> WarehouseMovementEntity:
        self.policy.require_authorized(principal)
        movement = self.db.get_warehouse_movement(movement_id)
        if movement is None:
            raise NotFoundError(not_found("Movement", movement_id))
        self.policy.ensure_visible(principal, movement.branch_id, "Movement", movement_id)
        return movement

    def list_movements(
        self,
        principal: Principal,
        branch_id: Optional[int] = None,
        movement_type: Optional[str] = None,
        start_date: Optional[date_type] = None,
        end_date: Optional[date_type] = None,
    ) -> list[WarehouseMovementEntity]:
        self.policy.require_authorized(principal)
        if movement_type is not None:
            movement_type = self._parse(movement_type, MovementCategory.CASH.value)[0].value
        branch_filter = self.policy.resolve_filter(principal, branch_id)
        return self.db.list_warehouse_movements(
            branch_filter, movement_type=movement_type, start_date=start_date, end_date=end_date
        )

    def update_movement(
        self,
        principal: Principal,
        movement_id: int,
        movement_type: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        item_name: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        value: Optional[Decimal] = None,
        date: Optional[date_type] = None,
    ) -> None:
        """Edit a movement; no item it touches may end up with negative stock."""
        with self.db.transaction():
            old = self.get_movement(principal, movement_id)
            kind, cat = self._parse(
                movement_type or old.type.value, category or old.category.value
            )
            new_description = old.description if description is None else description
            new_item = old.item_name if item_name is None else item_name
            new_quantity = old.quantity if quantity is None else quantity
            new_value = old.value if value is None else value
            new_item = self._validate(cat, new_description, new_item, new_quantity, new_value)

            self.db.update_warehouse_movement(
                movement_id,
                type=kind.value,
                category=cat.value,
                description=new_description.strip(),
                item_name=new_item,
                quantity=new_quantity,
                value=new_value,
                date=date,
            )

            stock_filter = self.policy.resolve_decision_filter(principal, old.branch_id)
            touched = set()
            if old.category == MovementCategory.PRODUCT and old.item_name:
                touched.add(old.item_name)
            if cat == MovementCategory.PRODUCT:
                touched.add(new_item)
            for name in sorted(touched):
                self._ensure_stock(name, stock_filter, new_quantity or ZERO)

        logger.info("Updated warehouse movement %s", movement_id)

    def delete_movement(self, principal: Principal, movement_id: int) -> None:
        """Soft delete a movement.

        Removing an inbound product movement whose stock has already gone out
        fails with InsufficientStockError.
        """
        with self.db.transaction():
            movement = self.get_movement(principal, movement_id)
            self.db.soft_delete_warehouse_movement(movement_id)
            if (
                movement.type == MovementType.INBOUND
                and movement.category == MovementCategory.PRODUCT
            ):
                stock_filter = self.policy.resolve_decision_filter(principal, movement.branch_id)
                self._ensure_stock(movement.item_name, stock_filter, movement.quantity)

        logger.info("Deleted warehouse movement %s", movement_id)

    def stock(self, principal: Principal, item_name: str, branch_id: Optional[int] = None) -> Decimal:
        self.policy.require_authorized(principal)
        return self.ledger.warehouse_stock(item_name, self.policy.resolve_filter(principal, branch_id))

    def cash(self, principal: Principal, branch_id: Optional[int] = None) -> Decimal:
        self.policy.require_authorized(principal)
        return self.ledger.warehouse_cash(self.policy.resolve_filter(principal, branch_id))

    def inventory(self, principal: Principal, branch_id: Optional[int] = None) -> dict[str, Decimal]:
        """Items with positive stock, by normalized name."""
        self.policy.require_authorized(principal)
        return self.ledger.warehouse_inventory(self.policy.resolve_filter(principal, branch_id))

    def _ensure_stock(self, item_name: str, stock_filter, requested: Decimal) -> None:
        stock = self.ledger.warehouse_stock(item_name, stock_filter)
        if stock < ZERO:
            logger.warning("Stock of %s would drop to %s", item_name, stock)
            raise InsufficientStockError(insufficient_stock(stock + requested, requested))

    @staticmethod
    def _parse(movement_type: str, category: str) -> tuple[MovementType, MovementCategory]:
        try:
            kind = MovementType(movement_type)
        except ValueError:
            raise ValidationError(f"Unknown movement type '{movement_type}'. Use inbound or outbound")
        try:
            cat = MovementCategory(category)
        except ValueError:
            raise ValidationError(f"Unknown movement category '{category}'. Use cash or product")
        return kind, cat

    @staticmethod
    def _validate(
        category: MovementCategory,
        description: Optional[str],
        item_name: Optional[str],
        quantity: Optional[Decimal],
        value: Optional[Decimal],
    ) -> Optional[str]:
        """Check a movement's fields and return its normalized item name."""
        if not description or not description.strip():
            raise ValidationError("Movement description is required")
        if value is not None and value < ZERO:
            raise ValidationError("Movement value cannot be negative")
        if category == MovementCategory.CASH:
            if value is None or value <= ZERO:
                raise ValidationError("Cash movements need a positive value")
            return normalize_item_name(item_name) or None
        if not item_name or not normalize_item_name(item_name):
            raise ValidationError("Product movements need an item name")
        if quantity is None or quantity <= ZERO:
            raise ValidationError("Product movements need a positive quantity")
        return normalize_item_name(item_name)
