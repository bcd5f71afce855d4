"""Tests for products and their reversible operations."""

from datetime import date
from decimal import Decimal

import pytest

from aidledger.domain.entities import AmountType, OperationType, ProductStatus, ProductTotals
from aidledger.domain.errors import (
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from aidledger.domain.product import expected_product_status, operation_effect


def _totals(product):
    return (product.current_quantity, product.total_cost, product.total_revenue)


class TestOperationEffect:
    def test_effects_by_type(self):
        qty, amount = Decimal("10"), Decimal("40")

        assert operation_effect(OperationType.PURCHASE, qty, amount) == ProductTotals(qty, amount, Decimal("0"))
        assert operation_effect(OperationType.EXPENSE, qty, amount) == ProductTotals(Decimal("0"), amount, Decimal("0"))
        assert operation_effect(OperationType.SALE, qty, amount) == ProductTotals(-qty, Decimal("0"), amount)
        assert operation_effect(OperationType.DONATION, qty, amount) == ProductTotals(-qty, Decimal("0"), Decimal("0"))
        assert operation_effect(OperationType.TRANSFORM, qty, amount) == ProductTotals(-qty, Decimal("0"), Decimal("0"))


class TestProducts:
    def test_create_and_list(self, product_service, north_admin, south_member, branches):
        product_id = product_service.create_product(north_admin, "Olives", category="raw", unit="kg")

        product = product_service.get_product(north_admin, product_id)
        assert product.branch_id == branches[0]
        assert product.status == ProductStatus.ACTIVE
        assert [p.id for p in product_service.list_products(north_admin)] == [product_id]
        assert product_service.list_products(south_member) == []

    def test_unknown_category(self, product_service, north_admin):
        with pytest.raises(ValidationError, match="category"):
            product_service.create_product(north_admin, "Olives", category="liquid")

    def test_superadmin_must_name_branch(self, product_service, superadmin, branches):
        with pytest.raises(ValidationError, match="branch required"):
            product_service.create_product(superadmin, "Olives")

    def test_other_branch_cannot_touch_product(self, product_service, stocked_product, south_member):
        with pytest.raises(ForbiddenError):
            product_service.apply_operation(
                south_member, stocked_product, "sale", "Market", quantity=Decimal("1")
            )

    def test_deleted_product_is_gone(self, product_service, stocked_product, north_admin):
        product_service.delete_product(north_admin, stocked_product)

        with pytest.raises(NotFoundError):
            product_service.get_product(north_admin, stocked_product)


class TestApplyOperation:
    def test_sale_moves_quantity_and_revenue(self, product_service, stocked_product, north_admin, branches):
        operation = product_service.apply_operation(
            north_admin,
            stocked_product,
            "sale",
            "Market day",
            quantity=Decimal("20"),
            amount=Decimal("90"),
            date=date(2024, 5, 1),
        )

        product = product_service.get_product(north_admin, stocked_product)
        assert _totals(product) == (Decimal("80"), Decimal("250"), Decimal("90"))
        assert product.net_profit == Decimal("-160")
        assert operation.amount_type == AmountType.REVENUE
        assert operation.branch_id == branches[0]
        assert operation.date == date(2024, 5, 1)
        assert operation.recorded_by == "amal"

    def test_sale_beyond_stock_leaves_no_trace(self, product_service, stocked_product, north_admin):
        with pytest.raises(InsufficientStockError, match="100"):
            product_service.apply_operation(
                north_admin, stocked_product, "sale", "Too much", quantity=Decimal("100.5")
            )

        product = product_service.get_product(north_admin, stocked_product)
        assert _totals(product) == (Decimal("100"), Decimal("250"), Decimal("0"))
        assert len(product_service.list_operations(north_admin, stocked_product)) == 1

    @pytest.mark.parametrize("op_type", ["sale", "donation", "transform"])
    def test_consuming_operations_need_a_quantity(self, product_service, stocked_product, north_admin, op_type):
        with pytest.raises(ValidationError, match="needs a quantity"):
            product_service.apply_operation(north_admin, stocked_product, op_type, "Nothing")

    def test_rejects_bad_input(self, product_service, stocked_product, north_admin):
        with pytest.raises(ValidationError, match="Unknown operation type"):
            product_service.apply_operation(north_admin, stocked_product, "theft", "Gone")
        with pytest.raises(ValidationError, match="negative"):
            product_service.apply_operation(
                north_admin, stocked_product, "purchase", "Refund", quantity=Decimal("-1")
            )
        with pytest.raises(ValidationError, match="description"):
            product_service.apply_operation(
                north_admin, stocked_product, "purchase", " ", quantity=Decimal("1")
            )

    def test_selling_everything_depletes_and_buying_reactivates(
        self, product_service, stocked_product, north_admin
    ):
        product_service.apply_operation(
            north_admin, stocked_product, "donation", "Food baskets", quantity=Decimal("100")
        )
        assert product_service.get_product(north_admin, stocked_product).status == ProductStatus.DEPLETED

        product_service.apply_operation(
            north_admin, stocked_product, "purchase", "Restock", quantity=Decimal("5"), amount=Decimal("20")
        )
        assert product_service.get_product(north_admin, stocked_product).status == ProductStatus.ACTIVE

    def test_expense_on_empty_product_marks_it_depleted(self, product_service, north_admin):
        product_id = product_service.create_product(north_admin, "Soap")

        product_service.apply_operation(north_admin, product_id, "expense", "Moulds", amount=Decimal("30"))

        product = product_service.get_product(north_admin, product_id)
        assert product.total_cost == Decimal("30")
        assert product.status == ProductStatus.DEPLETED

    def test_archived_product_stays_archived(self, product_service, stocked_product, north_admin):
        product_service.archive_product(north_admin, stocked_product)
        product_service.apply_operation(
            north_admin, stocked_product, "sale", "Last sale", quantity=Decimal("100"), amount=Decimal("10")
        )
        assert product_service.get_product(north_admin, stocked_product).status == ProductStatus.ARCHIVED

        product_service.unarchive_product(north_admin, stocked_product)
        assert product_service.get_product(north_admin, stocked_product).status == ProductStatus.DEPLETED


class TestTransform:
    @pytest.fixture
    def oil(self, product_service, north_admin):
        return product_service.create_product(north_admin, "Olive oil", category="finished", unit="l")

    def test_transform_moves_stock_to_target(self, product_service, stocked_product, oil, north_admin):
        product_service.apply_operation(
            north_admin,
            stocked_product,
            "transform",
            "Pressing",
            quantity=Decimal("50"),
            target_product_id=oil,
            target_quantity=Decimal("8"),
        )

        assert product_service.get_product(north_admin, stocked_product).current_quantity == Decimal("50")
        assert product_service.get_product(north_admin, oil).current_quantity == Decimal("8")

    def test_reversing_transform_restores_both_products(self, product_service, stocked_product, oil, north_admin):
        operation = product_service.apply_operation(
            north_admin,
            stocked_product,
            "transform",
            "Pressing",
            quantity=Decimal("50"),
            target_product_id=oil,
            target_quantity=Decimal("8"),
        )

        product_service.reverse_operation(north_admin, operation.id)

        assert product_service.get_product(north_admin, stocked_product).current_quantity == Decimal("100")
        target = product_service.get_product(north_admin, oil)
        assert target.current_quantity == Decimal("0")
        assert target.status == ProductStatus.DEPLETED

    def test_target_output_already_sold_cannot_shrink(self, product_service, stocked_product, oil, north_admin):
        operation = product_service.apply_operation(
            north_admin,
            stocked_product,
            "transform",
            "Pressing",
            quantity=Decimal("50"),
            target_product_id=oil,
            target_quantity=Decimal("8"),
        )
        product_service.apply_operation(north_admin, oil, "sale", "Bottles", quantity=Decimal("8"), amount=Decimal("64"))

        with pytest.raises(InsufficientStockError):
            product_service.amend_operation(north_admin, operation.id, target_quantity=Decimal("4"))

        assert product_service.get_product(north_admin, oil).current_quantity == Decimal("0")
        assert product_service.get_product(north_admin, stocked_product).current_quantity == Decimal("50")

    def test_transform_into_itself_is_rejected(self, product_service, stocked_product, north_admin):
        with pytest.raises(ValidationError, match="itself"):
            product_service.apply_operation(
                north_admin,
                stocked_product,
                "transform",
                "Loop",
                quantity=Decimal("1"),
                target_product_id=stocked_product,
            )

    def test_only_transform_names_a_target(self, product_service, stocked_product, oil, north_admin):
        with pytest.raises(ValidationError, match="target"):
            product_service.apply_operation(
                north_admin, stocked_product, "sale", "Odd", quantity=Decimal("1"), target_product_id=oil
            )


class TestReverseAndAmend:
    def test_reverse_restores_totals_exactly(self, product_service, stocked_product, north_admin):
        before = _totals(product_service.get_product(north_admin, stocked_product))
        operation = product_service.apply_operation(
            north_admin, stocked_product, "sale", "Market", quantity=Decimal("12.345"), amount=Decimal("47.10")
        )

        product_service.reverse_operation(north_admin, operation.id)

        assert _totals(product_service.get_product(north_admin, stocked_product)) == before
        assert len(product_service.list_operations(north_admin, stocked_product)) == 1

    def test_reversed_operation_cannot_be_reversed_again(self, product_service, stocked_product, north_admin):
        operation = product_service.apply_operation(
            north_admin, stocked_product, "expense", "Transport", amount=Decimal("15")
        )
        product_service.reverse_operation(north_admin, operation.id)

        with pytest.raises(NotFoundError):
            product_service.reverse_operation(north_admin, operation.id)

    def test_purchase_already_sold_cannot_be_reversed(self, product_service, stocked_product, north_admin):
        purchase = product_service.list_operations(north_admin, stocked_product)[0]
        product_service.apply_operation(
            north_admin, stocked_product, "sale", "Market", quantity=Decimal("80"), amount=Decimal("300")
        )

        with pytest.raises(InsufficientStockError):
            product_service.reverse_operation(north_admin, purchase.id)

        product = product_service.get_product(north_admin, stocked_product)
        assert _totals(product) == (Decimal("20"), Decimal("250"), Decimal("300"))
        assert len(product_service.list_operations(north_admin, stocked_product)) == 2

    def test_amend_applies_only_the_difference(self, product_service, stocked_product, north_admin):
        sale = product_service.apply_operation(
            north_admin, stocked_product, "sale", "Market", quantity=Decimal("20"), amount=Decimal("90")
        )

        amended = product_service.amend_operation(
            north_admin, sale.id, quantity=Decimal("50"), amount=Decimal("200"), description="Big market"
        )

        product = product_service.get_product(north_admin, stocked_product)
        assert _totals(product) == (Decimal("50"), Decimal("250"), Decimal("200"))
        assert amended.quantity == Decimal("50")
        assert amended.description == "Big market"

    def test_amend_cannot_oversell(self, product_service, stocked_product, north_admin):
        sale = product_service.apply_operation(
            north_admin, stocked_product, "sale", "Market", quantity=Decimal("20"), amount=Decimal("90")
        )

        with pytest.raises(InsufficientStockError):
            product_service.amend_operation(north_admin, sale.id, quantity=Decimal("101"))

        product = product_service.get_product(north_admin, stocked_product)
        assert product.current_quantity == Decimal("80")
        assert product_service.db.get_product_operation(sale.id).quantity == Decimal("20")

    def test_counters_match_derived_totals(self, product_service, ledger, stocked_product, north_admin):
        sale = product_service.apply_operation(
            north_admin, stocked_product, "sale", "Market", quantity=Decimal("30"), amount=Decimal("120")
        )
        product_service.apply_operation(
            north_admin, stocked_product, "expense", "Sacks", amount=Decimal("12.50")
        )
        product_service.apply_operation(
            north_admin, stocked_product, "donation", "Families", quantity=Decimal("5")
        )
        product_service.amend_operation(north_admin, sale.id, quantity=Decimal("25"))

        product = product_service.get_product(north_admin, stocked_product)
        derived = ledger.derive_product_totals(stocked_product)
        assert _totals(product) == (derived.quantity, derived.cost, derived.revenue)
        assert product.current_quantity == Decimal("70")


def test_expected_product_status(product_service, stocked_product, north_admin):
    product = product_service.get_product(north_admin, stocked_product)
    assert expected_product_status(product) == ProductStatus.ACTIVE
