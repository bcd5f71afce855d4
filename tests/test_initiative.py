"""Tests for initiatives and their fan-out create."""

from datetime import date
from decimal import Decimal

import pytest

from aidledger.domain.entities import InitiativeStatus
from aidledger.domain.errors import ForbiddenError, ValidationError


def test_superadmin_without_branch_creates_one_per_active_branch(
    initiative_service, branch_service, superadmin, branches
):
    north, south = branches
    inactive = branch_service.create_branch(superadmin, "Closed Office", "CLS")
    branch_service.set_active(superadmin, inactive, False)

    created = initiative_service.create_initiative(
        superadmin, "Winter blankets", "Blanket drive", date=date(2024, 12, 1), total_amount=Decimal("900")
    )

    assert len(created) == 2
    initiatives = initiative_service.list_initiatives(superadmin)
    assert {i.branch_id for i in initiatives} == {north, south}
    assert all(i.total_amount == Decimal("900") for i in initiatives)
    assert all(i.status == InitiativeStatus.PLANNED for i in initiatives)


def test_superadmin_with_branch_creates_one(initiative_service, superadmin, branches):
    created = initiative_service.create_initiative(
        superadmin, "Iftar", "Ramadan meals", branch_id=branches[1], status="active"
    )

    initiative = initiative_service.get_initiative(superadmin, created[0])
    assert initiative.branch_id == branches[1]
    assert initiative.status == InitiativeStatus.ACTIVE


def test_branch_user_creates_in_own_branch(initiative_service, north_admin, south_member, branches):
    created = initiative_service.create_initiative(north_admin, "School bags", "Back to school", branch_id=branches[1])

    assert initiative_service.get_initiative(north_admin, created[0]).branch_id == branches[0]
    assert initiative_service.list_initiatives(south_member) == []
    with pytest.raises(ForbiddenError):
        initiative_service.get_initiative(south_member, created[0])


def test_fanout_without_active_branches_fails(initiative_service, superadmin):
    with pytest.raises(ValidationError, match="No active branches"):
        initiative_service.create_initiative(superadmin, "Iftar", "Ramadan meals")


def test_invalid_initiatives(initiative_service, north_admin):
    with pytest.raises(ValidationError):
        initiative_service.create_initiative(north_admin, "Iftar", "")
    with pytest.raises(ValidationError, match="status"):
        initiative_service.create_initiative(north_admin, "Iftar", "Meals", status="someday")
    with pytest.raises(ValidationError, match="negative"):
        initiative_service.create_initiative(north_admin, "Iftar", "Meals", total_amount=Decimal("-1"))
