"""Beneficiary domain service.

Only the fields feeding the priority score are kept. The score itself is
recomputed from the profile on every write and cannot be set.
"""

import dataclasses
import logging
from decimal import Decimal
from typing import Optional

from aidledger.database.base import Database
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.entities import (
    Beneficiary as BeneficiaryEntity,
    BeneficiaryProfile,
    HealthStatus,
    Principal,
)
from aidledger.domain.errors import NotFoundError, ValidationError, not_found
from aidledger.domain.priority import score_profile

logger = logging.getLogger(__name__)

MARITAL_STATUSES = ("single", "married", "divorced", "widowed")


def _present(**fields) -> dict:
    return {key: value for key, value in fields.items() if value is not None}


def normalize_profile(profile: BeneficiaryProfile) -> BeneficiaryProfile:
    """Validate a profile, clamping the household size to at least one."""
    for label, value in (
        ("Income", profile.income),
        ("Spouse income", profile.spouse_income),
        ("Rental cost", profile.rental_cost),
    ):
        if value < 0:
            raise ValidationError(f"{label} cannot be negative")
    if profile.health.sick_unmarried_children < 0:
        raise ValidationError("Sick children count cannot be negative")
    if profile.marital_status not in MARITAL_STATUSES:
        raise ValidationError(
            f"Unknown marital status '{profile.marital_status}'. Use one of: {', '.join(MARITAL_STATUSES)}"
        )
    return dataclasses.replace(profile, family_members=max(profile.family_members or 1, 1))


class BeneficiaryService:
    """Service for beneficiaries and their priority score."""

    def __init__(self, db: Database, policy: Optional[BranchAccessPolicy] = None):
        self.db = db
        self.policy = policy or BranchAccessPolicy()

    def create_beneficiary(
        self,
        principal: Principal,
        name: str,
        profile: Optional[BeneficiaryProfile] = None,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Create a beneficiary scored from its profile.

        Returns:
            Beneficiary ID
        """
        self.policy.require_authorized(principal)
        if not name or not name.strip():
            raise ValidationError("Beneficiary name is required")
        profile = normalize_profile(profile or BeneficiaryProfile())
        target_branch = self.policy.resolve_target_branch(principal, branch_id)
        priority = score_profile(profile)

        beneficiary_id = self.db.create_beneficiary(
            name=name.strip(),
            profile=profile,
            priority=priority,
            national_id=national_id,
            phone=phone,
            branch_id=target_branch,
        )
        logger.info("Beneficiary %s created with priority %s", beneficiary_id, priority)
        return beneficiary_id

    def get_beneficiary(self, principal: Principal, beneficiary_id: int) -> BeneficiaryEntity:
        self.policy.require_authorized(principal)
        beneficiary = self.db.get_beneficiary(beneficiary_id)
        if beneficiary is None:
            raise NotFoundError(not_found("Beneficiary", beneficiary_id))
        self.policy.ensure_visible(principal, beneficiary.branch_id, "Beneficiary", beneficiary_id)
        return beneficiary

    def list_beneficiaries(
        self, principal: Principal, branch_id: Optional[int] = None
    ) -> list[BeneficiaryEntity]:
        """List visible beneficiaries, most in need first."""
        self.policy.require_authorized(principal)
        return self.db.list_beneficiaries(self.policy.resolve_filter(principal, branch_id))

    def update_beneficiary(
        self,
        principal: Principal,
        beneficiary_id: int,
        name: Optional[str] = None,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        income: Optional[Decimal] = None,
        spouse_income: Optional[Decimal] = None,
        rental_cost: Optional[Decimal] = None,
        family_members: Optional[int] = None,
        marital_status: Optional[str] = None,
        beneficiary_sick: Optional[bool] = None,
        spouse_sick: Optional[bool] = None,
        sick_unmarried_children: Optional[int] = None,
    ) -> BeneficiaryEntity:
        """Update a beneficiary and recompute its priority.

        Fields left as None keep their current value.
        """
        current = self.get_beneficiary(principal, beneficiary_id)
        if name is not None and not name.strip():
            raise ValidationError("Beneficiary name is required")

        profile_changes = _present(
            income=income,
            spouse_income=spouse_income,
            rental_cost=rental_cost,
            family_members=family_members,
            marital_status=marital_status,
        )
        health_changes = _present(
            beneficiary_sick=beneficiary_sick,
            spouse_sick=spouse_sick,
            sick_unmarried_children=sick_unmarried_children,
        )
        health = dataclasses.replace(current.profile.health, **health_changes)
        profile = normalize_profile(
            dataclasses.replace(current.profile, health=health, **profile_changes)
        )
        priority = score_profile(profile)

        self.db.update_beneficiary(
            beneficiary_id,
            name=name.strip() if name is not None else current.name,
            national_id=national_id if national_id is not None else current.national_id,
            phone=phone if phone is not None else current.phone,
            profile=profile,
            priority=priority,
        )
        if priority != current.priority:
            logger.info(
                "Beneficiary %s priority changed %s -> %s",
                beneficiary_id,
                current.priority,
                priority,
            )
        return self.db.get_beneficiary(beneficiary_id)

    def delete_beneficiary(self, principal: Principal, beneficiary_id: int) -> None:
        self.get_beneficiary(principal, beneficiary_id)
        self.db.soft_delete_beneficiary(beneficiary_id)
        logger.info("Beneficiary %s deleted", beneficiary_id)


def build_profile(
    income: Decimal = Decimal("0"),
    spouse_income: Decimal = Decimal("0"),
    rental_cost: Decimal = Decimal("0"),
    family_members: int = 1,
    marital_status: str = "single",
    beneficiary_sick: bool = False,
    spouse_sick: bool = False,
    sick_unmarried_children: int = 0,
) -> BeneficiaryProfile:
    """Build a profile from flat fields."""
    return BeneficiaryProfile(
        income=income,
        spouse_income=spouse_income,
        rental_cost=rental_cost,
        family_members=family_members,
        marital_status=marital_status,
        health=HealthStatus(
            beneficiary_sick=beneficiary_sick,
            spouse_sick=spouse_sick,
            sick_unmarried_children=sick_unmarried_children,
        ),
    )
