"""Beneficiary priority scoring.

The score maps a household's monthly burden ratio onto a 1-10 triage scale:

    burden = rent + family * SUBSISTENCE_PER_PERSON + sick * MEDICAL_COST_PER_SICK
    ratio  = burden / (income + spouse income)

The ratio picks a base priority from a fixed step table and each sick
household member adds one point, capped at three.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from aidledger.domain.entities import BeneficiaryProfile, HealthStatus

SUBSISTENCE_PER_PERSON = Decimal("1500")
MEDICAL_COST_PER_SICK = Decimal("1000")
MAX_HEALTH_BONUS = 3
MIN_PRIORITY = 1
MAX_PRIORITY = 10

# (minimum burden ratio, base priority), checked top to bottom.
# Gaps at 2, 4 and 8 are part of the table.
BURDEN_THRESHOLDS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("2.5"), 10),
    (Decimal("2.0"), 9),
    (Decimal("1.5"), 7),
    (Decimal("1.0"), 6),
    (Decimal("0.6"), 5),
    (Decimal("0.35"), 3),
)
FLOOR_PRIORITY = 1


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def count_sick(health: Optional[HealthStatus], marital_status: Optional[str]) -> int:
    """Count sick household members.

    Sick unmarried children only count for single beneficiaries.
    """
    if health is None:
        return 0
    sick = 0
    if health.beneficiary_sick:
        sick += 1
    if health.spouse_sick:
        sick += 1
    if (marital_status or "single") == "single":
        sick += max(health.sick_unmarried_children, 0)
    return sick


def base_priority(burden_ratio: Decimal) -> int:
    """Map a burden ratio to its base priority."""
    for threshold, priority in BURDEN_THRESHOLDS:
        if burden_ratio >= threshold:
            return priority
    return FLOOR_PRIORITY


def score_priority(
    income: Optional[Decimal] = None,
    rental_cost: Optional[Decimal] = None,
    family_members: Optional[int] = None,
    spouse_income: Optional[Decimal] = None,
    health: Optional[HealthStatus] = None,
    marital_status: Optional[str] = None,
) -> int:
    """Score a household's need on a 1-10 scale.

    Args:
        income: Beneficiary's monthly income
        rental_cost: Monthly rent
        family_members: Household size (clamped to at least 1)
        spouse_income: Spouse's monthly income
        health: Sickness flags of the household
        marital_status: Beneficiary's marital status (defaults to "single")

    Returns:
        Integer priority between 1 and 10, 10 being the most in need
    """
    monthly_income = _to_decimal(income) + _to_decimal(spouse_income)
    if monthly_income == 0:
        return MAX_PRIORITY

    family = max(family_members or 1, 1)
    sick = count_sick(health, marital_status)

    subsistence_need = family * SUBSISTENCE_PER_PERSON
    medical_cost = sick * MEDICAL_COST_PER_SICK
    total_burden = _to_decimal(rental_cost) + subsistence_need + medical_cost
    burden_ratio = total_burden / monthly_income

    priority = Decimal(base_priority(burden_ratio) + min(sick, MAX_HEALTH_BONUS))
    rounded = int(priority.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(MIN_PRIORITY, min(MAX_PRIORITY, rounded))


def score_profile(profile: BeneficiaryProfile) -> int:
    """Score a full beneficiary profile."""
    return score_priority(
        income=profile.income,
        rental_cost=profile.rental_cost,
        family_members=profile.family_members,
        spouse_income=profile.spouse_income,
        health=profile.health,
        marital_status=profile.marital_status,
    )
