"""Domain model entities for aidledger.

These are pure data classes representing business concepts, independent of
database schema. Services receive and return these; the database layer maps
its rows onto them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Principal role, highest first."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    MEMBER = "member"
    USER = "user"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    DEPLETED = "depleted"
    ARCHIVED = "archived"


class OperationType(str, Enum):
    PURCHASE = "purchase"
    EXPENSE = "expense"
    SALE = "sale"
    TRANSFORM = "transform"
    DONATION = "donation"


class AmountType(str, Enum):
    COST = "cost"
    REVENUE = "revenue"


class MovementType(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MovementCategory(str, Enum):
    CASH = "cash"
    PRODUCT = "product"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class InitiativeStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as issued by the identity provider."""

    user_id: str
    role: Role
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN

    @property
    def is_authorized(self) -> bool:
        """True for roles allowed to read and write ledger data."""
        return self.role in (Role.SUPERADMIN, Role.ADMIN, Role.MEMBER)


@dataclass(frozen=True)
class BranchFilter:
    """Data-visibility filter over branch-scoped records.

    ``unrestricted`` matches everything. Otherwise a record matches when its
    branch equals ``branch_id`` or, with ``include_unassigned``, when it has
    no branch at all (records created before branches existed).
    """

    unrestricted: bool = False
    branch_id: Optional[int] = None
    include_unassigned: bool = False

    @classmethod
    def everything(cls) -> "BranchFilter":
        return cls(unrestricted=True)

    @classmethod
    def only(cls, branch_id: int) -> "BranchFilter":
        return cls(branch_id=branch_id)

    @classmethod
    def own_with_legacy(cls, branch_id: int) -> "BranchFilter":
        return cls(branch_id=branch_id, include_unassigned=True)

    @classmethod
    def legacy_only(cls) -> "BranchFilter":
        return cls(include_unassigned=True)

    def matches(self, branch_id: Optional[int]) -> bool:
        """Check a single record's branch against the filter."""
        if self.unrestricted:
            return True
        if branch_id is None:
            return self.include_unassigned
        return self.branch_id is not None and branch_id == self.branch_id


@dataclass(frozen=True)
class SingleBranch:
    """Create target: one branch."""

    branch_id: Optional[int]


@dataclass(frozen=True)
class AllActiveBranches:
    """Create target: one copy per active branch."""


@dataclass(frozen=True)
class Branch:
    """Organizational partition (office)."""

    id: int
    name: str
    code: str
    address: Optional[str]
    phone: Optional[str]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class HealthStatus:
    """Sickness flags feeding the priority score."""

    beneficiary_sick: bool = False
    spouse_sick: bool = False
    sick_unmarried_children: int = 0


@dataclass(frozen=True)
class BeneficiaryProfile:
    """Financial and health profile of a household."""

    income: Decimal = Decimal("0")
    spouse_income: Decimal = Decimal("0")
    rental_cost: Decimal = Decimal("0")
    family_members: int = 1
    marital_status: str = "single"
    health: HealthStatus = field(default_factory=HealthStatus)


@dataclass(frozen=True)
class Beneficiary:
    """Beneficiary record with its derived priority."""

    id: int
    name: str
    national_id: Optional[str]
    phone: Optional[str]
    branch_id: Optional[int]
    profile: BeneficiaryProfile
    priority: int
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class LoanCapital:
    """Contribution to a branch's lending fund."""

    id: int
    amount: Decimal
    source: str
    notes: Optional[str]
    branch_id: Optional[int]
    date: date
    recorded_by: Optional[str]


@dataclass(frozen=True)
class Repayment:
    """Single repayment recorded against a loan."""

    amount: Decimal
    date: date
    notes: Optional[str] = None
    recorded_by: Optional[str] = None


@dataclass(frozen=True)
class Loan:
    """Interest-free loan with its ordered repayments."""

    id: int
    beneficiary_name: str
    national_id: Optional[str]
    phone: Optional[str]
    amount: Decimal
    amount_paid: Decimal
    status: LoanStatus
    start_date: date
    due_date: Optional[date]
    notes: Optional[str]
    branch_id: Optional[int]
    repayments: tuple[Repayment, ...] = ()
    created_by: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal("0"), self.amount - self.amount_paid)


@dataclass(frozen=True)
class Product:
    """Inventory product with running quantity, cost and revenue."""

    id: int
    name: str
    category: str
    unit: str
    current_quantity: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    status: ProductStatus
    notes: Optional[str]
    branch_id: Optional[int]
    created_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def net_profit(self) -> Decimal:
        return self.total_revenue - self.total_cost


@dataclass(frozen=True)
class ProductOperation:
    """Audit log entry changing a product's totals."""

    id: int
    product_id: int
    type: OperationType
    description: str
    quantity: Decimal
    amount: Decimal
    amount_type: AmountType
    date: date
    branch_id: Optional[int]
    target_product_id: Optional[int] = None
    target_quantity: Decimal = Decimal("0")
    recorded_by: Optional[str] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class WarehouseMovement:
    """Inbound or outbound movement of cash or a stock item."""

    id: int
    type: MovementType
    category: MovementCategory
    item_name: Optional[str]
    description: str
    quantity: Optional[Decimal]
    value: Optional[Decimal]
    date: date
    branch_id: Optional[int]
    recorded_by: Optional[str] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Donor:
    """Donor with running donation totals. Shared by all branches."""

    id: int
    name: str
    name_normalized: str
    total_donated: Decimal
    donations_count: int
    last_donation_date: Optional[date]
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Notebook:
    """Named collection book of a branch, with running income totals."""

    id: int
    name: str
    name_normalized: str
    transactions_count: int
    total_amount: Decimal
    last_used_date: Optional[date]
    branch_id: Optional[int]
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TreasuryTransaction:
    """Income or expense journal entry."""

    id: int
    type: TransactionType
    amount: Decimal
    description: str
    category: str
    reference: Optional[str]
    transaction_date: date
    donor_id: Optional[int]
    donor_name_snapshot: Optional[str]
    branch_id: Optional[int]
    created_by: Optional[str] = None
    notebook_id: Optional[int] = None
    notebook_name_snapshot: Optional[str] = None


@dataclass(frozen=True)
class Initiative:
    """Charity program run by a branch."""

    id: int
    name: str
    description: str
    date: date
    total_amount: Decimal
    status: InitiativeStatus
    branch_id: Optional[int]


@dataclass(frozen=True)
class LoanFundSummary:
    """Lending fund figures for one branch filter."""

    total_fund: Decimal
    total_disbursed: Decimal
    total_repaid: Decimal
    # legacy capital already lent out by branches outside the filter
    legacy_drawn_elsewhere: Decimal = Decimal("0")

    @property
    def available_fund(self) -> Decimal:
        return self.total_fund - self.total_disbursed + self.total_repaid - self.legacy_drawn_elsewhere


@dataclass(frozen=True)
class TreasuryTotals:
    income_total: Decimal
    expense_total: Decimal

    @property
    def balance(self) -> Decimal:
        return self.income_total - self.expense_total


@dataclass(frozen=True)
class ProductTotals:
    """Quantity, cost and revenue of a product."""

    quantity: Decimal
    cost: Decimal
    revenue: Decimal


@dataclass(frozen=True)
class Drift:
    """Mismatch between a running counter and the value derived from its log."""

    kind: str
    entity_id: int
    field: str
    recorded: Decimal
    derived: Decimal

    @property
    def difference(self) -> Decimal:
        return self.recorded - self.derived
