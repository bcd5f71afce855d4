"""SQLAlchemy models for aidledger database."""

from datetime import datetime, date, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(14, 2)
QUANTITY = Numeric(14, 3)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Branch(Base):
    """Branch (office) model."""

    __tablename__ = "branches"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    code = Column(String, unique=True, nullable=False, index=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Beneficiary(Base):
    """Beneficiary model carrying the inputs of its priority score."""

    __tablename__ = "beneficiaries"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    national_id = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    income = Column(MONEY, default=0, nullable=False)
    spouse_income = Column(MONEY, default=0, nullable=False)
    rental_cost = Column(MONEY, default=0, nullable=False)
    family_members = Column(Integer, default=1, nullable=False)
    marital_status = Column(String, default="single", nullable=False)
    beneficiary_sick = Column(Boolean, default=False, nullable=False)
    spouse_sick = Column(Boolean, default=False, nullable=False)
    sick_unmarried_children = Column(Integer, default=0, nullable=False)
    priority = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)


class LoanCapital(Base):
    """Loan fund contribution model."""

    __tablename__ = "loan_capital"

    id = Column(Integer, primary_key=True)
    amount = Column(MONEY, nullable=False)
    source = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    date = Column(Date, default=date.today, nullable=False)
    recorded_by = Column(String, nullable=True)


class Loan(Base):
    """Loan model."""

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True)
    beneficiary_name = Column(String, nullable=False)
    national_id = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    amount = Column(MONEY, nullable=False)
    amount_paid = Column(MONEY, default=0, nullable=False)
    status = Column(String, default="active", nullable=False, index=True)
    start_date = Column(Date, default=date.today, nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Relationships
    repayments = relationship(
        "LoanRepayment",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="LoanRepayment.id",
    )


class LoanRepayment(Base):
    """Loan repayment model. Insertion order is the repayment order."""

    __tablename__ = "loan_repayments"

    id = Column(Integer, primary_key=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    date = Column(Date, default=date.today, nullable=False)
    notes = Column(String, nullable=True)
    recorded_by = Column(String, nullable=True)

    # Relationships
    loan = relationship("Loan", back_populates="repayments")


class Product(Base):
    """Product model with running totals."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, default="raw", nullable=False)
    unit = Column(String, default="kg", nullable=False)
    current_quantity = Column(QUANTITY, default=0, nullable=False)
    total_cost = Column(MONEY, default=0, nullable=False)
    total_revenue = Column(MONEY, default=0, nullable=False)
    status = Column(String, default="active", nullable=False, index=True)
    notes = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True, index=True)


class ProductOperation(Base):
    """Product operation log model."""

    __tablename__ = "product_operations"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    type = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    amount = Column(MONEY, default=0, nullable=False)
    amount_type = Column(String, nullable=False)
    target_product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    target_quantity = Column(QUANTITY, default=0, nullable=False)
    date = Column(Date, default=date.today, nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    recorded_by = Column(String, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)


class WarehouseMovement(Base):
    """Warehouse movement model."""

    __tablename__ = "warehouse_movements"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    item_name = Column(String, nullable=True, index=True)
    description = Column(String, nullable=False)
    quantity = Column(QUANTITY, nullable=True)
    value = Column(MONEY, nullable=True)
    date = Column(Date, default=date.today, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    recorded_by = Column(String, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)


class Donor(Base):
    """Donor model. Not branch-scoped."""

    __tablename__ = "donors"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_normalized = Column(String, unique=True, nullable=False, index=True)
    total_donated = Column(MONEY, default=0, nullable=False)
    donations_count = Column(Integer, default=0, nullable=False)
    last_donation_date = Column(Date, nullable=True)
    contact_phone = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    # Relationships
    transactions = relationship("TreasuryTransaction", back_populates="donor")


class Notebook(Base):
    """Collection notebook model. One name per branch."""

    __tablename__ = "notebooks"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    name_normalized = Column(String, nullable=False, index=True)
    transactions_count = Column(Integer, default=0, nullable=False)
    total_amount = Column(MONEY, default=0, nullable=False)
    last_used_date = Column(Date, nullable=True)
    notes = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("name_normalized", "branch_id", name="uq_notebook_branch_name"),)

    # Relationships
    transactions = relationship("TreasuryTransaction", back_populates="notebook")


class TreasuryTransaction(Base):
    """Treasury journal entry model."""

    __tablename__ = "treasury_transactions"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    description = Column(String, nullable=False)
    category = Column(String, default="general", nullable=False)
    reference = Column(String, nullable=True)
    transaction_date = Column(Date, default=date.today, nullable=False, index=True)
    donor_id = Column(Integer, ForeignKey("donors.id"), nullable=True, index=True)
    donor_name_snapshot = Column(String, nullable=True)
    notebook_id = Column(Integer, ForeignKey("notebooks.id"), nullable=True, index=True)
    notebook_name_snapshot = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    donor = relationship("Donor", back_populates="transactions")
    notebook = relationship("Notebook", back_populates="transactions")


class Initiative(Base):
    """Initiative (program) model."""

    __tablename__ = "initiatives"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    total_amount = Column(MONEY, default=0, nullable=False)
    status = Column(String, default="planned", nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
