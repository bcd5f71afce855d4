"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so services never see ORM rows and
the schema can change without touching domain code.
"""

from decimal import Decimal
from typing import Optional

from aidledger.domain import entities as domain
from aidledger.database.models import (
    Branch as ORMBranch,
    Beneficiary as ORMBeneficiary,
    LoanCapital as ORMLoanCapital,
    Loan as ORMLoan,
    LoanRepayment as ORMLoanRepayment,
    Product as ORMProduct,
    ProductOperation as ORMProductOperation,
    WarehouseMovement as ORMWarehouseMovement,
    Donor as ORMDonor,
    Notebook as ORMNotebook,
    TreasuryTransaction as ORMTreasuryTransaction,
    Initiative as ORMInitiative,
)


def to_decimal(value, places: str = "0.01") -> Decimal:
    """Normalize a stored numeric value to a quantized Decimal."""
    if value is None:
        return Decimal("0").quantize(Decimal(places))
    return Decimal(str(value)).quantize(Decimal(places))


def to_quantity(value) -> Decimal:
    return to_decimal(value, "0.001")


def _optional_decimal(value, places: str = "0.01") -> Optional[Decimal]:
    if value is None:
        return None
    return to_decimal(value, places)


def branch_to_domain(orm_branch: ORMBranch) -> domain.Branch:
    """Convert SQLAlchemy Branch model to domain Branch entity."""
    return domain.Branch(
        id=orm_branch.id,
        name=orm_branch.name,
        code=orm_branch.code,
        address=orm_branch.address,
        phone=orm_branch.phone,
        is_active=orm_branch.is_active,
        created_at=orm_branch.created_at,
    )


def beneficiary_to_domain(orm_beneficiary: ORMBeneficiary) -> domain.Beneficiary:
    """Convert SQLAlchemy Beneficiary model to domain Beneficiary entity."""
    profile = domain.BeneficiaryProfile(
        income=to_decimal(orm_beneficiary.income),
        spouse_income=to_decimal(orm_beneficiary.spouse_income),
        rental_cost=to_decimal(orm_beneficiary.rental_cost),
        family_members=orm_beneficiary.family_members,
        marital_status=orm_beneficiary.marital_status,
        health=domain.HealthStatus(
            beneficiary_sick=orm_beneficiary.beneficiary_sick,
            spouse_sick=orm_beneficiary.spouse_sick,
            sick_unmarried_children=orm_beneficiary.sick_unmarried_children,
        ),
    )
    return domain.Beneficiary(
        id=orm_beneficiary.id,
        name=orm_beneficiary.name,
        national_id=orm_beneficiary.national_id,
        phone=orm_beneficiary.phone,
        branch_id=orm_beneficiary.branch_id,
        profile=profile,
        priority=orm_beneficiary.priority,
        created_at=orm_beneficiary.created_at,
        deleted_at=orm_beneficiary.deleted_at,
    )


def loan_capital_to_domain(orm_capital: ORMLoanCapital) -> domain.LoanCapital:
    """Convert SQLAlchemy LoanCapital model to domain LoanCapital entity."""
    return domain.LoanCapital(
        id=orm_capital.id,
        amount=to_decimal(orm_capital.amount),
        source=orm_capital.source,
        notes=orm_capital.notes,
        branch_id=orm_capital.branch_id,
        date=orm_capital.date,
        recorded_by=orm_capital.recorded_by,
    )


def repayment_to_domain(orm_repayment: ORMLoanRepayment) -> domain.Repayment:
    """Convert SQLAlchemy LoanRepayment model to domain Repayment entity."""
    return domain.Repayment(
        amount=to_decimal(orm_repayment.amount),
        date=orm_repayment.date,
        notes=orm_repayment.notes,
        recorded_by=orm_repayment.recorded_by,
    )


def loan_to_domain(orm_loan: ORMLoan) -> domain.Loan:
    """Convert SQLAlchemy Loan model to domain Loan entity."""
    return domain.Loan(
        id=orm_loan.id,
        beneficiary_name=orm_loan.beneficiary_name,
        national_id=orm_loan.national_id,
        phone=orm_loan.phone,
        amount=to_decimal(orm_loan.amount),
        amount_paid=to_decimal(orm_loan.amount_paid),
        status=domain.LoanStatus(orm_loan.status),
        start_date=orm_loan.start_date,
        due_date=orm_loan.due_date,
        notes=orm_loan.notes,
        branch_id=orm_loan.branch_id,
        repayments=tuple(repayment_to_domain(r) for r in orm_loan.repayments),
        created_by=orm_loan.created_by,
        deleted_at=orm_loan.deleted_at,
    )


def product_to_domain(orm_product: ORMProduct) -> domain.Product:
    """Convert SQLAlchemy Product model to domain Product entity."""
    return domain.Product(
        id=orm_product.id,
        name=orm_product.name,
        category=orm_product.category,
        unit=orm_product.unit,
        current_quantity=to_quantity(orm_product.current_quantity),
        total_cost=to_decimal(orm_product.total_cost),
        total_revenue=to_decimal(orm_product.total_revenue),
        status=domain.ProductStatus(orm_product.status),
        notes=orm_product.notes,
        branch_id=orm_product.branch_id,
        created_at=orm_product.created_at,
        deleted_at=orm_product.deleted_at,
    )


def product_operation_to_domain(orm_operation: ORMProductOperation) -> domain.ProductOperation:
    """Convert SQLAlchemy ProductOperation model to domain ProductOperation entity."""
    return domain.ProductOperation(
        id=orm_operation.id,
        product_id=orm_operation.product_id,
        type=domain.OperationType(orm_operation.type),
        description=orm_operation.description,
        quantity=to_quantity(orm_operation.quantity),
        amount=to_decimal(orm_operation.amount),
        amount_type=domain.AmountType(orm_operation.amount_type),
        date=orm_operation.date,
        branch_id=orm_operation.branch_id,
        target_product_id=orm_operation.target_product_id,
        target_quantity=to_quantity(orm_operation.target_quantity),
        recorded_by=orm_operation.recorded_by,
        deleted_at=orm_operation.deleted_at,
    )


def warehouse_movement_to_domain(orm_movement: ORMWarehouseMovement) -> domain.WarehouseMovement:
    """Convert SQLAlchemy WarehouseMovement model to domain WarehouseMovement entity."""
    return domain.WarehouseMovement(
        id=orm_movement.id,
        type=domain.MovementType(orm_movement.type),
        category=domain.MovementCategory(orm_movement.category),
        item_name=orm_movement.item_name,
        description=orm_movement.description,
        quantity=_optional_decimal(orm_movement.quantity, "0.001"),
        value=_optional_decimal(orm_movement.value),
        date=orm_movement.date,
        branch_id=orm_movement.branch_id,
        recorded_by=orm_movement.recorded_by,
        deleted_at=orm_movement.deleted_at,
    )


def donor_to_domain(orm_donor: ORMDonor) -> domain.Donor:
    """Convert SQLAlchemy Donor model to domain Donor entity."""
    return domain.Donor(
        id=orm_donor.id,
        name=orm_donor.name,
        name_normalized=orm_donor.name_normalized,
        total_donated=to_decimal(orm_donor.total_donated),
        donations_count=orm_donor.donations_count,
        last_donation_date=orm_donor.last_donation_date,
        contact_phone=orm_donor.contact_phone,
        notes=orm_donor.notes,
    )


def notebook_to_domain(orm_notebook: ORMNotebook) -> domain.Notebook:
    """Convert SQLAlchemy Notebook model to domain Notebook entity."""
    return domain.Notebook(
        id=orm_notebook.id,
        name=orm_notebook.name,
        name_normalized=orm_notebook.name_normalized,
        transactions_count=orm_notebook.transactions_count,
        total_amount=to_decimal(orm_notebook.total_amount),
        last_used_date=orm_notebook.last_used_date,
        branch_id=orm_notebook.branch_id,
        notes=orm_notebook.notes,
        created_at=orm_notebook.created_at,
    )


def treasury_transaction_to_domain(orm_txn: ORMTreasuryTransaction) -> domain.TreasuryTransaction:
    """Convert SQLAlchemy TreasuryTransaction model to domain TreasuryTransaction entity."""
    return domain.TreasuryTransaction(
        id=orm_txn.id,
        type=domain.TransactionType(orm_txn.type),
        amount=to_decimal(orm_txn.amount),
        description=orm_txn.description,
        category=orm_txn.category,
        reference=orm_txn.reference,
        transaction_date=orm_txn.transaction_date,
        donor_id=orm_txn.donor_id,
        donor_name_snapshot=orm_txn.donor_name_snapshot,
        branch_id=orm_txn.branch_id,
        created_by=orm_txn.created_by,
        notebook_id=orm_txn.notebook_id,
        notebook_name_snapshot=orm_txn.notebook_name_snapshot,
    )


def initiative_to_domain(orm_initiative: ORMInitiative) -> domain.Initiative:
    """Convert SQLAlchemy Initiative model to domain Initiative entity."""
    return domain.Initiative(
        id=orm_initiative.id,
        name=orm_initiative.name,
        description=orm_initiative.description,
        date=orm_initiative.date,
        total_amount=to_decimal(orm_initiative.total_amount),
        status=domain.InitiativeStatus(orm_initiative.status),
        branch_id=orm_initiative.branch_id,
    )
