"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly; services depend on this module
from aidledger.domain.entities import (
    Branch,
    BranchFilter,
    Beneficiary,
    BeneficiaryProfile,
    LoanCapital,
    Loan,
    Product,
    ProductOperation,
    WarehouseMovement,
    Donor,
    Notebook,
    TreasuryTransaction,
    Initiative,
)


class Database(ABC):
    """Abstract database interface for aidledger.

    Methods commit immediately unless called inside ``transaction()``, in
    which case everything commits or rolls back together.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Run the enclosed calls as one atomic unit.

        Commits on normal exit, rolls back when the block raises. Nested
        blocks join the outermost one.
        """
        pass

    # Branch operations
    @abstractmethod
    def create_branch(
        self, name: str, code: str, address: Optional[str] = None, phone: Optional[str] = None
    ) -> int:
        """Create a branch. Returns branch ID."""
        pass

    @abstractmethod
    def get_branch(self, branch_id: int) -> Optional[Branch]:
        """Get branch by ID."""
        pass

    @abstractmethod
    def get_branch_by_code(self, code: str) -> Optional[Branch]:
        """Get branch by its (uppercase) code."""
        pass

    @abstractmethod
    def find_branch_by_name_or_code(
        self, name: Optional[str], code: Optional[str], exclude_id: Optional[int] = None
    ) -> Optional[Branch]:
        """Find a branch clashing with the given name or code."""
        pass

    @abstractmethod
    def list_branches(self, active_only: bool = False) -> list[Branch]:
        """List branches ordered by name."""
        pass

    @abstractmethod
    def update_branch(
        self,
        branch_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        address: Optional[str] = None,
        phone: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> None:
        """Update branch fields that are not None."""
        pass

    # Beneficiary operations
    @abstractmethod
    def create_beneficiary(
        self,
        name: str,
        profile: BeneficiaryProfile,
        priority: int,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Create a beneficiary. Returns beneficiary ID."""
        pass

    @abstractmethod
    def get_beneficiary(self, beneficiary_id: int) -> Optional[Beneficiary]:
        """Get a non-deleted beneficiary by ID."""
        pass

    @abstractmethod
    def update_beneficiary(
        self,
        beneficiary_id: int,
        name: str,
        national_id: Optional[str],
        phone: Optional[str],
        profile: BeneficiaryProfile,
        priority: int,
    ) -> None:
        """Replace a beneficiary's details and priority."""
        pass

    @abstractmethod
    def soft_delete_beneficiary(self, beneficiary_id: int) -> None:
        """Mark a beneficiary deleted."""
        pass

    @abstractmethod
    def list_beneficiaries(self, branch_filter: BranchFilter) -> list[Beneficiary]:
        """List non-deleted beneficiaries, highest priority first."""
        pass

    # Loan capital operations
    @abstractmethod
    def create_loan_capital(
        self,
        amount: Decimal,
        source: str,
        date: date,
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
        recorded_by: Optional[str] = None,
    ) -> int:
        """Record a loan fund contribution. Returns entry ID."""
        pass

    @abstractmethod
    def get_loan_capital(self, capital_id: int) -> Optional[LoanCapital]:
        """Get a loan fund contribution by ID."""
        pass

    @abstractmethod
    def list_loan_capital(self, branch_filter: BranchFilter) -> list[LoanCapital]:
        """List contributions, newest first."""
        pass

    @abstractmethod
    def update_loan_capital(
        self,
        capital_id: int,
        amount: Optional[Decimal] = None,
        source: Optional[str] = None,
        notes: Optional[str] = None,
        date: Optional[date] = None,
    ) -> None:
        """Update contribution fields that are not None."""
        pass

    @abstractmethod
    def delete_loan_capital(self, capital_id: int) -> None:
        """Delete a contribution."""
        pass

    # Loan operations
    @abstractmethod
    def create_loan(
        self,
        beneficiary_name: str,
        amount: Decimal,
        start_date: date,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
        created_by: Optional[str] = None,
    ) -> int:
        """Create an active loan with nothing paid. Returns loan ID."""
        pass

    @abstractmethod
    def get_loan(self, loan_id: int, include_deleted: bool = False) -> Optional[Loan]:
        """Get loan (with repayments) by ID."""
        pass

    @abstractmethod
    def list_loans(
        self,
        branch_filter: BranchFilter,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Loan]:
        """List non-deleted loans, newest first.

        Args:
            branch_filter: Visibility filter
            status: Optional status filter
            search: Optional case-insensitive match on name, phone or national ID
        """
        pass

    @abstractmethod
    def update_loan(
        self,
        loan_id: int,
        beneficiary_name: Optional[str] = None,
        national_id: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        due_date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        status: Optional[str] = None,
    ) -> None:
        """Update loan fields that are not None."""
        pass

    @abstractmethod
    def soft_delete_loan(self, loan_id: int) -> None:
        """Mark a loan deleted."""
        pass

    @abstractmethod
    def add_repayment(
        self,
        loan_id: int,
        amount: Decimal,
        date: date,
        notes: Optional[str] = None,
        recorded_by: Optional[str] = None,
    ) -> None:
        """Append a repayment record. Does not touch amount_paid."""
        pass

    @abstractmethod
    def update_repayment(
        self,
        loan_id: int,
        index: int,
        amount: Optional[Decimal] = None,
        date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Update the repayment at ``index``. Does not touch amount_paid."""
        pass

    @abstractmethod
    def delete_repayment(self, loan_id: int, index: int) -> None:
        """Remove the repayment at ``index``. Does not touch amount_paid."""
        pass

    @abstractmethod
    def increment_loan_paid(self, loan_id: int, delta: Decimal) -> bool:
        """Atomically add ``delta`` to amount_paid.

        The write only happens when the result stays within
        ``0 <= amount_paid <= amount``. Returns True when applied.
        """
        pass

    # Aggregates
    @abstractmethod
    def sum_loan_capital(self, branch_filter: BranchFilter) -> Decimal:
        """Sum of contributions visible through the filter."""
        pass

    @abstractmethod
    def sum_loans(self, branch_filter: BranchFilter) -> tuple[Decimal, Decimal]:
        """Sum of (amount, amount_paid) over non-deleted loans."""
        pass

    @abstractmethod
    def sum_warehouse(
        self,
        branch_filter: BranchFilter,
        category: str,
        movement_type: str,
        item_name: Optional[str] = None,
        exclude_movement_id: Optional[int] = None,
    ) -> Decimal:
        """Sum non-deleted movements.

        Sums ``quantity`` for product movements and ``value`` for cash.
        """
        pass

    @abstractmethod
    def warehouse_item_balances(self, branch_filter: BranchFilter) -> dict[str, Decimal]:
        """Inbound minus outbound quantity per item name."""
        pass

    @abstractmethod
    def sum_treasury(self, branch_filter: BranchFilter) -> tuple[Decimal, Decimal]:
        """Sum of (income, expense) transaction amounts."""
        pass

    # Product operations
    @abstractmethod
    def create_product(
        self,
        name: str,
        category: str,
        unit: str,
        notes: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> int:
        """Create a product with zero totals. Returns product ID."""
        pass

    @abstractmethod
    def get_product(self, product_id: int, include_deleted: bool = False) -> Optional[Product]:
        """Get product by ID."""
        pass

    @abstractmethod
    def list_products(
        self, branch_filter: BranchFilter, status: Optional[str] = None
    ) -> list[Product]:
        """List non-deleted products ordered by name."""
        pass

    @abstractmethod
    def update_product(
        self,
        product_id: int,
        name: Optional[str] = None,
        category: Optional[str] = None,
        unit: Optional[str] = None,
        notes: Optional[str] = None,
        status: Optional[str] = None,
    ) -> None:
        """Update descriptive product fields that are not None."""
        pass

    @abstractmethod
    def soft_delete_product(self, product_id: int) -> None:
        """Mark a product deleted."""
        pass

    @abstractmethod
    def increment_product_totals(
        self,
        product_id: int,
        quantity_delta: Decimal = Decimal("0"),
        cost_delta: Decimal = Decimal("0"),
        revenue_delta: Decimal = Decimal("0"),
    ) -> bool:
        """Atomically add the deltas to a product's running totals.

        The write only happens when no total would turn negative. Returns
        True when applied.
        """
        pass

    @abstractmethod
    def set_product_totals(
        self, product_id: int, quantity: Decimal, cost: Decimal, revenue: Decimal
    ) -> None:
        """Overwrite a product's running totals (reconciliation only)."""
        pass

    @abstractmethod
    def create_product_operation(
        self,
        product_id: int,
        type: str,
        description: str,
        quantity: Decimal,
        amount: Decimal,
        amount_type: str,
        date: date,
        branch_id: Optional[int] = None,
        target_product_id: Optional[int] = None,
        target_quantity: Decimal = Decimal("0"),
        recorded_by: Optional[str] = None,
    ) -> int:
        """Append an operation to the log. Returns operation ID."""
        pass

    @abstractmethod
    def get_product_operation(
        self, operation_id: int, include_deleted: bool = False
    ) -> Optional[ProductOperation]:
        """Get operation by ID."""
        pass

    @abstractmethod
    def list_product_operations(
        self,
        product_id: Optional[int] = None,
        target_product_id: Optional[int] = None,
        branch_filter: Optional[BranchFilter] = None,
    ) -> list[ProductOperation]:
        """List non-deleted operations, newest first."""
        pass

    @abstractmethod
    def update_product_operation(
        self,
        operation_id: int,
        description: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        amount: Optional[Decimal] = None,
        target_quantity: Optional[Decimal] = None,
        date: Optional[date] = None,
    ) -> None:
        """Update operation fields that are not None."""
        pass

    @abstractmethod
    def soft_delete_product_operation(self, operation_id: int) -> None:
        """Mark an operation deleted."""
        pass

    # Warehouse operations
    @abstractmethod
    def create_warehouse_movement(
        self,
        type: str,
        category: str,
        description: str,
        date: date,
        item_name: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        value: Optional[Decimal] = None,
        branch_id: Optional[int] = None,
        recorded_by: Optional[str] = None,
    ) -> int:
        """Record a movement. Returns movement ID."""
        pass

    @abstractmethod
    def get_warehouse_movement(
        self, movement_id: int, include_deleted: bool = False
    ) -> Optional[WarehouseMovement]:
        """Get movement by ID."""
        pass

    @abstractmethod
    def list_warehouse_movements(
        self,
        branch_filter: BranchFilter,
        movement_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WarehouseMovement]:
        """List non-deleted movements, newest first."""
        pass

    @abstractmethod
    def update_warehouse_movement(
        self,
        movement_id: int,
        type: str,
        category: str,
        description: str,
        item_name: Optional[str],
        quantity: Optional[Decimal],
        value: Optional[Decimal],
        date: Optional[date] = None,
    ) -> None:
        """Replace a movement's details."""
        pass

    @abstractmethod
    def soft_delete_warehouse_movement(self, movement_id: int) -> None:
        """Mark a movement deleted."""
        pass

    # Donor operations
    @abstractmethod
    def create_donor(self, name: str, name_normalized: str) -> int:
        """Create a donor with zero totals. Returns donor ID."""
        pass

    @abstractmethod
    def get_donor(self, donor_id: int) -> Optional[Donor]:
        """Get donor by ID."""
        pass

    @abstractmethod
    def get_donor_by_normalized_name(self, name_normalized: str) -> Optional[Donor]:
        """Get donor by normalized name."""
        pass

    @abstractmethod
    def list_donors(self, limit: Optional[int] = None) -> list[Donor]:
        """List donors, biggest total first."""
        pass

    @abstractmethod
    def increment_donor_totals(
        self,
        donor_id: int,
        amount_delta: Decimal,
        count_delta: int,
        last_donation_date: Optional[date] = None,
    ) -> None:
        """Atomically add to a donor's running totals."""
        pass

    @abstractmethod
    def set_donor_totals(self, donor_id: int, total_donated: Decimal, donations_count: int) -> None:
        """Overwrite a donor's running totals (reconciliation only)."""
        pass

    # Notebook operations
    @abstractmethod
    def create_notebook(
        self,
        name: str,
        name_normalized: str,
        branch_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a notebook with zero totals. Returns notebook ID."""
        pass

    @abstractmethod
    def get_notebook(self, notebook_id: int) -> Optional[Notebook]:
        """Get notebook by ID."""
        pass

    @abstractmethod
    def get_notebook_by_normalized_name(
        self, name_normalized: str, branch_id: Optional[int]
    ) -> Optional[Notebook]:
        """Get a branch's notebook by normalized name."""
        pass

    @abstractmethod
    def list_notebooks(self, branch_filter: BranchFilter, limit: Optional[int] = None) -> list[Notebook]:
        """List notebooks, most recently used first, then by name."""
        pass

    @abstractmethod
    def update_notebook(
        self,
        notebook_id: int,
        name: Optional[str] = None,
        name_normalized: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Update a notebook's name or notes."""
        pass

    @abstractmethod
    def delete_notebook(self, notebook_id: int) -> None:
        """Delete a notebook."""
        pass

    @abstractmethod
    def increment_notebook_totals(
        self,
        notebook_id: int,
        amount_delta: Decimal,
        count_delta: int,
        last_used_date: Optional[date] = None,
    ) -> None:
        """Atomically add to a notebook's running totals."""
        pass

    @abstractmethod
    def set_notebook_totals(self, notebook_id: int, total_amount: Decimal, transactions_count: int) -> None:
        """Overwrite a notebook's running totals (reconciliation only)."""
        pass

    @abstractmethod
    def list_notebook_income(self, notebook_id: int, limit: Optional[int] = None) -> list[TreasuryTransaction]:
        """List income entries linked to a notebook, newest first."""
        pass

    @abstractmethod
    def set_notebook_snapshots(self, notebook_id: int, name: str) -> int:
        """Rewrite the name snapshot on a notebook's entries. Returns count."""
        pass

    @abstractmethod
    def unlink_notebook_transactions(self, notebook_id: int) -> int:
        """Detach every entry from a notebook. Returns count."""
        pass

    # Treasury operations
    @abstractmethod
    def create_treasury_transaction(
        self,
        type: str,
        amount: Decimal,
        description: str,
        transaction_date: date,
        category: str = "general",
        reference: Optional[str] = None,
        donor_id: Optional[int] = None,
        donor_name_snapshot: Optional[str] = None,
        branch_id: Optional[int] = None,
        created_by: Optional[str] = None,
        notebook_id: Optional[int] = None,
        notebook_name_snapshot: Optional[str] = None,
    ) -> int:
        """Create a journal entry. Returns transaction ID."""
        pass

    @abstractmethod
    def get_treasury_transaction(self, transaction_id: int) -> Optional[TreasuryTransaction]:
        """Get journal entry by ID."""
        pass

    @abstractmethod
    def list_treasury_transactions(
        self, branch_filter: BranchFilter, limit: Optional[int] = None
    ) -> list[TreasuryTransaction]:
        """List journal entries, newest first."""
        pass

    @abstractmethod
    def update_treasury_transaction(
        self,
        transaction_id: int,
        type: str,
        amount: Decimal,
        description: str,
        category: str,
        reference: Optional[str],
        transaction_date: date,
        donor_id: Optional[int],
        donor_name_snapshot: Optional[str],
        notebook_id: Optional[int] = None,
        notebook_name_snapshot: Optional[str] = None,
    ) -> None:
        """Replace a journal entry's details."""
        pass

    @abstractmethod
    def delete_treasury_transaction(self, transaction_id: int) -> None:
        """Delete a journal entry."""
        pass

    @abstractmethod
    def list_unlinked_income(self) -> list[TreasuryTransaction]:
        """List income entries without a donor ID."""
        pass

    @abstractmethod
    def list_donor_income(self, donor_id: int) -> list[TreasuryTransaction]:
        """List income entries linked to a donor."""
        pass

    @abstractmethod
    def set_transaction_donor(self, transaction_id: int, donor_id: int) -> None:
        """Link a journal entry to a donor."""
        pass

    # Initiative operations
    @abstractmethod
    def create_initiative(
        self,
        name: str,
        description: str,
        date: date,
        total_amount: Decimal = Decimal("0"),
        status: str = "planned",
        branch_id: Optional[int] = None,
    ) -> int:
        """Create an initiative. Returns initiative ID."""
        pass

    @abstractmethod
    def get_initiative(self, initiative_id: int) -> Optional[Initiative]:
        """Get initiative by ID."""
        pass

    @abstractmethod
    def list_initiatives(self, branch_filter: BranchFilter) -> list[Initiative]:
        """List initiatives, newest first."""
        pass
