"""Shared pytest fixtures for aidledger tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from aidledger.database.factories import create_sqlite_database
from aidledger.domain.beneficiary import BeneficiaryService
from aidledger.domain.branch import BranchService
from aidledger.domain.branch_access import BranchAccessPolicy
from aidledger.domain.donor import DonorService
from aidledger.domain.entities import Principal, Role
from aidledger.domain.initiative import InitiativeService
from aidledger.domain.ledger import LedgerAggregator
from aidledger.domain.loan import LoanService
from aidledger.domain.notebook import NotebookService
from aidledger.domain.product import ProductService
from aidledger.domain.reconcile import ReconciliationService
from aidledger.domain.treasury import TreasuryService
from aidledger.domain.warehouse import WarehouseService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def superadmin():
    return Principal(user_id="root", role=Role.SUPERADMIN)


@pytest.fixture
def branches(temp_db, superadmin):
    """Create two branches and return their IDs as (north, south)."""
    service = BranchService(temp_db)
    north = service.create_branch(superadmin, name="North Office", code="nth")
    south = service.create_branch(superadmin, name="South Office", code="sth")
    return north, south


@pytest.fixture
def north_admin(branches):
    return Principal(user_id="amal", role=Role.ADMIN, branch_id=branches[0], branch_name="North Office")


@pytest.fixture
def south_member(branches):
    return Principal(user_id="samir", role=Role.MEMBER, branch_id=branches[1], branch_name="South Office")


@pytest.fixture
def plain_user(branches):
    """A signed-in user without ledger access."""
    return Principal(user_id="guest", role=Role.USER, branch_id=branches[0])


@pytest.fixture
def policy():
    return BranchAccessPolicy()


@pytest.fixture
def ledger(temp_db):
    return LedgerAggregator(temp_db)


@pytest.fixture
def branch_service(temp_db, policy):
    return BranchService(temp_db, policy)


@pytest.fixture
def beneficiary_service(temp_db, policy):
    return BeneficiaryService(temp_db, policy)


@pytest.fixture
def loan_service(temp_db, policy, ledger):
    return LoanService(temp_db, policy, ledger)


@pytest.fixture
def product_service(temp_db, policy):
    return ProductService(temp_db, policy)


@pytest.fixture
def warehouse_service(temp_db, policy, ledger):
    return WarehouseService(temp_db, policy, ledger)


@pytest.fixture
def donor_service(temp_db, policy):
    return DonorService(temp_db, policy)


@pytest.fixture
def notebook_service(temp_db, policy):
    return NotebookService(temp_db, policy)


@pytest.fixture
def treasury_service(temp_db, policy, donor_service, ledger, notebook_service):
    return TreasuryService(temp_db, policy, donor_service, ledger, notebook_service)


@pytest.fixture
def initiative_service(temp_db, policy):
    return InitiativeService(temp_db, policy)


@pytest.fixture
def reconciliation_service(temp_db, policy, ledger):
    return ReconciliationService(temp_db, policy, ledger)


@pytest.fixture
def funded_north(loan_service, north_admin):
    """Put 10,000 into the North branch's lending fund."""
    loan_service.add_capital(north_admin, Decimal("10000"), source="Zakat committee")
    return north_admin


@pytest.fixture
def stocked_product(product_service, north_admin):
    """A North product holding 100 kg bought for 250."""
    product_id = product_service.create_product(north_admin, name="Olives")
    product_service.apply_operation(
        north_admin,
        product_id,
        "purchase",
        description="Harvest purchase",
        quantity=Decimal("100"),
        amount=Decimal("250"),
    )
    return product_id


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
