"""Domain layer for aidledger."""

from aidledger.domain.priority import score_priority, score_profile
from aidledger.domain.branch_access import BranchAccessPolicy

__all__ = [
    "score_priority",
    "score_profile",
    "BranchAccessPolicy",
    "LedgerAggregator",
    "BranchService",
    "BeneficiaryService",
    "LoanService",
    "ProductService",
    "WarehouseService",
    "DonorService",
    "TreasuryService",
    "InitiativeService",
    "ReconciliationService",
]

# Services depend on the database layer, which imports the entities from this
# package, so they are imported lazily.
_SERVICES = {
    "LedgerAggregator": "aidledger.domain.ledger",
    "BranchService": "aidledger.domain.branch",
    "BeneficiaryService": "aidledger.domain.beneficiary",
    "LoanService": "aidledger.domain.loan",
    "ProductService": "aidledger.domain.product",
    "WarehouseService": "aidledger.domain.warehouse",
    "DonorService": "aidledger.domain.donor",
    "TreasuryService": "aidledger.domain.treasury",
    "InitiativeService": "aidledger.domain.initiative",
    "ReconciliationService": "aidledger.domain.reconcile",
}


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
