"""Utility functions for aidledger."""

from aidledger.utils.date_parser import parse_date
from aidledger.utils.amount_parser import parse_amount, parse_quantity
from aidledger.utils.branch_resolver import resolve_branch

__all__ = ["parse_date", "parse_amount", "parse_quantity", "resolve_branch"]
