"""Pure stock reconciliation logic.

Nothing in this package performs I/O or imports runtime infrastructure:
- Transaction, CatalogProduct: input records
- normalize, match: record linkage between sales and catalog
- reconcile, aggregate: stock computation and roll-ups
- catalog_sync: drafting catalog entries for sales-only products

Usage:
    from stockledger.domain import CatalogProduct, Transaction, reconcile
"""

from stockledger.domain.errors import InvalidProductSnapshot, OperationCancelled, StockLedgerError
from stockledger.domain.matching import MatchPolicy, assign_transactions, match, match_with_tier
from stockledger.domain.normalize import normalize, normalize_category
from stockledger.domain.product import CatalogProduct
from stockledger.domain.reconciliation import ReconciliationResult, reconcile, validate_product
from stockledger.domain.stats import StockStats, aggregate
from stockledger.domain.transaction import Transaction

__all__ = [
    # Records
    "CatalogProduct",
    "Transaction",
    "ReconciliationResult",
    "StockStats",
    # Operations
    "normalize",
    "normalize_category",
    "match",
    "match_with_tier",
    "assign_transactions",
    "MatchPolicy",
    "reconcile",
    "validate_product",
    "aggregate",
    # Errors
    "StockLedgerError",
    "InvalidProductSnapshot",
    "OperationCancelled",
]
