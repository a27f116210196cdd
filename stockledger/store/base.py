"""Persistence contract consumed by the stock workflows.

A store reads products and transactions and accepts batched writes. Each
``commit_products`` / ``update_stock_fields`` call is all-or-nothing: either
every product in the batch is written or none is, and failure is reported
by raising ``PersistenceFailure``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Protocol, TypeVar

from stockledger.domain.errors import StockLedgerError
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction

T = TypeVar("T")

# Firestore caps a single commit at 500 writes; stay well under it.
DEFAULT_CHUNK_SIZE = 200


class StoreError(StockLedgerError):
    """Base class for store failures."""


class PersistenceFailure(StoreError):
    """A write was not confirmed. Nothing in the failed batch may be assumed written."""


class CatalogStore(Protocol):
    """Read and batched-write access to products and register sales."""

    def list_products(self) -> list[CatalogProduct]: ...

    def list_transactions(self) -> list[Transaction]: ...

    def allocate_product_id(self) -> str: ...

    def commit_products(self, products: Sequence[CatalogProduct]) -> None:
        """Atomically upsert whole product records."""
        ...

    def update_stock_fields(self, products: Sequence[CatalogProduct]) -> None:
        """Atomically write current stock, quantity sold, initial stock and updated-at."""
        ...


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start : start + size]
