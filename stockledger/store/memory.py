"""In-process store, used by tests and as the base for file-backed stores."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import replace

from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction
from stockledger.runtime import get_logger
from stockledger.store.base import PersistenceFailure

logger = get_logger(__name__)


class InMemoryStore:
    """Dict-backed ``CatalogStore``.

    Batches are validated before anything is applied, so a rejected batch
    leaves the store untouched.
    """

    def __init__(
        self,
        products: Iterable[CatalogProduct] = (),
        transactions: Iterable[Transaction] = (),
    ) -> None:
        self.products: dict[str, CatalogProduct] = {product.id: product for product in products}
        self.transactions: list[Transaction] = list(transactions)
        self.commit_count = 0

    def list_products(self) -> list[CatalogProduct]:
        return list(self.products.values())

    def list_transactions(self) -> list[Transaction]:
        return list(self.transactions)

    def allocate_product_id(self) -> str:
        return uuid.uuid4().hex[:20]

    def _check_batch(self, products: Sequence[CatalogProduct]) -> None:
        ids = [product.id for product in products]
        if any(not product_id for product_id in ids):
            raise PersistenceFailure("Batch contains a product without an id")
        if len(set(ids)) != len(ids):
            raise PersistenceFailure("Batch writes the same product twice")

    def _persist(self) -> None:
        """Hook for subclasses that mirror state elsewhere."""

    def commit_products(self, products: Sequence[CatalogProduct]) -> None:
        self._check_batch(products)
        previous = dict(self.products)
        for product in products:
            self.products[product.id] = product
        self._apply_or_rollback(previous)
        logger.debug("Committed %d product(s)", len(products))

    def update_stock_fields(self, products: Sequence[CatalogProduct]) -> None:
        self._check_batch(products)
        missing = [product.id for product in products if product.id not in self.products]
        if missing:
            raise PersistenceFailure(f"Cannot update unknown product(s): {', '.join(missing)}")
        previous = dict(self.products)
        for product in products:
            self.products[product.id] = replace(
                self.products[product.id],
                current_stock=product.current_stock,
                quantity_sold=product.quantity_sold,
                initial_stock=product.initial_stock,
                updated_at=product.updated_at,
            )
        self._apply_or_rollback(previous)
        logger.debug("Updated stock fields of %d product(s)", len(products))

    def _apply_or_rollback(self, previous: dict[str, CatalogProduct]) -> None:
        try:
            self._persist()
        except Exception:
            self.products = previous
            raise
        self.commit_count += 1
