"""Recompute cached stock fields and write back the ones that changed."""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from stockledger.domain.errors import CancellationCheck
from stockledger.domain.product import CatalogProduct
from stockledger.domain.reconciliation import ReconciliationResult
from stockledger.runtime import StockReconciler, get_logger
from stockledger.store.base import DEFAULT_CHUNK_SIZE, CatalogStore, PersistenceFailure, chunked

logger = get_logger(__name__)

RefreshStatus = Literal["ok", "unchanged", "persistence-failed"]


@dataclass(frozen=True)
class RefreshResult:
    """Refreshed catalog.

    ``products`` is authoritative even when ``persisted`` is False: the
    store is behind until the next successful refresh.
    """

    status: RefreshStatus
    products: tuple[CatalogProduct, ...]
    results: dict[str, ReconciliationResult]
    changed: tuple[str, ...] = ()
    written: tuple[str, ...] = ()
    invalid: tuple[str, ...] = ()
    unmatched_transactions: int = 0
    error: str | None = None

    @property
    def persisted(self) -> bool:
        return self.status != "persistence-failed"


def refresh_stock_levels(
    store: CatalogStore,
    *,
    reconciler: StockReconciler | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_token: CancellationCheck | None = None,
    now: datetime.datetime | None = None,
) -> RefreshResult:
    """
    Reconcile every product in the store and persist changed stock fields.

    Invalid product snapshots are reported and left untouched. Chunks
    written before a failure stay written; ``written`` lists them.
    """
    reconciler = reconciler or StockReconciler()
    products = store.list_products()
    transactions = store.list_transactions()
    logger.info("Refreshing stock for %d product(s) from %d sale(s)", len(products), len(transactions))

    # Stored products may have been edited elsewhere; never trust old entries.
    reconciler.invalidate()
    outcome = reconciler.reconcile_all(products, transactions, cancel_token=cancel_token)

    stamp = now or datetime.datetime.now(datetime.UTC).replace(tzinfo=None)
    refreshed: list[CatalogProduct] = []
    changed: list[CatalogProduct] = []
    for product in products:
        result = outcome.results.get(product.id)
        if result is None:
            refreshed.append(product)
            continue
        candidate = product.with_reconciled(result)
        if candidate.stock_fields_differ(product):
            candidate = product.with_reconciled(result, updated_at=stamp)
            logger.debug(
                "%s: sold %d -> %d, stock %d -> %d",
                product.name,
                product.quantity_sold,
                candidate.quantity_sold,
                product.current_stock,
                candidate.current_stock,
            )
            changed.append(candidate)
        refreshed.append(candidate)

    base = dict(
        products=tuple(refreshed),
        results=dict(outcome.results),
        changed=tuple(product.id for product in changed),
        invalid=outcome.invalid_product_ids,
        unmatched_transactions=len(outcome.unmatched),
    )
    if not changed:
        logger.info("No stock changes to save")
        return RefreshResult(status="unchanged", **base)

    written: list[str] = []
    try:
        for chunk in chunked(changed, chunk_size):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(written)
            store.update_stock_fields(chunk)
            written.extend(product.id for product in chunk)
    except PersistenceFailure as exc:
        logger.error("Failed to save refreshed stock (%d of %d written): %s", len(written), len(changed), exc)
        return RefreshResult(status="persistence-failed", written=tuple(written), error=str(exc), **base)

    logger.info("Saved refreshed stock for %d product(s)", len(written))
    return RefreshResult(status="ok", written=tuple(written), **base)


def products_needing_attention(
    products: Sequence[CatalogProduct],
    results: dict[str, ReconciliationResult],
) -> list[tuple[CatalogProduct, ReconciliationResult]]:
    """Products whose reconciliation flagged an inconsistency, in catalog order."""
    return [
        (product, results[product.id])
        for product in products
        if product.id in results and results[product.id].has_inconsistent_stock
    ]
