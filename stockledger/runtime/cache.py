"""Memoized reconciliation.

Matching is O(products x transactions), so reconciliation results are
cached per product and validated against a fingerprint of every input that
affects them. A stale fingerprint is a miss; a miss recomputes without
waiting on other callers. Duplicate recomputation is acceptable, staleness
is not.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass

from stockledger.domain.errors import CancellationCheck
from stockledger.domain.fingerprint import (
    catalog_fingerprint,
    combine,
    policy_fingerprint,
    product_fingerprint,
    transactions_fingerprint,
)
from stockledger.domain.matching import DEFAULT_POLICY, MatchPolicy
from stockledger.domain.product import CatalogProduct
from stockledger.domain.reconciliation import ReconciliationResult, reconcile, reconcile_matched
from stockledger.domain.stats import AggregateResult, aggregate_detailed
from stockledger.domain.transaction import Transaction
from stockledger.runtime.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    result: ReconciliationResult


class ReconciliationCache:
    """Per-product cache of reconciliation results.

    Entries are immutable and replaced whole, so a reader sees either the old
    or the new entry, never a half-written one.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, product_id: str, fingerprint: str) -> ReconciliationResult | None:
        entry = self._entries.get(product_id)
        if entry is None or entry.fingerprint != fingerprint:
            self.misses += 1
            return None
        self.hits += 1
        return entry.result

    def put(self, product_id: str, fingerprint: str, result: ReconciliationResult) -> None:
        with self._lock:
            self._entries[product_id] = CacheEntry(fingerprint=fingerprint, result=result)

    def invalidate(self, product_id: str | None = None) -> None:
        """Drop one product's entry, or everything when ``product_id`` is None."""
        with self._lock:
            if product_id is None:
                self._entries.clear()
            else:
                self._entries.pop(product_id, None)
        logger.debug("Invalidated reconciliation cache for %s", product_id or "all products")


class StockReconciler:
    """Reconciliation engine that owns its cache and matching policy."""

    def __init__(self, policy: MatchPolicy | None = None, cache: ReconciliationCache | None = None) -> None:
        self.policy = policy or DEFAULT_POLICY
        self.cache = cache if cache is not None else ReconciliationCache()
        # A cache may be shared by reconcilers with different policies.
        self._policy_fingerprint = policy_fingerprint(self.policy)

    def _key(self, product: CatalogProduct, inputs_fingerprint: str) -> str:
        return combine(self._policy_fingerprint, product_fingerprint(product), inputs_fingerprint)

    def reconcile(
        self,
        product: CatalogProduct,
        transactions: Sequence[Transaction],
        catalog: Sequence[CatalogProduct] | None = None,
    ) -> ReconciliationResult:
        """Cached ``reconcile``; same contract and exceptions."""
        inputs = combine(
            transactions_fingerprint(transactions),
            catalog_fingerprint(catalog) if catalog is not None else "",
        )
        key = self._key(product, inputs)
        cached = self.cache.get(product.id, key)
        if cached is not None:
            return cached
        result = reconcile(product, transactions, catalog=catalog, policy=self.policy)
        self.cache.put(product.id, key, result)
        return result

    def reconcile_all(
        self,
        products: Sequence[CatalogProduct],
        transactions: Sequence[Transaction],
        cancel_token: CancellationCheck | None = None,
    ) -> AggregateResult:
        """Reconcile a whole catalog with exclusive attribution, using the cache."""
        inputs = combine(transactions_fingerprint(transactions), catalog_fingerprint(products))

        def _cached(product: CatalogProduct, matched: Sequence[Transaction]) -> ReconciliationResult:
            key = self._key(product, inputs)
            cached = self.cache.get(product.id, key)
            if cached is not None:
                return cached
            result = reconcile_matched(product, matched)
            self.cache.put(product.id, key, result)
            return result

        return aggregate_detailed(
            products,
            transactions,
            policy=self.policy,
            cancel_token=cancel_token,
            reconcile_fn=_cached,
        )

    def invalidate(self, product_id: str | None = None) -> None:
        self.cache.invalidate(product_id)
