"""Stable digests of reconciliation inputs, used to validate cache entries.

Every field is hashed as its own length-prefixed part, so no choice of
field values can shift text from one field into its neighbour.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Iterator

from stockledger.domain.matching import MatchPolicy
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction


def _digest(parts: Iterable[str | None]) -> str:
    hasher = hashlib.sha256()
    for part in parts:
        if part is None:
            hasher.update(b"N;")
            continue
        encoded = part.encode("utf-8")
        hasher.update(f"{len(encoded)}:".encode("ascii"))
        hasher.update(encoded)
    return hasher.hexdigest()


def _text(value: object) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _product_parts(product: CatalogProduct) -> tuple[str | None, ...]:
    return (
        product.id,
        product.name,
        product.category,
        _text(product.initial_stock),
        _text(product.min_stock),
        _text(product.initial_stock_date),
    )


def _transaction_parts(txn: Transaction) -> Iterator[str | None]:
    # Results hold the Transaction objects themselves, so every field counts.
    yield txn.id
    yield _text(txn.product_name)
    yield _text(txn.category)
    yield _text(txn.quantity)
    yield _text(txn.unit_price)
    yield _text(txn.total)
    yield _text(txn.occurred_at)
    yield txn.register_id
    yield txn.seller_id


def product_fingerprint(product: CatalogProduct) -> str:
    """Digest of the product fields reconciliation reads."""
    return _digest(_product_parts(product))


def transactions_fingerprint(transactions: Iterable[Transaction]) -> str:
    """Digest of a transaction set, order included."""
    return _digest(part for txn in transactions for part in _transaction_parts(txn))


def catalog_fingerprint(catalog: Iterable[CatalogProduct]) -> str:
    """Digest of the catalog names a matcher resolves against."""
    return _digest(part for product in catalog for part in (product.id, product.name, product.category))


def policy_fingerprint(policy: MatchPolicy) -> str:
    return _digest(
        (
            str(len(policy.noise_tokens)),
            *sorted(policy.noise_tokens),
            str(policy.fuzzy_ratio),
            str(policy.min_token_length),
        )
    )


def combine(*fingerprints: str) -> str:
    return _digest(fingerprints)
