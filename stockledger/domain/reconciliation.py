"""Compute a product's stock from its initial snapshot and its sales."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from stockledger.domain.errors import InvalidProductSnapshot
from stockledger.domain.matching import DEFAULT_POLICY, MatchPolicy, PreparedCatalog
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of reconciling one product. Not persisted."""

    product_id: str
    final_stock: int
    attributed_sales: tuple[Transaction, ...]
    ignored_sales: tuple[Transaction, ...]
    has_inconsistent_stock: bool
    warning_message: str | None = None

    @property
    def quantity_sold(self) -> int:
        return sum(txn.quantity for txn in self.attributed_sales)

    @property
    def ignored_quantity(self) -> int:
        return sum(txn.quantity for txn in self.ignored_sales)

    @property
    def revenue(self) -> Decimal:
        return sum((txn.total for txn in self.attributed_sales), Decimal("0"))


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_product(product: CatalogProduct) -> None:
    """
    Reject product snapshots that cannot produce a meaningful stock figure.

    Raises:
        InvalidProductSnapshot: on blank id/name or negative/non-integer
            initial or minimum stock.
    """
    if not (product.id or "").strip():
        raise InvalidProductSnapshot(product.id, "missing id")
    if not (product.name or "").strip():
        raise InvalidProductSnapshot(product.id, "missing name")
    if not _is_count(product.initial_stock):
        raise InvalidProductSnapshot(product.id, f"initial stock must be an integer, got {product.initial_stock!r}")
    if product.initial_stock < 0:
        raise InvalidProductSnapshot(product.id, f"initial stock is negative ({product.initial_stock})")
    if not _is_count(product.min_stock):
        raise InvalidProductSnapshot(product.id, f"minimum stock must be an integer, got {product.min_stock!r}")
    if product.min_stock < 0:
        raise InvalidProductSnapshot(product.id, f"minimum stock is negative ({product.min_stock})")


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def build_warning(
    product: CatalogProduct,
    final_stock: int,
    sold: int,
    ignored: Sequence[Transaction],
) -> str | None:
    """Describe which inconsistency conditions a reconciliation triggered."""
    parts: list[str] = []
    if final_stock < 0:
        parts.append(
            f"Negative stock: {_plural(sold, 'unit')} sold since the initial count "
            f"exceed the initial stock of {product.initial_stock} (final stock {final_stock})."
        )
    if ignored:
        units = sum(txn.quantity for txn in ignored)
        dates = sorted(d for d in (txn.sale_date for txn in ignored) if d is not None)
        assert product.initial_stock_date is not None
        span = dates[0].isoformat() if dates[0] == dates[-1] else f"{dates[0].isoformat()} to {dates[-1].isoformat()}"
        verb, aux = ("predates", "was") if len(ignored) == 1 else ("predate", "were")
        parts.append(
            f"{_plural(len(ignored), 'pre-snapshot sale')} ({_plural(units, 'unit')}, {span}) "
            f"{verb} the initial stock date {product.initial_stock_date.isoformat()} and {aux} not deducted; "
            "the initial count may be unreliable."
        )
    return " ".join(parts) if parts else None


def reconcile_matched(product: CatalogProduct, matched: Iterable[Transaction]) -> ReconciliationResult:
    """
    Partition already-matched sales at the snapshot date and compute stock.

    Sales on the snapshot day itself are attributable. Final stock is never
    clamped: a negative value is the inconsistency signal.
    """
    validate_product(product)
    cutoff = product.initial_stock_date
    attributed: list[Transaction] = []
    ignored: list[Transaction] = []
    for txn in matched:
        if not txn.is_well_formed:
            continue
        sale_date = txn.sale_date
        assert sale_date is not None
        if cutoff is None or sale_date >= cutoff:
            attributed.append(txn)
        else:
            ignored.append(txn)

    sold = sum(txn.quantity for txn in attributed)
    final_stock = product.initial_stock - sold
    inconsistent = final_stock < 0 or bool(ignored)
    warning = build_warning(product, final_stock, sold, ignored) if inconsistent else None
    if inconsistent:
        logger.debug("Inconsistent stock for %s: %s", product.id, warning)

    return ReconciliationResult(
        product_id=product.id,
        final_stock=final_stock,
        attributed_sales=tuple(attributed),
        ignored_sales=tuple(ignored),
        has_inconsistent_stock=inconsistent,
        warning_message=warning,
    )


def matching_transactions(
    product: CatalogProduct,
    transactions: Iterable[Transaction],
    *,
    catalog: Sequence[CatalogProduct] | None = None,
    policy: MatchPolicy | None = None,
) -> list[Transaction]:
    """
    Select the transactions that resolve to ``product``.

    Without a catalog a sale matches when the matcher accepts it against the
    product alone. With a catalog it must resolve to this product against the
    whole catalog, so a sale never counts for two similar products.
    """
    prepared = PreparedCatalog(catalog if catalog is not None else (product,), policy or DEFAULT_POLICY)
    selected: list[Transaction] = []
    for txn in transactions:
        if not txn.is_well_formed:
            continue
        outcome = prepared.match(txn.product_name, txn.category)
        if outcome is not None and outcome.product.id == product.id:
            selected.append(txn)
    return selected


def reconcile(
    product: CatalogProduct,
    transactions: Iterable[Transaction],
    *,
    catalog: Sequence[CatalogProduct] | None = None,
    policy: MatchPolicy | None = None,
) -> ReconciliationResult:
    """
    Reconcile one product against the full transaction stream.

    Pure: identical inputs always produce equal results.

    Args:
        product: Product snapshot (initial stock and optional effective date).
        transactions: All known transactions; non-matching ones are skipped.
        catalog: Optional full catalog for exclusive attribution.
        policy: Matching policy; defaults to ``DEFAULT_POLICY``.

    Returns:
        ReconciliationResult for the product.

    Raises:
        InvalidProductSnapshot: if the product snapshot is structurally invalid.
    """
    validate_product(product)
    matched = matching_transactions(product, transactions, catalog=catalog, policy=policy)
    return reconcile_matched(product, matched)
