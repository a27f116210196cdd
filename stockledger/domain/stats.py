"""Fleet-wide stock statistics built on per-product reconciliation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from stockledger.domain.errors import CancellationCheck, InvalidProductSnapshot
from stockledger.domain.matching import MatchPolicy, assign_transactions
from stockledger.domain.product import CatalogProduct
from stockledger.domain.reconciliation import ReconciliationResult, reconcile_matched
from stockledger.domain.transaction import Transaction

logger = logging.getLogger(__name__)

ReconcileFn = Callable[[CatalogProduct, Sequence[Transaction]], ReconciliationResult]


class StockStatus(StrEnum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    NEGATIVE = "negative"


class StockLevel(StrEnum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"
    EMPTY = "empty"
    NEGATIVE = "negative"


def stock_status(final_stock: int, min_stock: int) -> StockStatus:
    if final_stock < 0:
        return StockStatus.NEGATIVE
    if final_stock == 0:
        return StockStatus.OUT_OF_STOCK
    if final_stock <= min_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def stock_level(final_stock: int, min_stock: int) -> StockLevel:
    """Coarser bucket used for filtering: above twice the minimum is high."""
    if final_stock < 0:
        return StockLevel.NEGATIVE
    if final_stock == 0:
        return StockLevel.EMPTY
    if final_stock <= min_stock:
        return StockLevel.LOW
    if final_stock <= min_stock * 2:
        return StockLevel.NORMAL
    return StockLevel.HIGH


@dataclass(frozen=True)
class StockStats:
    """Aggregate figures over a product set.

    ``total_stock`` is the raw sum of final stock, negatives included, so it
    reconciles arithmetically with per-product figures. ``units_on_hand``
    clamps each product at zero for display.
    """

    total_products: int = 0
    total_stock: int = 0
    total_sold: int = 0
    total_revenue: Decimal = Decimal("0")
    out_of_stock: int = 0
    low_stock: int = 0
    inconsistent_stock: int = 0
    unmatched_transactions: int = 0
    invalid_products: int = 0
    units_on_hand: int = 0
    total_value: Decimal = Decimal("0")


@dataclass(frozen=True)
class AggregateResult:
    """Stats plus the per-product results they were computed from."""

    stats: StockStats
    results: Mapping[str, ReconciliationResult]
    unmatched: tuple[Transaction, ...]
    invalid_product_ids: tuple[str, ...]


def aggregate_detailed(
    products: Sequence[CatalogProduct],
    transactions: Sequence[Transaction],
    *,
    policy: MatchPolicy | None = None,
    cancel_token: CancellationCheck | None = None,
    reconcile_fn: ReconcileFn | None = None,
) -> AggregateResult:
    """
    Reconcile every product and roll the results up.

    Transactions are resolved once against the whole catalog, then each
    product is reconciled from its own share. Invalid products are skipped
    and counted; nothing here raises on bad data.
    """
    reconcile_one = reconcile_fn or reconcile_matched
    assignment = assign_transactions(transactions, products, policy)

    results: dict[str, ReconciliationResult] = {}
    invalid: list[str] = []
    total_stock = total_sold = units_on_hand = 0
    out_of_stock = low_stock = inconsistent = 0
    total_revenue = Decimal("0")
    total_value = Decimal("0")

    for product in products:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        try:
            result = reconcile_one(product, assignment.for_product(product.id))
        except InvalidProductSnapshot as exc:
            logger.debug("Skipping product in aggregation: %s", exc)
            invalid.append(product.id)
            continue

        results[product.id] = result
        total_stock += result.final_stock
        units_on_hand += max(result.final_stock, 0)
        total_sold += result.quantity_sold
        total_revenue += result.revenue
        total_value += result.final_stock * product.unit_price

        status = stock_status(result.final_stock, product.min_stock)
        if status is StockStatus.OUT_OF_STOCK:
            out_of_stock += 1
        elif status is StockStatus.LOW_STOCK:
            low_stock += 1
        if result.has_inconsistent_stock:
            inconsistent += 1

    stats = StockStats(
        total_products=len(results),
        total_stock=total_stock,
        total_sold=total_sold,
        total_revenue=total_revenue,
        out_of_stock=out_of_stock,
        low_stock=low_stock,
        inconsistent_stock=inconsistent,
        unmatched_transactions=len(assignment.unmatched),
        invalid_products=len(invalid),
        units_on_hand=units_on_hand,
        total_value=total_value,
    )
    return AggregateResult(
        stats=stats,
        results=results,
        unmatched=assignment.unmatched,
        invalid_product_ids=tuple(invalid),
    )


def aggregate(
    products: Sequence[CatalogProduct],
    transactions: Sequence[Transaction],
    *,
    policy: MatchPolicy | None = None,
    cancel_token: CancellationCheck | None = None,
    reconcile_fn: ReconcileFn | None = None,
) -> StockStats:
    """Fleet-wide stock statistics. ``aggregate([], [])`` is all zeros."""
    return aggregate_detailed(
        products,
        transactions,
        policy=policy,
        cancel_token=cancel_token,
        reconcile_fn=reconcile_fn,
    ).stats


EXPORT_COLUMNS = (
    "id",
    "name",
    "category",
    "price",
    "final_stock",
    "initial_stock",
    "initial_stock_date",
    "quantity_sold",
    "min_stock",
    "status",
    "inconsistent",
    "warning",
    "description",
)


def export_rows(
    products: Sequence[CatalogProduct],
    results: Mapping[str, ReconciliationResult],
) -> list[dict[str, str]]:
    """Flatten reconciled products into string rows for an export writer."""
    rows: list[dict[str, str]] = []
    for product in products:
        result = results.get(product.id)
        if result is None:
            continue
        rows.append(
            {
                "id": product.id,
                "name": product.name,
                "category": product.category,
                "price": f"{product.unit_price:.2f}",
                "final_stock": str(result.final_stock),
                "initial_stock": str(product.initial_stock),
                "initial_stock_date": product.initial_stock_date.isoformat() if product.initial_stock_date else "",
                "quantity_sold": str(result.quantity_sold),
                "min_stock": str(product.min_stock),
                "status": stock_status(result.final_stock, product.min_stock).value,
                "inconsistent": "yes" if result.has_inconsistent_stock else "no",
                "warning": result.warning_message or "",
                "description": product.description,
            }
        )
    return rows
