"""Assemble and format stock reports for the CLI."""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from stockledger.domain.alerts import DEFAULT_HIGH_SALES_THRESHOLD, Alert, generate_alerts
from stockledger.domain.product import CatalogProduct
from stockledger.domain.reconciliation import ReconciliationResult
from stockledger.domain.sales_overview import SalesOverview, sales_overview
from stockledger.domain.stats import StockStats, export_rows
from stockledger.domain.transaction import Transaction
from stockledger.runtime import StockReconciler, get_logger
from stockledger.store.base import CatalogStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class StockReport:
    products: tuple[CatalogProduct, ...]
    transactions: tuple[Transaction, ...]
    results: dict[str, ReconciliationResult]
    stats: StockStats
    alerts: tuple[Alert, ...]
    overview: SalesOverview
    invalid_product_ids: tuple[str, ...]

    def rows(self) -> list[dict[str, str]]:
        return export_rows(self.products, self.results)


def build_stock_report(
    store: CatalogStore,
    *,
    reconciler: StockReconciler | None = None,
    today: datetime.date | None = None,
    high_sales_threshold: int = DEFAULT_HIGH_SALES_THRESHOLD,
) -> StockReport:
    """Load everything from the store and reconcile it in one pass."""
    reconciler = reconciler or StockReconciler()
    products = store.list_products()
    transactions = store.list_transactions()
    outcome = reconciler.reconcile_all(products, transactions)
    if outcome.invalid_product_ids:
        logger.warning("Invalid product snapshot(s) skipped: %s", ", ".join(outcome.invalid_product_ids))

    alerts = generate_alerts(
        products,
        outcome.results,
        transactions,
        today=today or datetime.date.today(),
        unmatched_count=len(outcome.unmatched),
        high_sales_threshold=high_sales_threshold,
    )
    return StockReport(
        products=tuple(products),
        transactions=tuple(transactions),
        results=dict(outcome.results),
        stats=outcome.stats,
        alerts=tuple(alerts),
        overview=sales_overview(transactions),
        invalid_product_ids=outcome.invalid_product_ids,
    )


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def format_stats(stats: StockStats) -> str:
    lines = [
        f"Products:              {stats.total_products}",
        f"Total stock (raw):     {stats.total_stock}",
        f"Units on hand:         {stats.units_on_hand}",
        f"Stock value:           {_money(stats.total_value)}",
        f"Units sold:            {stats.total_sold}",
        f"Revenue:               {_money(stats.total_revenue)}",
        f"Out of stock:          {stats.out_of_stock}",
        f"Low stock:             {stats.low_stock}",
        f"Inconsistent stock:    {stats.inconsistent_stock}",
        f"Unmatched sales:       {stats.unmatched_transactions}",
        f"Invalid products:      {stats.invalid_products}",
    ]
    return "\n".join(lines)


def format_alerts(alerts: Sequence[Alert]) -> str:
    if not alerts:
        return "No alerts."
    return "\n".join(f"[{alert.severity.upper():<7}] {alert.message}" for alert in alerts)


def format_reconciliation(product: CatalogProduct, result: ReconciliationResult) -> str:
    lines = [
        f"{product.name} ({product.category}) [{product.id}]",
        f"  initial stock:  {product.initial_stock}"
        + (f" as of {product.initial_stock_date.isoformat()}" if product.initial_stock_date else " (no date)"),
        f"  sold:           {result.quantity_sold} in {len(result.attributed_sales)} sale(s)",
        f"  ignored:        {result.ignored_quantity} in {len(result.ignored_sales)} pre-snapshot sale(s)",
        f"  final stock:    {result.final_stock}",
    ]
    if result.warning_message:
        lines.append(f"  warning:        {result.warning_message}")
    return "\n".join(lines)
