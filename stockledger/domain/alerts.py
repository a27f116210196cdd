"""Operator alerts derived from reconciled stock and today's sales."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Literal

from stockledger.domain.product import CatalogProduct
from stockledger.domain.reconciliation import ReconciliationResult
from stockledger.domain.stats import StockStatus, stock_status
from stockledger.domain.transaction import Transaction

AlertType = Literal["out-of-stock", "low-stock", "inconsistent-stock", "high-sales", "unmatched-sales"]
AlertSeverity = Literal["info", "warning", "error"]

DEFAULT_HIGH_SALES_THRESHOLD = 50


@dataclass(frozen=True)
class Alert:
    id: str
    type: AlertType
    message: str
    severity: AlertSeverity


def generate_alerts(
    products: Sequence[CatalogProduct],
    results: Mapping[str, ReconciliationResult],
    transactions: Sequence[Transaction],
    *,
    today: date,
    unmatched_count: int = 0,
    high_sales_threshold: int = DEFAULT_HIGH_SALES_THRESHOLD,
) -> list[Alert]:
    """
    Build the alert list for a reconciled catalog.

    Products without a result (e.g. invalid snapshots) raise no stock alerts.
    """
    alerts: list[Alert] = []

    for product in products:
        result = results.get(product.id)
        if result is None:
            continue
        status = stock_status(result.final_stock, product.min_stock)
        if status in (StockStatus.OUT_OF_STOCK, StockStatus.NEGATIVE):
            alerts.append(
                Alert(
                    id=f"out-of-stock-{product.id}",
                    type="out-of-stock",
                    message=f"{product.name} is out of stock ({result.final_stock} units)",
                    severity="error",
                )
            )
        elif status is StockStatus.LOW_STOCK:
            alerts.append(
                Alert(
                    id=f"low-stock-{product.id}",
                    type="low-stock",
                    message=(
                        f"Low stock for {product.name} "
                        f"({result.final_stock} units left, minimum: {product.min_stock})"
                    ),
                    severity="warning",
                )
            )
        if result.has_inconsistent_stock:
            alerts.append(
                Alert(
                    id=f"inconsistent-stock-{product.id}",
                    type="inconsistent-stock",
                    message=f"{product.name}: {result.warning_message}",
                    severity="warning",
                )
            )

    sales_today = sum(1 for txn in transactions if txn.sale_date == today)
    if sales_today > high_sales_threshold:
        alerts.append(
            Alert(
                id="high-sales-today",
                type="high-sales",
                message=f"Exceptional day: {sales_today} sales recorded today",
                severity="info",
            )
        )

    if unmatched_count:
        alerts.append(
            Alert(
                id="unmatched-sales",
                type="unmatched-sales",
                message=f"{unmatched_count} sale(s) match no catalog product and are not deducted from stock",
                severity="info",
            )
        )

    return alerts
