"""Tests for operator alerts."""

from __future__ import annotations

import datetime
from decimal import Decimal

from stockledger.domain.alerts import generate_alerts
from stockledger.domain.product import CatalogProduct
from stockledger.domain.stats import aggregate_detailed
from stockledger.domain.transaction import Transaction

TODAY = datetime.date(2024, 3, 10)


def _product(product_id: str, name: str, initial_stock: int, min_stock: int = 3) -> CatalogProduct:
    return CatalogProduct(
        id=product_id,
        name=name,
        category="Boissons",
        min_stock=min_stock,
        initial_stock=initial_stock,
        initial_stock_date=datetime.date(2024, 3, 1),
    )


def _sale(txn_id: str, name: str, quantity: int = 1, day: datetime.date = TODAY) -> Transaction:
    return Transaction(
        id=txn_id,
        product_name=name,
        category="Boissons",
        quantity=quantity,
        unit_price=Decimal("1"),
        total=Decimal(quantity),
        occurred_at=datetime.datetime.combine(day, datetime.time(9, 0)),
    )


def _alerts(products, sales, **kwargs):
    detailed = aggregate_detailed(products, sales)
    return generate_alerts(
        products,
        detailed.results,
        sales,
        today=TODAY,
        unmatched_count=len(detailed.unmatched),
        **kwargs,
    )


def test_stock_alerts_by_status() -> None:
    products = [
        _product("water", "Eau", initial_stock=2),
        _product("juice", "Jus", initial_stock=5),
        _product("cola", "Cola", initial_stock=20),
    ]
    sales = [_sale("t1", "Eau", 2), _sale("t2", "Jus", 3)]

    alerts = {alert.id: alert for alert in _alerts(products, sales)}

    assert alerts["out-of-stock-water"].severity == "error"
    assert alerts["low-stock-juice"].type == "low-stock"
    assert "minimum: 3" in alerts["low-stock-juice"].message
    assert not any(key.endswith("-cola") for key in alerts)


def test_negative_stock_raises_out_of_stock_and_inconsistency() -> None:
    products = [_product("water", "Eau", initial_stock=1)]

    alerts = {alert.id: alert for alert in _alerts(products, [_sale("t1", "Eau", 4)])}

    assert alerts["out-of-stock-water"].type == "out-of-stock"
    assert alerts["inconsistent-stock-water"].severity == "warning"


def test_high_sales_and_unmatched_alerts() -> None:
    products = [_product("cola", "Cola", initial_stock=500)]
    sales = [_sale(f"t{i}", "Cola") for i in range(4)]
    sales.append(_sale("yesterday", "Cola", day=datetime.date(2024, 3, 9)))
    sales.append(_sale("mystery", "Tisane"))

    alerts = {alert.id: alert for alert in _alerts(products, sales, high_sales_threshold=4)}

    assert alerts["high-sales-today"].severity == "info"
    assert "5 sales" in alerts["high-sales-today"].message
    assert alerts["unmatched-sales"].message.startswith("1 sale(s)")


def test_high_sales_threshold_is_exclusive() -> None:
    products = [_product("cola", "Cola", initial_stock=500)]
    sales = [_sale(f"t{i}", "Cola") for i in range(4)]

    alerts = _alerts(products, sales, high_sales_threshold=4)

    assert all(alert.type != "high-sales" for alert in alerts)


def test_invalid_products_raise_no_stock_alerts() -> None:
    products = [_product("bad", "Bad", initial_stock=-1)]

    assert _alerts(products, []) == []
