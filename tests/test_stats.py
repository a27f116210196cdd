"""Tests for catalog-wide aggregation and export rows."""

from __future__ import annotations

import datetime
from decimal import Decimal

from stockledger.domain.product import CatalogProduct
from stockledger.domain.stats import (
    EXPORT_COLUMNS,
    StockLevel,
    StockStats,
    StockStatus,
    aggregate,
    aggregate_detailed,
    export_rows,
    stock_level,
    stock_status,
)
from stockledger.domain.transaction import Transaction

SNAPSHOT = datetime.date(2024, 3, 1)


def _product(product_id: str, name: str, initial_stock: int, min_stock: int = 2, price: str = "2") -> CatalogProduct:
    return CatalogProduct(
        id=product_id,
        name=name,
        category="Epicerie",
        unit_price=Decimal(price),
        min_stock=min_stock,
        initial_stock=initial_stock,
        initial_stock_date=SNAPSHOT,
    )


def _sale(txn_id: str, name: str, quantity: int, total: str, day: datetime.date = datetime.date(2024, 3, 5)) -> Transaction:
    return Transaction(
        id=txn_id,
        product_name=name,
        category="Epicerie",
        quantity=quantity,
        unit_price=Decimal("2"),
        total=Decimal(total),
        occurred_at=datetime.datetime.combine(day, datetime.time(10, 0)),
    )


def test_empty_catalog_is_all_zeros() -> None:
    assert aggregate([], []) == StockStats()


def test_aggregate_counts_and_sums() -> None:
    products = [
        _product("riz", "Riz", initial_stock=10),
        _product("sucre", "Sucre", initial_stock=3),
        _product("sel", "Sel", initial_stock=1),
        _product("huile", "Huile", initial_stock=2),
    ]
    sales = [
        _sale("t1", "Riz", 4, "8.00"),
        _sale("t2", "Sucre", 1, "2.00"),
        _sale("t3", "Sel", 1, "2.00"),
        _sale("t4", "Huile", 5, "10.00"),
        _sale("t5", "Huile", 1, "2.00", day=datetime.date(2024, 2, 1)),
        _sale("t6", "Farine", 2, "4.00"),
    ]

    stats = aggregate(products, sales)

    assert stats.total_products == 4
    assert stats.total_stock == 6 + 2 + 0 + (-3)
    assert stats.units_on_hand == 8
    assert stats.total_sold == 11
    assert stats.total_revenue == Decimal("22.00")
    assert stats.out_of_stock == 1
    assert stats.low_stock == 1
    assert stats.inconsistent_stock == 1
    assert stats.unmatched_transactions == 1
    assert stats.invalid_products == 0
    assert stats.total_value == Decimal("10")


def test_invalid_products_are_skipped_and_counted() -> None:
    products = [_product("riz", "Riz", initial_stock=10), _product("bad", "Bad", initial_stock=-5)]

    detailed = aggregate_detailed(products, [_sale("t1", "Riz", 1, "2.00")])

    assert detailed.stats.total_products == 1
    assert detailed.stats.invalid_products == 1
    assert detailed.invalid_product_ids == ("bad",)
    assert set(detailed.results) == {"riz"}


def test_aggregate_totals_match_per_product_results() -> None:
    products = [_product("riz", "Riz", initial_stock=10), _product("sucre", "Sucre", initial_stock=3)]
    sales = [_sale("t1", "Riz", 4, "8.00"), _sale("t2", "Sucre", 5, "10.00")]

    detailed = aggregate_detailed(products, sales)

    assert detailed.stats.total_stock == sum(r.final_stock for r in detailed.results.values())
    assert detailed.stats.total_sold == sum(r.quantity_sold for r in detailed.results.values())


def test_stock_status_and_level_buckets() -> None:
    assert stock_status(-1, 2) is StockStatus.NEGATIVE
    assert stock_status(0, 2) is StockStatus.OUT_OF_STOCK
    assert stock_status(2, 2) is StockStatus.LOW_STOCK
    assert stock_status(3, 2) is StockStatus.IN_STOCK

    assert stock_level(0, 2) is StockLevel.EMPTY
    assert stock_level(4, 2) is StockLevel.NORMAL
    assert stock_level(5, 2) is StockLevel.HIGH


def test_export_rows_flatten_results() -> None:
    products = [_product("riz", "Riz", initial_stock=10, price="1.5")]
    detailed = aggregate_detailed(products, [_sale("t1", "Riz", 9, "13.50")])

    rows = export_rows(products, detailed.results)

    assert len(rows) == 1
    row = rows[0]
    assert tuple(row) == EXPORT_COLUMNS
    assert row["final_stock"] == "1"
    assert row["price"] == "1.50"
    assert row["status"] == "low-stock"
    assert row["initial_stock_date"] == "2024-03-01"
    assert row["inconsistent"] == "no"
