"""Tests for sales grouping and product drafting."""

from __future__ import annotations

import datetime
from decimal import Decimal

from stockledger.domain.catalog_sync import (
    build_summary,
    draft_product,
    estimated_min_stock,
    group_sales,
    plan_missing_products,
    ungroupable_sales,
)
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction

NOW = datetime.datetime(2024, 4, 1, 8, 0)


def _sale(txn_id: str, name: str | None, quantity: int, price: str, day: int = 1, category: str = "Legumes") -> Transaction:
    return Transaction(
        id=txn_id,
        product_name=name,
        category=category,
        quantity=quantity,
        unit_price=Decimal(price),
        total=Decimal(price) * quantity,
        occurred_at=datetime.datetime(2024, 3, day, 10, 0),
    )


def test_group_sales_merges_spelling_variants() -> None:
    sales = [
        _sale("t1", "Tomate", 2, "1.00", day=5),
        _sale("t2", "TOMATE 100", 3, "2.00", day=2),
        _sale("t3", "Oignon", 1, "0.50", day=3),
    ]

    groups = group_sales(sales)

    assert list(groups) == [("tomate", "legumes"), ("oignon", "legumes")]
    tomato = groups[("tomate", "legumes")]
    assert tomato.name == "Tomate"
    assert tomato.total_quantity == 5
    assert tomato.sales_count == 2
    assert tomato.average_price == Decimal("1.50")
    assert tomato.first_sale.day == 2
    assert tomato.last_sale.day == 5


def test_average_price_is_per_sale_not_per_unit() -> None:
    sales = [_sale("t1", "Tomate", 9, "1.00"), _sale("t2", "Tomate", 1, "3.00")]

    assert group_sales(sales)[("tomate", "legumes")].average_price == Decimal("2.00")


def test_group_sales_skips_malformed_and_noise_only_names() -> None:
    sales = [_sale("t1", None, 1, "1"), _sale("t2", "100", 1, "1"), _sale("t3", "Tomate", 0, "1")]

    assert group_sales(sales) == {}
    assert ungroupable_sales(sales) == 3


def test_plan_missing_uses_the_matcher() -> None:
    catalog = [CatalogProduct(id="p1", name="Tomates Cerises", category="legumes")]
    groups = group_sales([_sale("t1", "Tomate", 1, "1"), _sale("t2", "Poireau", 1, "1")])

    missing = plan_missing_products(groups.values(), catalog)

    assert [group.name for group in missing] == ["Poireau"]


def test_draft_product_estimates() -> None:
    small = group_sales([_sale("t1", "Tomate", 5, "1.005")])[("tomate", "legumes")]
    large = group_sales([_sale("t1", "Oignon", 120, "0.5")])[("oignon", "legumes")]

    draft = draft_product(small, "new-1", NOW)
    assert draft.id == "new-1"
    assert draft.unit_price == Decimal("1.01")
    assert draft.initial_stock == 10
    assert draft.min_stock == 5
    assert draft.current_stock == 0
    assert draft.quantity_sold == 5
    assert draft.initial_stock_date is None
    assert draft.created_at == NOW
    assert "first: 2024-03-01" in draft.description

    big = draft_product(large, "new-2", NOW)
    assert big.initial_stock == 120
    assert big.min_stock == 12


def test_estimated_min_stock_rounds_up() -> None:
    assert estimated_min_stock(51) == 6
    assert estimated_min_stock(3) == 5


def test_build_summary_counts() -> None:
    group = group_sales([_sale("t1", "Tomate", 5, "2")])[("tomate", "legumes")]
    created = [draft_product(group, "new-1", NOW)]

    summary = build_summary(created, total_groups=3)

    assert summary.startswith("Catalog sync complete.")
    assert "- 3 distinct product(s) found in sales" in summary
    assert "- 1 new product(s) created" in summary
    assert "- 2 product(s) already existed" in summary
    assert "- Legumes: 1 product(s)" in summary


def test_build_summary_for_incomplete_run() -> None:
    summary = build_summary([], total_groups=4, missing_count=3, complete=False)

    assert summary.startswith("Catalog sync incomplete")
    assert "- 0 new product(s) created" in summary
    assert "- 1 product(s) already existed" in summary


def test_build_summary_for_dry_run() -> None:
    group = group_sales([_sale("t1", "Tomate", 5, "2")])[("tomate", "legumes")]

    summary = build_summary([draft_product(group, "new-1", NOW)], total_groups=1, dry_run=True)

    assert summary.startswith("Catalog sync dry run")
    assert "- 1 new product(s) to create" in summary
    assert "Planned products:" in summary


def test_build_summary_reports_skipped_sales() -> None:
    assert "sale(s) skipped" not in build_summary([], total_groups=2, missing_count=0)

    summary = build_summary([], total_groups=2, missing_count=0, skipped_sales=4)

    assert "- 4 sale(s) skipped: malformed, or no product name left after normalization." in summary
