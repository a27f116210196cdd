"""Tests for the tiered product matcher."""

from __future__ import annotations

import datetime
from decimal import Decimal

from stockledger.domain.matching import (
    DEFAULT_POLICY,
    MATCH_TIERS,
    MatchPolicy,
    assign_transactions,
    match,
    match_with_tier,
)
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction


def _product(product_id: str, name: str, category: str = "Boissons") -> CatalogProduct:
    return CatalogProduct(id=product_id, name=name, category=category)


def _sale(txn_id: str, name: str | None, category: str | None = "Boissons", quantity: int = 1) -> Transaction:
    return Transaction(
        id=txn_id,
        product_name=name,
        category=category,
        quantity=quantity,
        unit_price=Decimal("1"),
        total=Decimal(quantity),
        occurred_at=datetime.datetime(2024, 3, 1, 12, 0),
    )


def test_tiers_run_in_priority_order() -> None:
    assert [tier.name for tier in MATCH_TIERS] == ["exact", "containment", "fuzzy"]


def test_noise_suffix_matches_exactly() -> None:
    catalog = [_product("p1", "Coca Cola")]
    outcome = match_with_tier("COCA COLA 100S", "boissons", catalog)
    assert outcome is not None
    assert outcome.product.id == "p1"
    assert outcome.tier == "exact"


def test_exact_tier_beats_earlier_containment_candidate() -> None:
    catalog = [_product("broad", "Coca Cola Zero Sucre"), _product("exact", "Coca Cola")]
    outcome = match_with_tier("Coca Cola", "Boissons", catalog)
    assert outcome is not None
    assert outcome.product.id == "exact"
    assert outcome.tier == "exact"


def test_containment_beats_earlier_fuzzy_candidate() -> None:
    catalog = [_product("dark", "Chocolat Biscuit Noir"), _product("milk", "Biscuit Chocolat Lait")]

    outcome = match_with_tier("Biscuit Chocolat", "Boissons", catalog)

    assert outcome is not None
    assert outcome.product.id == "milk"
    assert outcome.tier == "containment"


def test_containment_tier_either_direction() -> None:
    catalog = [_product("p1", "Fanta Orange")]
    assert match_with_tier("Fanta", "Boissons", catalog).tier == "containment"
    assert match_with_tier("Fanta Orange Canette", "Boissons", catalog).tier == "containment"


def test_containment_first_catalog_entry_wins() -> None:
    catalog = [_product("first", "Jus Mangue"), _product("second", "Jus Mangue Bio")]
    outcome = match_with_tier("Jus", "Boissons", catalog)
    assert outcome is not None
    assert outcome.product.id == "first"


def test_fuzzy_tier_token_overlap() -> None:
    catalog = [_product("p1", "Biscuit Chocolat Noir")]
    outcome = match_with_tier("Chocolat Biscuit", "Boissons", catalog)
    assert outcome is not None
    assert outcome.tier == "fuzzy"


def test_fuzzy_requires_enough_overlap() -> None:
    catalog = [_product("p1", "Biscuit Chocolat Noir")]
    # 1 of 3 qualifying tokens overlaps; ceil(0.7 * 3) = 3 needed.
    assert match("Biscuit Vanille Fraise", "Boissons", catalog) is None


def test_fuzzy_threshold_is_exact_for_ten_tokens() -> None:
    catalog = [_product("p1", "aaa bbb ccc ddd eee fff ggg")]
    sale = "xxx aaa bbb ccc ddd eee fff yyy ggg zzz"
    # ceil(0.7 * 10) is 7, not 8.
    assert DEFAULT_POLICY.required_overlap(10) == 7
    outcome = match_with_tier(sale, "Boissons", catalog)
    assert outcome is not None
    assert outcome.tier == "fuzzy"


def test_short_tokens_do_not_count_for_fuzzy() -> None:
    catalog = [_product("p1", "xy lait")]
    # Only "ab" and "cd" remain, both too short, so fuzzy has nothing to compare.
    assert match("ab cd", "Boissons", catalog) is None


def test_category_mismatch_never_matches() -> None:
    catalog = [_product("p1", "Coca Cola", category="Boissons")]
    assert match("Coca Cola", "Epicerie", catalog) is None


def test_category_comparison_ignores_case_and_spacing() -> None:
    catalog = [_product("p1", "Coca Cola", category="Boissons  Gazeuses")]
    assert match("Coca Cola", " boissons gazeuses", catalog) is not None


def test_blank_name_or_category_never_matches() -> None:
    catalog = [_product("p1", "Coca Cola"), _product("p2", "Sans categorie", category="")]
    assert match("", "Boissons", catalog) is None
    assert match("100", "Boissons", catalog) is None
    assert match("Coca Cola", None, catalog) is None
    assert match("Sans categorie", "", catalog) is None


def test_custom_policy_changes_noise_tokens() -> None:
    catalog = [_product("p1", "Savon")]
    policy = MatchPolicy(noise_tokens=frozenset({"500g"}))
    outcome = match_with_tier("Savon 500G", "Boissons", catalog, policy)
    assert outcome is not None
    assert outcome.tier == "exact"


def test_assign_transactions_is_exclusive() -> None:
    catalog = [_product("cola", "Coca Cola"), _product("cola-zero", "Coca Cola Zero")]
    sales = [_sale("t1", "Coca Cola"), _sale("t2", "Coca Cola Zero"), _sale("t3", "Coca")]
    assignment = assign_transactions(sales, catalog)

    assert [txn.id for txn in assignment.for_product("cola")] == ["t1", "t3"]
    assert [txn.id for txn in assignment.for_product("cola-zero")] == ["t2"]
    assert assignment.unmatched == ()


def test_assign_transactions_reports_unmatched_and_malformed() -> None:
    catalog = [_product("cola", "Coca Cola")]
    sales = [
        _sale("ok", "Coca Cola"),
        _sale("unknown", "Tomates", category="Legumes"),
        _sale("no-category", "Coca Cola", category=None),
        _sale("zero", "Coca Cola", quantity=0),
    ]
    assignment = assign_transactions(sales, catalog)

    assert [txn.id for txn in assignment.for_product("cola")] == ["ok"]
    assert {txn.id for txn in assignment.unmatched} == {"unknown", "no-category", "zero"}
