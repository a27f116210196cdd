"""Discover products that exist only in sales data and draft catalog entries.

Planning is pure; committing drafts is the caller's job.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from stockledger.domain.matching import DEFAULT_POLICY, MatchPolicy, PreparedCatalog
from stockledger.domain.normalize import normalize, normalize_category
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction

MIN_ESTIMATED_INITIAL_STOCK = 10
MIN_ESTIMATED_MIN_STOCK = 5

NOTHING_TO_DO_SUMMARY = "All {count} product(s) found in sales already exist in the catalog. No new products needed."
NO_SALES_SUMMARY = "No sales data available to synchronize."
SKIPPED_SALES_NOTE = "{count} sale(s) skipped: malformed, or no product name left after normalization."

GroupKey = tuple[str, str]


@dataclass
class SalesGroup:
    """Running totals for all sales sharing a normalized name and category."""

    name: str
    category: str
    total_quantity: int
    average_price: Decimal
    first_sale: datetime
    last_sale: datetime
    sales_count: int = 1

    @classmethod
    def start(cls, txn: Transaction) -> SalesGroup:
        assert txn.occurred_at is not None
        return cls(
            name=(txn.product_name or "").strip(),
            category=(txn.category or "").strip(),
            total_quantity=txn.quantity,
            average_price=txn.unit_price,
            first_sale=txn.occurred_at,
            last_sale=txn.occurred_at,
        )

    def fold(self, txn: Transaction) -> None:
        assert txn.occurred_at is not None
        self.total_quantity += txn.quantity
        # Incremental mean weighted by transaction count, not by quantity.
        self.average_price = (self.average_price * self.sales_count + txn.unit_price) / (self.sales_count + 1)
        self.sales_count += 1
        self.first_sale = min(self.first_sale, txn.occurred_at)
        self.last_sale = max(self.last_sale, txn.occurred_at)


def group_key(txn: Transaction, policy: MatchPolicy = DEFAULT_POLICY) -> GroupKey:
    return (normalize(txn.product_name, policy.noise_tokens), normalize_category(txn.category))


def group_sales(
    transactions: Iterable[Transaction],
    policy: MatchPolicy = DEFAULT_POLICY,
) -> dict[GroupKey, SalesGroup]:
    """Group well-formed sales by normalized name and category, in first-seen order."""
    groups: dict[GroupKey, SalesGroup] = {}
    for txn in transactions:
        if not txn.is_well_formed:
            continue
        key = group_key(txn, policy)
        if not key[0]:
            continue
        existing = groups.get(key)
        if existing is None:
            groups[key] = SalesGroup.start(txn)
        else:
            existing.fold(txn)
    return groups


def ungroupable_sales(transactions: Iterable[Transaction], policy: MatchPolicy = DEFAULT_POLICY) -> int:
    """Count the sales ``group_sales`` leaves out."""
    return sum(1 for txn in transactions if not txn.is_well_formed or not group_key(txn, policy)[0])


def plan_missing_products(
    groups: Iterable[SalesGroup],
    catalog: Sequence[CatalogProduct],
    policy: MatchPolicy | None = None,
) -> list[SalesGroup]:
    """Return the groups the matcher cannot resolve to any catalog product."""
    prepared = PreparedCatalog(catalog, policy or DEFAULT_POLICY)
    return [group for group in groups if prepared.match(group.name, group.category) is None]


def estimated_min_stock(total_quantity: int) -> int:
    return max(math.ceil(total_quantity / 10), MIN_ESTIMATED_MIN_STOCK)


def draft_product(group: SalesGroup, product_id: str, now: datetime) -> CatalogProduct:
    """
    Synthesize a catalog entry for a sales-only product.

    Current stock is 0 because the real count is unknown until an operator
    sets it.
    """
    return CatalogProduct(
        id=product_id,
        name=group.name,
        category=group.category,
        unit_price=group.average_price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        min_stock=estimated_min_stock(group.total_quantity),
        initial_stock=max(group.total_quantity, MIN_ESTIMATED_INITIAL_STOCK),
        initial_stock_date=None,
        current_stock=0,
        quantity_sold=group.total_quantity,
        description=(
            f"Auto-created from sales ({group.sales_count} sale(s), first: {group.first_sale.date().isoformat()})"
        ),
        created_at=now,
        updated_at=now,
    )


def build_summary(
    created: Sequence[CatalogProduct],
    total_groups: int,
    missing_count: int | None = None,
    complete: bool = True,
    dry_run: bool = False,
    skipped_sales: int = 0,
) -> str:
    """Human-readable report of a sync run."""
    missing = len(created) if missing_count is None else missing_count
    if dry_run:
        header = "Catalog sync dry run: nothing was written."
    elif complete:
        header = "Catalog sync complete."
    else:
        header = "Catalog sync incomplete: some products were not written."
    lines = [
        header,
        f"- {total_groups} distinct product(s) found in sales",
        f"- {len(created)} new product(s) " + ("to create" if dry_run else "created"),
        f"- {total_groups - missing} product(s) already existed",
    ]
    if skipped_sales:
        lines.append(f"- {SKIPPED_SALES_NOTE.format(count=skipped_sales)}")
    if created:
        total_sold = sum(product.quantity_sold for product in created)
        average_price = sum((product.unit_price for product in created), Decimal("0")) / len(created)
        lines.append("")
        lines.append("Planned products:" if dry_run else "Created products:")
        lines.append(f"- total quantity sold: {total_sold}")
        lines.append(f"- average price: {average_price:.2f}")
        lines.append("")
        lines.append("By category:")
        by_category = Counter(product.category for product in created)
        for category, count in sorted(by_category.items(), key=lambda item: (-item[1], item[0])):
            lines.append(f"- {category}: {count} product(s)")
        lines.append("")
        lines.append("Current stock of new products is 0 until counted; initial stock is estimated from sales.")
    return "\n".join(lines)
