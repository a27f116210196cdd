"""Catalog product model."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stockledger.domain.reconciliation import ReconciliationResult


@dataclass(frozen=True)
class CatalogProduct:
    """One stocked item.

    ``current_stock`` and ``quantity_sold`` are cached reconciliation output.
    Only ``with_reconciled`` should produce new values for them.
    """

    id: str
    name: str
    category: str
    unit_price: Decimal = Decimal("0")
    min_stock: int = 0
    initial_stock: int = 0
    # None means every historical sale is deductible.
    initial_stock_date: date | None = None
    current_stock: int = 0
    quantity_sold: int = 0
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def with_reconciled(self, result: ReconciliationResult, updated_at: datetime | None = None) -> CatalogProduct:
        """Copy the derived stock fields out of a reconciliation result."""
        if result.product_id != self.id:
            raise ValueError(f"Result for {result.product_id!r} cannot refresh product {self.id!r}")
        return replace(
            self,
            current_stock=result.final_stock,
            quantity_sold=result.quantity_sold,
            updated_at=updated_at if updated_at is not None else self.updated_at,
        )

    def stock_fields_differ(self, other: CatalogProduct) -> bool:
        return (
            self.current_stock != other.current_stock
            or self.quantity_sold != other.quantity_sold
            or self.initial_stock != other.initial_stock
        )
