"""Point-of-sale transaction model."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True)
class Transaction:
    """A single point-of-sale line.

    Free-text ``product_name``/``category`` are operator-entered and are not
    guaranteed to match catalog spelling.
    """

    id: str
    product_name: str | None
    category: str | None
    quantity: int
    unit_price: Decimal
    # Authoritative revenue; discounts and rounding make quantity * price unreliable.
    total: Decimal
    occurred_at: datetime | None
    register_id: str = ""
    seller_id: str = ""

    @property
    def sale_date(self) -> date | None:
        """Day the sale happened; time of day is irrelevant to reconciliation."""
        if self.occurred_at is None:
            return None
        if isinstance(self.occurred_at, datetime):
            return self.occurred_at.date()
        return self.occurred_at

    @property
    def is_well_formed(self) -> bool:
        if not (self.product_name or "").strip():
            return False
        if not (self.category or "").strip():
            return False
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            return False
        return self.occurred_at is not None

    def with_category(self, category: str) -> Transaction:
        """Return a re-categorized copy. This is the only permitted correction."""
        return replace(self, category=category)
