"""Register sales CSV importer.

Columns follow the register export: id, product, category, register, date,
seller, quantity, price, total. Rows with unusable cells are kept as
malformed transactions so they show up as unmatched instead of vanishing.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from stockledger.domain.transaction import Transaction
from stockledger.importers.base import BaseCsvImporter, format_datetime, parse_datetime, parse_int


class SalesCsvImporter(BaseCsvImporter[Transaction]):
    columns = ("id", "product", "category", "register", "date", "seller", "quantity", "price", "total")
    required_columns = ("product", "quantity", "date")

    def _process_row(self, row: Mapping[str, str], index: int) -> Transaction | None:
        quantity = parse_int(row.get("quantity"))
        unit_price = self._amount(row, "price", index)
        total = self._amount(row, "total", index)
        if total is None and quantity is not None and unit_price is not None:
            # Exports without a total column: fall back to the line amount.
            total = unit_price * quantity
        return Transaction(
            id=row.get("id", "").strip() or f"row-{index + 1}",
            product_name=row.get("product", "").strip() or None,
            category=row.get("category", "").strip() or None,
            quantity=quantity if quantity is not None else 0,
            unit_price=unit_price if unit_price is not None else Decimal("0"),
            total=total if total is not None else Decimal("0"),
            occurred_at=parse_datetime(row.get("date")),
            register_id=row.get("register", "").strip(),
            seller_id=row.get("seller", "").strip(),
        )


def transaction_to_row(txn: Transaction) -> dict[str, str]:
    return {
        "id": txn.id,
        "product": txn.product_name or "",
        "category": txn.category or "",
        "register": txn.register_id,
        "date": format_datetime(txn.occurred_at),
        "seller": txn.seller_id,
        "quantity": str(txn.quantity),
        "price": str(txn.unit_price),
        "total": str(txn.total),
    }
