"""Product catalog CSV importer.

Columns mirror the catalog documents: id, name, category, price, stock,
initialStock, initialStockDate, quantitySold, minStock, description,
createdAt, updatedAt.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from stockledger.domain.product import CatalogProduct
from stockledger.importers.base import (
    BaseCsvImporter,
    format_datetime,
    parse_date,
    parse_datetime,
    parse_int,
)
from stockledger.runtime import get_logger

logger = get_logger(__name__)


class ProductsCsvImporter(BaseCsvImporter[CatalogProduct]):
    columns = (
        "id",
        "name",
        "category",
        "price",
        "stock",
        "initialStock",
        "initialStockDate",
        "quantitySold",
        "minStock",
        "description",
        "createdAt",
        "updatedAt",
    )
    required_columns = ("id", "name", "category")

    def _process_row(self, row: Mapping[str, str], index: int) -> CatalogProduct | None:
        product_id = row.get("id", "").strip()
        name = row.get("name", "").strip()
        if not product_id or not name:
            logger.warning("Product row %d has no id or name, skipping", index + 1)
            return None

        numbers: dict[str, int] = {}
        for column in ("stock", "initialStock", "quantitySold", "minStock"):
            raw = row.get(column, "")
            value = parse_int(raw) if raw.strip() else 0
            if value is None:
                logger.warning("Product %s: %s is not an integer (%r), skipping", product_id, column, raw)
                return None
            numbers[column] = value

        raw_date = row.get("initialStockDate", "")
        initial_stock_date = parse_date(raw_date)
        if raw_date.strip() and initial_stock_date is None:
            logger.warning("Product %s: unreadable initialStockDate %r, skipping", product_id, raw_date)
            return None

        price = self._amount(row, "price", index)
        return CatalogProduct(
            id=product_id,
            name=name,
            category=row.get("category", "").strip(),
            unit_price=price if price is not None else Decimal("0"),
            min_stock=numbers["minStock"],
            initial_stock=numbers["initialStock"],
            initial_stock_date=initial_stock_date,
            current_stock=numbers["stock"],
            quantity_sold=numbers["quantitySold"],
            description=row.get("description", "").strip(),
            created_at=parse_datetime(row.get("createdAt")),
            updated_at=parse_datetime(row.get("updatedAt")),
        )


def product_to_row(product: CatalogProduct) -> dict[str, str]:
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "price": str(product.unit_price),
        "stock": str(product.current_stock),
        "initialStock": str(product.initial_stock),
        "initialStockDate": product.initial_stock_date.isoformat() if product.initial_stock_date else "",
        "quantitySold": str(product.quantity_sold),
        "minStock": str(product.min_stock),
        "description": product.description,
        "createdAt": format_datetime(product.created_at),
        "updatedAt": format_datetime(product.updated_at),
    }
