"""Store backed by a products CSV and a register sales CSV."""

from __future__ import annotations

from pathlib import Path

from stockledger.importers.base import write_csv_atomic
from stockledger.importers.products import ProductsCsvImporter, product_to_row
from stockledger.importers.sales import SalesCsvImporter
from stockledger.runtime import get_logger
from stockledger.store.base import PersistenceFailure
from stockledger.store.memory import InMemoryStore

logger = get_logger(__name__)


class CsvStore(InMemoryStore):
    """Loads both files up front; every commit rewrites the products file atomically."""

    def __init__(self, products_path: Path, sales_path: Path | None = None) -> None:
        self.products_path = products_path
        self.sales_path = sales_path
        products = ProductsCsvImporter().extract(products_path) if products_path.exists() else []
        sales = SalesCsvImporter().extract(sales_path) if sales_path is not None else []
        super().__init__(products, sales)
        logger.info("Loaded %d product(s) and %d sale(s) from CSV", len(products), len(sales))

    def _persist(self) -> None:
        try:
            write_csv_atomic(
                self.products_path,
                ProductsCsvImporter.columns,
                (product_to_row(product) for product in self.products.values()),
            )
        except OSError as exc:
            raise PersistenceFailure(f"Failed to write {self.products_path}: {exc}") from exc
