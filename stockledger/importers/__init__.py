"""CSV importers for register sales and the product catalog.

Usage:
    from stockledger.importers import ProductsCsvImporter, SalesCsvImporter

    products = ProductsCsvImporter().extract(Path("products.csv"))
    sales = SalesCsvImporter().extract(Path("sales.csv"))
"""

from stockledger.importers.base import BaseCsvImporter, write_csv_atomic
from stockledger.importers.products import ProductsCsvImporter, product_to_row
from stockledger.importers.sales import SalesCsvImporter, transaction_to_row

__all__ = [
    "BaseCsvImporter",
    "ProductsCsvImporter",
    "SalesCsvImporter",
    "product_to_row",
    "transaction_to_row",
    "write_csv_atomic",
]
