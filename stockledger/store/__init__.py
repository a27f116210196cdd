"""Catalog and sales persistence.

The workflows depend only on the ``CatalogStore`` protocol; pick an
implementation at the edge:
- InMemoryStore: process-local, for tests and embedding
- CsvStore: products.csv + sales.csv on disk
- FirestoreStore: Firestore REST API over httpx
"""

from stockledger.store.base import (
    DEFAULT_CHUNK_SIZE,
    CatalogStore,
    PersistenceFailure,
    StoreError,
    chunked,
)
from stockledger.store.csv_files import CsvStore
from stockledger.store.firestore import FirestoreStore
from stockledger.store.memory import InMemoryStore

__all__ = [
    "CatalogStore",
    "StoreError",
    "PersistenceFailure",
    "DEFAULT_CHUNK_SIZE",
    "chunked",
    "InMemoryStore",
    "CsvStore",
    "FirestoreStore",
]
