"""Firestore REST store.

Talks to the Firestore v1 REST API with ``httpx``. Listing pages through a
collection; writes go through ``documents:commit``, which Firestore applies
atomically, so one commit is one all-or-nothing chunk.

Document layout (collection ``products``)::

    name, category, price, stock, initialStock, initialStockDate (YYYY-MM-DD),
    quantitySold, minStock, description, createdAt, updatedAt

Document layout (collection ``register_sales``)::

    product, category, register, date (ISO-8601), seller, quantity, price, total
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Iterator, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction
from stockledger.importers.base import parse_date, parse_datetime
from stockledger.runtime import get_logger
from stockledger.store.base import PersistenceFailure, StoreError

logger = get_logger(__name__)

FIRESTORE_URL = "https://firestore.googleapis.com/v1"
PAGE_SIZE = 300
STOCK_FIELD_PATHS = ("stock", "quantitySold", "initialStock", "updatedAt")


def encode_value(value: Any) -> dict[str, Any]:
    """Python value -> Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, (float, Decimal)):
        return {"doubleValue": float(value)}
    if isinstance(value, datetime.datetime):
        return {"stringValue": value.isoformat()}
    if isinstance(value, datetime.date):
        return {"stringValue": value.isoformat()}
    return {"stringValue": str(value)}


def decode_value(value: Mapping[str, Any]) -> Any:
    """Firestore typed value -> Python value. Unknown types decode to None."""
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return value["doubleValue"]
    if "booleanValue" in value:
        return value["booleanValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    return None


def _as_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        # str() first so 2.5 stays 2.5 rather than its binary expansion.
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_text(value: Any) -> str | None:
    return str(value) if value is not None else None


def document_id(document: Mapping[str, Any]) -> str:
    return str(document.get("name", "")).rsplit("/", 1)[-1]


def product_from_document(document: Mapping[str, Any]) -> CatalogProduct | None:
    """Decode a product document; returns None when required fields are unusable."""
    fields = {key: decode_value(value) for key, value in document.get("fields", {}).items()}
    product_id = document_id(document)
    name = _as_text(fields.get("name"))
    if not product_id or not name:
        return None

    counts = {key: _as_int(fields.get(key, 0)) for key in ("stock", "initialStock", "quantitySold", "minStock")}
    if any(value is None for value in counts.values()):
        logger.warning("Product document %s has non-integer stock fields, skipping", product_id)
        return None

    return CatalogProduct(
        id=product_id,
        name=name,
        category=_as_text(fields.get("category")) or "",
        unit_price=_as_decimal(fields.get("price")) or Decimal("0"),
        min_stock=counts["minStock"] or 0,
        initial_stock=counts["initialStock"] or 0,
        initial_stock_date=parse_date(_as_text(fields.get("initialStockDate"))),
        current_stock=counts["stock"] or 0,
        quantity_sold=counts["quantitySold"] or 0,
        description=_as_text(fields.get("description")) or "",
        created_at=parse_datetime(_as_text(fields.get("createdAt"))),
        updated_at=parse_datetime(_as_text(fields.get("updatedAt"))),
    )


def transaction_from_document(document: Mapping[str, Any]) -> Transaction:
    """Decode a sale document. Bad fields yield a malformed, never-matching transaction."""
    fields = {key: decode_value(value) for key, value in document.get("fields", {}).items()}
    quantity = _as_int(fields.get("quantity"))
    return Transaction(
        id=document_id(document),
        product_name=_as_text(fields.get("product")),
        category=_as_text(fields.get("category")),
        quantity=quantity if quantity is not None else 0,
        unit_price=_as_decimal(fields.get("price")) or Decimal("0"),
        total=_as_decimal(fields.get("total")) or Decimal("0"),
        occurred_at=parse_datetime(_as_text(fields.get("date"))),
        register_id=_as_text(fields.get("register")) or "",
        seller_id=_as_text(fields.get("seller")) or "",
    )


def product_to_fields(product: CatalogProduct) -> dict[str, Any]:
    values: dict[str, Any] = {
        "name": product.name,
        "category": product.category,
        "price": product.unit_price,
        "stock": product.current_stock,
        "initialStock": product.initial_stock,
        "initialStockDate": product.initial_stock_date,
        "quantitySold": product.quantity_sold,
        "minStock": product.min_stock,
        "description": product.description,
        "createdAt": product.created_at,
        "updatedAt": product.updated_at,
    }
    return {key: encode_value(value) for key, value in values.items()}


class FirestoreStore:
    """``CatalogStore`` over the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        *,
        database: str = "(default)",
        api_key: str | None = None,
        token: str | None = None,
        products_collection: str = "products",
        sales_collection: str = "register_sales",
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not project_id:
            raise ValueError("FirestoreStore requires a project id")
        self.database_path = f"projects/{project_id}/databases/{database}"
        self.documents_path = f"{self.database_path}/documents"
        self.products_collection = products_collection
        self.sales_collection = sales_collection
        self.api_key = api_key
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = client or httpx.Client(base_url=FIRESTORE_URL, timeout=timeout)
        self.client.headers.update(headers)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> FirestoreStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _params(self, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = dict(extra or {})
        if self.api_key:
            params["key"] = self.api_key
        return params

    def _iter_documents(self, collection: str) -> Iterator[Mapping[str, Any]]:
        page_token: str | None = None
        while True:
            extra: dict[str, Any] = {"pageSize": PAGE_SIZE}
            if page_token:
                extra["pageToken"] = page_token
            try:
                response = self.client.get(f"/{self.documents_path}/{collection}", params=self._params(extra))
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error("Firestore list %s failed: %s", collection, e.response.status_code)
                raise StoreError(f"Failed to list {collection}: HTTP {e.response.status_code}") from e
            except httpx.RequestError as e:
                logger.error("Failed to connect to Firestore: %s", e)
                raise StoreError(f"Failed to connect to Firestore: {e}") from e

            payload = response.json()
            yield from payload.get("documents", [])
            page_token = payload.get("nextPageToken")
            if not page_token:
                return

    def list_products(self) -> list[CatalogProduct]:
        products: list[CatalogProduct] = []
        for document in self._iter_documents(self.products_collection):
            product = product_from_document(document)
            if product is None:
                logger.warning("Skipping unreadable product document %s", document.get("name"))
                continue
            products.append(product)
        return products

    def list_transactions(self) -> list[Transaction]:
        return [transaction_from_document(document) for document in self._iter_documents(self.sales_collection)]

    def allocate_product_id(self) -> str:
        # Same shape as client-generated Firestore ids.
        return uuid.uuid4().hex[:20]

    def _document_name(self, product_id: str) -> str:
        return f"{self.documents_path}/{self.products_collection}/{product_id}"

    def _commit(self, writes: list[dict[str, Any]]) -> None:
        if not writes:
            return
        try:
            response = self.client.post(
                f"/{self.documents_path}:commit",
                params=self._params(),
                json={"writes": writes},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Firestore commit rejected: %s - %s", e.response.status_code, e.response.text)
            raise PersistenceFailure(f"Firestore commit rejected: HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            # The commit may or may not have landed; it is not confirmed.
            logger.error("Firestore commit not confirmed: %s", e)
            raise PersistenceFailure(f"Firestore commit not confirmed: {e}") from e
        logger.debug("Firestore commit of %d write(s) confirmed", len(writes))

    def commit_products(self, products: Sequence[CatalogProduct]) -> None:
        self._commit(
            [
                {"update": {"name": self._document_name(product.id), "fields": product_to_fields(product)}}
                for product in products
            ]
        )

    def update_stock_fields(self, products: Sequence[CatalogProduct]) -> None:
        writes: list[dict[str, Any]] = []
        for product in products:
            fields = product_to_fields(product)
            writes.append(
                {
                    "update": {
                        "name": self._document_name(product.id),
                        "fields": {path: fields[path] for path in STOCK_FIELD_PATHS},
                    },
                    "updateMask": {"fieldPaths": list(STOCK_FIELD_PATHS)},
                    "currentDocument": {"exists": True},
                }
            )
        self._commit(writes)
