"""Exception types shared by the domain layer."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class StockLedgerError(Exception):
    """Base class for all stockledger errors."""


class InvalidProductSnapshot(StockLedgerError, ValueError):
    """Raised when a product's stock configuration cannot be reconciled."""

    def __init__(self, product_id: str | None, reason: str) -> None:
        self.product_id = product_id
        self.reason = reason
        super().__init__(f"Invalid product snapshot {product_id!r}: {reason}")


class OperationCancelled(StockLedgerError):
    """Raised when a long-running operation is cancelled between steps.

    ``completed`` holds whatever was already made durable (e.g. products of
    committed sync chunks). It is never a partial in-memory result.
    """

    def __init__(self, completed: Sequence[object] = ()) -> None:
        self.completed = tuple(completed)
        super().__init__(f"Operation cancelled after {len(self.completed)} completed item(s)")


class CancellationCheck(Protocol):
    """Minimal contract for cancellation tokens accepted by domain loops."""

    def raise_if_cancelled(self, completed: Sequence[object] = ()) -> None: ...
