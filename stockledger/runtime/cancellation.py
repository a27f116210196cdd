"""Cooperative cancellation for long-running aggregation and sync loops."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from stockledger.domain.errors import OperationCancelled


class CancellationToken:
    """Thread-safe flag checked between chunks or product iterations."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, completed: Sequence[object] = ()) -> None:
        if self._event.is_set():
            raise OperationCancelled(completed)
