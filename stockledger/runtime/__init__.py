"""Runtime infrastructure for stockledger.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Settings via load_settings(), Settings
- Memoized reconciliation via StockReconciler, ReconciliationCache
- Cooperative cancellation via CancellationToken

Usage:
    from stockledger.runtime import get_logger, load_settings

    logger = get_logger(__name__)
    settings = load_settings()
"""

from stockledger.runtime.cache import ReconciliationCache, StockReconciler
from stockledger.runtime.cancellation import CancellationToken
from stockledger.runtime.config import (
    FirestoreSettings,
    Settings,
    SyncSettings,
    load_settings,
    resolve_config_path,
)
from stockledger.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    LOG_LEVELS,
    configure_logging,
    get_logger,
    set_log_level,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    "LOG_LEVELS",
    # Settings
    "load_settings",
    "resolve_config_path",
    "Settings",
    "SyncSettings",
    "FirestoreSettings",
    # Reconciliation
    "StockReconciler",
    "ReconciliationCache",
    "CancellationToken",
]
