"""Stock workflows: refresh cached stock fields, sync catalog from sales, reports."""

from stockledger.application.stock.refresh import RefreshResult, refresh_stock_levels
from stockledger.application.stock.report import StockReport, build_stock_report
from stockledger.application.stock.sync import SyncResult, sync_catalog

__all__ = [
    "RefreshResult",
    "refresh_stock_levels",
    "StockReport",
    "build_stock_report",
    "SyncResult",
    "sync_catalog",
]
