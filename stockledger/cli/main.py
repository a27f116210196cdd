#!/usr/bin/env python3

import argparse
import signal
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from stockledger.domain.errors import OperationCancelled, StockLedgerError
from stockledger.runtime import (
    LOG_LEVELS,
    CancellationToken,
    Settings,
    StockReconciler,
    get_logger,
    load_settings,
    set_log_level,
)
from stockledger.store.base import CatalogStore

logger = get_logger(__name__)


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


@contextmanager
def _interruptible() -> Iterator[CancellationToken]:
    """Turn Ctrl-C into a cooperative cancel so committed chunks are reported."""
    token = CancellationToken()

    def _on_sigint(signum: int, frame: object) -> None:
        logger.warning("Interrupt received; stopping after the current chunk")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


def _open_store(args: argparse.Namespace, settings: Settings) -> CatalogStore:
    if args.firestore:
        from stockledger.store.firestore import FirestoreStore

        firestore = settings.firestore
        if not firestore.project_id:
            raise ValueError("--firestore needs [firestore] project_id in the config file")
        return FirestoreStore(
            firestore.project_id,
            database=firestore.database,
            api_key=firestore.api_key,
            products_collection=firestore.products_collection,
            sales_collection=firestore.sales_collection,
        )

    if args.products is None:
        raise ValueError("Provide --products (and usually --sales), or use --firestore")
    from stockledger.store.csv_files import CsvStore

    return CsvStore(Path(args.products), Path(args.sales) if args.sales else None)


def _cmd_stats(store: CatalogStore, settings: Settings, args: argparse.Namespace) -> int:
    from stockledger.application.stock.report import build_stock_report, format_stats

    report = build_stock_report(
        store,
        reconciler=StockReconciler(settings.matching),
        high_sales_threshold=settings.high_sales_threshold,
    )
    print(format_stats(report.stats))
    overview = report.overview
    if overview.top_products:
        print()
        print("Top products by revenue:")
        for figure in overview.top_products:
            print(f"  {figure.label}: {figure.quantity} unit(s), {figure.revenue:,.2f}")
    return 0


def _cmd_alerts(store: CatalogStore, settings: Settings, args: argparse.Namespace) -> int:
    from stockledger.application.stock.report import build_stock_report, format_alerts

    report = build_stock_report(
        store,
        reconciler=StockReconciler(settings.matching),
        high_sales_threshold=settings.high_sales_threshold,
    )
    print(format_alerts(report.alerts))
    return 0


def _cmd_reconcile(store: CatalogStore, settings: Settings, args: argparse.Namespace) -> int:
    from stockledger.application.stock.report import format_reconciliation

    products = store.list_products()
    product = next((p for p in products if p.id == args.product_id), None)
    if product is None:
        print(f"Unknown product: {args.product_id}")
        return 1
    result = StockReconciler(settings.matching).reconcile(product, store.list_transactions(), catalog=products)
    print(format_reconciliation(product, result))
    return 0


def _cmd_export(store: CatalogStore, settings: Settings, args: argparse.Namespace) -> int:
    from stockledger.application.stock.report import build_stock_report
    from stockledger.domain.stats import EXPORT_COLUMNS
    from stockledger.importers.base import write_csv_atomic

    report = build_stock_report(store, reconciler=StockReconciler(settings.matching))
    rows = report.rows()
    write_csv_atomic(Path(args.output), EXPORT_COLUMNS, rows)
    print(f"Exported {len(rows)} product(s) to {args.output}")
    return 0


def _cmd_refresh(store: CatalogStore, settings: Settings, args: argparse.Namespace) -> int:
    from stockledger.application.stock.refresh import refresh_stock_levels

    with _interruptible() as token:
        result = refresh_stock_levels(
            store,
            reconciler=StockReconciler(settings.matching),
            chunk_size=settings.sync.chunk_size,
            cancel_token=token,
        )
    if result.invalid:
        print(f"Skipped invalid product(s): {', '.join(result.invalid)}")
    if result.status == "persistence-failed":
        assert result.error is not None
        _print_error(result.error)
        print(f"Saved {len(result.written)} of {len(result.changed)} changed product(s).")
        return 1
    if result.status == "unchanged":
        print("Stock levels already up to date.")
    else:
        print(f"Updated stock for {len(result.written)} product(s).")
    return 0


def _cmd_sync(store: CatalogStore, settings: Settings, args: argparse.Namespace) -> int:
    from stockledger.application.stock.sync import sync_catalog

    with _interruptible() as token:
        result = sync_catalog(
            store.list_transactions(),
            store.list_products(),
            store,
            policy=settings.matching,
            chunk_size=settings.sync.chunk_size,
            max_attempts=settings.sync.max_attempts,
            cancel_token=token,
            dry_run=args.dry_run,
        )
    print(result.summary)
    if result.status in ("partial", "failed"):
        assert result.error is not None
        _print_error(result.error)
        return 1
    return 0


COMMANDS: dict[str, Callable[[CatalogStore, Settings, argparse.Namespace], int]] = {
    "stats": _cmd_stats,
    "alerts": _cmd_alerts,
    "reconcile": _cmd_reconcile,
    "export": _cmd_export,
    "refresh": _cmd_refresh,
    "sync": _cmd_sync,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Retail stock reconciliation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  stats                      Catalog-wide stock and sales figures
  alerts                     Out-of-stock, low-stock and inconsistency alerts
  reconcile <product-id>     Explain one product's stock figure
  export <out.csv>           Write reconciled stock for every product
  refresh                    Recompute and save cached stock fields
  sync [--dry-run]           Create catalog entries for sales-only products

Sources:
  --products/--sales         CSV files (the products file is rewritten on save)
  --firestore                Firestore project from the [firestore] config section
""",
    )
    parser.add_argument("--config", default=None, help="Settings TOML (default: $STOCKLEDGER_CONFIG or ./stockledger.toml)")
    parser.add_argument("--products", default=None, help="Products CSV file")
    parser.add_argument("--sales", default=None, help="Register sales CSV file")
    parser.add_argument("--firestore", action="store_true", help="Read and write Firestore instead of CSV files")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=sorted(LOG_LEVELS),
        default=None,
        help="Override STOCKLEDGER_LOG_LEVEL for this run",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("stats", help="Show stock statistics")
    subparsers.add_parser("alerts", help="Show stock alerts")
    reconcile_parser = subparsers.add_parser("reconcile", help="Reconcile one product")
    reconcile_parser.add_argument("product_id", help="Catalog product id")
    export_parser = subparsers.add_parser("export", help="Export reconciled stock to CSV")
    export_parser.add_argument("output", help="Destination CSV file")
    subparsers.add_parser("refresh", help="Recompute and save stock fields")
    sync_parser = subparsers.add_parser("sync", help="Create catalog entries from sales")
    sync_parser.add_argument("--dry-run", action="store_true", help="Show what would be created without writing")

    args = parser.parse_args(argv)
    if args.log_level:
        set_log_level(args.log_level)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.config)
        store = _open_store(args, settings)
    except (ValueError, OSError, StockLedgerError) as exc:
        _print_error(str(exc))
        return 1

    try:
        return COMMANDS[args.command](store, settings, args)
    except OperationCancelled as exc:
        print(f"Cancelled; {len(exc.completed)} item(s) were already saved.")
        return 130
    except StockLedgerError as exc:
        _print_error(str(exc))
        return 1
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            close()


if __name__ == "__main__":
    raise SystemExit(main())
