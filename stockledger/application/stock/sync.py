"""Sales-to-catalog sync workflow.

Drafts catalog entries for products that appear only in sales and commits
them chunk by chunk. Each chunk commit is atomic; there is no transaction
spanning chunks, so a failure part-way leaves earlier chunks committed and
the result says exactly which products those are.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from stockledger.domain.catalog_sync import (
    NO_SALES_SUMMARY,
    NOTHING_TO_DO_SUMMARY,
    SKIPPED_SALES_NOTE,
    build_summary,
    draft_product,
    group_sales,
    plan_missing_products,
    ungroupable_sales,
)
from stockledger.domain.errors import CancellationCheck
from stockledger.domain.matching import DEFAULT_POLICY, MatchPolicy
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction
from stockledger.runtime import get_logger
from stockledger.store.base import DEFAULT_CHUNK_SIZE, CatalogStore, PersistenceFailure, chunked

logger = get_logger(__name__)

SyncStatus = Literal["created", "planned", "nothing-to-do", "no-sales", "partial", "failed"]


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a sync run.

    ``created`` lists only products whose chunk commit was confirmed.
    """

    status: SyncStatus
    created: tuple[CatalogProduct, ...] = ()
    summary: str = ""
    distinct_products: int = 0
    missing_products: int = 0
    committed_chunks: int = 0
    total_chunks: int = 0
    error: str | None = None
    skipped_sales: int = 0
    planned: tuple[CatalogProduct, ...] = field(default=(), repr=False)


def _commit_with_retry(store: CatalogStore, chunk: Sequence[CatalogProduct], max_attempts: int) -> None:
    for attempt in range(1, max_attempts + 1):
        try:
            store.commit_products(chunk)
            return
        except PersistenceFailure as exc:
            if attempt == max_attempts:
                raise
            logger.warning("Chunk commit attempt %d/%d failed: %s; retrying", attempt, max_attempts, exc)


def sync_catalog(
    transactions: Sequence[Transaction],
    catalog: Sequence[CatalogProduct],
    store: CatalogStore,
    *,
    policy: MatchPolicy | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_attempts: int = 3,
    cancel_token: CancellationCheck | None = None,
    now: datetime.datetime | None = None,
    dry_run: bool = False,
) -> SyncResult:
    """
    Create catalog entries for sales-only products.

    Args:
        transactions: All register sales.
        catalog: Current catalog snapshot to match against.
        store: Destination for the new products.
        policy: Matching policy.
        chunk_size: Products per atomic commit.
        max_attempts: Commit attempts per chunk before giving up.
        cancel_token: Checked before each chunk.
        now: Creation timestamp (UTC-naive); defaults to the current time.
        dry_run: Plan only; nothing is written.

    Returns:
        SyncResult. Persistence failures are reported as ``partial`` or
        ``failed``, never as success.

    Raises:
        OperationCancelled: when cancelled; ``completed`` holds the products
            of chunks committed before cancellation.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    policy = policy or DEFAULT_POLICY
    if not transactions:
        return SyncResult(status="no-sales", summary=NO_SALES_SUMMARY)

    groups = group_sales(transactions, policy)
    skipped = ungroupable_sales(transactions, policy)
    logger.info("Found %d distinct product(s) in %d sale(s)", len(groups), len(transactions))
    if skipped:
        logger.warning("%d sale(s) could not be grouped and were skipped", skipped)

    missing = plan_missing_products(groups.values(), catalog, policy)
    if not missing:
        summary = NOTHING_TO_DO_SUMMARY.format(count=len(groups))
        if skipped:
            summary += "\n" + SKIPPED_SALES_NOTE.format(count=skipped)
        return SyncResult(
            status="nothing-to-do",
            summary=summary,
            distinct_products=len(groups),
            skipped_sales=skipped,
        )
    for group in missing:
        logger.debug("Missing from catalog: %r (%s)", group.name, group.category)
    logger.info("%d product(s) missing from catalog", len(missing))

    created_at = now or datetime.datetime.now(datetime.UTC).replace(tzinfo=None)
    drafts = [draft_product(group, store.allocate_product_id(), created_at) for group in missing]

    if dry_run:
        return SyncResult(
            status="planned",
            summary=build_summary(drafts, len(groups), dry_run=True, skipped_sales=skipped),
            skipped_sales=skipped,
            distinct_products=len(groups),
            missing_products=len(missing),
            planned=tuple(drafts),
        )

    chunks = list(chunked(drafts, chunk_size))
    committed: list[CatalogProduct] = []
    for index, chunk in enumerate(chunks, 1):
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(committed)
        try:
            _commit_with_retry(store, chunk, max_attempts)
        except PersistenceFailure as exc:
            logger.error("Chunk %d/%d failed after %d attempt(s): %s", index, len(chunks), max_attempts, exc)
            status: SyncStatus = "partial" if committed else "failed"
            return SyncResult(
                status=status,
                created=tuple(committed),
                summary=build_summary(committed, len(groups), len(missing), complete=False, skipped_sales=skipped),
                skipped_sales=skipped,
                distinct_products=len(groups),
                missing_products=len(missing),
                committed_chunks=index - 1,
                total_chunks=len(chunks),
                error=str(exc),
                planned=tuple(drafts),
            )
        committed.extend(chunk)
        logger.info("Chunk %d/%d committed: %d product(s) created", index, len(chunks), len(chunk))

    return SyncResult(
        status="created",
        created=tuple(committed),
        summary=build_summary(committed, len(groups), skipped_sales=skipped),
        skipped_sales=skipped,
        distinct_products=len(groups),
        missing_products=len(missing),
        committed_chunks=len(chunks),
        total_chunks=len(chunks),
        planned=tuple(drafts),
    )
