"""Resolve free-text sale lines to catalog products.

Matching is a prioritized rule chain. Each tier is a predicate over a
prepared (normalized) sale and catalog entry; tiers run in order and the
first tier that accepts any catalog entry wins:

1. exact       - normalized names equal, categories equal
2. containment - categories equal, one normalized name contains the other
3. fuzzy       - categories equal, enough sale tokens overlap catalog tokens
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from stockledger.domain.normalize import DEFAULT_NOISE_TOKENS, normalize, normalize_category
from stockledger.domain.product import CatalogProduct
from stockledger.domain.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchPolicy:
    """Tunable knobs for name normalization and the fuzzy tier."""

    noise_tokens: frozenset[str] = DEFAULT_NOISE_TOKENS
    fuzzy_ratio: Decimal = Decimal("0.7")
    min_token_length: int = 3  # tokens must be longer than 2 characters

    def required_overlap(self, token_count: int) -> int:
        # Decimal keeps ceil(0.7 * 10) at 7 instead of float's 8.
        return math.ceil(self.fuzzy_ratio * token_count)


DEFAULT_POLICY = MatchPolicy()


@dataclass(frozen=True)
class PreparedName:
    """Normalized view of one side of a comparison."""

    name: str
    category: str
    tokens: tuple[str, ...]

    @classmethod
    def build(cls, name: str | None, category: str | None, policy: MatchPolicy) -> PreparedName:
        normalized = normalize(name, policy.noise_tokens)
        tokens = tuple(token for token in normalized.split(" ") if len(token) >= policy.min_token_length)
        return cls(name=normalized, category=normalize_category(category), tokens=tokens)

    @property
    def is_matchable(self) -> bool:
        return bool(self.name) and bool(self.category)


MatchPredicate = Callable[[PreparedName, PreparedName, MatchPolicy], bool]


@dataclass(frozen=True)
class MatchTier:
    """A named predicate in the rule chain."""

    name: str
    predicate: MatchPredicate


def _exact(sale: PreparedName, product: PreparedName, policy: MatchPolicy) -> bool:
    return sale.name == product.name and sale.category == product.category


def _containment(sale: PreparedName, product: PreparedName, policy: MatchPolicy) -> bool:
    if sale.category != product.category:
        return False
    return sale.name in product.name or product.name in sale.name


def _fuzzy(sale: PreparedName, product: PreparedName, policy: MatchPolicy) -> bool:
    if sale.category != product.category:
        return False
    # With no qualifying tokens ceil(0) would accept every product.
    if not sale.tokens:
        return False
    overlapping = sum(
        1
        for sale_token in sale.tokens
        if any(product_token in sale_token or sale_token in product_token for product_token in product.tokens)
    )
    return overlapping >= policy.required_overlap(len(sale.tokens))


MATCH_TIERS: tuple[MatchTier, ...] = (
    MatchTier("exact", _exact),
    MatchTier("containment", _containment),
    MatchTier("fuzzy", _fuzzy),
)


@dataclass(frozen=True)
class MatchOutcome:
    """Matched product plus the tier that produced it."""

    product: CatalogProduct
    tier: str


class PreparedCatalog:
    """Catalog with names normalized once, for repeated matching."""

    def __init__(self, catalog: Iterable[CatalogProduct], policy: MatchPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy
        self.entries: list[tuple[CatalogProduct, PreparedName]] = [
            (product, PreparedName.build(product.name, product.category, policy)) for product in catalog
        ]

    def __len__(self) -> int:
        return len(self.entries)

    def match(self, name: str | None, category: str | None) -> MatchOutcome | None:
        sale = PreparedName.build(name, category, self.policy)
        if not sale.is_matchable:
            return None
        candidates = [(product, prepared) for product, prepared in self.entries if prepared.is_matchable]
        for tier in MATCH_TIERS:
            for product, prepared in candidates:
                if tier.predicate(sale, prepared, self.policy):
                    return MatchOutcome(product=product, tier=tier.name)
        return None


def match_with_tier(
    name: str | None,
    category: str | None,
    catalog: Iterable[CatalogProduct],
    policy: MatchPolicy | None = None,
) -> MatchOutcome | None:
    """Match a sale line and report which tier accepted it."""
    return PreparedCatalog(catalog, policy or DEFAULT_POLICY).match(name, category)


def match(
    name: str | None,
    category: str | None,
    catalog: Iterable[CatalogProduct],
    policy: MatchPolicy | None = None,
) -> CatalogProduct | None:
    """Return the catalog product a sale line refers to, or None."""
    outcome = match_with_tier(name, category, catalog, policy)
    return outcome.product if outcome else None


@dataclass
class Assignment:
    """Transactions resolved against a whole catalog."""

    by_product: dict[str, tuple[Transaction, ...]] = field(default_factory=dict)
    unmatched: tuple[Transaction, ...] = ()

    def for_product(self, product_id: str) -> tuple[Transaction, ...]:
        return self.by_product.get(product_id, ())


def assign_transactions(
    transactions: Sequence[Transaction],
    catalog: Iterable[CatalogProduct],
    policy: MatchPolicy | None = None,
) -> Assignment:
    """
    Resolve every transaction once against the catalog.

    Each transaction lands on at most one product, so no sale is deducted
    twice. Malformed and unresolvable transactions are returned in
    ``unmatched`` rather than dropped.
    """
    prepared = PreparedCatalog(catalog, policy or DEFAULT_POLICY)
    grouped: dict[str, list[Transaction]] = {}
    unmatched: list[Transaction] = []
    # Sales with identical text resolve identically; match each key once.
    resolved: dict[tuple[str | None, str | None], MatchOutcome | None] = {}

    for txn in transactions:
        if not txn.is_well_formed:
            unmatched.append(txn)
            continue
        key = (txn.product_name, txn.category)
        if key not in resolved:
            resolved[key] = prepared.match(txn.product_name, txn.category)
        outcome = resolved[key]
        if outcome is None:
            unmatched.append(txn)
            continue
        grouped.setdefault(outcome.product.id, []).append(txn)

    if unmatched:
        logger.debug("%d of %d transaction(s) matched no catalog product", len(unmatched), len(transactions))
    return Assignment(
        by_product={product_id: tuple(txns) for product_id, txns in grouped.items()},
        unmatched=tuple(unmatched),
    )
