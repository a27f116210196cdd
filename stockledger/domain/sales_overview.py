"""Dashboard-style sales figures: leaders, registers, daily trend."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from stockledger.domain.transaction import Transaction

_DIGITS_RE = re.compile(r"\d+")


@dataclass(frozen=True)
class SalesFigure:
    """Quantity and revenue rolled up under one label."""

    label: str
    quantity: int
    revenue: Decimal


@dataclass(frozen=True)
class DailyFigure:
    day: date
    quantity: int
    revenue: Decimal


@dataclass(frozen=True)
class SalesOverview:
    total_sales: int
    total_revenue: Decimal
    distinct_products: int
    top_products: tuple[SalesFigure, ...]
    top_sellers: tuple[SalesFigure, ...]
    register_performance: tuple[SalesFigure, ...]
    daily_trend: tuple[DailyFigure, ...]


def normalize_register(register_id: str) -> str:
    """Map free-form register labels ("caisse 1", "REG-01") to ``Register<n>``."""
    found = _DIGITS_RE.search(register_id or "")
    if found is None:
        return (register_id or "").strip() or "Unknown"
    return f"Register{int(found.group())}"


def _roll_up(
    transactions: Sequence[Transaction],
    key: Callable[[Transaction], str],
) -> list[SalesFigure]:
    totals: dict[str, tuple[int, Decimal]] = {}
    for txn in transactions:
        label = key(txn)
        quantity, revenue = totals.get(label, (0, Decimal("0")))
        totals[label] = (quantity + txn.quantity, revenue + txn.total)
    figures = [SalesFigure(label, quantity, revenue) for label, (quantity, revenue) in totals.items()]
    # Highest revenue first; label breaks ties so output is deterministic.
    figures.sort(key=lambda figure: (-figure.revenue, figure.label))
    return figures


def sales_overview(
    transactions: Sequence[Transaction],
    top_n: int = 5,
    trend_days: int = 30,
) -> SalesOverview:
    """Summarize raw sales; unmatched or uncategorized sales still count here."""
    dated = [txn for txn in transactions if txn.sale_date is not None]

    daily: dict[date, tuple[int, Decimal]] = {}
    for txn in dated:
        day = txn.sale_date
        assert day is not None
        quantity, revenue = daily.get(day, (0, Decimal("0")))
        daily[day] = (quantity + txn.quantity, revenue + txn.total)
    trend = [DailyFigure(day, quantity, revenue) for day, (quantity, revenue) in sorted(daily.items())]

    return SalesOverview(
        total_sales=len(transactions),
        total_revenue=sum((txn.total for txn in transactions), Decimal("0")),
        distinct_products=len({(txn.product_name or "").strip() for txn in transactions}),
        top_products=tuple(_roll_up(transactions, lambda txn: (txn.product_name or "").strip())[:top_n]),
        top_sellers=tuple(_roll_up(transactions, lambda txn: txn.seller_id.strip() or "Unknown")[:top_n]),
        register_performance=tuple(_roll_up(transactions, lambda txn: normalize_register(txn.register_id))),
        daily_trend=tuple(trend[-trend_days:]) if trend_days > 0 else (),
    )
