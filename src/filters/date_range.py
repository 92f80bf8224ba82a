# src/filters/date_range.py
"""Whole-day date range filtering of trades."""
from datetime import date, datetime
from typing import Iterable

from src.journal.enrichment import enrich_trades
from src.journal.models import Trade


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def trade_reference_time(trade: Trade) -> datetime:
    """Entry time for an open trade, exit time for a closed one."""
    if trade.is_open:
        return trade.entry_time
    return trade.exit_time


def filter_by_date_range(
    trades: Iterable[Trade],
    start: date | datetime | None = None,
    end: date | datetime | None = None,
) -> list[Trade]:
    """Keep trades whose reference day falls inside the range.

    Both bounds are inclusive whole days. A missing bound leaves that side
    open.

    Args:
        trades: Trades to filter.
        start: First day of the range.
        end: Last day of the range.

    Returns:
        Matching trades, enriched, in input order.
    """
    enriched = enrich_trades(trades)
    if start is None and end is None:
        return enriched

    first = _as_date(start) if start is not None else None
    last = _as_date(end) if end is not None else None

    kept = []
    for trade in enriched:
        day = trade_reference_time(trade).date()
        if first is not None and day < first:
            continue
        if last is not None and day > last:
            continue
        kept.append(trade)
    return kept


def default_date_range(trades: Iterable[Trade]) -> tuple[date, date] | None:
    """Span from the earliest to the latest entry or exit day.

    Returns:
        ``(first_day, last_day)``, or None when no trade has a valid time.
    """
    moments = []
    for trade in trades:
        if isinstance(trade.entry_time, datetime):
            moments.append(trade.entry_time)
        if isinstance(trade.exit_time, datetime):
            moments.append(trade.exit_time)

    if not moments:
        return None
    return min(moments).date(), max(moments).date()
