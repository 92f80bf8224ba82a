# src/journal/enrichment.py
"""Derivation of P&L, outcome and rule compliance from raw trade fields."""
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from src.journal.models import (
    Outcome,
    PositionType,
    RulesFollowedStatus,
    Trade,
    TradeLoggingMode,
    TradeSource,
    naive_utc,
)


_BOTH = TradeLoggingMode.BOTH
_REAL = TradeLoggingMode.REAL
_THEORETICAL = TradeLoggingMode.THEORETICAL

_RULES_FOLLOWED_BY_MODES: dict[tuple[TradeLoggingMode, TradeLoggingMode], RulesFollowedStatus] = {
    (_BOTH, _BOTH): RulesFollowedStatus.RULES_FOLLOW,
    (_BOTH, _REAL): RulesFollowedStatus.PARTIALLY_FOLLOW,
    (_REAL, _BOTH): RulesFollowedStatus.PARTIALLY_FOLLOW,
    (_BOTH, _THEORETICAL): RulesFollowedStatus.PARTIALLY_FOLLOW,
    (_THEORETICAL, _BOTH): RulesFollowedStatus.PARTIALLY_FOLLOW,
    (_REAL, _REAL): RulesFollowedStatus.NOT_FOLLOW,
    (_THEORETICAL, _THEORETICAL): RulesFollowedStatus.ENTRY_MISS,
}


def calculate_pnl(trade: Trade) -> float:
    """Calculate realized P&L of a trade.

    Args:
        trade: Trade to evaluate.

    Returns:
        Signed P&L, or 0 for an open trade.
    """
    if trade.exit_price is None:
        return 0.0
    if trade.position_type is PositionType.SHORT:
        return (trade.entry_price - trade.exit_price) * trade.quantity
    return (trade.exit_price - trade.entry_price) * trade.quantity


def derive_rules_followed(trade: Trade) -> RulesFollowedStatus:
    """Reclassify rule compliance from the execution and close modes.

    When both modes are known the lookup always wins over a stored label.
    Any other combination keeps the stored label, defaulting to RULES FOLLOW.
    """
    if trade.execution_mode is not None and trade.close_mode is not None:
        derived = _RULES_FOLLOWED_BY_MODES.get((trade.execution_mode, trade.close_mode))
        if derived is not None:
            return derived
    return trade.rules_followed or RulesFollowedStatus.RULES_FOLLOW


def classify_outcome(pnl: float) -> Outcome:
    if pnl > 0:
        return Outcome.WIN
    if pnl < 0:
        return Outcome.LOSS
    return Outcome.BREAKEVEN


def enrich_trade(trade: Trade) -> Trade:
    """Return a copy of the trade with its derived fields recomputed.

    Pure and idempotent: enriching an enriched trade yields an equal trade.

    Args:
        trade: Raw or previously enriched trade.

    Returns:
        Trade with ``pnl``, ``outcome``, ``rules_followed`` and ``source`` set
        and its entry and exit times made naive UTC.
    """
    enriched = replace(
        trade,
        entry_time=naive_utc(trade.entry_time),
        exit_time=naive_utc(trade.exit_time),
        source=trade.source or TradeSource.MANUAL,
        rules_followed=derive_rules_followed(trade),
    )

    if enriched.is_open:
        return replace(enriched, pnl=0.0, outcome=Outcome.OPEN)

    pnl = calculate_pnl(enriched)
    return replace(enriched, pnl=pnl, outcome=classify_outcome(pnl))


def enrich_trades(trades: Iterable[Trade]) -> list[Trade]:
    return [enrich_trade(t) for t in trades]


def closed_trades(trades: Iterable[Trade]) -> list[Trade]:
    """Enrich trades and keep the closed ones, in input order."""
    return [t for t in enrich_trades(trades) if t.outcome is not Outcome.OPEN]


def sorted_by_exit(trades: Iterable[Trade]) -> list[Trade]:
    """Closed trades, enriched, ordered by exit time ascending."""
    return sorted(closed_trades(trades), key=lambda t: t.exit_time)


def format_trade_duration(entry_time: datetime, exit_time: datetime | None) -> str:
    """Format the holding time of a trade.

    Shows at most two significant parts out of days, hours and minutes.
    Seconds are shown only when there is no day or hour part.

    Args:
        entry_time: When the position was opened.
        exit_time: When the position was closed, None if still open.

    Returns:
        Compact duration such as ``"1d 2h"``, ``"5m 30s"``, ``"Open"``.
    """
    if exit_time is None:
        return "Open"
    if exit_time <= entry_time:
        return "0s"

    total_seconds = int((exit_time - entry_time).total_seconds())
    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if len(parts) < 2 and seconds > 0 and days == 0 and hours == 0:
        parts.append(f"{seconds}s")

    if not parts:
        return "0s"
    return " ".join(parts[:2])
