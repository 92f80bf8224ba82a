# src/journal/pattern_analyzer.py
"""Analyzer for performance cuts by edge, formula, weekday and holding time."""
from collections import defaultdict
from enum import Enum

from src.journal.enrichment import closed_trades
from src.journal.metrics_calculator import profit_factor
from src.journal.models import (
    DayOfWeekPerformance,
    HoldingTimeStats,
    PerformanceMetric,
    RMultipleBin,
    Trade,
)


WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

R_MULTIPLE_BINS = (
    "<-3R",
    "-3R to -2R",
    "-2R to -1R",
    "-1R to 0R",
    "0R to 1R",
    "1R to 2R",
    "2R to 3R",
    ">3R",
    "No SL",
)


class TradeDimension(str, Enum):
    """Trade attribute a performance breakdown is grouped by."""

    EDGE = "strategy_id"
    ENTRY_FORMULA = "entry_formula_id"
    STOP_LOSS_FORMULAS = "stop_loss_formula_ids"
    TARGET_FORMULAS = "target_formula_ids"


def dimension_keys(trade: Trade, dimension: TradeDimension) -> tuple[str, ...]:
    """Values a trade carries for a dimension, deduplicated in order."""
    value = getattr(trade, dimension.value)
    if isinstance(value, tuple):
        return tuple(dict.fromkeys(value))
    return (value,) if value else ()


def _bin_r_multiple(r_multiple: float) -> str:
    if r_multiple < -3:
        return "<-3R"
    if r_multiple <= -2:
        return "-3R to -2R"
    if r_multiple <= -1:
        return "-2R to -1R"
    if r_multiple < 0:
        return "-1R to 0R"
    if r_multiple < 1:
        return "0R to 1R"
    if r_multiple < 2:
        return "1R to 2R"
    if r_multiple < 3:
        return "2R to 3R"
    return ">3R"


def format_average_duration(total_seconds: float, count: int) -> str:
    """Format an average duration as ``"1d 2h 3m 4s"``, or N/A without data."""
    if count == 0 or total_seconds <= 0:
        return "N/A"

    average = int(total_seconds / count)
    days, remainder = divmod(average, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = [
        f"{value}{unit}"
        for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"), (seconds, "s"))
        if value > 0
    ]
    return " ".join(parts) or "0s"


class PatternAnalyzer:
    """Analyzes trading patterns from journal trades."""

    def performance_by_dimension(
        self,
        trades: list[Trade],
        dimension: TradeDimension,
        names: dict[str, str],
    ) -> list[PerformanceMetric]:
        """Break down performance by a trade dimension.

        Only dimension values present in ``names`` are reported. Breakeven
        and open trades are left out. A trade listing the same formula twice
        is counted once for it.

        Args:
            trades: Trades to analyze.
            dimension: Attribute to group by.
            names: Display name for each known dimension value.

        Returns:
            PerformanceMetric per value, highest total P&L first.
        """
        pnls: dict[str, list[float]] = defaultdict(list)

        for trade in closed_trades(trades):
            if not trade.pnl:
                continue
            for key in dimension_keys(trade, dimension):
                if key in names:
                    pnls[key].append(trade.pnl)

        metrics = []
        for key, values in pnls.items():
            total = sum(values)
            wins = [v for v in values if v > 0]
            losses = [v for v in values if v < 0]
            metrics.append(
                PerformanceMetric(
                    id=key,
                    name=names[key],
                    total_pnl=total,
                    win_rate=len(wins) / len(values) * 100,
                    trade_count=len(values),
                    avg_pnl=total / len(values),
                    profit_factor=profit_factor(sum(wins), abs(sum(losses))),
                )
            )

        return sorted(metrics, key=lambda m: m.total_pnl, reverse=True)

    def r_multiple_distribution(self, trades: list[Trade]) -> list[RMultipleBin]:
        """Histogram of R multiples (P&L over initial risk).

        Closed trades without a stop loss price, or with zero risk, are
        counted under "No SL".
        """
        counts = dict.fromkeys(R_MULTIPLE_BINS, 0)

        for trade in closed_trades(trades):
            if trade.sl is None:
                counts["No SL"] += 1
                continue

            risk = abs(trade.entry_price - trade.sl) * trade.quantity
            if risk == 0:
                counts["No SL"] += 1
                continue

            counts[_bin_r_multiple(trade.pnl / risk)] += 1

        return [RMultipleBin(name=name, count=count) for name, count in counts.items()]

    def performance_by_day_of_week(self, trades: list[Trade]) -> list[DayOfWeekPerformance]:
        """Sum P&L by the weekday a trade closed on, Sunday first."""
        pnl = [0.0] * 7
        counts = [0] * 7

        for trade in closed_trades(trades):
            day_index = (trade.exit_time.weekday() + 1) % 7
            pnl[day_index] += trade.pnl
            counts[day_index] += 1

        return [
            DayOfWeekPerformance(name=name, pnl=round(pnl[i], 2), trades=counts[i])
            for i, name in enumerate(WEEKDAY_NAMES)
        ]

    def holding_time_stats(self, trades: list[Trade]) -> HoldingTimeStats:
        """Average holding time for winners and losers."""
        win_seconds = 0.0
        win_count = 0
        loss_seconds = 0.0
        loss_count = 0

        for trade in closed_trades(trades):
            duration = (trade.exit_time - trade.entry_time).total_seconds()
            if trade.pnl > 0:
                win_seconds += duration
                win_count += 1
            elif trade.pnl < 0:
                loss_seconds += duration
                loss_count += 1

        return HoldingTimeStats(
            avg_win_hold_time=format_average_duration(win_seconds, win_count),
            avg_loss_hold_time=format_average_duration(loss_seconds, loss_count),
        )
