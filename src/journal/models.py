# src/journal/models.py
"""Data models for the trading journal."""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


PARTIAL_EXIT_EVENT = "Partial Exit"


class PositionType(str, Enum):
    """Side of a position."""

    LONG = "Long"
    SHORT = "Short"


class Outcome(str, Enum):
    """Classification of a trade result."""

    WIN = "Win"
    LOSS = "Loss"
    BREAKEVEN = "Breakeven"
    OPEN = "Open"


class TradingMode(str, Enum):
    """Book a trade is journaled in."""

    REAL = "real"
    THEORETICAL = "theoretical"


class TradeLoggingMode(str, Enum):
    """Books an execution or close action was applied to."""

    BOTH = "both"
    REAL = "real"
    THEORETICAL = "theoretical"


class RulesFollowedStatus(str, Enum):
    """Rule-compliance label of a trade."""

    RULES_FOLLOW = "RULES FOLLOW"
    PARTIALLY_FOLLOW = "PARTIALLY FOLLOW"
    NOT_FOLLOW = "NOT FOLLOW"
    ENTRY_MISS = "ENTRY MISS"
    MISS_THE_ENTRY = "MISS THE ENTRY"
    DIVERGENCE_FLOW = "Divergence Flow"


class FormulaType(str, Enum):
    """Kind of rule a formula describes."""

    NORMAL_ENTRY = "normal-entry"
    BREAKOUT_ENTRY = "breakout-entry"
    STOP_LOSS = "stop-loss"
    TARGET = "target"

    @property
    def is_entry(self) -> bool:
        """Whether the formula is one of the entry kinds."""
        return self in (FormulaType.NORMAL_ENTRY, FormulaType.BREAKOUT_ENTRY)


class FormulaSubType(str, Enum):
    """Optional formula sub-type."""

    REGULAR = "Regular"
    STRUCTURE_CHANGE = "Structure Change"


class FormulaSide(str, Enum):
    """Position side a formula applies to."""

    LONG = "Long"
    SHORT = "Short"
    BOTH = "Both"


class IndexType(str, Enum):
    """Underlying index of an option trade."""

    NIFTY = "NIFTY"
    SENSEX = "SENSEX"


class ExpiryType(str, Enum):
    """Whether a trade was taken on expiry day."""

    EXPIRY = "Expiry"
    NON_EXPIRY = "Non-Expiry"


class TradeResult(str, Enum):
    """How the trade was closed."""

    TARGET_HIT = "Target Hit"
    SL_HIT = "SL Hit"
    MANUAL_PROFIT = "Manual Exit - Profit Taken"
    MANUAL_LOSS = "Manual Exit - Loss Taken"
    BOOKED_IN_MIDDLE = "Booked in the Middle"


class TradeSource(str, Enum):
    """Where a trade record came from."""

    MANUAL = "manual"
    AUTOMATED = "automated"
    HISTORICAL = "historical"


class EdgeCategory(str, Enum):
    """Side classification of an edge."""

    TREND_SIDE = "Trend Side"
    OPPOSITE_SIDE = "Opposite Side"
    SHORT_EDGE = "Short Edge"


class CandlestickAggregation(str, Enum):
    """Granularity of P&L candlesticks."""

    TRADE = "trade"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class PeriodType(str, Enum):
    """Bucket size for periodic performance tables."""

    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class StreakType(str, Enum):
    """Type of the streak running at the last trade."""

    WIN = "Win"
    LOSS = "Loss"
    NONE = "None"


@dataclass(frozen=True)
class TradeLogEntry:
    """A single lifecycle event recorded against a trade."""

    timestamp: datetime
    event: str
    notes: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_partial_exit(self) -> bool:
        return self.event == PARTIAL_EXIT_EVENT


@dataclass(frozen=True)
class Trade:
    """A single position lifecycle record.

    ``pnl`` and ``outcome`` are derived fields. They are always recomputed
    from the primary fields by ``enrich_trade`` and never trusted as input.
    """

    id: str
    position_type: PositionType
    entry_price: float
    quantity: int
    entry_time: datetime

    strategy_id: str = ""
    entry_formula_id: str = ""
    stop_loss_formula_ids: tuple[str, ...] = ()
    target_formula_ids: tuple[str, ...] = ()
    exit_formula_id: str | None = None

    exit_price: float | None = None
    exit_time: datetime | None = None

    index: IndexType | None = None
    strike_price: str = ""
    expiry_type: ExpiryType = ExpiryType.NON_EXPIRY
    sl: float | None = None
    target: float | None = None
    result: TradeResult | None = None
    source: TradeSource | None = None

    rules_followed: RulesFollowedStatus | None = None
    execution_mode: TradeLoggingMode | None = None
    close_mode: TradeLoggingMode | None = None

    log: tuple[TradeLogEntry, ...] = ()
    notes: str | None = None
    symbol: str | None = None
    screenshot_uri: str | None = None
    parent_id: str | None = None
    source_edge_entry_index: int | None = None
    source_flow_id: str | None = None

    # Derived
    pnl: float | None = None
    outcome: Outcome | None = None

    @property
    def is_open(self) -> bool:
        """Check if the trade is still open."""
        return self.exit_price is None or self.exit_time is None


def validate_trade(trade: Trade) -> None:
    """Check a trade against the journal invariants.

    Args:
        trade: Trade to validate.

    Raises:
        ValueError: If the trade violates an invariant.
    """
    if trade.quantity <= 0:
        raise ValueError(f"Trade {trade.id}: quantity must be positive, got {trade.quantity}")
    if not math.isfinite(trade.entry_price):
        raise ValueError(f"Trade {trade.id}: entry price must be finite")
    if (trade.exit_price is None) != (trade.exit_time is None):
        raise ValueError(
            f"Trade {trade.id}: exit price and exit time must both be set or both be empty"
        )
    if trade.exit_price is not None and not math.isfinite(trade.exit_price):
        raise ValueError(f"Trade {trade.id}: exit price must be finite")


def naive_utc(moment: datetime | None) -> datetime | None:
    """Journal timestamps are naive. Aware values are converted to UTC first."""
    if isinstance(moment, datetime) and moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


@dataclass(frozen=True)
class EdgeEntry:
    """A sub-variant of an edge with its formula associations."""

    id: str
    name: str
    entry_formula_ids: tuple[str, ...] = ()
    stop_loss_formula_ids: tuple[str, ...] = ()
    target_formula_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Edge:
    """A named trading strategy."""

    id: str
    name: str
    category: EdgeCategory = EdgeCategory.TREND_SIDE
    description: str | None = None
    rules: tuple[str, ...] = ()
    entries: tuple[EdgeEntry, ...] = ()


@dataclass(frozen=True)
class Formula:
    """A reusable entry or exit rule."""

    id: str
    name: str
    type: FormulaType
    position_type: FormulaSide = FormulaSide.BOTH
    sub_type: FormulaSubType | None = None
    description: str | None = None


@dataclass(frozen=True)
class EdgePerformance:
    """P&L rolled up for a single edge."""

    edge_id: str
    name: str
    pnl: float
    trade_count: int


@dataclass(frozen=True)
class DashboardMetrics:
    """Summary statistics over the closed trades of a collection.

    ``profit_factor`` is ``nan`` when there are neither wins nor losses and
    ``inf`` when there are wins but no losses. ``risk_reward_ratio`` is
    ``inf`` when there are wins but no losses and 0 when there are neither.
    """

    total_pnl: float
    net_pnl: float
    total_charges: float
    gross_profit: float
    gross_loss: float
    win_rate: float
    risk_reward_ratio: float
    profit_factor: float
    average_win: float
    average_loss: float
    trade_count: int
    wins: int
    losses: int
    edge_performance: tuple[EdgePerformance, ...]
    most_profitable_edge: EdgePerformance | None


@dataclass(frozen=True)
class CumulativePnlDataPoint:
    """Running P&L after a trade closed."""

    date: str
    cumulative_pnl: float


@dataclass(frozen=True)
class DailyCandlestickData:
    """OHLC view of cumulative P&L over a bucket."""

    date: str
    open: float
    high: float
    low: float
    close: float

    @property
    def range_for_bar(self) -> tuple[float, float]:
        return (self.low, self.high)


@dataclass(frozen=True)
class DailyProfitLossDataPoint:
    """Profit and (negative) loss booked on a day."""

    date: str
    daily_profit: float
    daily_loss: float


@dataclass(frozen=True)
class DailyPerformanceStat:
    """P&L and trade count for a single day."""

    pnl: float
    trade_count: int


@dataclass(frozen=True)
class PeriodicPerformance:
    """Performance of the trades closed within a period."""

    period: str
    gross_pnl: float
    total_charges: float
    net_pnl: float
    win_rate: float
    trade_count: int
    wins: int
    losses: int
    profit_factor: float
    risk_reward_ratio: float
    gross_profit: float
    gross_loss: float


@dataclass(frozen=True)
class StreakStats:
    """Consecutive win and loss runs."""

    longest_win_streak: int
    longest_loss_streak: int
    current_streak: int
    current_streak_type: StreakType


@dataclass(frozen=True)
class DrawdownInfo:
    """Peak-to-trough drawdown of a cumulative P&L series."""

    max_drawdown: float
    max_drawdown_percent: float
    peak: float
    trough: float


@dataclass(frozen=True)
class PerformanceMetric:
    """Performance of the trades sharing one dimension value."""

    id: str
    name: str
    total_pnl: float
    win_rate: float
    trade_count: int
    avg_pnl: float
    profit_factor: float


@dataclass(frozen=True)
class RMultipleBin:
    """Number of trades whose R multiple falls in a bin."""

    name: str
    count: int


@dataclass(frozen=True)
class DayOfWeekPerformance:
    """P&L and trade count for a weekday."""

    name: str
    pnl: float
    trades: int


@dataclass(frozen=True)
class HoldingTimeStats:
    """Average holding time of winners and losers, formatted."""

    avg_win_hold_time: str
    avg_loss_hold_time: str
