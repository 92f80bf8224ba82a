# src/journal/state.py
"""In-memory journal state, split by trading mode."""
from dataclasses import dataclass, field
from typing import Any, Iterable, TypeVar

from src.flows.models import LogicalEdgeFlow, TimeBlock
from src.journal.models import Edge, Formula, Trade, TradeLoggingMode, TradingMode

T = TypeVar("T")

DEFAULT_TRADE_LIMIT = 10

# Condition catalogs carried in a backup. Time blocks reference their ids.
CONDITION_CATALOGS = (
    "dayTypes",
    "emaStatuses",
    "ema5Statuses",
    "first5MinCloses",
    "first15MinCloses",
    "cprSizes",
)


@dataclass(frozen=True)
class ConditionOption:
    """A named market condition a time block can confirm."""

    id: str
    name: str


@dataclass
class ModeData:
    """Everything journaled under one trading mode."""

    trades: list[Trade] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    formulas: list[Formula] = field(default_factory=list)
    logical_edge_flows: list[LogicalEdgeFlow] = field(default_factory=list)
    recurring_blocks: list[TimeBlock] = field(default_factory=list)
    conditions: dict[str, list[ConditionOption]] = field(default_factory=dict)
    # Backup sections this package does not model, kept verbatim.
    extra: dict[str, Any] = field(default_factory=dict)


def _unique_by_id(items: Iterable[T]) -> list[T]:
    """Merge records by id. A later duplicate replaces an earlier one in place."""
    merged: dict[str, T] = {}
    for item in items:
        merged[item.id] = item
    return list(merged.values())


@dataclass
class JournalState:
    """Explicit container for real and theoretical journal data."""

    real: ModeData = field(default_factory=ModeData)
    theoretical: ModeData = field(default_factory=ModeData)
    long_trade_limit: int = DEFAULT_TRADE_LIMIT
    short_trade_limit: int = DEFAULT_TRADE_LIMIT

    def for_mode(self, mode: TradingMode) -> ModeData:
        return self.real if mode is TradingMode.REAL else self.theoretical

    def _sections(self, mode: TradeLoggingMode) -> list[ModeData]:
        if mode is TradeLoggingMode.REAL:
            return [self.real]
        if mode is TradeLoggingMode.THEORETICAL:
            return [self.theoretical]
        return [self.real, self.theoretical]

    def trades_for(self, mode: TradeLoggingMode) -> list[Trade]:
        """Trades visible in ``mode``. Both modes merge the two sides by id."""
        return _unique_by_id(t for s in self._sections(mode) for t in s.trades)

    def edges_for(self, mode: TradeLoggingMode) -> list[Edge]:
        return _unique_by_id(e for s in self._sections(mode) for e in s.edges)

    def formulas_for(self, mode: TradeLoggingMode) -> list[Formula]:
        return _unique_by_id(f for s in self._sections(mode) for f in s.formulas)

    def flows_for(self, mode: TradeLoggingMode) -> list[LogicalEdgeFlow]:
        return _unique_by_id(f for s in self._sections(mode) for f in s.logical_edge_flows)

    def condition_names(self, mode: TradeLoggingMode) -> dict[str, str]:
        """Condition id to name across every catalog of ``mode``."""
        names: dict[str, str] = {}
        for section in self._sections(mode):
            for options in section.conditions.values():
                for option in options:
                    names[option.id] = option.name
        return names
