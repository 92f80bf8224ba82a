# src/filters/trade_sorter.py
"""Stable multi-key sorting of trade lists."""
import math
from datetime import datetime
from enum import Enum
from functools import cmp_to_key
from typing import Any, Iterable

from src.filters.models import SortDirection, SortSpec
from src.journal.enrichment import enrich_trades
from src.journal.models import Edge, Formula, FormulaType, Outcome, Trade

DEFAULT_SORT = (SortSpec(key="entry_time", direction=SortDirection.DESC),)

# Keys whose value is missing for an open trade. Open trades always sort last.
_OPEN_LAST_KEYS = frozenset({"pnl", "exit_time", "duration"})


def toggle_sort(specs: Iterable[SortSpec], key: str) -> list[SortSpec]:
    """Cycle a column through ascending, descending and unsorted.

    A new key is appended as ascending, an ascending key turns descending
    and a descending key is removed.
    """
    updated = []
    found = False
    for spec in specs:
        if spec.key != key:
            updated.append(spec)
            continue
        found = True
        if spec.direction is SortDirection.ASC:
            updated.append(SortSpec(key=key, direction=SortDirection.DESC))
    if not found:
        updated.append(SortSpec(key=key, direction=SortDirection.ASC))
    return updated


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, bool):
        return int(value)
    return value


def _compare(a: Any, b: Any) -> int:
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return (a > b) - (a < b)
    if isinstance(a, str) and isinstance(b, str):
        a_key, b_key = a.casefold(), b.casefold()
        return (a_key > b_key) - (a_key < b_key)
    return 0


class TradeSorter:
    """Sorts trades by plain fields and by names resolved from catalogs.

    Besides trade attributes, these derived keys are understood:
    ``strategy_name``, ``entry_formula_name``, ``stop_loss_formula_name``,
    ``target_formula_name``, ``duration`` and ``has_screenshot``.
    """

    def __init__(self, edges: Iterable[Edge] = (), formulas: Iterable[Formula] = ()) -> None:
        self._edge_names = {e.id: e.name for e in edges}
        self._formulas = {f.id: f for f in formulas}

    def _formula_name(self, formula_id: str | None) -> str | None:
        formula = self._formulas.get(formula_id) if formula_id else None
        return formula.name if formula else None

    def _exit_formula_names(
        self, trade: Trade, formula_type: FormulaType, planned_ids: tuple[str, ...]
    ) -> str:
        exit_formula = self._formulas.get(trade.exit_formula_id) if trade.exit_formula_id else None
        if exit_formula is not None and exit_formula.type is formula_type:
            return exit_formula.name
        names = [self._formula_name(fid) for fid in planned_ids]
        return ", ".join(n for n in names if n)

    def value(self, trade: Trade, key: str, direction: SortDirection) -> Any:
        """Comparable value of ``key`` for a trade."""
        if key in _OPEN_LAST_KEYS and trade.is_open:
            return math.inf if direction is SortDirection.ASC else -math.inf

        if key == "strategy_name":
            return self._edge_names.get(trade.strategy_id)
        if key == "entry_formula_name":
            return self._formula_name(trade.entry_formula_id)
        if key == "stop_loss_formula_name":
            return self._exit_formula_names(trade, FormulaType.STOP_LOSS, trade.stop_loss_formula_ids)
        if key == "target_formula_name":
            return self._exit_formula_names(trade, FormulaType.TARGET, trade.target_formula_ids)
        if key == "duration":
            return (trade.exit_time - trade.entry_time).total_seconds()
        if key == "has_screenshot":
            return 1 if trade.screenshot_uri else 0
        if key == "outcome":
            return (trade.outcome or Outcome.OPEN).value

        if not hasattr(trade, key):
            raise ValueError(f"Unknown sort key: {key}")
        return _normalize(getattr(trade, key))

    def sort(self, trades: Iterable[Trade], specs: Iterable[SortSpec] = DEFAULT_SORT) -> list[Trade]:
        """Sort trades by each spec in turn.

        Missing values go last when ascending and first when descending.
        Ties keep input order.

        Args:
            trades: Trades to sort.
            specs: Sort keys, most significant first.

        Returns:
            Enriched trades in sorted order.
        """
        specs = list(specs)
        enriched = enrich_trades(trades)
        if not specs:
            return enriched

        def compare(a: Trade, b: Trade) -> int:
            for spec in specs:
                value_a = self.value(a, spec.key, spec.direction)
                value_b = self.value(b, spec.key, spec.direction)

                missing_order = 1 if spec.direction is SortDirection.ASC else -1
                if value_a is None and value_b is not None:
                    return missing_order
                if value_a is not None and value_b is None:
                    return -missing_order
                if value_a is None and value_b is None:
                    continue

                result = _compare(value_a, value_b)
                if result != 0:
                    return result if spec.direction is SortDirection.ASC else -result
            return 0

        return sorted(enriched, key=cmp_to_key(compare))


def sort_trades(
    trades: Iterable[Trade],
    specs: Iterable[SortSpec] = DEFAULT_SORT,
    edges: Iterable[Edge] = (),
    formulas: Iterable[Formula] = (),
) -> list[Trade]:
    return TradeSorter(edges, formulas).sort(trades, specs)
