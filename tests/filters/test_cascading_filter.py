# tests/filters/test_cascading_filter.py
"""Tests for CascadingFilterEngine."""
from datetime import datetime

import pytest

from src.filters.cascading_filter import (
    STOP_LOSS_GROUP_LABEL,
    TARGET_GROUP_LABEL,
    CascadingFilterEngine,
    rules_followed_options,
    trade_value,
)
from src.filters.models import FilterDimension, FilterOption, FilterSelections
from src.journal.models import (
    Edge,
    Formula,
    FormulaType,
    IndexType,
    PositionType,
    RulesFollowedStatus,
    Trade,
    TradeLoggingMode,
)

EDGES = [Edge(id="e1", name="Breakout"), Edge(id="e2", name="Pullback"), Edge(id="e3", name="Unused")]
FORMULAS = [
    Formula(id="entry", name="Retest", type=FormulaType.NORMAL_ENTRY),
    Formula(id="sl", name="Swing Low", type=FormulaType.STOP_LOSS),
    Formula(id="t1", name="1R", type=FormulaType.TARGET),
    Formula(id="t2", name="2R", type=FormulaType.TARGET),
]


def make_trade(trade_id: str, strategy_id: str, index: IndexType, **kwargs) -> Trade:
    """Create a closed trade for testing."""
    return Trade(
        id=trade_id,
        position_type=kwargs.pop("position_type", PositionType.LONG),
        entry_price=100.0,
        exit_price=110.0,
        quantity=1,
        entry_time=datetime(2026, 1, 5, 9, 30),
        exit_time=datetime(2026, 1, 5, 10, 0),
        strategy_id=strategy_id,
        index=index,
        **kwargs,
    )


@pytest.fixture
def trades() -> list[Trade]:
    return [
        make_trade("a", "e1", IndexType.NIFTY, target_formula_ids=("t1",)),
        make_trade("b", "e1", IndexType.SENSEX, stop_loss_formula_ids=("sl",), exit_formula_id="sl"),
        make_trade("c", "e2", IndexType.NIFTY, position_type=PositionType.SHORT, target_formula_ids=("t2",)),
    ]


class TestCascadingFilterEngine:
    """Tests for facet computation."""

    def test_no_selection_keeps_everything(self, trades: list[Trade]) -> None:
        assert [t.id for t in CascadingFilterEngine().apply(trades)] == ["a", "b", "c"]

    def test_facet_ignores_own_selection(self, trades: list[Trade]) -> None:
        engine = CascadingFilterEngine(FilterSelections(edge=("e1",)))

        result = engine.compute(trades, EDGES, FORMULAS)

        assert [(o.id, o.count) for o in result.edges] == [("e1", 2), ("e2", 1)]
        assert [(o.id, o.count) for o in result.index_types] == [("NIFTY", 1), ("SENSEX", 1)]
        assert [o.id for o in result.position_types] == ["Long"]
        assert [t.id for t in result.pre_date_filtered] == ["a", "b"]

    def test_selections_combine(self, trades: list[Trade]) -> None:
        engine = CascadingFilterEngine(FilterSelections(edge=("e1", "e2"), index=("NIFTY",)))

        result = engine.compute(trades, EDGES, FORMULAS)

        assert [t.id for t in result.pre_date_filtered] == ["a", "c"]
        assert [(o.id, o.count) for o in result.edges] == [("e1", 1), ("e2", 1)]

    def test_exit_formula_groups(self, trades: list[Trade]) -> None:
        result = CascadingFilterEngine().compute(trades, EDGES, FORMULAS)

        groups = {g.label: [(o.id, o.count) for o in g.options] for g in result.exit_formula_groups}
        assert groups == {
            STOP_LOSS_GROUP_LABEL: [("sl", 1)],
            TARGET_GROUP_LABEL: [("t1", 1), ("t2", 1)],
        }

    def test_exit_formula_selection(self, trades: list[Trade]) -> None:
        engine = CascadingFilterEngine(FilterSelections(exit_formula=("sl",)))
        assert [t.id for t in engine.apply(trades)] == ["b"]

    def test_empty_groups_are_dropped(self) -> None:
        trades = [make_trade("a", "e1", IndexType.NIFTY)]
        result = CascadingFilterEngine().compute(trades, EDGES, FORMULAS)
        assert result.exit_formula_groups == ()

    def test_option_label(self, trades: list[Trade]) -> None:
        result = CascadingFilterEngine().compute(trades, EDGES, FORMULAS)
        assert result.edges[0].label == "Breakout (2)"

    def test_rules_followed_facet(self, trades: list[Trade]) -> None:
        result = CascadingFilterEngine().compute(trades, EDGES, FORMULAS, TradeLoggingMode.REAL)
        assert [(o.id, o.count) for o in result.rules_followed] == [("RULES FOLLOW", 3)]


class TestHelpers:
    def test_rules_followed_options_by_mode(self) -> None:
        real = [o.id for o in rules_followed_options(TradeLoggingMode.REAL)]
        theoretical = [o.id for o in rules_followed_options(TradeLoggingMode.THEORETICAL)]

        assert RulesFollowedStatus.NOT_FOLLOW.value in real
        assert RulesFollowedStatus.ENTRY_MISS.value not in real
        assert RulesFollowedStatus.ENTRY_MISS.value in theoretical
        assert len(rules_followed_options(TradeLoggingMode.BOTH)) == 5

    def test_trade_value(self, trades: list[Trade]) -> None:
        assert trade_value(trades[0], FilterDimension.INDEX) == "NIFTY"
        assert trade_value(trades[0], FilterDimension.ENTRY_FORMULA) is None
        with pytest.raises(ValueError):
            trade_value(trades[0], FilterDimension.EXIT_FORMULA)

    def test_facet_options_keep_catalog_order(self, trades: list[Trade]) -> None:
        catalog = [FilterOption(id="e2", name="Pullback"), FilterOption(id="e1", name="Breakout")]
        options = CascadingFilterEngine().facet_options(trades, FilterDimension.EDGE, catalog)
        assert [o.id for o in options] == ["e2", "e1"]
