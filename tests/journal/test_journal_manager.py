# tests/journal/test_journal_manager.py
"""Tests for JournalManager and JournalState."""
from datetime import date, datetime
from pathlib import Path

import pytest

from src.flows.edge_entries import SPECIAL_EDGE_NAME
from src.flows.models import (
    BreakTime,
    ConditionSelections,
    DayType,
    EdgeFreeze,
    EmaStatus,
    FlowFollowUp,
    FollowUpKind,
    LogicalEdgeFlow,
    OptionType,
    T3Condition,
)
from src.flows.serialization import dump_flows_json
from src.flows.settings import FlowSettings
from src.journal.journal_manager import (
    POSITION_CLOSED_EVENT,
    TARGET_UPDATED_EVENT,
    JournalManager,
)
from src.journal.models import (
    PARTIAL_EXIT_EVENT,
    Edge,
    EdgeEntry,
    Outcome,
    PositionType,
    Trade,
    TradeLoggingMode,
    TradeResult,
    TradingMode,
)
from src.journal.settings import JournalSettings
from src.journal.state import ConditionOption, JournalState, ModeData
from src.journal.trade_importer import ImportRowResult, TradeImporter


def make_trade(
    trade_id: str = "t1",
    entry_time: datetime = datetime(2026, 1, 5, 9, 30),
    exit_price: float | None = None,
    exit_time: datetime | None = None,
    quantity: int = 10,
    **kwargs,
) -> Trade:
    """Create a long trade, open unless exit values are given."""
    return Trade(
        id=trade_id,
        position_type=PositionType.LONG,
        entry_price=100.0,
        quantity=quantity,
        entry_time=entry_time,
        exit_price=exit_price,
        exit_time=exit_time,
        **kwargs,
    )


class TestJournalState:
    """Tests for mode views over the journal state."""

    def test_both_mode_merges_by_id(self) -> None:
        state = JournalState(
            real=ModeData(trades=[make_trade("a"), make_trade("shared", notes="real")]),
            theoretical=ModeData(trades=[make_trade("shared", notes="theory"), make_trade("b")]),
        )

        trades = state.trades_for(TradeLoggingMode.BOTH)

        assert [t.id for t in trades] == ["a", "shared", "b"]
        assert trades[1].notes == "theory"
        assert [t.id for t in state.trades_for(TradeLoggingMode.REAL)] == ["a", "shared"]

    def test_condition_names(self) -> None:
        state = JournalState(
            real=ModeData(conditions={"emaStatuses": [ConditionOption(id="c1", name="Positive")]})
        )
        assert state.condition_names(TradeLoggingMode.REAL) == {"c1": "Positive"}
        assert state.condition_names(TradeLoggingMode.THEORETICAL) == {}


class TestJournalManager:
    """Tests for JournalManager."""

    @pytest.fixture
    def settings(self, tmp_path: Path) -> JournalSettings:
        """Create settings with temporary data directory."""
        return JournalSettings(data_dir=str(tmp_path / "journal"), fee_per_order=30.0)

    @pytest.fixture
    def manager(self, settings: JournalSettings) -> JournalManager:
        """Create a JournalManager instance."""
        return JournalManager(settings)

    def test_add_trade_keeps_newest_first(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("old", entry_time=datetime(2026, 1, 5, 9, 30)), TradingMode.REAL)
        added = manager.add_trade(make_trade("new", entry_time=datetime(2026, 1, 6, 9, 30)), TradingMode.REAL)

        assert added.outcome == Outcome.OPEN
        assert [t.id for t in manager.state.real.trades] == ["new", "old"]

    def test_add_trade_rejects_duplicates(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("a"), TradingMode.REAL)
        with pytest.raises(ValueError, match="already exists"):
            manager.add_trade(make_trade("a"), TradingMode.REAL)

    def test_add_trade_validates(self, manager: JournalManager) -> None:
        with pytest.raises(ValueError):
            manager.add_trade(make_trade("bad", quantity=0), TradingMode.REAL)

    def test_import_trades_skips_failures(self, manager: JournalManager) -> None:
        results = [
            ImportRowResult(success=True, trade=make_trade("a")),
            ImportRowResult(success=False, trade=None, errors=("broken",)),
        ]

        assert manager.import_trades(results, TradingMode.THEORETICAL) == 1
        assert [t.id for t in manager.state.theoretical.trades] == ["a"]

    def test_import_into_journal_with_naive_times(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("naive", entry_time=datetime(2026, 1, 5, 9, 30)), TradingMode.REAL)
        csv_text = (
            "Entry Time,Position Type,Entry Price,Quantity,Exit Time,Exit Price\n"
            "06/01/2026 09:20,Long,100,1,06/01/2026 10:00,110\n"
            "2026-01-04T09:30:00+05:30,Short,100,1,2026-01-04T10:00:00Z,90\n"
        )

        added = manager.import_trades(TradeImporter().parse_csv(csv_text), TradingMode.REAL)

        trades = manager.state.real.trades
        assert added == 2
        assert [t.entry_time for t in trades] == [
            datetime(2026, 1, 6, 9, 20),
            datetime(2026, 1, 5, 9, 30),
            datetime(2026, 1, 4, 4, 0),
        ]
        assert manager.dashboard(TradeLoggingMode.REAL).trade_count == 2
        assert manager.get_report(TradeLoggingMode.REAL)["streaks"].longest_win_streak == 2

    def test_failed_add_leaves_trades_untouched(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("a"), TradingMode.REAL)
        before = list(manager.state.real.trades)

        with pytest.raises(ValueError):
            manager.add_trade(make_trade("a", entry_time=datetime(2026, 1, 9, 9, 30)), TradingMode.REAL)

        assert manager.state.real.trades == before

    def test_full_square_off(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("t1"), TradingMode.REAL)

        closed = manager.square_off(
            "t1",
            TradingMode.REAL,
            exit_quantity=10,
            exit_price=120.0,
            exit_time=datetime(2026, 1, 5, 11, 0),
            result=TradeResult.TARGET_HIT,
        )

        assert closed.id == "t1"
        assert closed.pnl == pytest.approx(200.0)
        assert closed.outcome == Outcome.WIN
        assert closed.close_mode == TradeLoggingMode.REAL
        assert closed.log[-1].event == POSITION_CLOSED_EVENT
        assert manager.state.real.trades == [closed]

    def test_partial_square_off(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("t1"), TradingMode.REAL)

        first = manager.square_off(
            "t1", TradingMode.REAL, 4, 110.0, datetime(2026, 1, 5, 10, 0), TradeResult.BOOKED_IN_MIDDLE
        )
        second = manager.square_off(
            "t1", TradingMode.REAL, 2, 90.0, datetime(2026, 1, 5, 10, 30), TradeResult.SL_HIT
        )

        assert first.id == "t1-p1"
        assert first.parent_id == "t1"
        assert first.quantity == 4
        assert first.pnl == pytest.approx(40.0)
        assert second.id == "t1-p2"
        assert second.pnl == pytest.approx(-20.0)

        remaining = manager.state.real.trades[0]
        assert remaining.id == "t1"
        assert remaining.is_open
        assert remaining.quantity == 4
        assert [e.event for e in remaining.log] == [PARTIAL_EXIT_EVENT, PARTIAL_EXIT_EVENT]

    def test_split_exit_charges_one_order_per_exit(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("t1"), TradingMode.REAL)

        manager.square_off(
            "t1", TradingMode.REAL, 4, 110.0, datetime(2026, 1, 5, 10, 0), TradeResult.BOOKED_IN_MIDDLE
        )
        manager.square_off(
            "t1", TradingMode.REAL, 6, 120.0, datetime(2026, 1, 5, 10, 30), TradeResult.TARGET_HIT
        )

        metrics = manager.dashboard(TradeLoggingMode.REAL)

        assert metrics.trade_count == 2
        assert metrics.total_pnl == pytest.approx(160.0)
        assert metrics.total_charges == pytest.approx(90.0)
        assert metrics.net_pnl == pytest.approx(70.0)

    def test_square_off_rejects_bad_requests(self, manager: JournalManager) -> None:
        manager.add_trade(make_trade("t1"), TradingMode.REAL)
        when = datetime(2026, 1, 5, 10, 0)

        with pytest.raises(ValueError, match="Exit quantity"):
            manager.square_off("t1", TradingMode.REAL, 11, 110.0, when, TradeResult.TARGET_HIT)
        with pytest.raises(ValueError, match="not found"):
            manager.square_off("t1", TradingMode.THEORETICAL, 1, 110.0, when, TradeResult.TARGET_HIT)

        manager.square_off("t1", TradingMode.REAL, 10, 110.0, when, TradeResult.TARGET_HIT)
        with pytest.raises(ValueError, match="already closed"):
            manager.square_off("t1", TradingMode.REAL, 1, 110.0, when, TradeResult.TARGET_HIT)

    def test_update_targets_for_open_positions(self, manager: JournalManager) -> None:
        flow = LogicalEdgeFlow(
            id="flow1",
            name="Trend CE",
            target_formula_ids=("f1",),
            win_follow_up=FlowFollowUp(trend_target_formula_ids=("f2", "f3")),
        )
        manager.add_trade(make_trade("real-open", source_flow_id="flow1"), TradingMode.REAL)
        manager.add_trade(make_trade("theory-open", source_flow_id="flow1"), TradingMode.THEORETICAL)
        manager.add_trade(
            make_trade(
                "closed",
                source_flow_id="flow1",
                exit_price=110.0,
                exit_time=datetime(2026, 1, 5, 10, 0),
            ),
            TradingMode.REAL,
        )
        manager.add_trade(make_trade("other", source_flow_id="flow2"), TradingMode.REAL)

        updated = manager.update_targets_for_open_positions(
            flow, FollowUpKind.WIN, timestamp=datetime(2026, 1, 5, 10, 15)
        )

        assert updated == 2
        by_id = {t.id: t for t in manager.state.trades_for(TradeLoggingMode.BOTH)}
        assert by_id["real-open"].target_formula_ids == ("f2", "f3")
        assert by_id["real-open"].log[-1].event == TARGET_UPDATED_EVENT
        assert by_id["real-open"].log[-1].details == {"before": [], "after": ["f2", "f3"]}
        assert by_id["closed"].target_formula_ids == ()
        assert by_id["other"].target_formula_ids == ()

        assert manager.update_targets_for_open_positions(flow, FollowUpKind.WIN) == 0

    def test_dashboard_and_date_range(self, manager: JournalManager) -> None:
        manager.state.real.edges.append(Edge(id="e1", name="Breakout"))
        manager.add_trade(
            make_trade("jan5", exit_price=150.0, exit_time=datetime(2026, 1, 5, 11, 0), strategy_id="e1"),
            TradingMode.REAL,
        )
        manager.add_trade(
            make_trade(
                "jan9",
                entry_time=datetime(2026, 1, 9, 9, 30),
                exit_price=80.0,
                exit_time=datetime(2026, 1, 9, 11, 0),
            ),
            TradingMode.REAL,
        )

        everything = manager.dashboard(TradeLoggingMode.REAL)
        first_week = manager.dashboard(TradeLoggingMode.REAL, end=date(2026, 1, 5))

        assert everything.trade_count == 2
        assert everything.profit_factor == pytest.approx(2.5)
        assert first_week.trade_count == 1
        assert first_week.most_profitable_edge.edge_id == "e1"

    def test_get_report(self, manager: JournalManager) -> None:
        manager.add_trade(
            make_trade("a", exit_price=150.0, exit_time=datetime(2026, 1, 5, 11, 0)), TradingMode.REAL
        )

        report = manager.get_report(TradeLoggingMode.REAL)

        assert set(report) == {
            "metrics",
            "periodic",
            "cumulative_pnl",
            "candlesticks",
            "daily_profit_loss",
            "streaks",
            "drawdown",
            "day_of_week",
            "holding_time",
            "r_multiples",
            "by_edge",
            "by_entry_formula",
        }
        assert report["periodic"][0].period == "2026-01"
        assert report["candlesticks"][-1].close == 500.0

    async def test_backup_round_trip(self, manager: JournalManager, settings: JournalSettings) -> None:
        manager.add_trade(make_trade("a"), TradingMode.REAL)

        path = await manager.save_backup()

        fresh = JournalManager(settings)
        state = await fresh.load_backup(path)
        assert [t.id for t in state.real.trades] == ["a"]
        assert fresh.state is state

    async def test_export_csv_defaults_to_data_dir(
        self, manager: JournalManager, settings: JournalSettings
    ) -> None:
        manager.add_trade(make_trade("a"), TradingMode.REAL)

        path = await manager.export_csv(TradeLoggingMode.REAL)

        assert path == Path(settings.data_dir) / settings.csv_filename
        assert path.read_text().count("\n") == 1


class TestJournalManagerFlows:
    """Tests for flow matching through the manager's flow settings."""

    @pytest.fixture
    def settings(self, tmp_path: Path) -> JournalSettings:
        return JournalSettings(data_dir=str(tmp_path))

    @pytest.fixture
    def flow_settings(self) -> FlowSettings:
        return FlowSettings(
            flows_filename="flows.json",
            special_edge_name="Split Edge",
            use_index=False,
            opposite_enabled_structures=["ONLY THIS"],
        )

    @pytest.fixture
    def manager(self, settings: JournalSettings, flow_settings: FlowSettings) -> JournalManager:
        return JournalManager(settings, flow_settings=flow_settings)

    def test_matcher_uses_index_setting(self, manager: JournalManager) -> None:
        manager.state.real.logical_edge_flows.append(LogicalEdgeFlow(id="f1", name="Any"))

        matcher = manager.flow_matcher(TradeLoggingMode.REAL)

        assert matcher._index is None
        assert matcher.flows[0].id == "f1"

    def test_special_edge_name_from_settings(self, manager: JournalManager) -> None:
        entries = tuple(EdgeEntry(id=f"x{i}", name=f"Entry {i}") for i in range(8))

        split = Edge(id="e1", name="Split Edge", entries=entries)
        default_special = Edge(id="e2", name=SPECIAL_EDGE_NAME, entries=entries)

        assert manager.entries_for(split) == []
        assert [e.original_index for e in manager.entries_for(split, T3Condition.S15_GT_T3)] == [6, 7]
        assert len(manager.entries_for(default_special)) == 8

    def test_opposite_structures_from_settings(self, manager: JournalManager) -> None:
        assert manager.opposite_edge_enabled("ONLY THIS")
        assert not manager.opposite_edge_enabled("S(3) FORMED ONLY")

    async def test_load_flows_and_match(self, manager: JournalManager, settings: JournalSettings) -> None:
        flows = [
            LogicalEdgeFlow(id="pe", name="PE only", option_types=(OptionType.PE,)),
            LogicalEdgeFlow(id="ce", name="CE only", option_types=(OptionType.CE,), edge_id="e1"),
        ]
        (Path(settings.data_dir) / "flows.json").write_text(dump_flows_json(flows))

        loaded = await manager.load_flows(TradingMode.REAL)
        selections = ConditionSelections(
            option_type=OptionType.CE,
            day_type=DayType.TREND,
            break_time=BreakTime.BEFORE_12,
            e15_status=EmaStatus.POSITIVE,
            e5_status=EmaStatus.POSITIVE,
            current_side_structure="S(3) FORMED ONLY",
            opposite_side_structure="NOTHING FORMED",
        )

        assert [f.id for f in loaded] == ["pe", "ce"]
        assert manager.match_flow(selections, TradeLoggingMode.REAL).id == "ce"
        assert manager.match_flow(selections, TradeLoggingMode.REAL, EdgeFreeze(edge_id="e9")) is None
        assert manager.match_flow(selections, TradeLoggingMode.THEORETICAL) is None

    async def test_load_flows_missing_file(self, manager: JournalManager) -> None:
        with pytest.raises(ValueError, match="not found"):
            await manager.load_flows(TradingMode.REAL)
