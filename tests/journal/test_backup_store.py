# tests/journal/test_backup_store.py
"""Tests for BackupStore and the backup document format."""
import json
from datetime import datetime
from pathlib import Path

import pytest

from src.flows.models import LogicalEdgeFlow, OptionType, TimeBlock
from src.journal.backup_store import BackupStore, state_from_dict, state_to_dict, trade_to_dict
from src.journal.enrichment import enrich_trade
from src.journal.models import (
    Edge,
    EdgeEntry,
    Formula,
    FormulaType,
    Outcome,
    PositionType,
    Trade,
    TradeLogEntry,
)
from src.journal.settings import JournalSettings
from src.journal.state import ConditionOption, JournalState, ModeData


def make_state() -> JournalState:
    """Create a journal state touching every backup section."""
    trade = Trade(
        id="t1",
        position_type=PositionType.SHORT,
        entry_price=200.0,
        exit_price=180.0,
        quantity=5,
        entry_time=datetime(2026, 1, 5, 9, 30),
        exit_time=datetime(2026, 1, 5, 10, 0),
        strategy_id="e1",
        target_formula_ids=("f1",),
        log=(TradeLogEntry(timestamp=datetime(2026, 1, 5, 9, 30), event="Opened", details={"qty": 5}),),
    )
    real = ModeData(
        trades=[trade],
        edges=[Edge(id="e1", name="Breakout", entries=(EdgeEntry(id="x", name="First"),))],
        formulas=[Formula(id="f1", name="1R", type=FormulaType.TARGET)],
        logical_edge_flows=[
            LogicalEdgeFlow(id="flow1", name="Trend CE", option_types=(OptionType.CE,))
        ],
        recurring_blocks=[
            TimeBlock(id="b1", time="09:30", condition_type="E(15)", daily_overrides={"2026-01-05": "c1"})
        ],
        conditions={"emaStatuses": [ConditionOption(id="c1", name="Positive")]},
        extra={"customSection": [1, 2, 3]},
    )
    return JournalState(real=real, long_trade_limit=4)


class TestBackupDocument:
    """Tests for the camelCase backup conversion."""

    def test_trade_keys_are_camel_case(self) -> None:
        data = trade_to_dict(make_state().real.trades[0])

        assert data["positionType"] == "Short"
        assert data["targetFormulaIds"] == ["f1"]
        assert data["pnl"] == pytest.approx(100.0)
        assert data["outcome"] == "Win"
        assert "parentId" not in data

    def test_round_trip_preserves_state(self) -> None:
        state = make_state()

        restored = state_from_dict(json.loads(json.dumps(state_to_dict(state))))

        assert restored.real.trades == [enrich_trade(t) for t in state.real.trades]
        assert restored.real.edges == state.real.edges
        assert restored.real.formulas == state.real.formulas
        assert restored.real.logical_edge_flows == state.real.logical_edge_flows
        assert restored.real.recurring_blocks == state.real.recurring_blocks
        assert restored.real.conditions["emaStatuses"] == [ConditionOption(id="c1", name="Positive")]
        assert restored.real.extra == {"customSection": [1, 2, 3]}
        assert restored.long_trade_limit == 4
        assert restored.short_trade_limit == 10

    def test_stored_outcome_is_recomputed(self) -> None:
        data = state_to_dict(make_state())
        data["real"]["trades"][0]["pnl"] = -1.0
        data["real"]["trades"][0]["outcome"] = "Loss"

        restored = state_from_dict(data)

        assert restored.real.trades[0].pnl == pytest.approx(100.0)
        assert restored.real.trades[0].outcome == Outcome.WIN

    def test_rejects_non_object(self) -> None:
        with pytest.raises(ValueError):
            state_from_dict([])


class TestBackupStore:
    """Tests for BackupStore file I/O."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> BackupStore:
        return BackupStore(JournalSettings(data_dir=str(tmp_path / "journal")))

    async def test_save_and_load(self, store: BackupStore) -> None:
        path = await store.save(make_state())

        assert path == store.path
        assert path.exists()
        loaded = await store.load()
        assert loaded.real.trades[0].id == "t1"
        assert loaded.real.edges[0].entries[0].name == "First"

    async def test_missing_file_gives_empty_state(self, store: BackupStore) -> None:
        state = await store.load()
        assert state.real.trades == []
        assert state.theoretical.trades == []

    async def test_invalid_backup_raises(self, store: BackupStore, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"real": {"trades": [{"id": "x"}]}}))

        with pytest.raises(ValueError, match="Invalid journal backup"):
            await store.load(path)

    async def test_malformed_json_raises(self, store: BackupStore, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError):
            await store.load(path)
