# tests/flows/test_edge_entries.py
"""Tests for edge entry availability."""
from src.flows.edge_entries import SPECIAL_EDGE_NAME, available_entries, opposite_edge_enabled
from src.flows.models import T3Condition
from src.journal.models import Edge, EdgeEntry


def make_edge(name: str, entry_count: int) -> Edge:
    return Edge(
        id=name.lower(),
        name=name,
        entries=tuple(EdgeEntry(id=f"x{i}", name=f"Entry {i}") for i in range(entry_count)),
    )


class TestAvailableEntries:
    """Tests for available_entries."""

    def test_regular_edge_offers_everything(self) -> None:
        entries = available_entries(make_edge("Breakout", 3))
        assert [e.original_index for e in entries] == [0, 1, 2]

    def test_special_edge_t3_above(self) -> None:
        entries = available_entries(make_edge(SPECIAL_EDGE_NAME, 8), T3Condition.T3_GTE_S15)
        assert [e.original_index for e in entries] == [0, 1, 2, 3, 4, 5]

    def test_special_edge_s15_above(self) -> None:
        entries = available_entries(make_edge(SPECIAL_EDGE_NAME, 8), T3Condition.S15_GT_T3)
        assert [e.original_index for e in entries] == [6, 7]
        assert entries[0].entry.name == "Entry 6"

    def test_special_edge_without_t3(self) -> None:
        assert available_entries(make_edge(SPECIAL_EDGE_NAME, 8)) == []

    def test_missing_edge(self) -> None:
        assert available_entries(None) == []
        assert available_entries(make_edge("Empty", 0)) == []

    def test_custom_special_name(self) -> None:
        edge = make_edge("Custom", 8)
        entries = available_entries(edge, T3Condition.S15_GT_T3, special_edge_name="Custom")
        assert len(entries) == 2


class TestOppositeEdgeEnabled:
    def test_enabled_structures(self) -> None:
        assert opposite_edge_enabled("S(3) FORMED ONLY")
        assert opposite_edge_enabled("BOTH S(3) AND S(5) FORMED")
        assert not opposite_edge_enabled("NOTHING FORMED")
