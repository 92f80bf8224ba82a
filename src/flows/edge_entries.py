# src/flows/edge_entries.py
"""Which edge entries can be chosen under the current conditions."""
from dataclasses import dataclass

from src.flows.models import T3Condition
from src.journal.models import Edge, EdgeEntry

SPECIAL_EDGE_NAME = "S(15) BEG ABOVE = E(15)"

OPPOSITE_ENABLED_STRUCTURES = ("S(3) FORMED ONLY", "BOTH S(3) AND S(5) FORMED")

_SPECIAL_EDGE_ENTRY_INDICES = {
    T3Condition.T3_GTE_S15: frozenset(range(0, 6)),
    T3Condition.S15_GT_T3: frozenset({6, 7}),
}


@dataclass(frozen=True)
class IndexedEdgeEntry:
    """An edge entry together with its position in the edge's entry list."""

    original_index: int
    entry: EdgeEntry


def available_entries(
    edge: Edge | None,
    t3_condition: T3Condition | None = None,
    special_edge_name: str = SPECIAL_EDGE_NAME,
) -> list[IndexedEdgeEntry]:
    """Entries of ``edge`` selectable for a flow or the logical blocks.

    The special edge splits its entries by the T(3)/S(15) relation: the
    first six apply when T(3) >= S(15), entries seven and eight when
    S(15) > T(3). Without a T3 condition the special edge offers nothing.

    Args:
        edge: Selected edge, or None.
        t3_condition: Current T(3)/S(15) relation.
        special_edge_name: Name of the edge with T3-dependent entries.

    Returns:
        Entries with their original indices, in edge order.
    """
    if edge is None or not edge.entries:
        return []

    indexed = [IndexedEdgeEntry(original_index=i, entry=e) for i, e in enumerate(edge.entries)]
    if edge.name != special_edge_name:
        return indexed
    if t3_condition is None:
        return []

    allowed = _SPECIAL_EDGE_ENTRY_INDICES[t3_condition]
    return [item for item in indexed if item.original_index in allowed]


def opposite_edge_enabled(
    opposite_side_structure: str,
    enabled_structures: tuple[str, ...] = OPPOSITE_ENABLED_STRUCTURES,
) -> bool:
    """Whether the opposite-side structure allows choosing an opposite edge."""
    return opposite_side_structure in enabled_structures
