# src/flows/matcher.py
"""Selection of the applicable Logical Edge Flow for current conditions."""
from itertools import product
from typing import Iterable, Iterator, TypeVar

from src.flows.models import (
    BreakTime,
    ConditionSelections,
    DayType,
    EdgeFreeze,
    EmaStatus,
    FollowUpKind,
    LogicalEdgeFlow,
    OptionType,
)

T = TypeVar("T")

IndexKey = tuple[OptionType, DayType, BreakTime, EmaStatus, EmaStatus]


def _allows(allowed: tuple[T, ...], value: T) -> bool:
    """An empty allow-list accepts any value."""
    return not allowed or value in allowed


def _matches_structures(flow: LogicalEdgeFlow, selections: ConditionSelections) -> bool:
    if not _allows(flow.current_side_structure, selections.current_side_structure):
        return False
    if not _allows(flow.opposite_side_structure, selections.opposite_side_structure):
        return False
    if flow.t3_condition is not None and flow.t3_condition != selections.t3_condition:
        return False
    return True


def _matches_freeze(flow: LogicalEdgeFlow, freeze: EdgeFreeze | None) -> bool:
    """Frozen edge and entry are hard constraints on top of the field checks."""
    if freeze is None:
        return True
    if flow.edge_id != freeze.edge_id:
        return False
    if freeze.entry_index is not None and flow.selected_edge_entry_index != freeze.entry_index:
        return False
    return True


def flow_matches(
    flow: LogicalEdgeFlow,
    selections: ConditionSelections,
    freeze: EdgeFreeze | None = None,
) -> bool:
    """Check whether a single flow accepts the selections.

    Args:
        flow: Flow to test.
        selections: Current condition selections, assumed complete.
        freeze: Active edge freeze, if any.

    Returns:
        True when every constrained field and the freeze are satisfied.
    """
    return (
        _allows(flow.option_types, selections.option_type)
        and _allows(flow.day_types, selections.day_type)
        and _allows(flow.break_times, selections.break_time)
        and _allows(flow.e15_statuses, selections.e15_status)
        and _allows(flow.e5_statuses, selections.e5_status)
        and _matches_structures(flow, selections)
        and _matches_freeze(flow, freeze)
    )


def matching_flows(
    selections: ConditionSelections,
    flows: Iterable[LogicalEdgeFlow],
    freeze: EdgeFreeze | None = None,
) -> list[LogicalEdgeFlow]:
    """All flows accepting the selections, in list order.

    An incomplete selection matches nothing.
    """
    if not selections.is_complete:
        return []
    return [flow for flow in flows if flow_matches(flow, selections, freeze)]


def match_flow(
    selections: ConditionSelections,
    flows: Iterable[LogicalEdgeFlow],
    freeze: EdgeFreeze | None = None,
) -> LogicalEdgeFlow | None:
    """First flow in list order accepting the selections.

    Args:
        selections: Current condition selections.
        flows: Candidate flows; their order decides ties.
        freeze: Active edge freeze, if any.

    Returns:
        The matched flow, or None when the selection is incomplete or no
        flow applies.
    """
    if not selections.is_complete:
        return None
    return next((flow for flow in flows if flow_matches(flow, selections, freeze)), None)


def _domain(allowed: tuple[T, ...], every: Iterable[T]) -> tuple[T, ...]:
    return allowed if allowed else tuple(every)


def _index_keys(flow: LogicalEdgeFlow) -> Iterator[IndexKey]:
    """Every enum combination a flow's enum allow-lists accept."""
    return product(
        _domain(flow.option_types, OptionType),
        _domain(flow.day_types, DayType),
        _domain(flow.break_times, BreakTime),
        _domain(flow.e15_statuses, EmaStatus),
        _domain(flow.e5_statuses, EmaStatus),
    )


class FlowMatcher:
    """Matches selections against a fixed flow list.

    With ``use_index`` the enum-valued fields are pre-expanded into a lookup
    table of flow positions, so a match only checks the remaining string
    fields of candidates. Candidates keep their list order, so the result
    is identical to the linear scan in ``match_flow``.
    """

    def __init__(self, flows: Iterable[LogicalEdgeFlow], use_index: bool = True) -> None:
        self._flows = tuple(flows)
        self._index: dict[IndexKey, list[int]] | None = None
        if use_index:
            self._index = self._build_index()

    @property
    def flows(self) -> tuple[LogicalEdgeFlow, ...]:
        return self._flows

    def _build_index(self) -> dict[IndexKey, list[int]]:
        index: dict[IndexKey, list[int]] = {}
        for position, flow in enumerate(self._flows):
            for key in set(_index_keys(flow)):
                index.setdefault(key, []).append(position)
        return index

    def _candidates(self, selections: ConditionSelections) -> Iterator[LogicalEdgeFlow]:
        if self._index is None:
            yield from self._flows
            return

        key = (
            selections.option_type,
            selections.day_type,
            selections.break_time,
            selections.e15_status,
            selections.e5_status,
        )
        for position in self._index.get(key, []):
            yield self._flows[position]

    def match(
        self,
        selections: ConditionSelections,
        freeze: EdgeFreeze | None = None,
    ) -> LogicalEdgeFlow | None:
        """First applicable flow, or None. See ``match_flow``."""
        if not selections.is_complete:
            return None
        for flow in self._candidates(selections):
            if flow_matches(flow, selections, freeze):
                return flow
        return None

    def match_all(
        self,
        selections: ConditionSelections,
        freeze: EdgeFreeze | None = None,
    ) -> list[LogicalEdgeFlow]:
        """Every applicable flow in list order."""
        if not selections.is_complete:
            return []
        return [flow for flow in self._candidates(selections) if flow_matches(flow, selections, freeze)]


def follow_up_targets(flow: LogicalEdgeFlow, kind: FollowUpKind | None = None) -> tuple[str, ...]:
    """Target formula ids to apply after a flow's follow-up.

    The win and opposite follow-ups carry their own trend targets. Without
    a follow-up, or when it names no targets, the flow's own targets apply.
    """
    follow_up = None
    if kind is FollowUpKind.WIN:
        follow_up = flow.win_follow_up
    elif kind is FollowUpKind.OPPOSITE:
        follow_up = flow.opposite_follow_up

    if follow_up is not None and follow_up.trend_target_formula_ids:
        return follow_up.trend_target_formula_ids
    return flow.target_formula_ids
