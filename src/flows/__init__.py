# src/flows/__init__.py
"""Logical Edge Flow matching and selection helpers."""

from .edge_entries import IndexedEdgeEntry, available_entries, opposite_edge_enabled
from .freeze import FreezeRegistry
from .matcher import FlowMatcher, follow_up_targets, match_flow, matching_flows
from .models import (
    BreakTime,
    ConditionSelections,
    DayType,
    EdgeFreeze,
    EmaStatus,
    FlowFollowUp,
    FlowParameter,
    FlowResultType,
    FollowUpKind,
    LogicalEdgeFlow,
    OptionType,
    T3Condition,
    TimeBlock,
)
from .selection_deriver import derive_selections
from .serialization import dump_flows_json, flow_from_dict, flow_to_dict, load_flows_json
from .settings import FlowSettings

__all__ = [
    "BreakTime",
    "ConditionSelections",
    "DayType",
    "EdgeFreeze",
    "EmaStatus",
    "FlowFollowUp",
    "FlowMatcher",
    "FlowParameter",
    "FlowResultType",
    "FlowSettings",
    "FollowUpKind",
    "FreezeRegistry",
    "IndexedEdgeEntry",
    "LogicalEdgeFlow",
    "OptionType",
    "T3Condition",
    "TimeBlock",
    "available_entries",
    "derive_selections",
    "dump_flows_json",
    "flow_from_dict",
    "flow_to_dict",
    "follow_up_targets",
    "load_flows_json",
    "match_flow",
    "matching_flows",
    "opposite_edge_enabled",
]
