# src/flows/serialization.py
"""Conversion of Logical Edge Flows to and from their JSON form."""
import json
import uuid
from typing import Any

from src.flows.models import (
    BreakTime,
    DayType,
    EmaStatus,
    FlowFollowUp,
    FlowParameter,
    FlowResultType,
    LogicalEdgeFlow,
    OptionType,
    T3Condition,
)


def _parameters_to_list(parameters: tuple[FlowParameter, ...]) -> list[dict]:
    return [{"key": p.key, "value": p.value} for p in parameters]


def _parameters_from_list(data: list[dict] | None) -> tuple[FlowParameter, ...]:
    return tuple(FlowParameter(key=str(p["key"]), value=str(p["value"])) for p in data or [])


def follow_up_to_dict(follow_up: FlowFollowUp) -> dict[str, Any]:
    """Convert a follow-up to its camelCase dict, omitting unset fields."""
    data: dict[str, Any] = {
        "nextEdgeId": follow_up.next_edge_id,
        "selectedEdgeEntryIndex": follow_up.selected_edge_entry_index,
        "notes": follow_up.notes,
        "trendTargetStatus": follow_up.trend_target_status,
        "trendTargetFormulaIds": list(follow_up.trend_target_formula_ids),
        "trendTargetParameters": _parameters_to_list(follow_up.trend_target_parameters),
        "trendTarget2Status": follow_up.trend_target2_status,
        "trendTarget2FormulaIds": list(follow_up.trend_target2_formula_ids),
        "trendTarget2Parameters": _parameters_to_list(follow_up.trend_target2_parameters),
    }
    return {k: v for k, v in data.items() if v not in (None, [])}


def follow_up_from_dict(data: dict[str, Any] | None) -> FlowFollowUp | None:
    if not data:
        return None
    return FlowFollowUp(
        next_edge_id=data.get("nextEdgeId") or None,
        selected_edge_entry_index=data.get("selectedEdgeEntryIndex"),
        notes=data.get("notes"),
        trend_target_status=data.get("trendTargetStatus"),
        trend_target_formula_ids=tuple(data.get("trendTargetFormulaIds") or ()),
        trend_target_parameters=_parameters_from_list(data.get("trendTargetParameters")),
        trend_target2_status=data.get("trendTarget2Status"),
        trend_target2_formula_ids=tuple(data.get("trendTarget2FormulaIds") or ()),
        trend_target2_parameters=_parameters_from_list(data.get("trendTarget2Parameters")),
    )


def flow_to_dict(flow: LogicalEdgeFlow) -> dict[str, Any]:
    """Convert a flow to the camelCase dict used in backups and exports."""
    data: dict[str, Any] = {
        "id": flow.id,
        "name": flow.name,
        "resultType": flow.result_type.value,
        "edgeId": flow.edge_id,
        "selectedEdgeEntryIndex": flow.selected_edge_entry_index,
        "optionTypes": [v.value for v in flow.option_types],
        "dayTypes": [v.value for v in flow.day_types],
        "breakTimes": [v.value for v in flow.break_times],
        "e15Statuses": [v.value for v in flow.e15_statuses],
        "e5Statuses": [v.value for v in flow.e5_statuses],
        "currentSideStructure": list(flow.current_side_structure),
        "oppositeSideStructure": list(flow.opposite_side_structure),
        "t3Condition": flow.t3_condition.value if flow.t3_condition else None,
        "oppositeOptionTypes": [v.value for v in flow.opposite_option_types],
        "oppositeEdgeId": flow.opposite_edge_id,
        "oppositeSelectedEdgeEntryIndex": flow.opposite_selected_edge_entry_index,
        "targetFormulaIds": list(flow.target_formula_ids),
        "parameters": _parameters_to_list(flow.parameters),
        "notes": flow.notes,
    }
    for key, follow_up in (
        ("winFollowUp", flow.win_follow_up),
        ("lossFollowUp", flow.loss_follow_up),
        ("oppositeFollowUp", flow.opposite_follow_up),
    ):
        if follow_up is not None:
            data[key] = follow_up_to_dict(follow_up)
    return {k: v for k, v in data.items() if v is not None}


def flow_from_dict(data: dict[str, Any]) -> LogicalEdgeFlow:
    """Build a flow from its camelCase dict.

    A missing id is replaced with a fresh one.

    Raises:
        ValueError: If ``name`` or ``resultType`` is missing, or an enum
            value is not recognised.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Logical flow must be an object, got {type(data).__name__}")
    for required in ("name", "resultType"):
        if not data.get(required):
            raise ValueError(f"Logical flow is missing required field '{required}'")

    t3 = data.get("t3Condition")
    return LogicalEdgeFlow(
        id=data.get("id") or uuid.uuid4().hex,
        name=data["name"],
        result_type=FlowResultType(data["resultType"]),
        edge_id=data.get("edgeId") or None,
        selected_edge_entry_index=data.get("selectedEdgeEntryIndex"),
        option_types=tuple(OptionType(v) for v in data.get("optionTypes") or ()),
        day_types=tuple(DayType(v) for v in data.get("dayTypes") or ()),
        break_times=tuple(BreakTime(v) for v in data.get("breakTimes") or ()),
        e15_statuses=tuple(EmaStatus(v) for v in data.get("e15Statuses") or ()),
        e5_statuses=tuple(EmaStatus(v) for v in data.get("e5Statuses") or ()),
        current_side_structure=tuple(data.get("currentSideStructure") or ()),
        opposite_side_structure=tuple(data.get("oppositeSideStructure") or ()),
        t3_condition=T3Condition(t3) if t3 else None,
        opposite_option_types=tuple(OptionType(v) for v in data.get("oppositeOptionTypes") or ()),
        opposite_edge_id=data.get("oppositeEdgeId") or None,
        opposite_selected_edge_entry_index=data.get("oppositeSelectedEdgeEntryIndex"),
        target_formula_ids=tuple(data.get("targetFormulaIds") or ()),
        parameters=_parameters_from_list(data.get("parameters")),
        notes=data.get("notes"),
        win_follow_up=follow_up_from_dict(data.get("winFollowUp")),
        loss_follow_up=follow_up_from_dict(data.get("lossFollowUp")),
        opposite_follow_up=follow_up_from_dict(data.get("oppositeFollowUp")),
    )


def load_flows_json(text: str) -> list[LogicalEdgeFlow]:
    """Parse an exported array of flows.

    Raises:
        ValueError: If the text is not a non-empty JSON array of valid flows.
    """
    data = json.loads(text)
    if not isinstance(data, list) or not data:
        raise ValueError("File is empty or not a valid JSON array.")
    return [flow_from_dict(item) for item in data]


def dump_flows_json(flows: list[LogicalEdgeFlow]) -> str:
    return json.dumps([flow_to_dict(flow) for flow in flows], indent=2)
