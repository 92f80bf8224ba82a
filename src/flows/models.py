# src/flows/models.py
"""Data models for Logical Edge Flows and condition selections."""
from dataclasses import dataclass, field
from enum import Enum


class OptionType(str, Enum):
    """Option side of the trend."""

    CE = "CE"
    PE = "PE"


class DayType(str, Enum):
    """Market day classification."""

    RANGE = "Range"
    TREND = "Trend"


class BreakTime(str, Enum):
    """When the opening range broke."""

    BEFORE_12 = "Before 12"
    AFTER_12 = "After 12"
    NO_BREAK = "NO BREAK"


class EmaStatus(str, Enum):
    """Position of price relative to an EMA."""

    POSITIVE = "Positive"
    NEGATIVE = "Negative"


class T3Condition(str, Enum):
    """Numeric relation between T(3) and S(15)."""

    T3_GTE_S15 = "T(3) >= S(15)"
    S15_GT_T3 = "S(15) > T(3)"


class FlowResultType(str, Enum):
    """Outcome a flow is authored for."""

    WIN = "Win"
    LOSS = "Loss"


class FollowUpKind(str, Enum):
    """Follow-up branch of a flow."""

    WIN = "win"
    LOSS = "loss"
    OPPOSITE = "opposite"


@dataclass(frozen=True)
class FlowParameter:
    """Free-form key/value attached to a flow or follow-up."""

    key: str
    value: str


@dataclass(frozen=True)
class FlowFollowUp:
    """Action to take after a flow's initial trade resolves."""

    next_edge_id: str | None = None
    selected_edge_entry_index: int | None = None
    notes: str | None = None
    trend_target_status: str | None = None
    trend_target_formula_ids: tuple[str, ...] = ()
    trend_target_parameters: tuple[FlowParameter, ...] = ()
    trend_target2_status: str | None = None
    trend_target2_formula_ids: tuple[str, ...] = ()
    trend_target2_parameters: tuple[FlowParameter, ...] = ()


@dataclass(frozen=True)
class LogicalEdgeFlow:
    """A rule mapping market-condition selections to an edge and targets.

    Each allow-list constrains one selection field. An empty allow-list
    means the field accepts any value.
    """

    id: str
    name: str
    result_type: FlowResultType = FlowResultType.WIN

    edge_id: str | None = None
    selected_edge_entry_index: int | None = None

    option_types: tuple[OptionType, ...] = ()
    day_types: tuple[DayType, ...] = ()
    break_times: tuple[BreakTime, ...] = ()
    e15_statuses: tuple[EmaStatus, ...] = ()
    e5_statuses: tuple[EmaStatus, ...] = ()
    current_side_structure: tuple[str, ...] = ()
    opposite_side_structure: tuple[str, ...] = ()
    t3_condition: T3Condition | None = None

    opposite_option_types: tuple[OptionType, ...] = ()
    opposite_edge_id: str | None = None
    opposite_selected_edge_entry_index: int | None = None

    target_formula_ids: tuple[str, ...] = ()
    parameters: tuple[FlowParameter, ...] = ()
    notes: str | None = None

    win_follow_up: FlowFollowUp | None = None
    loss_follow_up: FlowFollowUp | None = None
    opposite_follow_up: FlowFollowUp | None = None


@dataclass(frozen=True)
class ConditionSelections:
    """Current market-state selections a flow is matched against."""

    option_type: OptionType | None = None
    day_type: DayType | None = None
    break_time: BreakTime | None = None
    e15_status: EmaStatus | None = None
    e5_status: EmaStatus | None = None
    current_side_structure: str = ""
    opposite_side_structure: str = ""
    t3_condition: T3Condition | None = None

    edge_id: str = ""
    selected_edge_entry_index: int | None = None
    opposite_option_type: OptionType | None = None
    opposite_edge_id: str = ""
    opposite_selected_edge_entry_index: int | None = None

    @property
    def is_complete(self) -> bool:
        """Whether every primary condition has a value."""
        return all(
            (
                self.option_type,
                self.day_type,
                self.break_time,
                self.e15_status,
                self.e5_status,
                self.current_side_structure,
                self.opposite_side_structure,
            )
        )


@dataclass(frozen=True)
class EdgeFreeze:
    """A pinned edge, and optionally entry, choice for a trading day."""

    edge_id: str
    entry_index: int | None = None


@dataclass(frozen=True)
class TimeBlock:
    """A scheduled condition check, confirmed per day via overrides.

    Attributes:
        id: Block identifier.
        time: Scheduled time as ``HH:mm``.
        condition_type: Condition catalog the block checks, e.g. ``E(15)``.
        condition_id: Default condition for the block.
        daily_overrides: Confirmed condition id per ``YYYY-MM-DD`` day.
    """

    id: str
    time: str
    condition_type: str
    condition_id: str = ""
    is_frozen: bool = False
    daily_overrides: dict[str, str] = field(default_factory=dict)
