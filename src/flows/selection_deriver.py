# src/flows/selection_deriver.py
"""Derive condition selections from confirmed time blocks."""
from dataclasses import dataclass, replace
from datetime import date

from src.flows.models import (
    ConditionSelections,
    DayType,
    EdgeFreeze,
    EmaStatus,
    OptionType,
    TimeBlock,
)

E15_CONDITION = "E(15)"
E5_CONDITION = "E(5)"
CANDLE_CLOSE_CONDITIONS = ("1st 5 Min Close", "1st 15 Min Close")

UNKNOWN_CONDITION = "Unknown"


@dataclass(frozen=True)
class ConfirmedBlock:
    """A time block with the condition confirmed for one day."""

    time: str
    condition_type: str
    condition_id: str
    condition_name: str


def confirmed_blocks(
    blocks: list[TimeBlock],
    condition_names: dict[str, str],
    day: date | str,
) -> list[ConfirmedBlock]:
    """Blocks confirmed for ``day``, ordered by scheduled time.

    A block counts as confirmed only when it carries a daily override for
    the day.
    """
    key = day.isoformat() if isinstance(day, date) else day
    confirmed = []
    for block in blocks:
        condition_id = block.daily_overrides.get(key)
        if not condition_id:
            continue
        confirmed.append(
            ConfirmedBlock(
                time=block.time,
                condition_type=block.condition_type,
                condition_id=condition_id,
                condition_name=condition_names.get(condition_id, UNKNOWN_CONDITION),
            )
        )
    return sorted(confirmed, key=lambda b: b.time)


def _latest(blocks: list[ConfirmedBlock], condition_types: tuple[str, ...]) -> ConfirmedBlock | None:
    matching = [b for b in blocks if b.condition_type in condition_types]
    return matching[-1] if matching else None


def _ema_status(name: str) -> EmaStatus | None:
    if "positive" in name:
        return EmaStatus.POSITIVE
    if "negative" in name:
        return EmaStatus.NEGATIVE
    return None


def _day_type(name: str) -> DayType | None:
    if "beyond pdh" in name or "beyond pdl" in name:
        return DayType.TREND
    if "above cpr" in name or "below cpr" in name:
        return DayType.RANGE
    return None


def derive_selections(
    blocks: list[TimeBlock],
    condition_names: dict[str, str],
    day: date | str,
    current: ConditionSelections | None = None,
    freeze: EdgeFreeze | None = None,
) -> ConditionSelections:
    """Fill selections from the day's confirmed market conditions.

    The latest confirmed ``E(15)`` block sets option type and e15 status,
    the latest ``E(5)`` block sets e5 status and the latest first-candle
    close block sets the day type. Selections already made in ``current``
    are kept. An active freeze always overrides the edge and entry.

    Args:
        blocks: Time blocks scheduled for the day.
        condition_names: Condition id to display name.
        day: Day whose confirmations are read.
        current: Selections already made.
        freeze: Edge freeze active for the day.

    Returns:
        The merged selections.
    """
    selections = current or ConditionSelections()
    confirmed = confirmed_blocks(blocks, condition_names, day)

    updates: dict = {}

    e15_block = _latest(confirmed, (E15_CONDITION,))
    if e15_block is not None:
        status = _ema_status(e15_block.condition_name.lower())
        if status is not None:
            option_type = OptionType.CE if status is EmaStatus.POSITIVE else OptionType.PE
            if selections.option_type is None:
                updates["option_type"] = option_type
            if selections.e15_status is None:
                updates["e15_status"] = status

    e5_block = _latest(confirmed, (E5_CONDITION,))
    if e5_block is not None and selections.e5_status is None:
        status = _ema_status(e5_block.condition_name.lower())
        if status is not None:
            updates["e5_status"] = status

    close_block = _latest(confirmed, CANDLE_CLOSE_CONDITIONS)
    if close_block is not None and selections.day_type is None:
        day_type = _day_type(close_block.condition_name.lower())
        if day_type is not None:
            updates["day_type"] = day_type

    if freeze is not None:
        updates["edge_id"] = freeze.edge_id
        updates["selected_edge_entry_index"] = freeze.entry_index

    return replace(selections, **updates) if updates else selections
