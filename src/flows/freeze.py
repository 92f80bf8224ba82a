# src/flows/freeze.py
"""Per-day edge freeze bookkeeping."""
import logging
from datetime import date, datetime

from src.flows.models import EdgeFreeze

logger = logging.getLogger(__name__)


def _day_key(day: date | str) -> str:
    if isinstance(day, datetime):
        day = day.date()
    return day.isoformat() if isinstance(day, date) else day


class FreezeRegistry:
    """Tracks which edge and entry are pinned for each trading day.

    Days are keyed by ISO date (``YYYY-MM-DD``). Datetimes are reduced to
    their date first.
    """

    def __init__(self, freezes: dict[str, EdgeFreeze] | None = None) -> None:
        self._freezes: dict[str, EdgeFreeze] = dict(freezes or {})

    def freeze(self, day: date | str, edge_id: str, entry_index: int | None) -> EdgeFreeze:
        """Pin an edge and entry for a day.

        Raises:
            ValueError: If the edge or the entry index is missing.
        """
        if not edge_id or entry_index is None:
            raise ValueError("Both an edge and an edge entry must be selected to freeze")
        key = _day_key(day)
        frozen = EdgeFreeze(edge_id=edge_id, entry_index=entry_index)
        self._freezes[key] = frozen
        logger.info(f"Froze edge {edge_id} entry {entry_index} for {key}")
        return frozen

    def unfreeze(self, day: date | str) -> None:
        key = _day_key(day)
        if self._freezes.pop(key, None) is not None:
            logger.info(f"Unfroze edge for {key}")

    def get(self, day: date | str) -> EdgeFreeze | None:
        return self._freezes.get(_day_key(day))

    def is_frozen(self, day: date | str) -> bool:
        return _day_key(day) in self._freezes

    def as_dict(self) -> dict[str, EdgeFreeze]:
        return dict(self._freezes)
