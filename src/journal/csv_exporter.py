# src/journal/csv_exporter.py
"""CSV export of journal trades."""
import csv
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

import aiofiles

from src.journal.enrichment import enrich_trades, format_trade_duration
from src.journal.models import Edge, Formula, Trade

logger = logging.getLogger(__name__)

CSV_HEADERS = (
    "S.No.",
    "ID",
    "Symbol",
    "Position Type",
    "Index",
    "Strike Price",
    "Entry Price",
    "Exit Price",
    "Quantity",
    "Entry Time",
    "Exit Time",
    "Duration",
    "P&L",
    "Outcome",
    "Edge",
    "RULES FOLLOW",
    "Expiry Type",
    "Entry Formula",
    "Stop Loss Formulas",
    "Target Formulas",
    "SL",
    "Target",
    "Result",
    "Screenshot Data URI",
    "Notes",
)

UNKNOWN_EDGE = "Unknown Edge"
UNKNOWN_FORMULA = "Unknown Formula"
UNKNOWN_NAME = "Unknown"
FORMULA_SEPARATOR = " | "
TIME_FORMAT = "%d/%m/%Y, %H:%M:%S"


def _price(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else ""


def _number(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else str(value)


def _time(value: datetime | None) -> str:
    return value.strftime(TIME_FORMAT) if value else ""


class CsvExporter:
    """Writes trades as a spreadsheet-friendly CSV.

    Edge and formula ids are replaced by their names. Every data cell is
    quoted.
    """

    def __init__(self, edges: Iterable[Edge] = (), formulas: Iterable[Formula] = ()) -> None:
        self._edge_names = {e.id: e.name for e in edges}
        self._formula_names = {f.id: f.name for f in formulas}

    def _edge(self, trade: Trade) -> str:
        if not trade.strategy_id:
            return ""
        return self._edge_names.get(trade.strategy_id, UNKNOWN_EDGE)

    def _entry_formula(self, trade: Trade) -> str:
        if not trade.entry_formula_id:
            return ""
        return self._formula_names.get(trade.entry_formula_id, UNKNOWN_FORMULA)

    def _formula_list(self, formula_ids: tuple[str, ...]) -> str:
        return FORMULA_SEPARATOR.join(self._formula_names.get(fid) or UNKNOWN_NAME for fid in formula_ids)

    def build_rows(self, trades: Iterable[Trade]) -> list[list[str]]:
        """One row of cell text per trade, numbered from 1."""
        rows = []
        for number, trade in enumerate(enrich_trades(trades), start=1):
            rows.append(
                [
                    str(number),
                    trade.id,
                    trade.symbol or "",
                    trade.position_type.value,
                    trade.index.value if trade.index else "",
                    trade.strike_price or "",
                    _price(trade.entry_price),
                    _price(trade.exit_price),
                    str(trade.quantity),
                    _time(trade.entry_time),
                    _time(trade.exit_time),
                    format_trade_duration(trade.entry_time, trade.exit_time),
                    _price(trade.pnl or 0.0),
                    trade.outcome.value if trade.outcome else "",
                    self._edge(trade),
                    trade.rules_followed.value if trade.rules_followed else "",
                    trade.expiry_type.value,
                    self._entry_formula(trade),
                    self._formula_list(trade.stop_loss_formula_ids),
                    self._formula_list(trade.target_formula_ids),
                    _number(trade.sl),
                    _number(trade.target),
                    trade.result.value if trade.result else "",
                    trade.screenshot_uri or "",
                    trade.notes or "",
                ]
            )
        return rows

    def to_csv(self, trades: Iterable[Trade]) -> str:
        """Render the header line and the quoted data rows."""
        buffer = io.StringIO()
        buffer.write(",".join(CSV_HEADERS) + "\n")
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerows(self.build_rows(trades))
        return buffer.getvalue().rstrip("\n")

    async def write(self, trades: Iterable[Trade], path: Path) -> Path:
        """Write the CSV to ``path``, creating parent directories."""
        trades = list(trades)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", newline="") as f:
            await f.write(self.to_csv(trades))
        logger.info(f"Exported {len(trades)} trades to {path}")
        return path
