# src/journal/trade_importer.py
"""Validation and conversion of CSV rows into journal trades."""
import csv
import io
import logging
import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable

import aiofiles
from dateutil import parser as date_parser

from src.journal.enrichment import enrich_trade
from src.journal.models import (
    Edge,
    ExpiryType,
    Formula,
    FormulaType,
    IndexType,
    PositionType,
    RulesFollowedStatus,
    Trade,
    TradeResult,
    TradeSource,
    naive_utc,
    validate_trade,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportField:
    """A trade field a CSV column can be mapped to."""

    key: str
    label: str
    required: bool = False


IMPORT_FIELDS = (
    ImportField("entry_time", "Entry Time", required=True),
    ImportField("exit_time", "Exit Time"),
    ImportField("position_type", "Position Type", required=True),
    ImportField("entry_price", "Entry Price", required=True),
    ImportField("quantity", "Quantity", required=True),
    ImportField("exit_price", "Exit Price"),
    ImportField("symbol", "Symbol"),
    ImportField("index", "Index"),
    ImportField("strike_price", "Strike Price"),
    ImportField("strategy_id", "Edge"),
    ImportField("entry_formula_id", "Entry Formula"),
    ImportField("stop_loss_formula_id", "Stop Loss Formula"),
    ImportField("target_formula_id", "Target Formula"),
    ImportField("rules_followed", "RULES FOLLOW"),
    ImportField("expiry_type", "Expiry Type"),
    ImportField("notes", "Notes"),
    ImportField("sl", "SL (Stop Loss)"),
    ImportField("target", "Target"),
    ImportField("result", "Result"),
)

_DAY_FIRST = re.compile(r"^\d{1,2}[/\-]\d{1,2}[/\-]\d{4}(?:$|[ T])")
_YEAR_FIRST = re.compile(r"^\d{4}[/\-]\d{1,2}[/\-]\d{1,2}(?:$|[ T])")


@dataclass(frozen=True)
class ImportRowResult:
    """Outcome of converting one CSV row.

    Attributes:
        success: Whether the row produced a trade.
        trade: The trade, None when the row was rejected.
        errors: Every problem found in the row.
        row: The raw row as read.
    """

    success: bool
    trade: Trade | None
    errors: tuple[str, ...] = ()
    row: dict[str, str] = field(default_factory=dict)


def _normalize_header(text: str) -> str:
    return re.sub(r"[\s_]", "", text.lower())


def parse_date_string(value: str) -> datetime | None:
    """Parse a day-first, year-first or ISO 8601 timestamp.

    ``DD/MM/YYYY`` and ``YYYY-MM-DD`` accept ``/`` or ``-`` separators and an
    optional time. Values carrying an offset are converted to UTC and every
    result is naive, like the rest of the journal. Impossible calendar dates
    are rejected rather than rolled over.

    Returns:
        The parsed timestamp, or None when no format applies.
    """
    value = value.strip()
    if _DAY_FIRST.match(value):
        day_first = True
    elif _YEAR_FIRST.match(value):
        day_first = False
    else:
        return None

    try:
        parsed = date_parser.parse(value, dayfirst=day_first, yearfirst=not day_first)
    except (ValueError, OverflowError):
        return None
    return naive_utc(parsed)


def _parse_number(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise ValueError("must be a valid number.") from None
    if not math.isfinite(number):
        raise ValueError("must be a valid number.")
    return number


class TradeImporter:
    """Turns mapped CSV rows into validated trades.

    Edge and formula columns hold names. They are resolved to ids
    case-insensitively against the catalogs given at construction.
    """

    def __init__(self, edges: Iterable[Edge] = (), formulas: Iterable[Formula] = ()) -> None:
        formulas = list(formulas)
        self._edges = {e.name.lower(): e.id for e in edges}
        self._entry_formulas = {f.name.lower(): f.id for f in formulas if f.type.is_entry}
        self._stop_loss_formulas = {
            f.name.lower(): f.id for f in formulas if f.type is FormulaType.STOP_LOSS
        }
        self._target_formulas = {
            f.name.lower(): f.id for f in formulas if f.type is FormulaType.TARGET
        }

    def auto_map(self, headers: Iterable[str]) -> dict[str, str | None]:
        """Match CSV headers to fields by label, ignoring case, spaces and underscores."""
        headers = list(headers)
        mapping: dict[str, str | None] = {}
        for import_field in IMPORT_FIELDS:
            wanted = _normalize_header(import_field.label)
            mapping[import_field.key] = next(
                (h for h in headers if _normalize_header(h) == wanted), None
            )
        return mapping

    def _convert(self, key: str, value: str) -> object:
        if key in ("entry_price", "exit_price", "sl", "target"):
            return _parse_number(value)
        if key == "quantity":
            number = _parse_number(value)
            if not number.is_integer():
                raise ValueError("must be a whole number.")
            return int(number)
        if key in ("entry_time", "exit_time"):
            parsed = parse_date_string(value)
            if parsed is None:
                raise ValueError("is not a valid date/time. Use DD/MM/YYYY HH:mm or a standard format.")
            return parsed
        if key == "position_type":
            lowered = value.lower()
            if "long" in lowered:
                return PositionType.LONG
            if "short" in lowered:
                return PositionType.SHORT
            raise ValueError('must contain "Long" or "Short".')
        if key == "index":
            try:
                return IndexType(value.upper())
            except ValueError:
                raise ValueError('must be "NIFTY" or "SENSEX".') from None
        if key == "strategy_id":
            return self._lookup(self._edges, value, "edge")
        if key == "entry_formula_id":
            return self._lookup(self._entry_formulas, value, "entry formula")
        if key == "stop_loss_formula_id":
            return self._lookup(self._stop_loss_formulas, value, "stop loss formula")
        if key == "target_formula_id":
            return self._lookup(self._target_formulas, value, "target formula")
        if key == "rules_followed":
            return self._enum(RulesFollowedStatus, value)
        if key == "expiry_type":
            return self._enum(ExpiryType, value)
        if key == "result":
            return self._enum(TradeResult, value)
        return value

    @staticmethod
    def _lookup(catalog: dict[str, str], value: str, kind: str) -> str:
        found = catalog.get(value.lower())
        if found is None:
            raise ValueError(f'{kind} "{value}" not found.')
        return found

    @staticmethod
    def _enum(enum_type, value: str):
        for member in enum_type:
            if member.value.lower() == value.lower():
                return member
        allowed = ", ".join(f'"{m.value}"' for m in enum_type)
        raise ValueError(f"must be one of {allowed}.")

    def parse_row(self, row: dict[str, str], mapping: dict[str, str | None]) -> ImportRowResult:
        """Validate one row and build a trade from it.

        Args:
            row: CSV row keyed by header.
            mapping: Field key to CSV header.

        Returns:
            ImportRowResult listing every error found, or the new trade.
        """
        errors: list[str] = []
        values: dict[str, object] = {}

        for import_field in IMPORT_FIELDS:
            header = mapping.get(import_field.key)
            raw = (row.get(header) or "").strip() if header else ""
            if not raw:
                if import_field.required:
                    errors.append(f'Required field "{import_field.label}" is missing.')
                continue
            try:
                values[import_field.key] = self._convert(import_field.key, raw)
            except ValueError as e:
                errors.append(f'Field "{import_field.label}" {e}')

        if errors:
            return ImportRowResult(success=False, trade=None, errors=tuple(errors), row=row)

        stop_loss_id = values.pop("stop_loss_formula_id", None)
        target_id = values.pop("target_formula_id", None)
        trade = Trade(
            id=f"t-{uuid.uuid4().hex}",
            stop_loss_formula_ids=(stop_loss_id,) if stop_loss_id else (),
            target_formula_ids=(target_id,) if target_id else (),
            source=TradeSource.HISTORICAL,
            **values,
        )
        try:
            validate_trade(trade)
        except ValueError as e:
            return ImportRowResult(success=False, trade=None, errors=(str(e),), row=row)

        return ImportRowResult(success=True, trade=enrich_trade(trade), row=row)

    def parse_csv(self, text: str, mapping: dict[str, str | None] | None = None) -> list[ImportRowResult]:
        """Parse CSV text with a header row.

        Blank lines are skipped. Without a mapping the headers are auto-mapped.

        Raises:
            ValueError: If the text has no header row or no data rows.
        """
        reader = csv.DictReader(io.StringIO(text))
        rows = [r for r in reader if any(isinstance(v, str) and v.strip() for v in r.values())]
        if not reader.fieldnames or not rows:
            raise ValueError("Could not read headers or file is empty.")

        mapping = mapping if mapping is not None else self.auto_map(reader.fieldnames)
        results = [self.parse_row(row, mapping) for row in rows]

        accepted = sum(1 for r in results if r.success)
        logger.info(f"Parsed {len(results)} CSV rows: {accepted} valid, {len(results) - accepted} rejected")
        return results

    async def read_file(self, path: Path, mapping: dict[str, str | None] | None = None) -> list[ImportRowResult]:
        """Read and parse a CSV file."""
        async with aiofiles.open(path, "r", newline="") as f:
            content = await f.read()
        return self.parse_csv(content, mapping)
