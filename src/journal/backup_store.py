# src/journal/backup_store.py
"""JSON backup of the full journal state."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles

from src.flows.models import TimeBlock
from src.flows.serialization import flow_from_dict, flow_to_dict
from src.journal.enrichment import enrich_trade
from src.journal.models import (
    Edge,
    EdgeCategory,
    EdgeEntry,
    ExpiryType,
    Formula,
    FormulaSide,
    FormulaSubType,
    FormulaType,
    IndexType,
    PositionType,
    RulesFollowedStatus,
    Trade,
    TradeLogEntry,
    TradeLoggingMode,
    TradeResult,
    TradeSource,
    naive_utc,
)
from src.journal.settings import JournalSettings
from src.journal.state import (
    CONDITION_CATALOGS,
    DEFAULT_TRADE_LIMIT,
    ConditionOption,
    JournalState,
    ModeData,
)

logger = logging.getLogger(__name__)

_MODELED_SECTIONS = frozenset(
    {"trades", "edges", "formulas", "logicalEdgeFlows", "recurringBlocks", *CONDITION_CATALOGS}
)


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _enum_or_none(enum_type, value):
    return enum_type(value) if value else None


def log_entry_to_dict(entry: TradeLogEntry) -> dict[str, Any]:
    data: dict[str, Any] = {"timestamp": entry.timestamp.isoformat(), "event": entry.event}
    if entry.notes is not None:
        data["notes"] = entry.notes
    if entry.details:
        data["details"] = entry.details
    return data


def log_entry_from_dict(data: dict[str, Any]) -> TradeLogEntry:
    return TradeLogEntry(
        timestamp=_parse_time(data["timestamp"]),
        event=data["event"],
        notes=data.get("notes"),
        details=data.get("details") or {},
    )


def trade_to_dict(trade: Trade) -> dict[str, Any]:
    """Convert a trade to its backup form, derived fields included."""
    trade = enrich_trade(trade)
    data: dict[str, Any] = {
        "id": trade.id,
        "parentId": trade.parent_id,
        "positionType": trade.position_type.value,
        "index": trade.index.value if trade.index else None,
        "strikePrice": trade.strike_price,
        "entryPrice": trade.entry_price,
        "exitPrice": trade.exit_price,
        "quantity": trade.quantity,
        "entryTime": trade.entry_time.isoformat(),
        "exitTime": trade.exit_time.isoformat() if trade.exit_time else None,
        "strategyId": trade.strategy_id,
        "rulesFollowed": trade.rules_followed.value if trade.rules_followed else None,
        "notes": trade.notes,
        "expiryType": trade.expiry_type.value,
        "entryFormulaId": trade.entry_formula_id,
        "stopLossFormulaIds": list(trade.stop_loss_formula_ids),
        "targetFormulaIds": list(trade.target_formula_ids),
        "exitFormulaId": trade.exit_formula_id,
        "screenshotDataUri": trade.screenshot_uri,
        "sl": trade.sl,
        "target": trade.target,
        "result": trade.result.value if trade.result else None,
        "source": trade.source.value if trade.source else None,
        "log": [log_entry_to_dict(e) for e in trade.log],
        "executionMode": trade.execution_mode.value if trade.execution_mode else None,
        "closeMode": trade.close_mode.value if trade.close_mode else None,
        "sourceEdgeEntryIndex": trade.source_edge_entry_index,
        "symbol": trade.symbol,
        "sourceFlowId": trade.source_flow_id,
        "pnl": trade.pnl,
        "outcome": trade.outcome.value if trade.outcome else None,
    }
    return {k: v for k, v in data.items() if v is not None}


def trade_from_dict(data: dict[str, Any]) -> Trade:
    """Build a trade from its backup form.

    Stored ``pnl`` and ``outcome`` are ignored and derived again.
    """
    trade = Trade(
        id=data["id"],
        parent_id=data.get("parentId"),
        position_type=PositionType(data["positionType"]),
        index=_enum_or_none(IndexType, data.get("index")),
        strike_price=data.get("strikePrice") or "",
        entry_price=float(data["entryPrice"]),
        exit_price=float(data["exitPrice"]) if data.get("exitPrice") is not None else None,
        quantity=int(data["quantity"]),
        entry_time=_parse_time(data["entryTime"]),
        exit_time=_parse_time(data.get("exitTime")),
        strategy_id=data.get("strategyId") or "",
        rules_followed=_enum_or_none(RulesFollowedStatus, data.get("rulesFollowed")),
        notes=data.get("notes"),
        expiry_type=ExpiryType(data.get("expiryType") or ExpiryType.NON_EXPIRY.value),
        entry_formula_id=data.get("entryFormulaId") or "",
        stop_loss_formula_ids=tuple(data.get("stopLossFormulaIds") or ()),
        target_formula_ids=tuple(data.get("targetFormulaIds") or ()),
        exit_formula_id=data.get("exitFormulaId") or None,
        screenshot_uri=data.get("screenshotDataUri"),
        sl=data.get("sl"),
        target=data.get("target"),
        result=_enum_or_none(TradeResult, data.get("result")),
        source=_enum_or_none(TradeSource, data.get("source")),
        log=tuple(log_entry_from_dict(e) for e in data.get("log") or ()),
        execution_mode=_enum_or_none(TradeLoggingMode, data.get("executionMode")),
        close_mode=_enum_or_none(TradeLoggingMode, data.get("closeMode")),
        source_edge_entry_index=data.get("sourceEdgeEntryIndex"),
        symbol=data.get("symbol"),
        source_flow_id=data.get("sourceFlowId"),
    )
    return enrich_trade(trade)


def edge_to_dict(edge: Edge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "name": edge.name,
        "category": edge.category.value,
        "description": edge.description,
        "rules": list(edge.rules),
        "entries": [
            {
                "id": entry.id,
                "name": entry.name,
                "entryFormulaIds": list(entry.entry_formula_ids),
                "stopLossFormulaIds": list(entry.stop_loss_formula_ids),
                "targetFormulaIds": list(entry.target_formula_ids),
            }
            for entry in edge.entries
        ],
    }


def edge_from_dict(data: dict[str, Any]) -> Edge:
    return Edge(
        id=data["id"],
        name=data["name"],
        category=EdgeCategory(data.get("category") or EdgeCategory.TREND_SIDE.value),
        description=data.get("description"),
        rules=tuple(data.get("rules") or ()),
        entries=tuple(
            EdgeEntry(
                id=entry["id"],
                name=entry["name"],
                entry_formula_ids=tuple(entry.get("entryFormulaIds") or ()),
                stop_loss_formula_ids=tuple(entry.get("stopLossFormulaIds") or ()),
                target_formula_ids=tuple(entry.get("targetFormulaIds") or ()),
            )
            for entry in data.get("entries") or ()
        ),
    )


def formula_to_dict(formula: Formula) -> dict[str, Any]:
    return {
        "id": formula.id,
        "name": formula.name,
        "type": formula.type.value,
        "subType": formula.sub_type.value if formula.sub_type else None,
        "positionType": formula.position_type.value,
        "description": formula.description,
    }


def formula_from_dict(data: dict[str, Any]) -> Formula:
    return Formula(
        id=data["id"],
        name=data["name"],
        type=FormulaType(data["type"]),
        sub_type=_enum_or_none(FormulaSubType, data.get("subType")),
        position_type=FormulaSide(data.get("positionType") or FormulaSide.BOTH.value),
        description=data.get("description"),
    )


def time_block_to_dict(block: TimeBlock) -> dict[str, Any]:
    return {
        "id": block.id,
        "time": block.time,
        "conditionType": block.condition_type,
        "conditionId": block.condition_id,
        "isFrozen": block.is_frozen,
        "dailyOverrides": dict(block.daily_overrides),
    }


def time_block_from_dict(data: dict[str, Any]) -> TimeBlock:
    return TimeBlock(
        id=data["id"],
        time=data["time"],
        condition_type=data.get("conditionType") or "",
        condition_id=data.get("conditionId") or "",
        is_frozen=bool(data.get("isFrozen", False)),
        daily_overrides=dict(data.get("dailyOverrides") or {}),
    )


def _mode_to_dict(section: ModeData) -> dict[str, Any]:
    data: dict[str, Any] = dict(section.extra)
    data["trades"] = [trade_to_dict(t) for t in section.trades]
    data["edges"] = [edge_to_dict(e) for e in section.edges]
    data["formulas"] = [formula_to_dict(f) for f in section.formulas]
    data["logicalEdgeFlows"] = [flow_to_dict(f) for f in section.logical_edge_flows]
    data["recurringBlocks"] = [time_block_to_dict(b) for b in section.recurring_blocks]
    for catalog in CONDITION_CATALOGS:
        data[catalog] = [{"id": o.id, "name": o.name} for o in section.conditions.get(catalog, [])]
    return data


def _mode_from_dict(data: dict[str, Any] | None) -> ModeData:
    data = data or {}
    return ModeData(
        trades=[trade_from_dict(t) for t in data.get("trades") or ()],
        edges=[edge_from_dict(e) for e in data.get("edges") or ()],
        formulas=[formula_from_dict(f) for f in data.get("formulas") or ()],
        logical_edge_flows=[flow_from_dict(f) for f in data.get("logicalEdgeFlows") or ()],
        recurring_blocks=[time_block_from_dict(b) for b in data.get("recurringBlocks") or ()],
        conditions={
            catalog: [ConditionOption(id=o["id"], name=o["name"]) for o in data.get(catalog) or ()]
            for catalog in CONDITION_CATALOGS
        },
        extra={k: v for k, v in data.items() if k not in _MODELED_SECTIONS},
    )


def state_to_dict(state: JournalState) -> dict[str, Any]:
    """Convert the journal state to the backup document."""
    return {
        "real": _mode_to_dict(state.real),
        "theoretical": _mode_to_dict(state.theoretical),
        "longTradeLimit": state.long_trade_limit,
        "shortTradeLimit": state.short_trade_limit,
    }


def state_from_dict(data: dict[str, Any]) -> JournalState:
    """Restore the journal state from a backup document.

    Raises:
        ValueError: If the document is not an object or holds invalid values.
    """
    if not isinstance(data, dict):
        raise ValueError("Backup must be a JSON object")
    return JournalState(
        real=_mode_from_dict(data.get("real")),
        theoretical=_mode_from_dict(data.get("theoretical")),
        long_trade_limit=data.get("longTradeLimit", DEFAULT_TRADE_LIMIT),
        short_trade_limit=data.get("shortTradeLimit", DEFAULT_TRADE_LIMIT),
    )


class BackupStore:
    """Reads and writes the journal backup file.

    The backup lives at ``{data_dir}/{backup_filename}``.
    """

    def __init__(self, settings: JournalSettings) -> None:
        """Initialize the backup store.

        Args:
            settings: Journal configuration settings.
        """
        self._settings = settings
        self._data_dir = Path(settings.data_dir)

    @property
    def path(self) -> Path:
        return self._data_dir / self._settings.backup_filename

    async def save(self, state: JournalState, path: Path | None = None) -> Path:
        """Write the state as indented JSON.

        Args:
            state: Journal state to back up.
            path: Target file, defaults to the configured backup path.

        Returns:
            The path written.
        """
        target = Path(path) if path else self.path
        target.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(state_to_dict(state), indent=2)
        async with aiofiles.open(target, "w") as f:
            await f.write(content)
        logger.info(f"Saved journal backup to {target}")
        return target

    async def load(self, path: Path | None = None) -> JournalState:
        """Read a backup file.

        A missing file yields an empty state.

        Raises:
            ValueError: If the file is not a valid backup.
        """
        source = Path(path) if path else self.path
        if not source.exists():
            logger.info(f"No journal backup at {source}, starting empty")
            return JournalState()

        async with aiofiles.open(source, "r") as f:
            content = await f.read()

        try:
            state = state_from_dict(json.loads(content))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid journal backup {source}: {e}")
            raise ValueError(f"Invalid journal backup {source}: {e}") from e

        logger.info(
            f"Loaded journal backup {source}: "
            f"{len(state.real.trades)} real, {len(state.theoretical.trades)} theoretical trades"
        )
        return state
