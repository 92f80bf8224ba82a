# src/journal/journal_manager.py
"""Manager for orchestrating all journal components."""
import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable

import aiofiles

from src.filters.date_range import filter_by_date_range
from src.flows.edge_entries import IndexedEdgeEntry, available_entries, opposite_edge_enabled
from src.flows.matcher import FlowMatcher, follow_up_targets
from src.flows.models import (
    ConditionSelections,
    EdgeFreeze,
    FollowUpKind,
    LogicalEdgeFlow,
    T3Condition,
)
from src.flows.serialization import load_flows_json
from src.flows.settings import FlowSettings
from src.journal.backup_store import BackupStore
from src.journal.csv_exporter import CsvExporter
from src.journal.enrichment import enrich_trade
from src.journal.metrics_calculator import MetricsCalculator
from src.journal.models import (
    PARTIAL_EXIT_EVENT,
    CandlestickAggregation,
    DashboardMetrics,
    Edge,
    PeriodType,
    Trade,
    TradeLogEntry,
    TradeLoggingMode,
    TradeResult,
    TradingMode,
    validate_trade,
)
from src.journal.pattern_analyzer import PatternAnalyzer, TradeDimension
from src.journal.settings import JournalSettings
from src.journal.state import JournalState
from src.journal.streak_analyzer import StreakAnalyzer
from src.journal.time_series import PnlSeriesGenerator
from src.journal.trade_importer import ImportRowResult

logger = logging.getLogger(__name__)

POSITION_CLOSED_EVENT = "Position Closed Manually"
TARGET_UPDATED_EVENT = "Target Updated Automatically"


class JournalManager:
    """Orchestrates all journal components for trade logging and analysis.

    Holds the journal state explicitly and coordinates BackupStore,
    MetricsCalculator, PnlSeriesGenerator, StreakAnalyzer and PatternAnalyzer
    behind one interface.
    """

    def __init__(
        self,
        settings: JournalSettings,
        state: JournalState | None = None,
        flow_settings: FlowSettings | None = None,
    ) -> None:
        """Initialize the journal manager with all components.

        Args:
            settings: Journal configuration settings.
            state: Initial journal state, empty when omitted.
            flow_settings: Flow matching configuration, defaults when omitted.
        """
        self._settings = settings
        self._flow_settings = flow_settings or FlowSettings()
        self._state = state or JournalState()
        self._store = BackupStore(settings)
        self._metrics_calculator = MetricsCalculator(settings.fee_per_order)
        self._series = PnlSeriesGenerator(
            fee_per_order=settings.fee_per_order,
            decimals=settings.chart_decimals,
            week_start=settings.week_start_index,
        )
        self._streak_analyzer = StreakAnalyzer()
        self._pattern_analyzer = PatternAnalyzer()

    @property
    def state(self) -> JournalState:
        return self._state

    # Trade lifecycle

    def _find(self, trade_id: str, mode: TradingMode) -> tuple[int, Trade]:
        for position, trade in enumerate(self._state.for_mode(mode).trades):
            if trade.id == trade_id:
                return position, trade
        raise ValueError(f"Trade {trade_id} not found in {mode.value} journal")

    def _replace(self, mode: TradingMode, position: int, trade: Trade) -> None:
        self._state.for_mode(mode).trades[position] = trade

    def add_trade(self, trade: Trade, mode: TradingMode) -> Trade:
        """Validate, enrich and store a trade.

        Trades are kept newest entry first.

        Raises:
            ValueError: If the trade is invalid or its id already exists.
        """
        validate_trade(trade)
        section = self._state.for_mode(mode)
        if any(t.id == trade.id for t in section.trades):
            raise ValueError(f"Trade {trade.id} already exists in {mode.value} journal")

        enriched = enrich_trade(trade)
        trades = sorted([*section.trades, enriched], key=lambda t: t.entry_time, reverse=True)
        section.trades[:] = trades
        logger.info(f"Added {mode.value} trade {trade.id}")
        return enriched

    def import_trades(self, results: Iterable[ImportRowResult], mode: TradingMode) -> int:
        """Add every successfully parsed import row.

        Returns:
            Number of trades added.
        """
        added = 0
        for result in results:
            if result.success and result.trade is not None:
                self.add_trade(result.trade, mode)
                added += 1
        logger.info(f"Imported {added} trades into {mode.value} journal")
        return added

    def square_off(
        self,
        trade_id: str,
        mode: TradingMode,
        exit_quantity: int,
        exit_price: float,
        exit_time: datetime,
        result: TradeResult,
        exit_formula_id: str | None = None,
        reason: str | None = None,
    ) -> Trade:
        """Close all or part of an open position.

        A full exit closes the trade itself. A partial exit records a closed
        child trade for the exited quantity and reduces the open trade,
        logging a partial exit event on it.

        Args:
            trade_id: Open trade to exit.
            mode: Journal holding the trade.
            exit_quantity: Quantity exited.
            exit_price: Exit fill price.
            exit_time: Exit timestamp.
            result: How the exit came about.
            exit_formula_id: Formula that triggered the exit.
            reason: Free-text note for the log.

        Returns:
            The closed trade record.

        Raises:
            ValueError: If the trade is missing or already closed, or the
                quantity is out of range.
        """
        position, trade = self._find(trade_id, mode)
        if not trade.is_open:
            raise ValueError(f"Trade {trade_id} is already closed")
        if exit_quantity <= 0 or exit_quantity > trade.quantity:
            raise ValueError(
                f"Exit quantity must be between 1 and {trade.quantity}, got {exit_quantity}"
            )

        close_mode = TradeLoggingMode(mode.value)
        remaining = trade.quantity - exit_quantity
        note = (
            f"Partial square off in {mode.value} mode. Exited: {exit_quantity}, Remaining: {remaining}"
            if remaining > 0
            else f"Full square off in {mode.value} mode"
        )
        closed_log = TradeLogEntry(
            timestamp=exit_time,
            event=POSITION_CLOSED_EVENT,
            notes=reason or note,
            details={"exitPrice": exit_price, "exitedQuantity": exit_quantity},
        )

        if remaining == 0:
            closed = enrich_trade(
                replace(
                    trade,
                    exit_price=exit_price,
                    exit_time=exit_time,
                    result=result,
                    exit_formula_id=exit_formula_id,
                    close_mode=close_mode,
                    log=trade.log + (closed_log,),
                )
            )
            self._replace(mode, position, closed)
            logger.info(f"Closed {mode.value} trade {trade_id} at {exit_price}")
            return closed

        partials = sum(1 for e in trade.log if e.is_partial_exit)
        closed = enrich_trade(
            replace(
                trade,
                id=f"{trade.id}-p{partials + 1}",
                parent_id=trade.id,
                quantity=exit_quantity,
                exit_price=exit_price,
                exit_time=exit_time,
                result=result,
                exit_formula_id=exit_formula_id,
                close_mode=close_mode,
                log=(closed_log,),
            )
        )
        reduced = replace(
            trade,
            quantity=remaining,
            log=trade.log
            + (
                TradeLogEntry(
                    timestamp=exit_time,
                    event=PARTIAL_EXIT_EVENT,
                    notes=f"Remaining quantity: {remaining}",
                    details={"exitedQuantity": exit_quantity, "remainingQuantity": remaining},
                ),
            ),
        )
        self._replace(mode, position, reduced)
        self._state.for_mode(mode).trades.insert(position + 1, closed)
        logger.info(f"Partially closed {mode.value} trade {trade_id}: {exit_quantity} exited, {remaining} open")
        return closed

    def update_targets_for_open_positions(
        self,
        flow: LogicalEdgeFlow,
        kind: FollowUpKind | None = None,
        timestamp: datetime | None = None,
    ) -> int:
        """Retarget open trades opened from a flow in both journals.

        Returns:
            Number of trades whose targets changed.
        """
        new_targets = follow_up_targets(flow, kind)
        when = timestamp or datetime.now()
        updated = 0

        for mode in TradingMode:
            trades = self._state.for_mode(mode).trades
            for position, trade in enumerate(trades):
                if not trade.is_open or trade.source_flow_id != flow.id:
                    continue
                if sorted(trade.target_formula_ids) == sorted(new_targets):
                    continue
                entry = TradeLogEntry(
                    timestamp=when,
                    event=TARGET_UPDATED_EVENT,
                    notes=f'Logical flow "{flow.name}" matched updated market conditions.',
                    details={
                        "before": list(trade.target_formula_ids),
                        "after": list(new_targets),
                    },
                )
                trades[position] = replace(
                    trade, target_formula_ids=tuple(new_targets), log=trade.log + (entry,)
                )
                updated += 1

        if updated:
            logger.info(f"Updated targets of {updated} open trades from flow {flow.name}")
        return updated

    # Logical edge flows

    def flow_matcher(self, mode: TradeLoggingMode) -> FlowMatcher:
        return FlowMatcher(self._state.flows_for(mode), use_index=self._flow_settings.use_index)

    def match_flow(
        self,
        selections: ConditionSelections,
        mode: TradeLoggingMode,
        freeze: EdgeFreeze | None = None,
    ) -> LogicalEdgeFlow | None:
        """First flow of ``mode`` applicable to the selections, or None."""
        return self.flow_matcher(mode).match(selections, freeze)

    def entries_for(
        self, edge: Edge | None, t3_condition: T3Condition | None = None
    ) -> list[IndexedEdgeEntry]:
        return available_entries(edge, t3_condition, self._flow_settings.special_edge_name)

    def opposite_edge_enabled(self, opposite_side_structure: str) -> bool:
        return opposite_edge_enabled(
            opposite_side_structure, tuple(self._flow_settings.opposite_enabled_structures)
        )

    async def load_flows(self, mode: TradingMode, path: Path | None = None) -> list[LogicalEdgeFlow]:
        """Replace the flows of ``mode`` with an exported flow file.

        Args:
            mode: Journal receiving the flows.
            path: Flow export, defaults to ``flows_filename`` in the data directory.

        Raises:
            ValueError: If the file is missing or not a valid flow export.
        """
        source = Path(path) if path else Path(self._settings.data_dir) / self._flow_settings.flows_filename
        if not source.exists():
            raise ValueError(f"Flow file not found: {source}")

        async with aiofiles.open(source, "r") as f:
            content = await f.read()
        flows = load_flows_json(content)
        self._state.for_mode(mode).logical_edge_flows[:] = flows
        logger.info(f"Loaded {len(flows)} logical edge flows into {mode.value} journal from {source}")
        return flows

    # Reporting

    def trades(
        self,
        mode: TradeLoggingMode,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Trade]:
        """Enriched trades visible in ``mode``, optionally limited to a date range."""
        return filter_by_date_range(self._state.trades_for(mode), start, end)

    def dashboard(
        self,
        mode: TradeLoggingMode,
        start: date | None = None,
        end: date | None = None,
    ) -> DashboardMetrics:
        """Aggregate metrics for ``mode``."""
        return self._metrics_calculator.calculate(
            self.trades(mode, start, end), self._state.edges_for(mode)
        )

    def get_report(
        self,
        mode: TradeLoggingMode,
        start: date | None = None,
        end: date | None = None,
        period: PeriodType | None = None,
        aggregation: CandlestickAggregation | None = None,
    ) -> dict[str, Any]:
        """Get a full performance report.

        Args:
            mode: Journal view to report on.
            start: First day to include.
            end: Last day to include.
            period: Bucket for the periodic table, settings default if None.
            aggregation: Candle granularity, settings default if None.

        Returns:
            Dict with metrics, periodic, cumulative_pnl, candlesticks,
            daily_profit_loss, streaks, drawdown, day_of_week, holding_time,
            r_multiples, by_edge and by_entry_formula.
        """
        trades = self.trades(mode, start, end)
        edges = self._state.edges_for(mode)
        formulas = self._state.formulas_for(mode)

        cumulative = self._series.cumulative_pnl(trades)
        return {
            "metrics": self._metrics_calculator.calculate(trades, edges),
            "periodic": self._series.periodic_performance(
                trades, period or self._settings.default_period
            ),
            "cumulative_pnl": cumulative,
            "candlesticks": self._series.candlesticks(
                trades, aggregation or self._settings.default_aggregation
            ),
            "daily_profit_loss": self._series.daily_profit_loss(trades),
            "streaks": self._streak_analyzer.streaks(trades),
            "drawdown": self._streak_analyzer.max_drawdown(cumulative),
            "day_of_week": self._pattern_analyzer.performance_by_day_of_week(trades),
            "holding_time": self._pattern_analyzer.holding_time_stats(trades),
            "r_multiples": self._pattern_analyzer.r_multiple_distribution(trades),
            "by_edge": self._pattern_analyzer.performance_by_dimension(
                trades, TradeDimension.EDGE, {e.id: e.name for e in edges}
            ),
            "by_entry_formula": self._pattern_analyzer.performance_by_dimension(
                trades, TradeDimension.ENTRY_FORMULA, {f.id: f.name for f in formulas}
            ),
        }

    # Persistence

    async def save_backup(self, path: Path | None = None) -> Path:
        return await self._store.save(self._state, path)

    async def load_backup(self, path: Path | None = None) -> JournalState:
        """Replace the in-memory state with a stored backup."""
        self._state = await self._store.load(path)
        return self._state

    async def export_csv(self, mode: TradeLoggingMode, path: Path | None = None) -> Path:
        """Export the trades of ``mode`` to CSV."""
        target = Path(path) if path else Path(self._settings.data_dir) / self._settings.csv_filename
        exporter = CsvExporter(self._state.edges_for(mode), self._state.formulas_for(mode))
        return await exporter.write(self._state.trades_for(mode), target)
