# src/journal/metrics_calculator.py
"""Calculator for trading performance metrics."""
import math

from src.journal.charges import DEFAULT_FEE_PER_ORDER, calculate_trade_charges
from src.journal.enrichment import closed_trades
from src.journal.models import DashboardMetrics, Edge, EdgePerformance, Trade


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Gross profit over gross loss.

    Returns ``inf`` when there is profit but no loss and ``nan`` when both
    are zero, so "no data" stays distinct from a ratio of zero.
    """
    if gross_loss > 0:
        return gross_profit / gross_loss
    if gross_profit > 0:
        return math.inf
    return math.nan


def risk_reward_ratio(average_win: float, average_loss: float) -> float:
    """Average win over average loss, ``inf`` without losses, 0 without either."""
    if average_loss > 0:
        return average_win / average_loss
    if average_win > 0:
        return math.inf
    return 0.0


class MetricsCalculator:
    """Calculates trading performance metrics from journal trades."""

    def __init__(self, fee_per_order: float = DEFAULT_FEE_PER_ORDER) -> None:
        """Initialize the calculator.

        Args:
            fee_per_order: Flat fee charged per order when computing charges.
        """
        self._fee_per_order = fee_per_order

    def calculate(self, trades: list[Trade], edges: list[Edge]) -> DashboardMetrics:
        """Calculate summary metrics from journal trades.

        Open trades are ignored. Trades are enriched first, so raw records
        are accepted.

        Args:
            trades: Trades to analyze.
            edges: Known edges; only trades of these edges feed the
                per-edge breakdown.

        Returns:
            DashboardMetrics with all calculated values.
        """
        closed = closed_trades(trades)

        total_pnl = sum(t.pnl for t in closed)
        total_charges = sum(calculate_trade_charges(t, self._fee_per_order) for t in closed)

        winners = [t for t in closed if t.pnl > 0]
        losers = [t for t in closed if t.pnl < 0]
        wins = len(winners)
        losses = len(losers)

        win_rate = wins / (wins + losses) * 100 if (wins + losses) > 0 else 0.0

        gross_profit = sum(t.pnl for t in winners)
        gross_loss = abs(sum(t.pnl for t in losers))

        average_win = gross_profit / wins if wins > 0 else 0.0
        average_loss = gross_loss / losses if losses > 0 else 0.0

        edge_performance = self._edge_performance(closed, edges)
        most_profitable_edge = (
            edge_performance[0] if edge_performance and edge_performance[0].pnl > 0 else None
        )

        return DashboardMetrics(
            total_pnl=total_pnl,
            net_pnl=total_pnl - total_charges,
            total_charges=total_charges,
            gross_profit=gross_profit,
            gross_loss=gross_loss,
            win_rate=win_rate,
            risk_reward_ratio=risk_reward_ratio(average_win, average_loss),
            profit_factor=profit_factor(gross_profit, gross_loss),
            average_win=average_win,
            average_loss=average_loss,
            trade_count=len(closed),
            wins=wins,
            losses=losses,
            edge_performance=tuple(edge_performance),
            most_profitable_edge=most_profitable_edge,
        )

    def _edge_performance(self, closed: list[Trade], edges: list[Edge]) -> list[EdgePerformance]:
        """Sum P&L and count trades per known edge, best edge first."""
        edge_names = {edge.id: edge.name for edge in edges}
        pnl_by_edge: dict[str, float] = {}
        count_by_edge: dict[str, int] = {}

        for trade in closed:
            if trade.strategy_id not in edge_names:
                continue
            pnl_by_edge[trade.strategy_id] = pnl_by_edge.get(trade.strategy_id, 0.0) + trade.pnl
            count_by_edge[trade.strategy_id] = count_by_edge.get(trade.strategy_id, 0) + 1

        performance = [
            EdgePerformance(
                edge_id=edge_id,
                name=edge_names[edge_id],
                pnl=pnl,
                trade_count=count_by_edge[edge_id],
            )
            for edge_id, pnl in pnl_by_edge.items()
        ]
        return sorted(performance, key=lambda p: p.pnl, reverse=True)
