# src/journal/streak_analyzer.py
"""Win/loss streak and equity drawdown analysis."""
from src.journal.enrichment import sorted_by_exit
from src.journal.models import CumulativePnlDataPoint, DrawdownInfo, StreakStats, StreakType, Trade


class StreakAnalyzer:
    """Scans chronologically ordered trades and P&L series."""

    def streaks(self, trades: list[Trade]) -> StreakStats:
        """Calculate consecutive win and loss runs.

        A breakeven trade resets both running streaks. The current streak is
        the run ending at the last closed trade, typed by that trade.

        Args:
            trades: Trades to scan. Open trades are skipped.

        Returns:
            StreakStats for the closed trades in exit order.
        """
        ordered = sorted_by_exit(trades)

        longest_win = 0
        longest_loss = 0
        win_run = 0
        loss_run = 0

        for trade in ordered:
            if trade.pnl > 0:
                win_run += 1
                loss_run = 0
                longest_win = max(longest_win, win_run)
            elif trade.pnl < 0:
                loss_run += 1
                win_run = 0
                longest_loss = max(longest_loss, loss_run)
            else:
                win_run = 0
                loss_run = 0

        current_type = StreakType.NONE
        current = 0
        if ordered:
            last_pnl = ordered[-1].pnl
            if last_pnl > 0:
                current_type = StreakType.WIN
                current = win_run
            elif last_pnl < 0:
                current_type = StreakType.LOSS
                current = loss_run

        return StreakStats(
            longest_win_streak=longest_win,
            longest_loss_streak=longest_loss,
            current_streak=current,
            current_streak_type=current_type,
        )

    def max_drawdown(self, series: list[CumulativePnlDataPoint]) -> DrawdownInfo:
        """Calculate maximum peak-to-trough drawdown.

        The peak starts at 0 and only rises.

        Args:
            series: Cumulative P&L points in chronological order.

        Returns:
            DrawdownInfo with the deepest drawdown and the trough value it
            was measured at. The percentage is 0 when the peak is 0.
        """
        peak = 0.0
        max_drawdown = 0.0
        trough = 0.0

        for point in series:
            if point.cumulative_pnl > peak:
                peak = point.cumulative_pnl

            drawdown = peak - point.cumulative_pnl
            if drawdown > max_drawdown:
                max_drawdown = drawdown
                trough = point.cumulative_pnl

        max_drawdown_percent = max_drawdown / peak * 100 if peak > 0 else 0.0

        return DrawdownInfo(
            max_drawdown=max_drawdown,
            max_drawdown_percent=max_drawdown_percent,
            peak=peak,
            trough=trough,
        )
