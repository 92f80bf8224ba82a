# src/journal/time_series.py
"""Generators for cumulative, periodic and candlestick P&L series."""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta

from src.journal.charges import DEFAULT_FEE_PER_ORDER, calculate_trade_charges
from src.journal.enrichment import closed_trades, enrich_trades, sorted_by_exit
from src.journal.metrics_calculator import profit_factor, risk_reward_ratio
from src.journal.models import (
    CandlestickAggregation,
    CumulativePnlDataPoint,
    DailyCandlestickData,
    DailyPerformanceStat,
    DailyProfitLossDataPoint,
    PeriodicPerformance,
    PeriodType,
    Trade,
)

logger = logging.getLogger(__name__)

TOTAL_BAR_LABEL = "Total"

_PERIOD_FORMATS = {
    PeriodType.DAILY: "%Y-%m-%d",
    PeriodType.MONTHLY: "%Y-%m",
    PeriodType.YEARLY: "%Y",
}


def bucket_start(moment: datetime, aggregation: CandlestickAggregation, week_start: int = 0) -> date:
    """First day of the bucket containing ``moment``.

    Args:
        moment: Timestamp to bucket.
        aggregation: Day, week, month or year.
        week_start: Weekday a week starts on (0=Monday).
    """
    day = moment.date()
    if aggregation is CandlestickAggregation.WEEK:
        return day - timedelta(days=(day.weekday() - week_start) % 7)
    if aggregation is CandlestickAggregation.MONTH:
        return day.replace(day=1)
    if aggregation is CandlestickAggregation.YEAR:
        return day.replace(month=1, day=1)
    return day


class PnlSeriesGenerator:
    """Builds chart-ready P&L series from journal trades.

    Sums are accumulated at full precision. Rounding to ``decimals`` is only
    applied to the values written into chart series.
    """

    def __init__(
        self,
        fee_per_order: float = DEFAULT_FEE_PER_ORDER,
        decimals: int = 2,
        week_start: int = 0,
    ) -> None:
        self._fee_per_order = fee_per_order
        self._decimals = decimals
        self._week_start = week_start

    def _round(self, value: float) -> float:
        return round(value, self._decimals)

    def cumulative_pnl(self, trades: list[Trade]) -> list[CumulativePnlDataPoint]:
        """Running P&L after each closed trade, in exit order.

        Args:
            trades: Trades to chart. Open trades are skipped.

        Returns:
            One point per closed trade keyed by its exit timestamp.
        """
        running = 0.0
        points = []
        for trade in sorted_by_exit(trades):
            running += trade.pnl
            points.append(
                CumulativePnlDataPoint(
                    date=trade.exit_time.isoformat(),
                    cumulative_pnl=self._round(running),
                )
            )
        return points

    def periodic_performance(
        self, trades: list[Trade], period: PeriodType
    ) -> list[PeriodicPerformance]:
        """Performance table bucketed by exit day, month or year.

        Args:
            trades: Trades to bucket. Open trades are skipped.
            period: Bucket size.

        Returns:
            One row per period, most recent period first.
        """
        key_format = _PERIOD_FORMATS[period]
        buckets: dict[str, list[Trade]] = defaultdict(list)
        for trade in closed_trades(trades):
            buckets[trade.exit_time.strftime(key_format)].append(trade)

        rows = [self._period_row(key, bucket) for key, bucket in buckets.items()]
        return sorted(rows, key=lambda r: r.period, reverse=True)

    def _period_row(self, period: str, trades: list[Trade]) -> PeriodicPerformance:
        gross_pnl = sum(t.pnl for t in trades)
        total_charges = sum(calculate_trade_charges(t, self._fee_per_order) for t in trades)

        winners = [t.pnl for t in trades if t.pnl > 0]
        losers = [t.pnl for t in trades if t.pnl < 0]
        gross_profit = sum(winners)
        gross_loss = abs(sum(losers))
        average_win = gross_profit / len(winners) if winners else 0.0
        average_loss = gross_loss / len(losers) if losers else 0.0

        return PeriodicPerformance(
            period=period,
            gross_pnl=gross_pnl,
            total_charges=total_charges,
            net_pnl=gross_pnl - total_charges,
            win_rate=len(winners) / len(trades) * 100,
            trade_count=len(trades),
            wins=len(winners),
            losses=len(losers),
            profit_factor=profit_factor(gross_profit, gross_loss),
            risk_reward_ratio=risk_reward_ratio(average_win, average_loss),
            gross_profit=gross_profit,
            gross_loss=gross_loss,
        )

    def candlesticks(
        self, trades: list[Trade], aggregation: CandlestickAggregation
    ) -> list[DailyCandlestickData]:
        """OHLC candles of cumulative P&L.

        The cumulative baseline runs across the whole sorted sequence and is
        never reset per bucket. A trailing "Total" bar with open 0 summarizes
        the range whenever there is at least one closed trade.

        Args:
            trades: Trades to chart. Open trades are skipped.
            aggregation: One candle per trade, or per day/week/month/year.

        Returns:
            Candles in chronological order followed by the Total bar.
        """
        ordered = sorted_by_exit(trades)
        if not ordered:
            return []

        if aggregation is CandlestickAggregation.TRADE:
            candles = self._trade_candles(ordered)
        else:
            candles = self._bucket_candles(ordered, aggregation)

        candles.append(self._total_bar(ordered))
        return candles

    def _candle(self, key: str, open_: float, high: float, low: float, close: float) -> DailyCandlestickData:
        return DailyCandlestickData(
            date=key,
            open=self._round(open_),
            high=self._round(high),
            low=self._round(low),
            close=self._round(close),
        )

    def _trade_candles(self, ordered: list[Trade]) -> list[DailyCandlestickData]:
        candles = []
        baseline = 0.0
        for trade in ordered:
            close = baseline + trade.pnl
            candles.append(
                self._candle(
                    trade.exit_time.isoformat(),
                    baseline,
                    max(baseline, close),
                    min(baseline, close),
                    close,
                )
            )
            baseline = close
        return candles

    def _bucket_candles(
        self, ordered: list[Trade], aggregation: CandlestickAggregation
    ) -> list[DailyCandlestickData]:
        buckets: dict[str, list[Trade]] = defaultdict(list)
        for trade in ordered:
            key = bucket_start(trade.exit_time, aggregation, self._week_start).isoformat()
            buckets[key].append(trade)

        candles = []
        baseline = 0.0
        for key in sorted(buckets):
            value = baseline
            high = baseline
            low = baseline
            for trade in buckets[key]:
                value += trade.pnl
                high = max(high, value)
                low = min(low, value)
            candles.append(self._candle(key, baseline, high, low, value))
            baseline = value
        return candles

    def _total_bar(self, ordered: list[Trade]) -> DailyCandlestickData:
        running = 0.0
        low = 0.0
        high = 0.0
        for trade in ordered:
            running += trade.pnl
            low = min(low, running)
            high = max(high, running)
        return self._candle(TOTAL_BAR_LABEL, 0.0, high, low, running)

    def daily_profit_loss(self, trades: list[Trade]) -> list[DailyProfitLossDataPoint]:
        """Profit and loss booked per exit day, oldest day first.

        Losses stay negative.
        """
        profit: dict[str, float] = defaultdict(float)
        loss: dict[str, float] = defaultdict(float)
        for trade in closed_trades(trades):
            day = trade.exit_time.date().isoformat()
            profit[day] += max(trade.pnl, 0.0)
            loss[day] += min(trade.pnl, 0.0)

        return [
            DailyProfitLossDataPoint(
                date=day,
                daily_profit=self._round(profit[day]),
                daily_loss=self._round(loss[day]),
            )
            for day in sorted(profit)
        ]

    def daily_performance_stats(self, trades: list[Trade]) -> dict[str, DailyPerformanceStat]:
        """P&L sum and trade count per exit day.

        Every trade carrying an exit time is counted. A trade whose exit
        time is not a timestamp is skipped with a warning.
        """
        pnl: dict[str, float] = defaultdict(float)
        counts: dict[str, int] = defaultdict(int)

        for trade in enrich_trades(trades):
            if trade.exit_time is None:
                continue
            if not isinstance(trade.exit_time, datetime):
                logger.warning(f"Skipping trade {trade.id} with malformed exit time: {trade.exit_time!r}")
                continue
            day = trade.exit_time.date().isoformat()
            pnl[day] += trade.pnl
            counts[day] += 1

        return {
            day: DailyPerformanceStat(pnl=pnl[day], trade_count=counts[day])
            for day in counts
        }
