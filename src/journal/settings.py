# src/journal/settings.py
"""Settings for the journal module."""
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.journal.models import CandlestickAggregation, PeriodType


WeekDay = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class JournalSettings(BaseModel):
    """Configuration settings for the trading journal.

    Attributes:
        data_dir: Directory holding backups and exports.
        backup_filename: File name of the JSON backup inside data_dir.
        csv_filename: File name of the CSV export inside data_dir.
        fee_per_order: Flat charge applied to every order.
        chart_decimals: Decimal places kept in chart-ready series.
        default_period: Default bucket for periodic performance.
        default_aggregation: Default candlestick granularity.
        week_start_day: First day of a week bucket.
    """

    data_dir: str = "data/journal"
    backup_filename: str = "tradevision_backup.json"
    csv_filename: str = "tradevision_trades.csv"

    fee_per_order: float = Field(default=30.0, ge=0)
    chart_decimals: int = Field(default=2, ge=0, le=6)

    default_period: PeriodType = PeriodType.MONTHLY
    default_aggregation: CandlestickAggregation = CandlestickAggregation.DAY

    week_start_day: WeekDay = "monday"

    @field_validator("week_start_day", mode="before")
    @classmethod
    def validate_weekday(cls, v: str) -> str:
        """Validate that week_start_day is a valid weekday."""
        if not isinstance(v, str) or v.lower() not in WEEKDAYS:
            raise ValueError(f"Invalid weekday: {v}. Must be one of {set(WEEKDAYS)}")
        return v.lower()

    @property
    def week_start_index(self) -> int:
        """Week start as a weekday number (0=Monday)."""
        return WEEKDAYS.index(self.week_start_day)
