# tests/journal/test_journal_settings.py
"""Tests for journal settings."""
import pytest
from pydantic import ValidationError

from src.journal.models import CandlestickAggregation, PeriodType
from src.journal.settings import JournalSettings


class TestJournalSettings:
    """Tests for JournalSettings configuration."""

    def test_default_values(self) -> None:
        settings = JournalSettings()

        assert settings.data_dir == "data/journal"
        assert settings.csv_filename == "tradevision_trades.csv"
        assert settings.fee_per_order == 30.0
        assert settings.chart_decimals == 2
        assert settings.default_period == PeriodType.MONTHLY
        assert settings.default_aggregation == CandlestickAggregation.DAY
        assert settings.week_start_day == "monday"
        assert settings.week_start_index == 0

    def test_week_start_day_is_case_insensitive(self) -> None:
        assert JournalSettings(week_start_day="Friday").week_start_index == 4

    def test_invalid_week_start_day(self) -> None:
        with pytest.raises(ValidationError):
            JournalSettings(week_start_day="someday")

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JournalSettings(fee_per_order=-5)

    def test_chart_decimals_bounds(self) -> None:
        with pytest.raises(ValidationError):
            JournalSettings(chart_decimals=7)
