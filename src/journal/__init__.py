# src/journal/__init__.py
"""Journal module for trade history and metrics."""

from .backup_store import BackupStore
from .csv_exporter import CsvExporter
from .journal_manager import JournalManager
from .metrics_calculator import MetricsCalculator
from .models import DashboardMetrics, Edge, Formula, Trade
from .pattern_analyzer import PatternAnalyzer
from .settings import JournalSettings
from .state import JournalState
from .streak_analyzer import StreakAnalyzer
from .time_series import PnlSeriesGenerator
from .trade_importer import TradeImporter

__all__ = [
    "BackupStore",
    "CsvExporter",
    "DashboardMetrics",
    "Edge",
    "Formula",
    "JournalManager",
    "JournalSettings",
    "JournalState",
    "MetricsCalculator",
    "PatternAnalyzer",
    "PnlSeriesGenerator",
    "StreakAnalyzer",
    "Trade",
    "TradeImporter",
]
