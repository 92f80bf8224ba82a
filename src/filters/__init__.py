# src/filters/__init__.py
"""Faceted filtering, date ranges and sorting for trade lists."""

from .cascading_filter import CascadingFilterEngine, rules_followed_options
from .date_range import default_date_range, filter_by_date_range
from .models import (
    CascadingFilterResult,
    FacetGroup,
    FacetOption,
    FilterDimension,
    FilterOption,
    FilterSelections,
    SortDirection,
    SortSpec,
)
from .trade_sorter import TradeSorter, sort_trades, toggle_sort

__all__ = [
    "CascadingFilterEngine",
    "CascadingFilterResult",
    "FacetGroup",
    "FacetOption",
    "FilterDimension",
    "FilterOption",
    "FilterSelections",
    "SortDirection",
    "SortSpec",
    "TradeSorter",
    "default_date_range",
    "filter_by_date_range",
    "rules_followed_options",
    "sort_trades",
    "toggle_sort",
]
