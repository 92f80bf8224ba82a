# src/filters/models.py
"""Data models for faceted trade filtering and sorting."""
from dataclasses import dataclass
from enum import Enum

from src.journal.models import Trade


class FilterDimension(str, Enum):
    """Trade attribute a facet filters on."""

    EDGE = "edge"
    RULES_FOLLOWED = "rules_followed"
    ENTRY_FORMULA = "entry_formula"
    EXIT_FORMULA = "exit_formula"
    INDEX = "index"
    POSITION_TYPE = "position_type"
    EXPIRY_TYPE = "expiry_type"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterOption:
    """A catalog entry a facet can offer."""

    id: str
    name: str


@dataclass(frozen=True)
class FacetOption:
    """A reachable facet option with its live trade count."""

    id: str
    name: str
    count: int

    @property
    def label(self) -> str:
        return f"{self.name} ({self.count})"


@dataclass(frozen=True)
class FacetGroup:
    """Labelled group of facet options."""

    label: str
    options: tuple[FacetOption, ...]


@dataclass(frozen=True)
class FilterSelections:
    """Selected ids per dimension. An empty selection does not filter."""

    edge: tuple[str, ...] = ()
    rules_followed: tuple[str, ...] = ()
    entry_formula: tuple[str, ...] = ()
    exit_formula: tuple[str, ...] = ()
    index: tuple[str, ...] = ()
    position_type: tuple[str, ...] = ()
    expiry_type: tuple[str, ...] = ()

    def for_dimension(self, dimension: FilterDimension) -> tuple[str, ...]:
        return getattr(self, dimension.value)


@dataclass(frozen=True)
class CascadingFilterResult:
    """Every facet of the filter panel plus the fully filtered trades.

    Attributes:
        edges: Edge options with counts.
        rules_followed: Rules-followed options with counts.
        entry_formulas: Entry formula options with counts.
        exit_formula_groups: Stop loss and target groups, empty ones dropped.
        index_types: Index options with counts.
        position_types: Position type options with counts.
        expiry_types: Expiry type options with counts.
        pre_date_filtered: Trades with every selection applied, before any
            date range filter.
    """

    edges: tuple[FacetOption, ...]
    rules_followed: tuple[FacetOption, ...]
    entry_formulas: tuple[FacetOption, ...]
    exit_formula_groups: tuple[FacetGroup, ...]
    index_types: tuple[FacetOption, ...]
    position_types: tuple[FacetOption, ...]
    expiry_types: tuple[FacetOption, ...]
    pre_date_filtered: tuple[Trade, ...]


@dataclass(frozen=True)
class SortSpec:
    """One key of a multi-key sort."""

    key: str
    direction: SortDirection = SortDirection.ASC
