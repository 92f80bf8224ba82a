# src/filters/cascading_filter.py
"""Faceted trade filtering where every facet ignores its own selection."""
from collections import Counter
from enum import Enum
from typing import Iterable

from src.filters.models import (
    CascadingFilterResult,
    FacetGroup,
    FacetOption,
    FilterDimension,
    FilterOption,
    FilterSelections,
)
from src.journal.enrichment import enrich_trades
from src.journal.models import (
    Edge,
    ExpiryType,
    Formula,
    FormulaType,
    IndexType,
    PositionType,
    RulesFollowedStatus,
    Trade,
    TradeLoggingMode,
)

STOP_LOSS_GROUP_LABEL = "Stop Loss Formulas"
TARGET_GROUP_LABEL = "Target Formulas"

_RULES_FOLLOWED_BY_MODE: dict[TradeLoggingMode, tuple[RulesFollowedStatus, ...]] = {
    TradeLoggingMode.REAL: (
        RulesFollowedStatus.RULES_FOLLOW,
        RulesFollowedStatus.PARTIALLY_FOLLOW,
        RulesFollowedStatus.NOT_FOLLOW,
        RulesFollowedStatus.DIVERGENCE_FLOW,
    ),
    TradeLoggingMode.THEORETICAL: (
        RulesFollowedStatus.RULES_FOLLOW,
        RulesFollowedStatus.PARTIALLY_FOLLOW,
        RulesFollowedStatus.ENTRY_MISS,
        RulesFollowedStatus.DIVERGENCE_FLOW,
    ),
    TradeLoggingMode.BOTH: (
        RulesFollowedStatus.RULES_FOLLOW,
        RulesFollowedStatus.PARTIALLY_FOLLOW,
        RulesFollowedStatus.NOT_FOLLOW,
        RulesFollowedStatus.ENTRY_MISS,
        RulesFollowedStatus.DIVERGENCE_FLOW,
    ),
}

_TRADE_FIELDS = {
    FilterDimension.EDGE: "strategy_id",
    FilterDimension.RULES_FOLLOWED: "rules_followed",
    FilterDimension.ENTRY_FORMULA: "entry_formula_id",
    FilterDimension.INDEX: "index",
    FilterDimension.POSITION_TYPE: "position_type",
    FilterDimension.EXPIRY_TYPE: "expiry_type",
}


def rules_followed_options(mode: TradeLoggingMode) -> list[FilterOption]:
    """Rules-followed labels offered while journaling in ``mode``."""
    return [FilterOption(id=s.value, name=s.value) for s in _RULES_FOLLOWED_BY_MODE[mode]]


def enum_options(enum_type: type[Enum]) -> list[FilterOption]:
    return [FilterOption(id=member.value, name=member.value) for member in enum_type]


def trade_value(trade: Trade, dimension: FilterDimension) -> str | None:
    """Id a single-valued dimension reads from a trade."""
    if dimension is FilterDimension.EXIT_FORMULA:
        raise ValueError("exit_formula is multi-valued; use exit_formula_ids")
    value = getattr(trade, _TRADE_FIELDS[dimension])
    if isinstance(value, Enum):
        return value.value
    return value or None


def _matches(trade: Trade, dimension: FilterDimension, selected: tuple[str, ...]) -> bool:
    if dimension is FilterDimension.EXIT_FORMULA:
        return (
            trade.exit_formula_id in selected
            or any(fid in selected for fid in trade.stop_loss_formula_ids)
            or any(fid in selected for fid in trade.target_formula_ids)
        )
    value = trade_value(trade, dimension)
    return value is not None and value in selected


class CascadingFilterEngine:
    """Applies facet selections to trades and computes facet options.

    Options for a facet are computed with every other selection applied but
    the facet's own ignored, so choosing within a facet never hides its
    siblings. Trades are enriched on the way in.
    """

    def __init__(self, selections: FilterSelections | None = None) -> None:
        self._selections = selections or FilterSelections()

    @property
    def selections(self) -> FilterSelections:
        return self._selections

    def apply(
        self,
        trades: Iterable[Trade],
        exclude: Iterable[FilterDimension] = (),
    ) -> list[Trade]:
        """Filter trades by every selection except the excluded dimensions.

        Args:
            trades: Trades to filter.
            exclude: Dimensions whose selection is ignored.

        Returns:
            Matching trades, enriched, in input order.
        """
        excluded = set(exclude)
        filtered = enrich_trades(trades)
        for dimension in FilterDimension:
            selected = self._selections.for_dimension(dimension)
            if not selected or dimension in excluded:
                continue
            filtered = [t for t in filtered if _matches(t, dimension, selected)]
        return filtered

    def facet_options(
        self,
        trades: Iterable[Trade],
        dimension: FilterDimension,
        catalog: Iterable[FilterOption],
    ) -> list[FacetOption]:
        """Catalog options still reachable under the other selections.

        Catalog order is kept. Options with no matching trade are dropped.
        """
        filtered = self.apply(trades, exclude=(dimension,))
        counts = Counter(trade_value(t, dimension) for t in filtered)
        return [
            FacetOption(id=option.id, name=option.name, count=counts[option.id])
            for option in catalog
            if counts[option.id] > 0
        ]

    def exit_formula_groups(
        self,
        trades: Iterable[Trade],
        stop_loss_catalog: Iterable[FilterOption],
        target_catalog: Iterable[FilterOption],
    ) -> list[FacetGroup]:
        """Exit formula options grouped by stop loss and target.

        A formula counts for a trade when the trade plans it or exited by it.
        """
        filtered = self.apply(trades, exclude=(FilterDimension.EXIT_FORMULA,))

        def group(label: str, catalog: Iterable[FilterOption], planned: str) -> FacetGroup:
            options = []
            for option in catalog:
                count = sum(
                    1
                    for t in filtered
                    if option.id in getattr(t, planned) or t.exit_formula_id == option.id
                )
                if count > 0:
                    options.append(FacetOption(id=option.id, name=option.name, count=count))
            return FacetGroup(label=label, options=tuple(options))

        groups = [
            group(STOP_LOSS_GROUP_LABEL, stop_loss_catalog, "stop_loss_formula_ids"),
            group(TARGET_GROUP_LABEL, target_catalog, "target_formula_ids"),
        ]
        return [g for g in groups if g.options]

    def compute(
        self,
        trades: Iterable[Trade],
        edges: Iterable[Edge] = (),
        formulas: Iterable[Formula] = (),
        mode: TradeLoggingMode = TradeLoggingMode.BOTH,
    ) -> CascadingFilterResult:
        """Build every facet for a filter panel in one pass over the catalogs.

        Args:
            trades: Trades visible in the current mode.
            edges: Edge catalog.
            formulas: Formula catalog.
            mode: Journaling mode, selects the rules-followed labels.

        Returns:
            CascadingFilterResult with every facet and the filtered trades.
        """
        trades = list(trades)
        formulas = list(formulas)

        edge_catalog = [FilterOption(id=e.id, name=e.name) for e in edges]
        entry_catalog = [FilterOption(id=f.id, name=f.name) for f in formulas if f.type.is_entry]
        stop_loss_catalog = [
            FilterOption(id=f.id, name=f.name) for f in formulas if f.type is FormulaType.STOP_LOSS
        ]
        target_catalog = [
            FilterOption(id=f.id, name=f.name) for f in formulas if f.type is FormulaType.TARGET
        ]

        return CascadingFilterResult(
            edges=tuple(self.facet_options(trades, FilterDimension.EDGE, edge_catalog)),
            rules_followed=tuple(
                self.facet_options(trades, FilterDimension.RULES_FOLLOWED, rules_followed_options(mode))
            ),
            entry_formulas=tuple(
                self.facet_options(trades, FilterDimension.ENTRY_FORMULA, entry_catalog)
            ),
            exit_formula_groups=tuple(
                self.exit_formula_groups(trades, stop_loss_catalog, target_catalog)
            ),
            index_types=tuple(
                self.facet_options(trades, FilterDimension.INDEX, enum_options(IndexType))
            ),
            position_types=tuple(
                self.facet_options(trades, FilterDimension.POSITION_TYPE, enum_options(PositionType))
            ),
            expiry_types=tuple(
                self.facet_options(trades, FilterDimension.EXPIRY_TYPE, enum_options(ExpiryType))
            ),
            pre_date_filtered=tuple(self.apply(trades)),
        )
