# src/journal/charges.py
"""Transaction cost model derived from a trade's order history."""
from src.journal.models import Trade

DEFAULT_FEE_PER_ORDER = 30.0


def count_orders(trade: Trade) -> int:
    """Count the orders a trade generated.

    One entry order, one per partial exit, plus a final exit order for a
    closed trade unless the last logged event is itself the partial exit
    that closed the position.

    A trade split off by a partial exit places no orders of its own. Its
    exit is the partial exit already counted on the parent.
    """
    if trade.parent_id is not None:
        return 0

    order_count = 1
    order_count += sum(1 for entry in trade.log if entry.is_partial_exit)

    if not trade.is_open:
        final_exit_is_partial = bool(trade.log) and trade.log[-1].is_partial_exit
        if not final_exit_is_partial or len(trade.log) == 1:
            order_count += 1

    return order_count


def calculate_trade_charges(trade: Trade, fee_per_order: float = DEFAULT_FEE_PER_ORDER) -> float:
    """Calculate total transaction charges for a trade.

    Args:
        trade: Trade whose log is inspected. The log is never modified.
        fee_per_order: Flat fee charged for every order.

    Returns:
        Order count multiplied by the per-order fee.
    """
    return count_orders(trade) * fee_per_order
