"""Profit and loss for a single position."""
from typing import Optional

DIRECTIONS = ("LONG", "SHORT")


def compute_pnl(
    direction: str,
    entry_price: float,
    exit_price: float,
    quantity: float,
    fees: float = 0.0,
) -> float:
    """Realized P&L of a closed position, net of fees.

    LONG:  (exit - entry) * quantity - fees
    SHORT: (entry - exit) * quantity - fees
    """
    if direction == "LONG":
        gross = (exit_price - entry_price) * quantity
    elif direction == "SHORT":
        gross = (entry_price - exit_price) * quantity
    else:
        raise ValueError(f"Unknown direction: {direction!r}")
    return gross - (fees or 0.0)


def settle_pnl(trade) -> Optional[float]:
    """Recompute ``trade.pnl`` from its prices and return it.

    A trade with an exit date and exit price is closed and gets a pnl; any
    other trade is open and its pnl is cleared.
    """
    if trade.exit_date is not None and trade.exit_price:
        trade.pnl = compute_pnl(
            trade.direction, trade.entry_price, trade.exit_price, trade.quantity, trade.fees or 0.0,
        )
    else:
        trade.pnl = None
    return trade.pnl
