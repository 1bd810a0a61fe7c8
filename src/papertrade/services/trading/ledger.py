"""Position ledger: applies one order to a holding's share count and cost basis."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ...exceptions import InsufficientShares, InvalidOrder
from .models import Side, parse_side


class HoldingAction(str, Enum):
    """What the trade does to the persisted holding row."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class LedgerOutcome:
    """New holding state after a trade. ``shares`` is 0 only for DELETE."""

    action: HoldingAction
    shares: int
    average_cost: Decimal
    realized_pnl: Decimal


def validate_order(side, shares, price=None) -> Side:
    """Reject malformed orders before anything is read or written."""
    side = parse_side(side)

    if isinstance(shares, bool) or not isinstance(shares, int) or shares <= 0:
        raise InvalidOrder(
            f"Shares must be a positive whole number, got {shares!r}", field="shares"
        )

    if price is None:
        return side

    try:
        price = Decimal(str(price))
    except ArithmeticError:
        raise InvalidOrder(f"Price must be a number, got {price!r}", field="price")
    if not price.is_finite() or price <= 0:
        raise InvalidOrder(f"Price must be positive, got {price}", field="price")

    return side


def apply_trade(
    symbol: str,
    current_shares: int,
    current_cost: Decimal,
    side,
    shares: int,
    price: Decimal,
) -> LedgerOutcome:
    """
    Apply a buy or sell to a holding.

    Args:
        symbol: Symbol, used for error messages
        current_shares: Signed share count held now (0 when no holding exists)
        current_cost: Average cost of the current holding (ignored when flat)
        side: "buy" or "sell"
        shares: Positive number of shares traded
        price: Execution price in the market's native currency

    Returns:
        LedgerOutcome with the new signed share count, average cost and the
        realized P/L locked in by the reducing part of the trade

    Raises:
        InvalidOrder: Non-positive shares or price, or unknown side
        InsufficientShares: Selling more than a long holding contains
    """
    side = validate_order(side, shares, price)
    price = Decimal(str(price))

    # Over-selling a long is refused; selling from flat or short opens/extends a short
    if side is Side.SELL and current_shares > 0 and shares > current_shares:
        raise InsufficientShares(symbol, current_shares, shares)

    new_shares = current_shares + side.sign * shares

    if current_shares == 0:
        return LedgerOutcome(HoldingAction.CREATE, new_shares, price, Decimal("0"))

    current_cost = Decimal(str(current_cost))
    held = abs(current_shares)

    if (current_shares > 0) == (side is Side.BUY):
        average_cost = (held * current_cost + shares * price) / abs(new_shares)
        return LedgerOutcome(
            HoldingAction.UPDATE, new_shares, average_cost, Decimal("0")
        )

    closed = min(shares, held)
    direction = 1 if current_shares > 0 else -1
    realized_pnl = closed * (price - current_cost) * direction

    if new_shares == 0:
        return LedgerOutcome(HoldingAction.DELETE, 0, current_cost, realized_pnl)

    if (new_shares > 0) == (current_shares > 0):
        return LedgerOutcome(
            HoldingAction.UPDATE, new_shares, current_cost, realized_pnl
        )

    # Reversal: the remainder is a new position opened at the trade price
    return LedgerOutcome(HoldingAction.UPDATE, new_shares, price, realized_pnl)
