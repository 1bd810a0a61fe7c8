"""Cash settlement of executed trades against a profile's balance."""

from decimal import ROUND_HALF_UP, Decimal

from ...config.logging import get_logger
from ...exceptions import InsufficientFunds
from ...ormdb.models import Profile
from ...ormdb.repositories import ProfileRepository
from .models import Side, parse_side

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


class CashSettlement:
    """
    Guards and applies cash movements.

    Buys debit the home-currency trade value and require enough cash.
    Sells, including short sales, credit the proceeds immediately.
    """

    def __init__(self):
        self.logger = logger.bind(component="cash_settlement")

    def check_funds(self, cash_balance: Decimal, side, home_amount: Decimal) -> Decimal:
        """
        Compute the post-trade balance without touching the store.

        Raises:
            InsufficientFunds: If a buy costs more than the available cash
        """
        side = parse_side(side)
        cash_balance = Decimal(cash_balance)
        amount = to_cents(home_amount)

        if side is Side.BUY:
            if amount > cash_balance:
                self.logger.info(
                    "Rejected buy for insufficient funds",
                    required=str(amount),
                    available=str(cash_balance),
                )
                raise InsufficientFunds(amount, cash_balance)
            return cash_balance - amount

        return cash_balance + amount

    def settle(
        self, repository: ProfileRepository, profile: Profile, side, home_amount: Decimal
    ) -> Decimal:
        """Apply the cash movement to the profile within the caller's session."""
        new_balance = self.check_funds(profile.cash_balance, side, home_amount)
        repository.set_cash_balance(profile, new_balance)

        self.logger.debug(
            "Settled trade cash",
            user_id=profile.user_id,
            side=parse_side(side).value,
            amount=str(to_cents(home_amount)),
            new_balance=str(new_balance),
        )
        return new_balance
