"""Trade admission — balance and holdings sufficiency checks.

Evaluated against the account row locked for the current transaction, so a
rejection always reflects the latest committed state. Admission is
all-or-nothing: a trade is never clamped to a partial amount.
"""

from decimal import Decimal

from src.bc_common.errors import InsufficientBalanceError, InsufficientHoldingsError
from src.bc_common.money import buy_cost, sell_proceeds
from src.bc_wallet.domain.models import Account, Holding


def admit_buy(account: Account, quantity: Decimal, unit_price: Decimal) -> Decimal:
    """Return the new balance after debiting the purchase cost."""
    cost = buy_cost(quantity, unit_price)
    if account.balance_eur < cost:
        raise InsufficientBalanceError(required=cost, available=account.balance_eur)
    return account.balance_eur - cost


def admit_sell(
    account: Account, holding: Holding, quantity: Decimal, unit_price: Decimal
) -> Decimal:
    """Return the new balance after crediting the sale proceeds."""
    if holding.quantity < quantity:
        raise InsufficientHoldingsError(
            holding.asset_id, requested=quantity, available=holding.quantity
        )
    return account.balance_eur + sell_proceeds(quantity, unit_price)
