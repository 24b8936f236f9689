"""Decimal arithmetic utilities for EUR amounts and crypto quantities.

All balances, prices and quantities use Decimal. No float.
EUR amounts carry 2 decimal places, quantities carry 8.
"""

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal

EUR = Decimal("0.01")
QTY = Decimal("0.00000001")
ZERO = Decimal("0")


def to_eur(value: Decimal | int | str) -> Decimal:
    """Quantize to cents, half-up: Decimal('1.005') -> Decimal('1.01')."""
    return Decimal(value).quantize(EUR, rounding=ROUND_HALF_UP)


def to_quantity(value: Decimal | int | str) -> Decimal:
    """Quantize to the 1e-8 quantity resolution."""
    return Decimal(value).quantize(QTY, rounding=ROUND_HALF_UP)


def ceil_eur(value: Decimal) -> Decimal:
    """Round up to the next cent (debits: platform never loses)."""
    return value.quantize(EUR, rounding=ROUND_CEILING)


def floor_eur(value: Decimal) -> Decimal:
    """Round down to the cent (credits)."""
    return value.quantize(EUR, rounding=ROUND_FLOOR)


def buy_cost(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return ceil_eur(quantity * unit_price)


def sell_proceeds(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return floor_eur(quantity * unit_price)


def eur_display(amount: Decimal) -> str:
    """Convert to display string: 1234.5 -> '€1,234.50', -12 -> '-€12.00'."""
    amount = to_eur(amount)
    if amount < 0:
        return f"-€{-amount:,.2f}"
    return f"€{amount:,.2f}"
