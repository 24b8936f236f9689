"""Wallet valuation — weighted-average-cost replay of the transaction ledger.

Pure functions: same ordered entries in, same holdings out. No I/O.

Replay rules per asset:
  buy:  cost_basis += qty * unit_price; quantity += qty; average = cost_basis / quantity
  sell: cost_basis -= (cost_basis / quantity) * qty; quantity -= qty
        (average price is untouched by a sell)
A quantity within QUANTITY_EPSILON of zero closes the position: quantity, cost
basis and average price all drop to zero together. Anything further below zero
means the ledger is inconsistent and raises LedgerCorruptionError.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from config.settings import settings
from src.bc_common.enums import TradeType
from src.bc_common.errors import LedgerCorruptionError
from src.bc_common.money import ZERO
from src.bc_wallet.domain.models import (
    Account,
    Holding,
    HoldingValuation,
    LedgerEntry,
    PortfolioSummary,
)


def ordered(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Timestamp ascending, insertion id breaks ties."""
    return sorted(entries, key=lambda e: (e.timestamp, e.id))


def apply_entry(
    holding: Holding, entry: LedgerEntry, epsilon: Decimal | None = None
) -> Holding:
    """Fold a single ledger entry into a holding, returning the new holding."""
    eps = settings.QUANTITY_EPSILON if epsilon is None else epsilon
    quantity = holding.quantity
    cost_basis = holding.cost_basis
    average_price = holding.average_price

    if entry.type == TradeType.BUY:
        cost_basis += entry.quantity * entry.unit_price
        quantity += entry.quantity
        average_price = cost_basis / quantity if quantity > 0 else ZERO
    else:
        avg = cost_basis / quantity if quantity > 0 else ZERO
        cost_basis = max(cost_basis - avg * entry.quantity, ZERO)
        quantity -= entry.quantity

    if abs(quantity) < eps:
        return Holding(asset_id=holding.asset_id)
    if quantity < 0:
        raise LedgerCorruptionError(holding.asset_id, entry.id, quantity)
    return Holding(
        asset_id=holding.asset_id,
        quantity=quantity,
        cost_basis=cost_basis,
        average_price=average_price,
    )


def replay_holding(
    asset_id: str, entries: Iterable[LedgerEntry], epsilon: Decimal | None = None
) -> Holding:
    """Replay every entry for ``asset_id`` (others are ignored)."""
    holding = Holding(asset_id=asset_id)
    for entry in ordered(entries):
        if entry.asset_id == asset_id:
            holding = apply_entry(holding, entry, epsilon)
    return holding


def compute_holdings(
    entries: Iterable[LedgerEntry], epsilon: Decimal | None = None
) -> dict[str, Holding]:
    """Holdings for every asset ever traded, closed positions included."""
    holdings: dict[str, Holding] = {}
    for entry in ordered(entries):
        current = holdings.get(entry.asset_id) or Holding(asset_id=entry.asset_id)
        holdings[entry.asset_id] = apply_entry(current, entry, epsilon)
    return holdings


def summarize_portfolio(
    account: Account,
    entries: Iterable[LedgerEntry],
    prices: Mapping[str, Decimal | None],
    epsilon: Decimal | None = None,
) -> PortfolioSummary:
    """Open holdings valued at current prices, plus the cash balance.

    ``prices`` maps asset_id to its current price; a missing or None price
    leaves that holding unvalued (excluded from holdings_value).
    """
    entries = ordered(entries)
    by_asset: dict[str, list[LedgerEntry]] = {}
    for entry in entries:
        by_asset.setdefault(entry.asset_id, []).append(entry)

    valuations = []
    for asset_id, holding in sorted(compute_holdings(entries, epsilon).items()):
        if not holding.is_open:
            continue
        valuations.append(
            HoldingValuation(
                holding=holding,
                current_price=prices.get(asset_id),
                entries=by_asset[asset_id],
            )
        )
    return PortfolioSummary(
        user_id=account.user_id,
        cash_balance=account.balance_eur,
        holdings=valuations,
    )
