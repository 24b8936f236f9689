"""Domain models for bc_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.bc_common.enums import TradeType
from src.bc_common.money import ZERO, buy_cost, sell_proceeds


@dataclass
class Account:
    user_id: str
    balance_eur: Decimal          # 2dp, never negative
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LedgerEntry:
    id: int                       # BIGSERIAL, tie-break for equal timestamps
    user_id: str
    asset_id: str
    type: TradeType
    quantity: Decimal             # > 0, 8dp
    unit_price: Decimal           # > 0, 2dp
    timestamp: datetime

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def settled_amount(self) -> Decimal:
        """EUR that actually moved: debit rounded up for buys, credit rounded down for sells."""
        if self.type == TradeType.BUY:
            return buy_cost(self.quantity, self.unit_price)
        return sell_proceeds(self.quantity, self.unit_price)


@dataclass(frozen=True)
class Holding:
    """Net position for one asset, derived by replaying the ledger."""

    asset_id: str
    quantity: Decimal = ZERO
    cost_basis: Decimal = ZERO    # EUR invested in the remaining quantity
    average_price: Decimal = ZERO

    @property
    def is_open(self) -> bool:
        return self.quantity > 0


@dataclass(frozen=True)
class PricePoint:
    asset_id: str
    price: Decimal
    price_date: datetime


@dataclass
class HoldingValuation:
    holding: Holding
    current_price: Decimal | None
    entries: list[LedgerEntry] = field(default_factory=list)

    @property
    def current_value(self) -> Decimal | None:
        if self.current_price is None:
            return None
        return self.holding.quantity * self.current_price

    @property
    def profit_loss(self) -> Decimal | None:
        value = self.current_value
        if value is None:
            return None
        return value - self.holding.cost_basis


@dataclass
class PortfolioSummary:
    user_id: str
    cash_balance: Decimal
    holdings: list[HoldingValuation]

    @property
    def holdings_value(self) -> Decimal:
        return sum(
            (h.current_value for h in self.holdings if h.current_value is not None),
            ZERO,
        )

    @property
    def total_invested(self) -> Decimal:
        return sum((h.holding.cost_basis for h in self.holdings), ZERO)

    @property
    def total_profit_loss(self) -> Decimal:
        return sum(
            (h.profit_loss for h in self.holdings if h.profit_loss is not None),
            ZERO,
        )

    @property
    def total_balance(self) -> Decimal:
        return self.cash_balance + self.holdings_value


@dataclass(frozen=True)
class TradeOutcome:
    entry: LedgerEntry
    previous_balance: Decimal
    new_balance: Decimal

    @property
    def delta(self) -> Decimal:
        return self.new_balance - self.previous_balance
