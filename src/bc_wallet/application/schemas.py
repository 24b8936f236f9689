"""Pydantic schemas and cursor utilities for bc_wallet API."""

import base64
import json
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, Field

from src.bc_common.datetime_utils import to_iso
from src.bc_common.enums import TradeType
from src.bc_common.money import eur_display, to_eur, to_quantity
from src.bc_wallet.domain.models import (
    Account,
    HoldingValuation,
    LedgerEntry,
    PortfolioSummary,
    TradeOutcome,
)

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TradeRequest(BaseModel):
    """Buy or sell of one asset; unit_price defaults to the current market price."""

    asset_id: str = Field(
        ...,
        min_length=1,
        max_length=32,
        validation_alias=AliasChoices("asset_id", "cryptoId"),
    )
    quantity: Decimal = Field(..., ge=Decimal("0.00000001"), decimal_places=8)
    unit_price: Decimal | None = Field(
        None,
        ge=Decimal("0.01"),
        decimal_places=2,
        validation_alias=AliasChoices("unit_price", "pricePerUnit"),
    )


class TransactionRequest(TradeRequest):
    type: TradeType


class OpenAccountRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    initial_balance: Decimal | None = Field(None, ge=0, decimal_places=2)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TransactionItem(BaseModel):
    id: int
    asset_id: str
    type: TradeType
    quantity: Decimal
    unit_price: Decimal
    total_amount: Decimal
    timestamp: str  # ISO8601 string

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "TransactionItem":
        return cls(
            id=entry.id,
            asset_id=entry.asset_id,
            type=entry.type,
            quantity=to_quantity(entry.quantity),
            unit_price=to_eur(entry.unit_price),
            total_amount=entry.settled_amount,
            timestamp=to_iso(entry.timestamp),
        )


class BalanceResponse(BaseModel):
    user_id: str
    balance_eur: Decimal
    balance_display: str

    @classmethod
    def from_account(cls, account: Account) -> "BalanceResponse":
        return cls(
            user_id=account.user_id,
            balance_eur=to_eur(account.balance_eur),
            balance_display=eur_display(account.balance_eur),
        )


class AccountResponse(BalanceResponse):
    created_at: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            user_id=account.user_id,
            balance_eur=to_eur(account.balance_eur),
            balance_display=eur_display(account.balance_eur),
            created_at=to_iso(account.created_at),
        )


class TradeResponse(BaseModel):
    transaction: TransactionItem
    previous_balance: Decimal
    new_balance: Decimal
    new_balance_display: str

    @classmethod
    def from_outcome(cls, outcome: TradeOutcome) -> "TradeResponse":
        return cls(
            transaction=TransactionItem.from_entry(outcome.entry),
            previous_balance=to_eur(outcome.previous_balance),
            new_balance=to_eur(outcome.new_balance),
            new_balance_display=eur_display(outcome.new_balance),
        )


def _eur_or_none(value: Decimal | None) -> Decimal | None:
    return to_eur(value) if value is not None else None


class HoldingItem(BaseModel):
    asset_id: str
    quantity: Decimal
    cost_basis: Decimal
    average_price: Decimal
    current_price: Decimal | None
    current_value: Decimal | None
    profit_loss: Decimal | None
    transactions: list[TransactionItem]

    @classmethod
    def from_valuation(cls, valuation: HoldingValuation) -> "HoldingItem":
        holding = valuation.holding
        return cls(
            asset_id=holding.asset_id,
            quantity=to_quantity(holding.quantity),
            cost_basis=to_eur(holding.cost_basis),
            average_price=to_eur(holding.average_price),
            current_price=_eur_or_none(valuation.current_price),
            current_value=_eur_or_none(valuation.current_value),
            profit_loss=_eur_or_none(valuation.profit_loss),
            transactions=[TransactionItem.from_entry(e) for e in valuation.entries],
        )


class PortfolioResponse(BaseModel):
    user_id: str
    cash_balance: Decimal
    cash_balance_display: str
    holdings: list[HoldingItem]
    holdings_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_balance: Decimal
    total_balance_display: str

    @classmethod
    def from_summary(cls, summary: PortfolioSummary) -> "PortfolioResponse":
        return cls(
            user_id=summary.user_id,
            cash_balance=to_eur(summary.cash_balance),
            cash_balance_display=eur_display(summary.cash_balance),
            holdings=[HoldingItem.from_valuation(h) for h in summary.holdings],
            holdings_value=to_eur(summary.holdings_value),
            total_invested=to_eur(summary.total_invested),
            total_profit_loss=to_eur(summary.total_profit_loss),
            total_balance=to_eur(summary.total_balance),
            total_balance_display=eur_display(summary.total_balance),
        )


class TransactionsResponse(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool
