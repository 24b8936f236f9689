"""Domain events for bc_wallet.

Emitted exactly once per committed trade, after the commit:
  - BalanceChanged(user_id, new_balance, previous_balance, delta, reason)
  - TransactionCompleted(user_id, type, asset_id, quantity, unit_price, ...)

Transport is the publisher's concern (Redis Pub/Sub in production).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.bc_common.enums import TradeType, WalletEventName
from src.bc_common.money import buy_cost, sell_proceeds
from src.bc_wallet.domain.models import TradeOutcome


@dataclass(frozen=True)
class BalanceChanged:
    user_id: str
    new_balance: Decimal
    previous_balance: Decimal
    reason: str
    occurred_at: datetime

    name = WalletEventName.BALANCE_CHANGED

    @property
    def delta(self) -> Decimal:
        return self.new_balance - self.previous_balance

    def payload(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "newBalance": str(self.new_balance),
            "previousBalance": str(self.previous_balance),
            "balanceChange": str(self.delta),
            "reason": self.reason,
            "updatedAt": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class TransactionCompleted:
    user_id: str
    type: TradeType
    asset_id: str
    quantity: Decimal
    unit_price: Decimal
    occurred_at: datetime

    name = WalletEventName.TRANSACTION_COMPLETED

    @property
    def total_amount(self) -> Decimal:
        if self.type == TradeType.BUY:
            return buy_cost(self.quantity, self.unit_price)
        return sell_proceeds(self.quantity, self.unit_price)

    @property
    def message(self) -> str:
        return (
            f"{self.type.value.capitalize()} of {self.quantity.normalize()} "
            f"{self.asset_id.upper()} completed successfully"
        )

    def payload(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "type": self.type.value,
            "cryptoId": self.asset_id,
            "quantity": str(self.quantity),
            "pricePerUnit": str(self.unit_price),
            "totalAmount": str(self.total_amount),
            "status": "success",
            "message": self.message,
            "timestamp": self.occurred_at.isoformat(),
        }


WalletEvent = BalanceChanged | TransactionCompleted


def events_for_trade(outcome: TradeOutcome) -> list[WalletEvent]:
    entry = outcome.entry
    reason = (
        "Cryptocurrency purchase" if entry.type == TradeType.BUY else "Cryptocurrency sale"
    )
    return [
        BalanceChanged(
            user_id=entry.user_id,
            new_balance=outcome.new_balance,
            previous_balance=outcome.previous_balance,
            reason=reason,
            occurred_at=entry.timestamp,
        ),
        TransactionCompleted(
            user_id=entry.user_id,
            type=entry.type,
            asset_id=entry.asset_id,
            quantity=entry.quantity,
            unit_price=entry.unit_price,
            occurred_at=entry.timestamp,
        ),
    ]
