"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class UserRole(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"


class WalletEventName(str, Enum):
    BALANCE_CHANGED = "balance-changed"
    TRANSACTION_COMPLETED = "transaction-completed"
