"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Account
  3xxx: Asset/Price
  4xxx: Trade request
  5xxx: Holdings
  9xxx: System

Every error is recovered at the request boundary and rendered through the
ApiResponse envelope; ``details`` becomes the envelope's ``data``.
"""

from decimal import Decimal
from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


class PermissionDeniedError(AppError):
    def __init__(self, required_role: str) -> None:
        super().__init__(1006, f"Role '{required_role}' required", 403)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: Decimal, available: Decimal) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient EUR balance: required €{required:.2f}, available €{available:.2f}",
            422,
            {"required": str(required), "available": str(available)},
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


class AccountExistsError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2003, f"Account already exists for user {user_id}", 409)


# --- 3xxx: Asset/Price ---

class NoPriceAvailableError(AppError):
    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(
            3001,
            f"No current price available for {asset_id.upper()}, retry later",
            503,
            {"asset_id": asset_id},
        )


# --- 4xxx: Trade request ---

class InvalidTradeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid trade: {detail}", 422)


# --- 5xxx: Holdings ---

class InsufficientHoldingsError(AppError):
    def __init__(self, asset_id: str, requested: Decimal, available: Decimal) -> None:
        self.asset_id = asset_id
        self.requested = requested
        self.available = available
        super().__init__(
            5001,
            f"Insufficient {asset_id.upper()} holdings: "
            f"requested {requested:.8f}, available {available:.8f}",
            422,
            {
                "asset_id": asset_id,
                "requested": str(requested),
                "available": str(available),
            },
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class LedgerCorruptionError(AppError):
    """Replaying the ledger drove a holding below zero."""

    def __init__(self, asset_id: str, entry_id: int, quantity: Decimal) -> None:
        self.asset_id = asset_id
        self.entry_id = entry_id
        self.quantity = quantity
        super().__init__(
            9003,
            f"Ledger replay for {asset_id.upper()} went negative at entry {entry_id}",
            500,
            {"asset_id": asset_id, "entry_id": entry_id, "quantity": str(quantity)},
        )
