"""AccountRepository and LedgerRepository — concrete implementations.

Per-account serialization: trades take ``SELECT ... FOR UPDATE`` on the
accounts row before admission, so two concurrent trades for one account are
evaluated one after the other against committed state.

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bc_common.enums import TradeType
from src.bc_common.errors import (
    AccountExistsError,
    AccountNotFoundError,
    InternalError,
    InvalidTradeError,
)
from src.bc_wallet.domain.models import Account, LedgerEntry

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "user_id, balance_eur, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_LOCK_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
    FOR UPDATE
""")

_SET_BALANCE_SQL = text(f"""
    UPDATE accounts
    SET balance_eur = :balance,
        updated_at = NOW()
    WHERE user_id = :user_id AND :balance >= 0
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (user_id, balance_eur)
    VALUES (:user_id, :balance)
    ON CONFLICT (user_id) DO NOTHING
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DELETE_ACCOUNT_SQL = text("""
    DELETE FROM accounts
    WHERE user_id = :user_id
    RETURNING user_id
""")

# ---------------------------------------------------------------------------
# SQL: wallet_transactions (append-only)
# ---------------------------------------------------------------------------

_TX_COLUMNS = "id, user_id, asset_id, type, quantity, unit_price, transaction_date"

_INSERT_TX_SQL = text(f"""
    INSERT INTO wallet_transactions
        (user_id, asset_id, type, quantity, unit_price, transaction_date)
    VALUES
        (:user_id, :asset_id, :type, :quantity, :unit_price, :transaction_date)
    RETURNING {_TX_COLUMNS}
""")

_ENTRIES_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:asset_id AS VARCHAR) IS NULL OR asset_id = :asset_id)
    ORDER BY transaction_date ASC, id ASC
""")

_LATEST_TS_SQL = text("""
    SELECT MAX(transaction_date) AS latest
    FROM wallet_transactions
    WHERE user_id = :user_id
""")

_PAGE_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:asset_id AS VARCHAR) IS NULL OR asset_id = :asset_id)
      AND (CAST(:type AS VARCHAR) IS NULL OR type = :type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> Account:
    return Account(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance_eur=Decimal(row.balance_eur),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        asset_id=row.asset_id,  # type: ignore[attr-defined]
        type=TradeType(row.type),  # type: ignore[attr-defined]
        quantity=Decimal(row.quantity),  # type: ignore[attr-defined]
        unit_price=Decimal(row.unit_price),  # type: ignore[attr-defined]
        timestamp=row.transaction_date,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete account repository — cash balance lives on the accounts row."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def lock_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_LOCK_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def set_balance(
        self, db: AsyncSession, user_id: str, balance: Decimal
    ) -> Account:
        result = await db.execute(
            _SET_BALANCE_SQL, {"user_id": user_id, "balance": balance}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(
                f"Balance update rejected for user {user_id} (balance={balance})"
            )
        return _row_to_account(row)

    async def create_account(
        self, db: AsyncSession, user_id: str, initial_balance: Decimal
    ) -> Account:
        result = await db.execute(
            _CREATE_ACCOUNT_SQL, {"user_id": user_id, "balance": initial_balance}
        )
        row = result.fetchone()
        if row is None:
            raise AccountExistsError(user_id)
        return _row_to_account(row)

    async def delete_account(self, db: AsyncSession, user_id: str) -> None:
        result = await db.execute(_DELETE_ACCOUNT_SQL, {"user_id": user_id})
        if result.fetchone() is None:
            raise AccountNotFoundError(user_id)


class LedgerRepository:
    """Append-only transaction ledger. Entries are never updated."""

    async def append(
        self,
        db: AsyncSession,
        user_id: str,
        asset_id: str,
        trade_type: TradeType,
        quantity: Decimal,
        unit_price: Decimal,
        timestamp: datetime,
    ) -> LedgerEntry:
        if quantity <= 0:
            raise InvalidTradeError(f"quantity must be positive, got {quantity}")
        if unit_price <= 0:
            raise InvalidTradeError(f"unit price must be positive, got {unit_price}")
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "user_id": user_id,
                "asset_id": asset_id,
                "type": trade_type.value,
                "quantity": quantity,
                "unit_price": unit_price,
                "transaction_date": timestamp,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_entry(row)

    async def entries_for(
        self, db: AsyncSession, user_id: str, asset_id: str | None = None
    ) -> Sequence[LedgerEntry]:
        result = await db.execute(
            _ENTRIES_SQL, {"user_id": user_id, "asset_id": asset_id}
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def latest_timestamp(
        self, db: AsyncSession, user_id: str
    ) -> datetime | None:
        result = await db.execute(_LATEST_TS_SQL, {"user_id": user_id})
        row = result.fetchone()
        return row.latest if row else None

    async def list_page(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        asset_id: str | None,
        trade_type: TradeType | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _PAGE_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "asset_id": asset_id,
                "type": trade_type.value if trade_type else None,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]
