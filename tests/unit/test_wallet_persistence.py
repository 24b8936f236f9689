# tests/unit/test_wallet_persistence.py
"""Unit tests for AccountRepository and LedgerRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bc_common.enums import TradeType
from src.bc_common.errors import (
    AccountExistsError,
    AccountNotFoundError,
    InternalError,
    InvalidTradeError,
)
from src.bc_wallet.infrastructure.persistence import AccountRepository, LedgerRepository


def _make_account_row(**kwargs):
    row = MagicMock()
    row.user_id = kwargs.get("user_id", "client-1")
    row.balance_eur = kwargs.get("balance_eur", Decimal("500.00"))
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _make_tx_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", 1)
    row.user_id = kwargs.get("user_id", "client-1")
    row.asset_id = kwargs.get("asset_id", "btc")
    row.type = kwargs.get("type", "buy")
    row.quantity = kwargs.get("quantity", Decimal("0.50000000"))
    row.unit_price = kwargs.get("unit_price", Decimal("20000.00"))
    row.transaction_date = kwargs.get("transaction_date", datetime.now(UTC))
    return row


def _result(one=None, many=None):
    result_mock = MagicMock()
    result_mock.fetchone.return_value = one
    result_mock.fetchall.return_value = many or []
    return result_mock


@pytest.fixture
def db():
    return MagicMock()


class TestAccountRepository:
    async def test_get_account_found(self, db):
        db.execute = AsyncMock(return_value=_result(one=_make_account_row()))

        account = await AccountRepository().get_account(db, "client-1")

        assert account is not None
        assert account.user_id == "client-1"
        assert account.balance_eur == Decimal("500.00")

    async def test_get_account_missing(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        assert await AccountRepository().get_account(db, "ghost") is None

    async def test_lock_account_uses_for_update(self, db):
        db.execute = AsyncMock(return_value=_result(one=_make_account_row()))

        await AccountRepository().lock_account(db, "client-1")

        sql = str(db.execute.call_args[0][0])
        assert "FOR UPDATE" in sql

    async def test_set_balance_returns_updated_account(self, db):
        row = _make_account_row(balance_eur=Decimal("200.00"))
        db.execute = AsyncMock(return_value=_result(one=row))

        account = await AccountRepository().set_balance(db, "client-1", Decimal("200.00"))

        assert account.balance_eur == Decimal("200.00")
        params = db.execute.call_args[0][1]
        assert params == {"user_id": "client-1", "balance": Decimal("200.00")}

    async def test_set_balance_no_row_raises(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(InternalError):
            await AccountRepository().set_balance(db, "client-1", Decimal("-1"))

    async def test_create_account_conflict_raises(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(AccountExistsError):
            await AccountRepository().create_account(db, "client-1", Decimal("500.00"))

    async def test_delete_missing_account_raises(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(AccountNotFoundError):
            await AccountRepository().delete_account(db, "ghost")

    async def test_delete_account(self, db):
        row = MagicMock()
        row.user_id = "client-1"
        db.execute = AsyncMock(return_value=_result(one=row))
        await AccountRepository().delete_account(db, "client-1")
        db.execute.assert_awaited_once()


class TestLedgerRepository:
    async def test_append_returns_entry(self, db):
        db.execute = AsyncMock(return_value=_result(one=_make_tx_row(id=42)))
        now = datetime.now(UTC)

        entry = await LedgerRepository().append(
            db, "client-1", "btc", TradeType.BUY, Decimal("0.5"), Decimal("20000.00"), now
        )

        assert entry.id == 42
        assert entry.type == TradeType.BUY
        assert entry.total_amount == Decimal("10000.0000000000")
        params = db.execute.call_args[0][1]
        assert params["type"] == "buy"
        assert params["transaction_date"] == now

    @pytest.mark.parametrize(
        "quantity,unit_price",
        [(Decimal("0"), Decimal("1")), (Decimal("1"), Decimal("0")), (Decimal("-1"), Decimal("1"))],
    )
    async def test_append_rejects_non_positive(self, db, quantity, unit_price):
        db.execute = AsyncMock()
        with pytest.raises(InvalidTradeError):
            await LedgerRepository().append(
                db, "client-1", "btc", TradeType.SELL, quantity, unit_price, datetime.now(UTC)
            )
        db.execute.assert_not_called()

    async def test_entries_for_maps_rows_in_order(self, db):
        rows = [_make_tx_row(id=1), _make_tx_row(id=2, type="sell")]
        db.execute = AsyncMock(return_value=_result(many=rows))

        entries = await LedgerRepository().entries_for(db, "client-1", "btc")

        assert [e.id for e in entries] == [1, 2]
        assert entries[1].type == TradeType.SELL
        sql = str(db.execute.call_args[0][0])
        assert "ORDER BY transaction_date ASC, id ASC" in sql

    async def test_entries_for_all_assets(self, db):
        db.execute = AsyncMock(return_value=_result(many=[]))
        await LedgerRepository().entries_for(db, "client-1")
        assert db.execute.call_args[0][1] == {"user_id": "client-1", "asset_id": None}

    async def test_latest_timestamp(self, db):
        stamp = datetime.now(UTC)
        row = MagicMock()
        row.latest = stamp
        db.execute = AsyncMock(return_value=_result(one=row))

        assert await LedgerRepository().latest_timestamp(db, "client-1") == stamp
        assert "MAX(transaction_date)" in str(db.execute.call_args[0][0])

    async def test_latest_timestamp_empty_ledger(self, db):
        row = MagicMock()
        row.latest = None
        db.execute = AsyncMock(return_value=_result(one=row))
        assert await LedgerRepository().latest_timestamp(db, "client-1") is None

    async def test_list_page_passes_filters(self, db):
        db.execute = AsyncMock(return_value=_result(many=[_make_tx_row(id=7)]))

        entries = await LedgerRepository().list_page(
            db, "client-1", 10, 21, "eth", TradeType.SELL
        )

        assert entries[0].id == 7
        params = db.execute.call_args[0][1]
        assert params == {
            "user_id": "client-1",
            "cursor_id": 10,
            "asset_id": "eth",
            "type": "sell",
            "limit": 21,
        }
