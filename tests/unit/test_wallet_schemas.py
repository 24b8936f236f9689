"""Unit tests for bc_wallet request/response schemas and cursor helpers."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.bc_common.enums import TradeType
from src.bc_wallet.application.schemas import (
    OpenAccountRequest,
    TradeRequest,
    TradeResponse,
    TransactionItem,
    TransactionRequest,
    cursor_decode,
    cursor_encode,
)
from src.bc_wallet.domain.models import LedgerEntry, TradeOutcome


def test_cursor_encode_decode() -> None:
    assert cursor_decode(cursor_encode(12345)) == 12345


@pytest.mark.parametrize("cursor", [None, "", "not-base64!!", "eyJmb28iOiAxfQ=="])
def test_cursor_decode_invalid_returns_none(cursor: str | None) -> None:
    assert cursor_decode(cursor) is None


class TestTradeRequest:
    def test_accepts_frontend_aliases(self) -> None:
        req = TradeRequest.model_validate(
            {"cryptoId": "btc", "quantity": "0.5", "pricePerUnit": "20000.00"}
        )
        assert req.asset_id == "btc"
        assert req.quantity == Decimal("0.5")
        assert req.unit_price == Decimal("20000.00")

    def test_unit_price_optional(self) -> None:
        req = TradeRequest(asset_id="eth", quantity=Decimal("1"))
        assert req.unit_price is None

    @pytest.mark.parametrize("quantity", ["0", "-1", "0.000000001"])
    def test_rejects_bad_quantity(self, quantity: str) -> None:
        with pytest.raises(ValidationError):
            TradeRequest(asset_id="btc", quantity=Decimal(quantity))

    @pytest.mark.parametrize("price", ["0", "0.001", "-5"])
    def test_rejects_bad_unit_price(self, price: str) -> None:
        with pytest.raises(ValidationError):
            TradeRequest(asset_id="btc", quantity=Decimal("1"), unit_price=Decimal(price))

    def test_rejects_empty_asset(self) -> None:
        with pytest.raises(ValidationError):
            TradeRequest(asset_id="", quantity=Decimal("1"))


def test_transaction_request_requires_known_type() -> None:
    req = TransactionRequest.model_validate({"cryptoId": "btc", "quantity": "1", "type": "sell"})
    assert req.type == TradeType.SELL
    with pytest.raises(ValidationError):
        TransactionRequest.model_validate({"cryptoId": "btc", "quantity": "1", "type": "swap"})


def test_open_account_rejects_negative_balance() -> None:
    with pytest.raises(ValidationError):
        OpenAccountRequest(user_id="client-1", initial_balance=Decimal("-1"))


def test_trade_response_from_outcome() -> None:
    entry = LedgerEntry(
        id=3,
        user_id="client-1",
        asset_id="btc",
        type=TradeType.BUY,
        quantity=Decimal("0.04"),
        unit_price=Decimal("20000"),
        timestamp=datetime(2024, 1, 1, tzinfo=UTC),
    )
    outcome = TradeOutcome(
        entry=entry, previous_balance=Decimal("1000"), new_balance=Decimal("200")
    )

    resp = TradeResponse.from_outcome(outcome)

    assert resp.transaction.quantity == Decimal("0.04000000")
    assert resp.transaction.total_amount == Decimal("800.00")
    assert resp.transaction.timestamp == "2024-01-01T00:00:00+00:00"
    assert resp.new_balance_display == "€200.00"
    dumped = resp.model_dump(mode="json")
    assert dumped["new_balance"] == "200.00"
    assert dumped["transaction"]["type"] == "buy"


def _tiny_entry(trade_type: TradeType) -> LedgerEntry:
    return LedgerEntry(
        id=1,
        user_id="client-1",
        asset_id="doge",
        type=trade_type,
        quantity=Decimal("0.333"),
        unit_price=Decimal("0.03"),
        timestamp=datetime(2024, 1, 1, tzinfo=UTC),
    )


def test_total_amount_matches_rounded_debit_and_credit() -> None:
    # 0.333 * 0.03 = 0.00999
    assert TransactionItem.from_entry(_tiny_entry(TradeType.BUY)).total_amount == Decimal("0.01")
    assert TransactionItem.from_entry(_tiny_entry(TradeType.SELL)).total_amount == Decimal("0.00")
