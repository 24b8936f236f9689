"""Shared test fixtures and in-memory wallet collaborators.

FakeSession stages writes until commit() so rollback() really discards a
half-finished trade, the way the database transaction does.
"""

import asyncio
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("EVENTS_ENABLED", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.bc_common.datetime_utils import utc_now  # noqa: E402
from src.bc_common.enums import TradeType  # noqa: E402
from src.bc_common.errors import (  # noqa: E402
    AccountExistsError,
    AccountNotFoundError,
    InvalidTradeError,
)
from src.bc_wallet.application.service import WalletApplicationService  # noqa: E402
from src.bc_wallet.domain.events import WalletEvent  # noqa: E402
from src.bc_wallet.domain.models import Account, LedgerEntry, PricePoint  # noqa: E402


@dataclass
class WalletStore:
    balances: dict[str, Decimal] = field(default_factory=dict)
    entries: list[LedgerEntry] = field(default_factory=list)
    prices: dict[str, Decimal] = field(default_factory=dict)
    next_id: int = 1


class FakeSession:
    def __init__(self) -> None:
        self.pending: list[Callable[[], None]] = []
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        for op in self.pending:
            op()
        self.pending.clear()
        self.commits += 1

    async def rollback(self) -> None:
        self.pending.clear()
        self.rollbacks += 1


class InMemoryAccounts:
    def __init__(self, store: WalletStore) -> None:
        self.store = store

    async def get_account(self, db: FakeSession, user_id: str) -> Account | None:
        if user_id not in self.store.balances:
            return None
        return Account(user_id=user_id, balance_eur=self.store.balances[user_id])

    async def lock_account(self, db: FakeSession, user_id: str) -> Account | None:
        await asyncio.sleep(0)  # let a competing trade interleave if it can
        return await self.get_account(db, user_id)

    async def set_balance(self, db: FakeSession, user_id: str, balance: Decimal) -> Account:
        assert balance >= 0, f"negative balance written: {balance}"
        db.pending.append(lambda: self.store.balances.__setitem__(user_id, balance))
        return Account(user_id=user_id, balance_eur=balance)

    async def create_account(
        self, db: FakeSession, user_id: str, initial_balance: Decimal
    ) -> Account:
        if user_id in self.store.balances:
            raise AccountExistsError(user_id)
        db.pending.append(lambda: self.store.balances.__setitem__(user_id, initial_balance))
        return Account(user_id=user_id, balance_eur=initial_balance, created_at=utc_now())

    async def delete_account(self, db: FakeSession, user_id: str) -> None:
        if user_id not in self.store.balances:
            raise AccountNotFoundError(user_id)

        def _cascade() -> None:
            del self.store.balances[user_id]
            self.store.entries = [e for e in self.store.entries if e.user_id != user_id]

        db.pending.append(_cascade)


class InMemoryLedger:
    def __init__(self, store: WalletStore) -> None:
        self.store = store

    async def append(
        self,
        db: FakeSession,
        user_id: str,
        asset_id: str,
        trade_type: TradeType,
        quantity: Decimal,
        unit_price: Decimal,
        timestamp: datetime,
    ) -> LedgerEntry:
        if quantity <= 0 or unit_price <= 0:
            raise InvalidTradeError("quantity and unit price must be positive")
        entry = LedgerEntry(
            id=self.store.next_id,
            user_id=user_id,
            asset_id=asset_id,
            type=trade_type,
            quantity=quantity,
            unit_price=unit_price,
            timestamp=timestamp,
        )
        self.store.next_id += 1
        db.pending.append(lambda: self.store.entries.append(entry))
        return entry

    async def entries_for(
        self, db: FakeSession, user_id: str, asset_id: str | None = None
    ) -> list[LedgerEntry]:
        return sorted(
            (
                e
                for e in self.store.entries
                if e.user_id == user_id and (asset_id is None or e.asset_id == asset_id)
            ),
            key=lambda e: (e.timestamp, e.id),
        )

    async def latest_timestamp(self, db: FakeSession, user_id: str) -> datetime | None:
        stamps = [e.timestamp for e in self.store.entries if e.user_id == user_id]
        return max(stamps, default=None)

    async def list_page(
        self,
        db: FakeSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        asset_id: str | None,
        trade_type: TradeType | None,
    ) -> list[LedgerEntry]:
        rows = [
            e
            for e in await self.entries_for(db, user_id, asset_id)
            if (cursor_id is None or e.id < cursor_id)
            and (trade_type is None or e.type == trade_type)
        ]
        return sorted(rows, key=lambda e: e.id, reverse=True)[:limit]


class StaticPriceFeed:
    def __init__(self, store: WalletStore) -> None:
        self.store = store

    async def current_price(self, db: FakeSession, asset_id: str) -> PricePoint | None:
        price = self.store.prices.get(asset_id)
        if price is None:
            return None
        return PricePoint(asset_id=asset_id, price=price, price_date=utc_now())


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[WalletEvent] = []

    async def publish(self, event: WalletEvent) -> None:
        self.events.append(event)


@pytest.fixture
def store() -> WalletStore:
    return WalletStore()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def wallet_service(store: WalletStore, publisher: RecordingPublisher) -> WalletApplicationService:
    return WalletApplicationService(
        accounts=InMemoryAccounts(store),
        ledger=InMemoryLedger(store),
        prices=StaticPriceFeed(store),
        events=publisher,
    )


@pytest.fixture
def funded_account(store: WalletStore) -> Callable[..., None]:
    def _open(user_id: str = "client-1", balance: str = "500.00") -> None:
        store.balances[user_id] = Decimal(balance)

    return _open


@pytest.fixture
async def client(wallet_service: WalletApplicationService) -> AsyncClient:
    """Async HTTP client wired to the in-memory wallet service."""
    from src.bc_common.database import get_db_session
    from src.bc_wallet.api.router import get_wallet_service
    from src.main import app

    async def _fake_db() -> FakeSession:
        return FakeSession()

    app.dependency_overrides[get_db_session] = _fake_db
    app.dependency_overrides[get_wallet_service] = lambda: wallet_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
