"""Repository and collaborator Protocols for bc_wallet.

Unit tests inject mocks or in-memory fakes that conform to these Protocols.
Infrastructure layer provides the real implementations.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bc_common.enums import TradeType
from src.bc_wallet.domain.events import WalletEvent
from src.bc_wallet.domain.models import Account, LedgerEntry, PricePoint


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def lock_account(self, db: AsyncSession, user_id: str) -> Account | None:
        """Fetch the account row and hold a write lock until the transaction ends."""
        ...

    async def set_balance(
        self, db: AsyncSession, user_id: str, balance: Decimal
    ) -> Account: ...

    async def create_account(
        self, db: AsyncSession, user_id: str, initial_balance: Decimal
    ) -> Account: ...

    async def delete_account(self, db: AsyncSession, user_id: str) -> None: ...


class LedgerRepositoryProtocol(Protocol):
    async def append(
        self,
        db: AsyncSession,
        user_id: str,
        asset_id: str,
        trade_type: TradeType,
        quantity: Decimal,
        unit_price: Decimal,
        timestamp: datetime,
    ) -> LedgerEntry: ...

    async def entries_for(
        self, db: AsyncSession, user_id: str, asset_id: str | None = None
    ) -> Sequence[LedgerEntry]:
        """All entries, timestamp ascending, id ascending on ties."""
        ...

    async def latest_timestamp(
        self, db: AsyncSession, user_id: str
    ) -> datetime | None:
        """Newest transaction_date across all of the user's entries."""
        ...

    async def list_page(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        asset_id: str | None,
        trade_type: TradeType | None,
    ) -> list[LedgerEntry]:
        """Newest first, strictly below ``cursor_id`` when given."""
        ...


class PriceFeedProtocol(Protocol):
    async def current_price(self, db: AsyncSession, asset_id: str) -> PricePoint | None: ...


class EventPublisherProtocol(Protocol):
    async def publish(self, event: WalletEvent) -> None: ...
