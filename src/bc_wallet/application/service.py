"""WalletApplicationService — trade settlement and portfolio queries.

Trades run as one unit of work: lock the account row, evaluate admission
against the locked state, append the ledger entry, write the new balance,
commit. Any failure rolls the whole unit back. Events go out after the
commit succeeds, before the account lock is released.

Read-only operations (portfolio, balance, history) run without an explicit
transaction.
"""

import asyncio
import logging
import weakref
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bc_common.datetime_utils import utc_now
from src.bc_common.enums import TradeType
from src.bc_common.errors import AccountNotFoundError, AppError, NoPriceAvailableError
from src.bc_common.money import to_eur
from src.bc_wallet.application.schemas import (
    AccountResponse,
    BalanceResponse,
    HoldingItem,
    PortfolioResponse,
    TradeRequest,
    TradeResponse,
    TransactionItem,
    TransactionsResponse,
    cursor_decode,
    cursor_encode,
)
from src.bc_wallet.domain.admission import admit_buy, admit_sell
from src.bc_wallet.domain.events import events_for_trade
from src.bc_wallet.domain.models import Account, HoldingValuation, TradeOutcome
from src.bc_wallet.domain.repository import (
    AccountRepositoryProtocol,
    EventPublisherProtocol,
    LedgerRepositoryProtocol,
    PriceFeedProtocol,
)
from src.bc_wallet.domain.valuation import replay_holding, summarize_portfolio
from src.bc_wallet.infrastructure.event_publisher import default_publisher
from src.bc_wallet.infrastructure.persistence import AccountRepository, LedgerRepository
from src.bc_wallet.infrastructure.price_feed import DbPriceFeed

logger = logging.getLogger(__name__)


class WalletApplicationService:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
        prices: PriceFeedProtocol | None = None,
        events: EventPublisherProtocol | None = None,
    ) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._prices: PriceFeedProtocol = prices or DbPriceFeed()
        self._events: EventPublisherProtocol = events or default_publisher()
        # In-process serialization per account; the row lock covers other workers.
        # Entries vanish once no trade for that account holds or awaits the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def buy(
        self, db: AsyncSession, user_id: str, request: TradeRequest
    ) -> TradeResponse:
        return await self.execute(db, user_id, TradeType.BUY, request)

    async def sell(
        self, db: AsyncSession, user_id: str, request: TradeRequest
    ) -> TradeResponse:
        return await self.execute(db, user_id, TradeType.SELL, request)

    async def execute(
        self,
        db: AsyncSession,
        user_id: str,
        trade_type: TradeType,
        request: TradeRequest,
    ) -> TradeResponse:
        async with self._lock_for(user_id):
            try:
                outcome = await self._settle(db, user_id, trade_type, request)
                await db.commit()
            except AppError as exc:
                await db.rollback()
                logger.info(
                    "Trade rejected: user=%s %s %s qty=%s code=%d (%s)",
                    user_id,
                    trade_type.value,
                    request.asset_id,
                    request.quantity,
                    exc.code,
                    exc.message,
                )
                raise
            except Exception:
                await db.rollback()
                raise

            entry = outcome.entry
            logger.info(
                "Trade committed: user=%s %s %s qty=%s @ %s balance %s -> %s (entry %d)",
                user_id,
                entry.type.value,
                entry.asset_id,
                entry.quantity,
                entry.unit_price,
                outcome.previous_balance,
                outcome.new_balance,
                entry.id,
            )
            # Still under the account lock: events leave in commit order
            await self._publish(outcome)
        return TradeResponse.from_outcome(outcome)

    async def _settle(
        self,
        db: AsyncSession,
        user_id: str,
        trade_type: TradeType,
        request: TradeRequest,
    ) -> TradeOutcome:
        point = await self._prices.current_price(db, request.asset_id)
        if point is None:
            raise NoPriceAvailableError(request.asset_id)
        unit_price = request.unit_price if request.unit_price is not None else to_eur(point.price)

        account = await self._accounts.lock_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        timestamp = await self._next_timestamp(db, user_id)

        if trade_type == TradeType.BUY:
            new_balance = admit_buy(account, request.quantity, unit_price)
        else:
            entries = await self._ledger.entries_for(db, user_id, request.asset_id)
            holding = replay_holding(request.asset_id, entries)
            new_balance = admit_sell(account, holding, request.quantity, unit_price)

        entry = await self._ledger.append(
            db,
            user_id,
            request.asset_id,
            trade_type,
            request.quantity,
            unit_price,
            timestamp,
        )
        await self._accounts.set_balance(db, user_id, new_balance)
        return TradeOutcome(
            entry=entry,
            previous_balance=account.balance_eur,
            new_balance=new_balance,
        )

    async def _next_timestamp(self, db: AsyncSession, user_id: str) -> datetime:
        """Stamp for a new entry, never earlier than the account's newest entry.

        Replay orders by (timestamp, id), so stamps must follow the order in
        which the account lock admitted trades even when clocks disagree.
        """
        now = utc_now()
        latest = await self._ledger.latest_timestamp(db, user_id)
        if latest is not None and latest > now:
            logger.warning(
                "Clock behind ledger for user %s: now=%s latest=%s",
                user_id,
                now.isoformat(),
                latest.isoformat(),
            )
            return latest
        return now

    async def _publish(self, outcome: TradeOutcome) -> None:
        # Trade is committed at this point; publish failures are only logged.
        for event in events_for_trade(outcome):
            try:
                await self._events.publish(event)
            except Exception:
                logger.warning(
                    "Failed to publish %s for user %s",
                    event.name.value,
                    event.user_id,
                    exc_info=True,
                )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _require_account(self, db: AsyncSession, user_id: str) -> Account:
        account = await self._accounts.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def _price_or_none(self, db: AsyncSession, asset_id: str) -> Decimal | None:
        point = await self._prices.current_price(db, asset_id)
        return point.price if point else None

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._require_account(db, user_id)
        return BalanceResponse.from_account(account)

    async def get_portfolio(self, db: AsyncSession, user_id: str) -> PortfolioResponse:
        account = await self._require_account(db, user_id)
        entries = await self._ledger.entries_for(db, user_id)
        prices = {
            asset_id: await self._price_or_none(db, asset_id)
            for asset_id in sorted({e.asset_id for e in entries})
        }
        summary = summarize_portfolio(account, entries, prices)
        return PortfolioResponse.from_summary(summary)

    async def get_holding(
        self, db: AsyncSession, user_id: str, asset_id: str
    ) -> HoldingItem:
        await self._require_account(db, user_id)
        entries = list(await self._ledger.entries_for(db, user_id, asset_id))
        holding = replay_holding(asset_id, entries)
        return HoldingItem.from_valuation(
            HoldingValuation(
                holding=holding,
                current_price=await self._price_or_none(db, asset_id),
                entries=entries,
            )
        )

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        asset_id: str | None = None,
        trade_type: TradeType | None = None,
    ) -> TransactionsResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._ledger.list_page(
            db, user_id, cursor_id, limit + 1, asset_id, trade_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TransactionsResponse(
            items=[TransactionItem.from_entry(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Account provisioning (admin)
    # ------------------------------------------------------------------

    async def open_account(
        self,
        db: AsyncSession,
        user_id: str,
        initial_balance: Decimal | None = None,
    ) -> AccountResponse:
        balance = settings.INITIAL_BALANCE_EUR if initial_balance is None else initial_balance
        try:
            account = await self._accounts.create_account(db, user_id, to_eur(balance))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Account opened: user=%s balance=%s", user_id, account.balance_eur)
        return AccountResponse.from_account(account)

    async def close_account(self, db: AsyncSession, user_id: str) -> None:
        """Delete the account; its transactions go with it (ON DELETE CASCADE)."""
        try:
            await self._accounts.delete_account(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Account closed: user=%s", user_id)
