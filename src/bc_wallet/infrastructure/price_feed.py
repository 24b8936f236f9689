"""Current-price lookup over the price_history table.

Prices are written by the external price simulation process; this module
only reads. The newest row per asset is the current price.
"""

import logging
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bc_common.datetime_utils import is_older_than
from src.bc_wallet.domain.models import PricePoint

logger = logging.getLogger(__name__)

_LATEST_PRICE_SQL = text("""
    SELECT asset_id, price, price_date
    FROM price_history
    WHERE asset_id = :asset_id
    ORDER BY price_date DESC, id DESC
    LIMIT 1
""")


class DbPriceFeed:
    def __init__(self, max_age_hours: int | None = None) -> None:
        self._max_age_hours = (
            settings.PRICE_MAX_AGE_HOURS if max_age_hours is None else max_age_hours
        )

    async def current_price(self, db: AsyncSession, asset_id: str) -> PricePoint | None:
        row = (await db.execute(_LATEST_PRICE_SQL, {"asset_id": asset_id})).fetchone()
        if row is None:
            return None
        point = PricePoint(
            asset_id=row.asset_id,
            price=Decimal(row.price),
            price_date=row.price_date,
        )
        if self._max_age_hours is not None and is_older_than(
            point.price_date, self._max_age_hours
        ):
            logger.warning(
                "Stale price for %s: %s (max age %dh)",
                asset_id,
                point.price_date.isoformat(),
                self._max_age_hours,
            )
            return None
        return point
