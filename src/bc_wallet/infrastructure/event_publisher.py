"""Wallet event publishers.

RedisEventPublisher pushes each event as JSON on the private channel
``user.{user_id}``; the broadcast layer relays it to the browser.
"""

import json
import logging

from config.settings import settings
from src.bc_common.redis_client import get_redis
from src.bc_wallet.domain.events import WalletEvent

logger = logging.getLogger(__name__)


def channel_for(user_id: str) -> str:
    return f"user.{user_id}"


class RedisEventPublisher:
    async def publish(self, event: WalletEvent) -> None:
        redis = await get_redis()
        message = json.dumps({"event": event.name.value, "data": event.payload()})
        await redis.publish(channel_for(event.user_id), message)
        logger.debug("Published %s to %s", event.name.value, channel_for(event.user_id))


class NullEventPublisher:
    """Used when EVENTS_ENABLED is false."""

    async def publish(self, event: WalletEvent) -> None:
        return None


def default_publisher() -> RedisEventPublisher | NullEventPublisher:
    return RedisEventPublisher() if settings.EVENTS_ENABLED else NullEventPublisher()
