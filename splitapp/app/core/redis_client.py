"""
Redis connection for the logout token blacklist.

Nothing else is kept in Redis: balances, groups and notifications all live
in the database, so an unreachable Redis only weakens logout.
"""

import logging

import redis.asyncio as redis
from splitapp.app.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """Current blacklist client, read at call time so tests can replace it."""
    return redis_client


async def token_store_status() -> str:
    """``"ok"`` when the blacklist store answers PING, ``"unavailable"`` otherwise."""
    try:
        client = await get_redis()
        if await client.ping():
            return "ok"
    except Exception as e:
        logger.warning("Token store ping failed: %s", e)
    return "unavailable"
