"""
Token Revocation using Redis.

A logged-out token is blacklisted until it would have expired anyway.
"""

import logging

from splitapp.app.core.config import settings
from splitapp.app.core.redis_client import get_redis

logger = logging.getLogger(__name__)

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Blacklist a token for the remainder of its lifetime.
    
    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        client = await get_redis()
        ttl_seconds = settings.access_token_expire_minutes * 60
        await client.set(f"{TOKEN_BLACKLIST_PREFIX}{token}", str(user_id), ex=ttl_seconds)
        return True
    except Exception as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """Check the blacklist. If Redis is unreachable the token is treated as valid."""
    try:
        client = await get_redis()
        exists = await client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except Exception as e:
        logger.warning("Error checking token revocation: %s", e)
        return False
