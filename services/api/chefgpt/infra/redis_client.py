import logging

from redis.asyncio import Redis as AsyncRedis

from ..settings import settings

logger = logging.getLogger("chefgpt.redis")

_redis_async: AsyncRedis | None = None


async def get_redis() -> AsyncRedis:
    """Shared async client, created on first use."""
    global _redis_async
    if _redis_async is None:
        _redis_async = AsyncRedis.from_url(settings.redis_url, decode_responses=True)
    return _redis_async


async def ping_redis() -> bool:
    try:
        r = await get_redis()
        return bool(await r.ping())
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis() -> None:
    global _redis_async
    if _redis_async is not None:
        await _redis_async.aclose()
        _redis_async = None
