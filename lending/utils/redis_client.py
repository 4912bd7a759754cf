from functools import lru_cache

from redis.asyncio import Redis

from lending.core.settings import settings


@lru_cache(maxsize=1)
def get_redis_client() -> Redis:
    # readiness checks must fail fast when redis is down
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=settings.redis_timeout_seconds,
        socket_timeout=settings.redis_timeout_seconds,
    )


async def close_redis_client() -> None:
    if get_redis_client.cache_info().currsize:
        await get_redis_client().aclose()
        get_redis_client.cache_clear()
