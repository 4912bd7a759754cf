from slowapi import Limiter
from slowapi.util import get_remote_address

from lending.core.settings import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    storage_uri=settings.redis_url,
    key_prefix="lending",
    enabled=settings.rate_limit_enabled,
    in_memory_fallback_enabled=True,
)

__all__ = ["limiter"]
