"""Rate limiter construction."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from infographic_api.config import Settings


def build_limiter(settings: Settings) -> Limiter:
    """Per-client moving-window limiter.

    ``ApiRateLimitMiddleware`` counts ``settings.rate_limit`` against this
    limiter's storage for every API request; ``@limiter.limit`` stays
    available for stricter per-route limits.
    """
    return Limiter(
        key_func=get_remote_address,
        strategy="moving-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )
