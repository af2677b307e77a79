"""Redis connection management for the compliance job queue."""

from redis import Redis

from app.core.config import settings

# Redis connection instance (lazy initialized)
_redis_client: Redis | None = None


def get_redis() -> Redis:
    """Get or create the Redis connection used by RQ.

    Connection is lazily created on first call so the API can start
    without Redis; only score recalculation jobs need it.
    """
    global _redis_client
    if _redis_client is None:
        # RQ stores pickled payloads, so responses must stay as bytes
        _redis_client = Redis.from_url(settings.redis_url)
    return _redis_client


def close_redis() -> None:
    """Close Redis connection on application shutdown."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


def ping_redis() -> bool:
    """Check if Redis connection is healthy."""
    try:
        return bool(get_redis().ping())
    except Exception:
        return False
