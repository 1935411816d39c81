"""Process-wide Redis client.

Redis backs notification push and cross-process preference sync. It is
optional: with ``preference_sync_backend=local`` it is never initialized
and publishers see ``get_optional_redis() is None``.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the client. Short timeouts so an outage surfaces as StorageError quickly."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


def get_optional_redis() -> redis.Redis | None:
    """The client if Redis is in use, else None (publishing becomes a no-op)."""
    return _client
