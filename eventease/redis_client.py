from __future__ import annotations

from redis import Redis
from redis.connection import ConnectionPool

from eventease.core.config import Settings, settings

_pool: ConnectionPool | None = None


def build_pool(config: Settings) -> ConnectionPool:
    """One pool per process, shared by the rate limiter and the sweep lock."""
    return ConnectionPool.from_url(
        config.redis_url,
        decode_responses=True,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout_seconds,
        socket_connect_timeout=config.redis_socket_timeout_seconds,
    )


def get_redis() -> Redis:
    global _pool
    if _pool is None:
        _pool = build_pool(settings)
    return Redis(connection_pool=_pool)
