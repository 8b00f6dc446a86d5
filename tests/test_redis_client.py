from __future__ import annotations

import dataclasses

from eventease.core.config import settings
from eventease.redis_client import build_pool


def test_pool_uses_configured_timeouts():
    config = dataclasses.replace(
        settings,
        redis_url="redis://cache.internal:6380/3",
        redis_socket_timeout_seconds=1,
        redis_max_connections=5,
    )

    pool = build_pool(config)

    assert pool.max_connections == 5
    assert pool.connection_kwargs["socket_timeout"] == 1
    assert pool.connection_kwargs["socket_connect_timeout"] == 1
    assert pool.connection_kwargs["host"] == "cache.internal"
    assert pool.connection_kwargs["db"] == 3
