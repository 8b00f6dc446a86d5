from __future__ import annotations

import re
import time
from dataclasses import dataclass

import structlog
from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from eventease.core.config import settings
from eventease.redis_client import get_redis
from eventease.services.error_codes import ErrorCode

logger = structlog.get_logger(__name__)

_RATE_RE = re.compile(r"^\s*(\d+)\s*/\s*([a-z]+)\s*$")
_WINDOWS = {
    "s": 1,
    "sec": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
}


@dataclass(frozen=True)
class RatePolicy:
    name: str
    limit: int
    window_seconds: int


def parse_rate(name: str, rate: str) -> RatePolicy:
    """Turn ``"10/minute"`` style strings into a policy."""
    match = _RATE_RE.match(rate.lower())
    if not match or match.group(2) not in _WINDOWS:
        raise ValueError(f"Invalid rate: {rate!r}")
    return RatePolicy(name=name, limit=int(match.group(1)), window_seconds=_WINDOWS[match.group(2)])


def policy_for(path: str) -> RatePolicy:
    # Credential endpoints share one tight per-IP budget.
    if path in settings.rate_limit_auth_paths:
        return parse_rate("auth", settings.rate_limit_auth)
    return parse_rate("default", settings.rate_limit_default)


def _limit_headers(policy: RatePolicy, remaining: int, reset: int) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(policy.limit),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window per-IP counter in Redis. Fails open when Redis is down."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if (
            not settings.rate_limit_enabled
            or request.method == "OPTIONS"
            or path in settings.rate_limit_exempt_paths
        ):
            return await call_next(request)

        try:
            policy = policy_for(path)
        except ValueError:
            logger.warning("rate_limit_misconfigured", path=path)
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = int(time.time())
        bucket = now // policy.window_seconds
        key = f"rl:{policy.name}:{client_ip}:{policy.window_seconds}:{bucket}"

        try:
            pipe = get_redis().pipeline()
            pipe.incr(key)
            pipe.expire(key, policy.window_seconds)
            count = int(pipe.execute()[0])
        except RedisError as exc:
            logger.warning("rate_limit_unavailable", error=str(exc))
            return await call_next(request)

        reset = (bucket + 1) * policy.window_seconds
        if count > policy.limit:
            logger.info("rate_limited", policy=policy.name, client_ip=client_ip, path=path)
            headers = _limit_headers(policy, 0, reset)
            headers["Retry-After"] = str(max(0, reset - now))
            return JSONResponse(
                status_code=429,
                content={
                    "code": ErrorCode.RATE_LIMITED.value,
                    "message": "Too many requests, please try again later.",
                },
                headers=headers,
            )

        response = await call_next(request)
        for name, value in _limit_headers(policy, max(0, policy.limit - count), reset).items():
            response.headers.setdefault(name, value)
        return response
