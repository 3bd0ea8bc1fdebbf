"""
In-memory rate limiting for employee-code-bearing endpoints.

Employee codes are short, so status-change and cancel requests are throttled
per client IP to slow down code guessing.

Uses a simple sliding-window counter per (IP, scope) key.
Not suitable for multi-worker deployments.
"""
import time
import logging
from collections import defaultdict

from fastapi import HTTPException, Request

from config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter.

    Tracks request timestamps per key.
    """

    def __init__(self):
        # {key: [timestamp1, timestamp2, ...]}
        self._requests: dict[str, list[float]] = defaultdict(list)

    def _cleanup(self, key: str, window_seconds: int):
        """Remove expired timestamps from the window."""
        cutoff = time.time() - window_seconds
        self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Record a request and return False if it exceeds the window's budget."""
        self._cleanup(key, window_seconds)

        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(time.time())
        return True

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        """Get the number of remaining requests in the current window."""
        self._cleanup(key, window_seconds)
        return max(0, max_requests - len(self._requests[key]))

    def reset(self):
        self._requests.clear()


# Global rate limiter instance
_limiter = RateLimiter()


def get_limiter() -> RateLimiter:
    return _limiter


def rate_limit(scope: str, max_requests: int | None = None, window_seconds: int | None = None):
    """
    FastAPI dependency factory for rate limiting.

    Usage:
        @router.put("/api/orders/{transaction_id}/status")
        async def change_status(..., _=Depends(rate_limit("status-change"))):
            ...

    Limits default to STATUS_CHANGE_RATE_LIMIT / STATUS_CHANGE_RATE_WINDOW_SECONDS,
    read per request so tests and deployments can adjust them.
    """
    async def _check_rate_limit(request: Request):
        limit = max_requests or settings.status_change_rate_limit
        window = window_seconds or settings.status_change_rate_window_seconds

        client_ip = request.client.host if request.client else "unknown"
        key = f"{client_ip}:{scope}"

        if not _limiter.check(key, limit, window):
            logger.warning(f"Rate limit exceeded: {client_ip} on {scope} ({limit}/{window}s)")
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Maximum {limit} requests "
                       f"per {window} seconds. Try again later.",
                headers={
                    "Retry-After": str(window),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": str(_limiter.remaining(key, limit, window)),
                },
            )

    return _check_rate_limit
