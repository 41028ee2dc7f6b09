"""
Rate Limiting

Protects the checkout and cart endpoints from abuse using Redis-based rate limiting.

Features:
- Per-user fixed window counters (INCR + EXPIRE)
- Configurable budgets via environment variables
- Automatic expiry using Redis TTL
- Fail-open when Redis is unavailable

Configuration:
- MAX_PAYMENT_CREATES_PER_WINDOW / PAYMENT_CREATE_WINDOW_SECONDS
- MAX_PAYMENT_CAPTURES_PER_WINDOW / PAYMENT_CAPTURE_WINDOW_SECONDS
- MAX_CART_ADDS_PER_MINUTE

The limiter is created once at startup and injected into the routes
(web/dependencies.py), so tests can swap in a fake Redis.
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

import config
from enums.rate_limit_operation import RateLimitOperation
from exceptions.rate_limit import RateLimitExceededException


def get_limit(operation: RateLimitOperation) -> tuple[int, int]:
    """
    Budget for an operation.

    Returns:
        (max_count, window_seconds)
    """
    limits = {
        RateLimitOperation.PAYMENT_CREATE: (config.MAX_PAYMENT_CREATES_PER_WINDOW,
                                            config.PAYMENT_CREATE_WINDOW_SECONDS),
        RateLimitOperation.PAYMENT_CAPTURE: (config.MAX_PAYMENT_CAPTURES_PER_WINDOW,
                                             config.PAYMENT_CAPTURE_WINDOW_SECONDS),
        RateLimitOperation.CART_ADD: (config.MAX_CART_ADDS_PER_MINUTE, 60),
    }
    return limits[operation]


class RateLimiter:
    """
    Redis-based rate limiter for specific operations.

    Usage:
        limiter = RateLimiter(redis)
        await limiter.check(RateLimitOperation.PAYMENT_CAPTURE, user_id)  # raises when exceeded
    """

    def __init__(self, redis: Redis):
        """
        Initialize rate limiter.

        Args:
            redis: Redis client
        """
        self.redis = redis

    async def is_rate_limited(
        self,
        operation: str,
        user_id: int,
        max_count: int,
        window_seconds: int
    ) -> tuple[bool, int, int]:
        """
        Check if user has exceeded rate limit for an operation.

        Args:
            operation: Operation name (e.g., "payment_create", "cart_add")
            user_id: Shop user ID
            max_count: Maximum allowed operations in time window
            window_seconds: Time window in seconds

        Returns:
            Tuple of (is_limited, current_count, remaining_count)
            - is_limited: True if user has exceeded the limit
            - current_count: Current number of operations in window
            - remaining_count: Number of operations remaining (0 if limited)

        Example:
            >>> is_limited, current, remaining = await limiter.is_rate_limited(
            ...     "payment_capture", 12345, max_count=5, window_seconds=300
            ... )
            >>> if is_limited:
            ...     print(f"Rate limited! {current}/{max_count} captures in the last 5 minutes")
        """
        # Redis key: rate_limit:{operation}:{user_id}
        key = f"rate_limit:{operation}:{user_id}"

        try:
            # Increment counter (creates key if doesn't exist)
            current_count = await self.redis.incr(key)

            # Set expiry on first increment
            if current_count == 1:
                await self.redis.expire(key, window_seconds)

            is_limited = current_count > max_count
            remaining = max(0, max_count - current_count)

            if is_limited:
                ttl = await self.redis.ttl(key)
                logging.warning(
                    f"Rate limit exceeded: user={user_id}, operation={operation}, "
                    f"count={current_count}/{max_count}, resets_in={ttl}s"
                )

            return is_limited, current_count, remaining

        except RedisError as e:
            # If Redis fails, don't block the operation (fail open)
            logging.error(f"Rate limiter error: {e}")
            return False, 0, max_count

    async def check(self, operation: RateLimitOperation, user_id: int) -> int:
        """
        Count one request against the configured budget.

        Returns:
            Remaining requests in the current window

        Raises:
            RateLimitExceededException: budget exhausted (carries retry_after seconds)
        """
        max_count, window_seconds = get_limit(operation)
        is_limited, _, remaining = await self.is_rate_limited(operation.value, user_id, max_count, window_seconds)
        if is_limited:
            retry_after = await self.get_remaining_time(operation.value, user_id)
            raise RateLimitExceededException(operation.value, user_id, retry_after or window_seconds)
        return remaining

    async def reset_limit(self, operation: str, user_id: int):
        """
        Reset rate limit counter for a user.

        Args:
            operation: Operation name
            user_id: Shop user ID
        """
        key = f"rate_limit:{operation}:{user_id}"
        await self.redis.delete(key)
        logging.info(f"Rate limit reset: user={user_id}, operation={operation}")

    async def get_remaining_time(self, operation: str, user_id: int) -> int:
        """
        Get remaining time until rate limit resets.

        Returns:
            Remaining seconds until reset (0 if not rate limited)
        """
        key = f"rate_limit:{operation}:{user_id}"
        try:
            ttl = await self.redis.ttl(key)
        except RedisError as e:
            logging.error(f"Rate limiter error: {e}")
            return 0
        return max(0, ttl) if ttl > 0 else 0
