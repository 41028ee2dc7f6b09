"""
Rate Limiter Tests

Tests the Redis-based per-user rate limiting of checkout and cart operations.
Uses fakeredis, no Redis server needed.

Run with:
    pytest tests/security/test_rate_limit.py -v
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from enums.rate_limit_operation import RateLimitOperation
from exceptions.rate_limit import RateLimitExceededException
from middleware.rate_limit import RateLimiter, get_limit


class TestRateLimiter:
    """Test per-user fixed window counters."""

    @pytest.mark.asyncio
    async def test_within_threshold(self, redis_client):
        """
        Test Case: Requests within the budget are allowed
        Security Scenario: Normal usage should not be blocked
        """
        limiter = RateLimiter(redis_client)

        for i in range(5):
            is_limited, current, remaining = await limiter.is_rate_limited("payment_capture", 1, 5, 300)
            assert not is_limited, f"Request {i + 1} should be allowed"
            assert current == i + 1
            assert remaining == 5 - (i + 1)

    @pytest.mark.asyncio
    async def test_exceeded(self, redis_client):
        """
        Test Case: Requests beyond the budget are blocked
        Security Scenario: Prevent brute-forcing capture of foreign PayPal orders
        """
        limiter = RateLimiter(redis_client)
        for _ in range(5):
            await limiter.is_rate_limited("payment_capture", 1, 5, 300)

        is_limited, current, remaining = await limiter.is_rate_limited("payment_capture", 1, 5, 300)
        assert is_limited
        assert current == 6
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_per_user_isolation(self, redis_client):
        limiter = RateLimiter(redis_client)
        for _ in range(6):
            await limiter.is_rate_limited("payment_create", 1, 5, 300)

        assert (await limiter.is_rate_limited("payment_create", 1, 5, 300))[0]
        assert not (await limiter.is_rate_limited("payment_create", 2, 5, 300))[0]

    @pytest.mark.asyncio
    async def test_window_expiry_is_set_on_first_hit(self, redis_client):
        limiter = RateLimiter(redis_client)
        await limiter.is_rate_limited("cart_add", 7, 30, 60)

        ttl = await redis_client.ttl("rate_limit:cart_add:7")
        assert 0 < ttl <= 60
        assert await limiter.get_remaining_time("cart_add", 7) == ttl

    @pytest.mark.asyncio
    async def test_reset_limit(self, redis_client):
        limiter = RateLimiter(redis_client)
        for _ in range(6):
            await limiter.is_rate_limited("payment_create", 1, 5, 300)

        await limiter.reset_limit("payment_create", 1)
        assert not (await limiter.is_rate_limited("payment_create", 1, 5, 300))[0]
        assert await limiter.get_remaining_time("unused", 1) == 0

    @pytest.mark.asyncio
    async def test_fail_open_when_redis_unavailable(self):
        """
        Test Case: Redis outage does not block checkout
        """
        redis = MagicMock()
        redis.incr = AsyncMock(side_effect=RedisConnectionError("connection refused"))
        redis.ttl = AsyncMock(side_effect=RedisConnectionError("connection refused"))
        limiter = RateLimiter(redis)

        assert await limiter.is_rate_limited("payment_create", 1, 5, 300) == (False, 0, 5)
        assert await limiter.check(RateLimitOperation.PAYMENT_CREATE, 1) == 10
        assert await limiter.get_remaining_time("payment_create", 1) == 0


class TestCheck:
    """Test RateLimiter.check() with configured budgets."""

    def test_configured_limits(self):
        assert get_limit(RateLimitOperation.PAYMENT_CREATE) == (10, 300)
        assert get_limit(RateLimitOperation.PAYMENT_CAPTURE) == (5, 300)
        assert get_limit(RateLimitOperation.CART_ADD) == (30, 60)

    @pytest.mark.asyncio
    async def test_check_raises_with_retry_after(self, redis_client):
        limiter = RateLimiter(redis_client)
        for _ in range(5):
            await limiter.check(RateLimitOperation.PAYMENT_CAPTURE, 1)

        with pytest.raises(RateLimitExceededException) as exc_info:
            await limiter.check(RateLimitOperation.PAYMENT_CAPTURE, 1)
        assert 0 < exc_info.value.retry_after <= 300
        assert exc_info.value.operation == "payment_capture"

    @pytest.mark.asyncio
    async def test_check_returns_remaining(self, redis_client):
        limiter = RateLimiter(redis_client)
        assert await limiter.check(RateLimitOperation.CART_ADD, 1) == 29
