# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Retry policies for talking to shards.

Cache operations are never retried by the cache manager; a failed batch is
logged and dropped. Retrying happens in two places only:

Socket retries: redis-py retries a command on a fresh connection when the
    socket drops or times out (2 retries, 50ms exponential backoff capped at 1s)
Health checks: tenacity retries a shard ping (3 attempts, 1s then 2s between)
"""

import logging
from typing import Tuple, Type

from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# A cache must fail fast so callers can fall back to the source of truth
SOCKET_RETRIES = 2
SOCKET_BACKOFF_BASE = 0.05  # seconds
SOCKET_BACKOFF_CAP = 1  # seconds

HEALTH_CHECK_ATTEMPTS = 3
HEALTH_CHECK_WAIT_MIN = 1  # seconds
HEALTH_CHECK_WAIT_MAX = 4  # seconds

# Errors worth another attempt; anything else (WRONGTYPE, auth) will not heal
TRANSIENT_REDIS_ERRORS: Tuple[Type[Exception], ...] = (
    RedisConnectionError,
    RedisTimeoutError,
)


def redis_retry_strategy(retries: int = SOCKET_RETRIES) -> Retry:
    """Build the redis-py retry policy attached to every shard connection pool."""
    return Retry(ExponentialBackoff(cap=SOCKET_BACKOFF_CAP, base=SOCKET_BACKOFF_BASE), retries=retries)


# ==============================================================================
# Health Check Retry
# ==============================================================================


def _log_failed_ping(logger: logging.Logger):
    def _log(retry_state: RetryCallState) -> None:
        shard = retry_state.args[0] if retry_state.args else None
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Ping of shard %s failed (attempt %d/%d): %s",
            getattr(shard, "name", shard),
            retry_state.attempt_number,
            HEALTH_CHECK_ATTEMPTS,
            error,
        )

    return _log


def retry_health_check(logger: logging.Logger):
    """
    Decorator retrying a shard health check on transient errors.

    The decorated function takes the ShardInfo being checked as its first
    argument; it is named in the warning logged before each new attempt.
    The last error is re-raised once the attempts are used up.

    Example:
        ping = retry_health_check(logger)(pool.ping_shard)
        ping(shard)
    """
    return retry(
        stop=stop_after_attempt(HEALTH_CHECK_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=HEALTH_CHECK_WAIT_MIN, max=HEALTH_CHECK_WAIT_MAX),
        retry=retry_if_exception_type(TRANSIENT_REDIS_ERRORS),
        before_sleep=_log_failed_ping(logger),
        reraise=True,
    )
