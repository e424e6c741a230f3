"""
Retry helpers for transactions that lose a race inside the database.

Confirmations for overlapping stays contend on the same calendar rows; the
store may abort one of them with a deadlock or a serialization failure. Those
aborts are safe to replay because the whole unit of work was rolled back.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# MySQL error codes
MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"

# PostgreSQL SQLSTATE codes
POSTGRES_SERIALIZATION_FAILURE = "40001"
POSTGRES_DEADLOCK_DETECTED = "40P01"

SQLITE_LOCKED = "database is locked"

RETRYABLE_MARKERS = (
    MYSQL_DEADLOCK_ERROR,
    MYSQL_LOCK_WAIT_TIMEOUT,
    POSTGRES_SERIALIZATION_FAILURE,
    POSTGRES_DEADLOCK_DETECTED,
    SQLITE_LOCKED,
)


def is_deadlock_error(error: Exception) -> bool:
    """
    Check if an exception is a transient concurrency abort.

    Args:
        error: The exception to check

    Returns:
        True for deadlocks, lock wait timeouts and serialization failures
    """
    if not isinstance(error, (OperationalError, DBAPIError)):
        return False
    sqlstate = getattr(getattr(error, "orig", None), "sqlstate", None)
    if sqlstate in (POSTGRES_SERIALIZATION_FAILURE, POSTGRES_DEADLOCK_DETECTED):
        return True
    error_str = str(error)
    return any(marker in error_str for marker in RETRYABLE_MARKERS)


async def retry_on_deadlock(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Run a transactional unit of work, replaying it after a deadlock.

    Uses exponential backoff: base_delay * (2 ** attempt). ``func`` must open
    and commit its own transaction so each attempt starts clean.

    Args:
        func: The async function to execute
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Returns:
        The result of the function call

    Raises:
        The original exception if max attempts exceeded or non-deadlock error
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except (OperationalError, DBAPIError) as e:
            if not is_deadlock_error(e):
                raise

            if attempt == max_attempts - 1:
                logger.error(
                    "Database deadlock persists after max retries",
                    extra={"attempts": max_attempts, "error": str(e)},
                )
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Database deadlock detected, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                },
            )
            await asyncio.sleep(delay)

    raise RuntimeError("retry_on_deadlock called with max_attempts < 1")
