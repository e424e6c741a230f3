"""
Tests del retry de deadlocks usado por confirm_if_unbooked.

- Detecta MySQL 1213/1205, PostgreSQL 40001/40P01 y "database is locked" de SQLite
- Reintenta con backoff exponencial
- Se rinde después de max_attempts
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.infrastructure.db.retry import is_deadlock_error, retry_on_deadlock


def _operational(message: str) -> OperationalError:
    return OperationalError("UPDATE payments", {}, Exception(message), connection_invalidated=False)


class TestDeadlockDetection:
    @pytest.mark.parametrize(
        "message",
        [
            "(1213, 'Deadlock found when trying to get lock')",
            "(1205, 'Lock wait timeout exceeded')",
            "could not serialize access due to concurrent update (SQLSTATE 40001)",
            "database is locked",
        ],
    )
    def test_retryable_errors(self, message):
        assert is_deadlock_error(_operational(message))

    def test_postgres_sqlstate_attribute(self):
        orig = Mock()
        orig.sqlstate = "40P01"
        error = OperationalError("UPDATE payments", {}, orig, connection_invalidated=False)

        assert is_deadlock_error(error)

    def test_other_errors_are_not_retryable(self):
        assert not is_deadlock_error(Exception("(1213) looks like a deadlock"))
        assert not is_deadlock_error(_operational("(2013, 'Lost connection to MySQL server')"))


class TestRetryOnDeadlock:
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")

        assert await retry_on_deadlock(func) == "ok"
        assert func.await_count == 1

    async def test_retries_then_succeeds(self):
        func = AsyncMock(side_effect=[_operational("database is locked"), "ok"])

        with patch("app.infrastructure.db.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await retry_on_deadlock(func, max_attempts=3, base_delay=0.1)

        assert result == "ok"
        assert func.await_count == 2
        sleep.assert_awaited_once_with(0.1)

    async def test_gives_up_after_max_attempts(self):
        func = AsyncMock(side_effect=_operational("(1213, 'Deadlock found')"))

        with patch("app.infrastructure.db.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(OperationalError):
                await retry_on_deadlock(func, max_attempts=3, base_delay=0.1)

        assert func.await_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == [0.1, 0.2]

    async def test_non_deadlock_error_is_not_retried(self):
        func = AsyncMock(side_effect=_operational("no such table: payments"))

        with pytest.raises(OperationalError):
            await retry_on_deadlock(func)

        assert func.await_count == 1

    async def test_non_database_errors_propagate(self):
        func = AsyncMock(side_effect=ValueError("boom"))

        with pytest.raises(ValueError):
            await retry_on_deadlock(func)

        assert func.await_count == 1
