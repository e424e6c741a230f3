from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces.transaction_manager import TransactionManager
from app.infrastructure.db.engine import session_scope


class SQLAlchemyTransactionManager(TransactionManager):
    """
    Abre una transacción y la publica en un ContextVar.

    Los repositorios que comparten el mismo session_maker la reutilizan vía
    session(); fuera de start() cada operación abre la suya.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker
        self._current: ContextVar[AsyncSession | None] = ContextVar(
            "current_session", default=None
        )

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        return self._session_maker

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        session = self._current.get()
        if session is not None and session.in_transaction():
            yield
            return
        async with session_scope(self._session_maker) as session:
            token = self._current.set(session)
            try:
                yield
            finally:
                self._current.reset(token)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """La sesión de la transacción en curso, o una nueva con su propio commit."""
        current = self._current.get()
        if current is not None:
            yield current
            return
        async with session_scope(self._session_maker) as session:
            yield session
