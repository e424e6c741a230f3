from contextlib import asynccontextmanager

from app.application.interfaces.transaction_manager import TransactionManager


class NoopTransactionManager(TransactionManager):
    """El ledger en memoria aplica cada escritura al instante; no hay nada que agrupar."""

    @asynccontextmanager
    async def start(self):
        yield
