from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class TransactionManager(Protocol):
    """Agrupa varias escrituras del ledger en una sola transacción."""

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        yield
