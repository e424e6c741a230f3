"""Implementaciones in-memory para desarrollo y testing."""

from app.infrastructure.in_memory.listing_repo import InMemoryListingRepo
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway as InMemoryPaymentGateway
from app.infrastructure.in_memory.reconciliation_alerts import InMemoryReconciliationAlerts
from app.infrastructure.in_memory.reservation_ledger import InMemoryReservationLedger
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager as InMemoryTransactionManager

__all__ = [
    # Repositories
    "InMemoryReservationLedger",
    "InMemoryListingRepo",
    # Gateways
    "InMemoryPaymentGateway",
    # Alerts
    "InMemoryReconciliationAlerts",
    # Infrastructure
    "InMemoryTransactionManager",
]
