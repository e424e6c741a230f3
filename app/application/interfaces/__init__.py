"""Interfaces (Puertos) de la capa de aplicación."""

from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.listing_repo import ListingRepo
from app.application.interfaces.payment_gateway import (
    EventKind,
    GatewayTransaction,
    ParsedEvent,
    PaymentGateway,
)
from app.application.interfaces.reconciliation_alerts import ReconciliationAlerts
from app.application.interfaces.reservation_ledger import (
    REASON_AMOUNT_MISMATCH,
    REASON_BOOKING_MISSING,
    REASON_DATE_CONFLICT,
    ConfirmationResult,
    ReservationLedger,
)
from app.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Repositories
    "ReservationLedger",
    "ConfirmationResult",
    "REASON_DATE_CONFLICT",
    "REASON_BOOKING_MISSING",
    "REASON_AMOUNT_MISMATCH",
    "ListingRepo",
    # Gateways
    "PaymentGateway",
    "GatewayTransaction",
    "ParsedEvent",
    "EventKind",
    # Alerts
    "ReconciliationAlerts",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
]
