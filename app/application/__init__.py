"""
Capa de Aplicación - Reservas de Alojamientos.

Esta capa contiene los casos de uso, DTOs e interfaces (puertos).
Orquesta el checkout y la conciliación de pagos, y define los contratos
con la infraestructura.

Estructura:
- use_cases/: Casos de uso del sistema
- dtos/: Data Transfer Objects
- interfaces/: Puertos (contratos para adaptadores)
"""

from app.application.dtos import (
    AvailabilityDTO,
    BookingDetailsDTO,
    CheckoutStatusDTO,
    ReservationOutcomeDTO,
)
from app.application.interfaces import (
    Clock,
    ConfirmationResult,
    EventKind,
    FakeClock,
    GatewayTransaction,
    ListingRepo,
    ParsedEvent,
    PaymentGateway,
    ReconciliationAlerts,
    ReservationLedger,
    SystemClock,
    TransactionManager,
)

__all__ = [
    # DTOs
    "ReservationOutcomeDTO",
    "BookingDetailsDTO",
    "CheckoutStatusDTO",
    "AvailabilityDTO",
    # Interfaces - Repositories
    "ReservationLedger",
    "ConfirmationResult",
    "ListingRepo",
    # Interfaces - Gateways
    "PaymentGateway",
    "GatewayTransaction",
    "ParsedEvent",
    "EventKind",
    # Interfaces - Alerts
    "ReconciliationAlerts",
    # Interfaces - Infrastructure
    "TransactionManager",
    # Interfaces - Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
]
