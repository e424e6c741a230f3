"""
Capa de Dominio - Sistema de Reservas de Alojamientos.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects, utilidades de precio y excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Booking, Payment, CalendarItem, Listing)
- value_objects/: Objetos de valor inmutables (Money, StayRange)
- pricing.py: Conversión a unidades menores y expansión de noches
- errors.py: Excepciones específicas del dominio
"""

from app.domain.entities import (
    Booking,
    BookingStatus,
    CalendarItem,
    Listing,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from app.domain.errors import (
    BookingNotFoundError,
    DomainError,
    GatewayError,
    InvalidDateError,
    InvalidPriceError,
    InvalidRangeError,
    InvalidSignatureError,
    ListingNotFoundError,
    MalformedNotificationError,
    NotFoundError,
    PastDateError,
    PaymentNotFoundError,
    UnsupportedProviderError,
)
from app.domain.value_objects import Money, StayRange

__all__ = [
    # Entities
    "Booking",
    "BookingStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "CalendarItem",
    "Listing",
    # Value Objects
    "Money",
    "StayRange",
    # Errors
    "DomainError",
    "InvalidDateError",
    "InvalidRangeError",
    "PastDateError",
    "InvalidPriceError",
    "NotFoundError",
    "ListingNotFoundError",
    "BookingNotFoundError",
    "PaymentNotFoundError",
    "UnsupportedProviderError",
    "GatewayError",
    "InvalidSignatureError",
    "MalformedNotificationError",
]
