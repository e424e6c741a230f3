"""Entidades del dominio de reservas."""

from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.calendar_item import CalendarItem
from app.domain.entities.listing import Listing
from app.domain.entities.payment import Payment, PaymentMethod, PaymentStatus

__all__ = [
    # Booking
    "Booking",
    "BookingStatus",
    # Payment
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    # Calendar / Listing
    "CalendarItem",
    "Listing",
]
