"""DTOs (Data Transfer Objects) de la capa de aplicación."""

from app.application.dtos.booking_dto import (
    AvailabilityDTO,
    BookingDetailsDTO,
    CheckoutStatusDTO,
    ReservationOutcomeDTO,
)

__all__ = [
    "ReservationOutcomeDTO",
    "BookingDetailsDTO",
    "CheckoutStatusDTO",
    "AvailabilityDTO",
]
