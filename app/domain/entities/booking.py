"""Entidad Booking - Agregado raíz del dominio de reservas."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from app.domain.value_objects.stay_range import StayRange


class BookingStatus(str, Enum):
    """Estados posibles de una reserva."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


@dataclass
class Booking:
    """
    Reserva de un alojamiento por un huésped.

    Se crea en PENDING al abrir el checkout y pasa a CONFIRMED una sola vez,
    cuando el webhook de pago se concilia sin conflicto de fechas.
    """

    id: str
    listing_id: str
    user_id: str
    check_in: date
    check_out: date
    total_price: Decimal
    status: BookingStatus = BookingStatus.PENDING

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def stay(self) -> StayRange:
        """Retorna el rango de noches como Value Object."""
        return StayRange(check_in=self.check_in, check_out=self.check_out)

    @property
    def nights(self) -> int:
        return self.stay.nights

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED
