"""DTOs para reservas de alojamientos."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from app.domain.entities.booking import Booking
from app.domain.entities.payment import Payment
from app.domain.value_objects.money import from_minor_units


@dataclass
class ReservationOutcomeDTO:
    """Resultado de abrir un checkout: a dónde redirigir al huésped."""

    booking_id: str
    redirect_url: str | None
    external_transaction_id: str
    total_minor_units: int
    currency: str
    provider: str

    @property
    def total_amount(self) -> Decimal:
        """Total en unidades mayores (dos decimales)."""
        return from_minor_units(self.total_minor_units)


@dataclass
class BookingDetailsDTO:
    """Reserva con su pago (si existe)."""

    booking: Booking
    payment: Payment | None = None

    @property
    def needs_review(self) -> bool:
        return bool(self.payment and self.payment.needs_review)


@dataclass
class CheckoutStatusDTO:
    """Estado visible en la página de retorno del checkout."""

    external_transaction_id: str
    provider: str
    booking_id: str | None = None
    booking_status: str | None = None
    payment_status: str | None = None
    found: bool = False


@dataclass
class AvailabilityDTO:
    """Noches ocupadas de un alojamiento en una ventana [start, end)."""

    listing_id: str
    start: date
    end: date
    booked_dates: list[date] = field(default_factory=list)

    def is_available(self, day: date) -> bool:
        return day not in self.booked_dates
