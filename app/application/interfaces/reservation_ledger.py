"""Interface ReservationLedger - Puerto de persistencia de reservas, pagos y calendario."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from app.domain.entities.booking import Booking
from app.domain.entities.payment import Payment, PaymentMethod

REASON_DATE_CONFLICT = "date conflict"
REASON_BOOKING_MISSING = "booking missing"
REASON_AMOUNT_MISMATCH = "amount mismatch"


@dataclass(frozen=True)
class ConfirmationResult:
    """Resultado de confirm_if_unbooked."""

    confirmed: bool
    booking_id: str | None = None
    reason: str | None = None
    replayed: bool = False

    @property
    def is_date_conflict(self) -> bool:
        return self.reason == REASON_DATE_CONFLICT


class ReservationLedger(ABC):
    """
    Puerto para el libro de reservas.

    Es el único componente que escribe Booking, Payment y CalendarItem.
    confirm_if_unbooked es atómico: o se marcan todas las noches y se confirma
    la reserva, o no cambia nada.
    """

    @abstractmethod
    async def create_pending_booking(
        self,
        user_id: str,
        listing_id: str,
        check_in: date,
        check_out: date,
        total_price: Decimal,
        booking_id: str | None = None,
    ) -> Booking:
        """
        Crea una reserva en PENDING (sin verificar disponibilidad).

        Args:
            user_id: Huésped autenticado.
            listing_id: Alojamiento reservado.
            check_in: Primera noche.
            check_out: Día de salida (exclusivo).
            total_price: Total exacto en unidades mayores.
            booking_id: Id pregenerado (el que ya se envió al proveedor).

        Returns:
            Booking persistido con id asignado.
        """
        raise NotImplementedError

    @abstractmethod
    async def attach_payment(
        self,
        booking_id: str,
        amount: Decimal,
        currency: str,
        method: PaymentMethod,
        external_transaction_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> Payment:
        """
        Registra el pago PENDING de una reserva (relación 1:1).

        Returns:
            Payment persistido.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_payment_by_external_id(
        self,
        method: PaymentMethod,
        external_transaction_id: str,
    ) -> Payment | None:
        """Busca un pago por el identificador de correlación del proveedor."""
        raise NotImplementedError

    @abstractmethod
    async def confirm_if_unbooked(
        self,
        payment_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> ConfirmationResult:
        """
        Marca el pago SUCCEEDED, ocupa las noches y confirma la reserva.

        Idempotente: si el pago ya estaba SUCCEEDED retorna confirmed=True sin
        volver a escribir el calendario. Si alguna noche ya está ocupada no
        cambia nada y retorna reason="date conflict".

        Args:
            payment_id: Pago a conciliar.
            metadata: Datos de correlación del proveedor a fusionar en el pago.

        Raises:
            PaymentNotFoundError: el pago no existe.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    async def get_payment_for_booking(self, booking_id: str) -> Payment | None:
        raise NotImplementedError

    @abstractmethod
    async def flag_for_review(
        self,
        payment_id: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Marca un pago para conciliación manual sin cambiar su estado.

        Args:
            payment_id: Pago afectado.
            reason: Motivo (p. ej. "amount mismatch", "date conflict").
            details: Contexto adicional que se agrega a la metadata.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_booked_dates(
        self,
        listing_id: str,
        start: date,
        end: date,
    ) -> list[date]:
        """Fechas ocupadas del alojamiento en [start, end), ordenadas."""
        raise NotImplementedError
