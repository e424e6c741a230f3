import asyncio
import copy
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable
from uuid import uuid4

from app.application.interfaces.reservation_ledger import (
    REASON_BOOKING_MISSING,
    REASON_DATE_CONFLICT,
    ConfirmationResult,
    ReservationLedger,
)
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.calendar_item import CalendarItem
from app.domain.entities.payment import Payment, PaymentMethod, PaymentStatus
from app.domain.errors import PaymentNotFoundError
from app.domain.pricing import expand_nights


def _new_id() -> str:
    return str(uuid4())


class InMemoryReservationLedger(ReservationLedger):
    """
    Ledger en memoria para desarrollo y tests.

    Un asyncio.Lock serializa las confirmaciones, como lo haría el aislamiento
    de la base de datos. Los objetos devueltos son copias.
    """

    def __init__(self, id_generator: Callable[[], str] = _new_id) -> None:
        self._bookings: dict[str, Booking] = {}
        self._payments: dict[str, Payment] = {}
        self._payment_by_booking: dict[str, str] = {}
        self._payment_by_external: dict[tuple[PaymentMethod, str], str] = {}
        self._calendar: dict[tuple[str, date], CalendarItem] = {}
        self._id_generator = id_generator
        self._lock = asyncio.Lock()
        self.calendar_writes = 0

    async def create_pending_booking(
        self,
        user_id: str,
        listing_id: str,
        check_in: date,
        check_out: date,
        total_price: Decimal,
        booking_id: str | None = None,
    ) -> Booking:
        now = datetime.now(timezone.utc)
        booking = Booking(
            id=booking_id or self._id_generator(),
            listing_id=listing_id,
            user_id=user_id,
            check_in=check_in,
            check_out=check_out,
            total_price=total_price,
            status=BookingStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        if booking.id in self._bookings:
            raise ValueError(f"Booking already exists: {booking.id}")
        self._bookings[booking.id] = booking
        return copy.deepcopy(booking)

    async def attach_payment(
        self,
        booking_id: str,
        amount: Decimal,
        currency: str,
        method: PaymentMethod,
        external_transaction_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> Payment:
        if booking_id in self._payment_by_booking:
            raise ValueError(f"Booking already has a payment: {booking_id}")
        if (method, external_transaction_id) in self._payment_by_external:
            raise ValueError(f"Duplicate external transaction: {external_transaction_id}")

        now = datetime.now(timezone.utc)
        payment = Payment(
            id=self._id_generator(),
            booking_id=booking_id,
            method=method,
            external_transaction_id=external_transaction_id,
            amount=amount,
            currency=currency.upper(),
            status=PaymentStatus.PENDING,
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        self._payments[payment.id] = payment
        self._payment_by_booking[booking_id] = payment.id
        self._payment_by_external[(method, external_transaction_id)] = payment.id
        return copy.deepcopy(payment)

    async def find_payment_by_external_id(
        self,
        method: PaymentMethod,
        external_transaction_id: str,
    ) -> Payment | None:
        payment_id = self._payment_by_external.get((method, external_transaction_id))
        return copy.deepcopy(self._payments[payment_id]) if payment_id else None

    async def confirm_if_unbooked(
        self,
        payment_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> ConfirmationResult:
        async with self._lock:
            payment = self._payments.get(payment_id)
            if payment is None:
                raise PaymentNotFoundError(payment_id)

            if payment.status == PaymentStatus.SUCCEEDED:
                return ConfirmationResult(confirmed=True, booking_id=payment.booking_id, replayed=True)
            if payment.status != PaymentStatus.PENDING:
                return ConfirmationResult(
                    confirmed=False,
                    booking_id=payment.booking_id,
                    reason=f"payment {payment.status.value.lower()}",
                )

            booking = self._bookings.get(payment.booking_id)
            if booking is None:
                return ConfirmationResult(
                    confirmed=False,
                    booking_id=payment.booking_id,
                    reason=REASON_BOOKING_MISSING,
                )

            nights = expand_nights(booking.check_in, booking.nights)
            for night in nights:
                item = self._calendar.get((booking.listing_id, night))
                if item is not None and item.is_booked:
                    return ConfirmationResult(
                        confirmed=False,
                        booking_id=booking.id,
                        reason=REASON_DATE_CONFLICT,
                    )

            for night in nights:
                self._calendar[(booking.listing_id, night)] = CalendarItem(
                    listing_id=booking.listing_id,
                    date=night,
                    is_booked=True,
                )
                self.calendar_writes += 1

            now = datetime.now(timezone.utc)
            booking.status = BookingStatus.CONFIRMED
            booking.updated_at = now
            payment.status = PaymentStatus.SUCCEEDED
            payment.metadata = {**payment.metadata, **(metadata or {})}
            payment.updated_at = now
            return ConfirmationResult(confirmed=True, booking_id=booking.id)

    async def get_booking(self, booking_id: str) -> Booking | None:
        booking = self._bookings.get(booking_id)
        return copy.deepcopy(booking) if booking else None

    async def get_payment_for_booking(self, booking_id: str) -> Payment | None:
        payment_id = self._payment_by_booking.get(booking_id)
        return copy.deepcopy(self._payments[payment_id]) if payment_id else None

    async def flag_for_review(
        self,
        payment_id: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        now = datetime.now(timezone.utc)
        reviews = list(payment.metadata.get("review", []))
        reviews.append({"reason": reason, "flagged_at": now.isoformat(), **(details or {})})
        payment.metadata = {**payment.metadata, "review": reviews}
        payment.review_reason = reason
        payment.updated_at = now

    async def list_booked_dates(
        self,
        listing_id: str,
        start: date,
        end: date,
    ) -> list[date]:
        return sorted(
            item.date
            for (item_listing, day), item in self._calendar.items()
            if item_listing == listing_id and item.is_booked and start <= day < end
        )

    def calendar_item(self, listing_id: str, day: date) -> CalendarItem | None:
        item = self._calendar.get((listing_id, day))
        return copy.deepcopy(item) if item else None

    def mark_booked(self, listing_id: str, day: date) -> None:
        """Ocupa una fecha directamente (datos semilla y tests)."""
        self._calendar[(listing_id, day)] = CalendarItem(listing_id=listing_id, date=day, is_booked=True)
