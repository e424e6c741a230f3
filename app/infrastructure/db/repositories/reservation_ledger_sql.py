import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping
from uuid import uuid4

from sqlalchemy import false, insert, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.reservation_ledger import (
    REASON_BOOKING_MISSING,
    REASON_DATE_CONFLICT,
    ConfirmationResult,
    ReservationLedger,
)
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.payment import Payment, PaymentMethod, PaymentStatus
from app.domain.errors import PaymentNotFoundError
from app.domain.pricing import expand_nights
from app.infrastructure.db.engine import session_scope
from app.infrastructure.db.retry import retry_on_deadlock
from app.infrastructure.db.tables import bookings, calendar_items, payments
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

logger = logging.getLogger(__name__)


class _ConfirmationRejected(Exception):
    """Aborta la transacción de confirmación; no sale de este módulo."""

    def __init__(self, reason: str, booking_id: str | None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.booking_id = booking_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid4())


class ReservationLedgerSQL(ReservationLedger):
    def __init__(
        self,
        transaction_manager: SQLAlchemyTransactionManager,
        id_generator: Callable[[], str] = _new_id,
        max_attempts: int = 3,
    ) -> None:
        self._tx = transaction_manager
        self._id_generator = id_generator
        self._max_attempts = max_attempts

    async def create_pending_booking(
        self,
        user_id: str,
        listing_id: str,
        check_in: date,
        check_out: date,
        total_price: Decimal,
        booking_id: str | None = None,
    ) -> Booking:
        now = _utcnow()
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
        async with self._tx.session() as session:
            await session.execute(
                insert(bookings).values(
                    id=booking.id,
                    listing_id=booking.listing_id,
                    user_id=booking.user_id,
                    check_in=booking.check_in,
                    check_out=booking.check_out,
                    status=booking.status.value,
                    total_price=booking.total_price,
                    created_at=now,
                    updated_at=now,
                )
            )
        return booking

    async def attach_payment(
        self,
        booking_id: str,
        amount: Decimal,
        currency: str,
        method: PaymentMethod,
        external_transaction_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> Payment:
        now = _utcnow()
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
        async with self._tx.session() as session:
            await session.execute(
                insert(payments).values(
                    id=payment.id,
                    booking_id=payment.booking_id,
                    method=payment.method.value,
                    external_transaction_id=payment.external_transaction_id,
                    amount=payment.amount,
                    currency=payment.currency,
                    status=payment.status.value,
                    metadata=payment.metadata,
                    created_at=now,
                    updated_at=now,
                )
            )
        return payment

    async def find_payment_by_external_id(
        self,
        method: PaymentMethod,
        external_transaction_id: str,
    ) -> Payment | None:
        stmt = select(payments).where(
            payments.c.method == method.value,
            payments.c.external_transaction_id == external_transaction_id,
        )
        async with self._tx.session() as session:
            result = await session.execute(stmt)
            row = result.mappings().first()
        return self._map_payment(row) if row else None

    async def confirm_if_unbooked(
        self,
        payment_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> ConfirmationResult:
        async def attempt() -> ConfirmationResult:
            # Transacción propia: el resultado no depende de la sesión del llamador
            async with session_scope(self._tx.session_maker) as session:
                return await self._confirm(session, payment_id, metadata or {})

        try:
            return await retry_on_deadlock(attempt, max_attempts=self._max_attempts)
        except _ConfirmationRejected as rejected:
            logger.warning(
                "Payment confirmation rejected",
                extra={
                    "payment_id": payment_id,
                    "booking_id": rejected.booking_id,
                    "reason": rejected.reason,
                },
            )
            return ConfirmationResult(
                confirmed=False,
                booking_id=rejected.booking_id,
                reason=rejected.reason,
            )

    async def _confirm(
        self,
        session: AsyncSession,
        payment_id: str,
        metadata: Mapping[str, Any],
    ) -> ConfirmationResult:
        now = _utcnow()

        # 1. Reclamar el pago: solo una transacción pasa PENDING -> SUCCEEDED
        claim = await session.execute(
            update(payments)
            .where(
                payments.c.id == payment_id,
                payments.c.status == PaymentStatus.PENDING.value,
            )
            .values(status=PaymentStatus.SUCCEEDED.value, updated_at=now)
        )
        result = await session.execute(select(payments).where(payments.c.id == payment_id))
        payment_row = result.mappings().first()
        if payment_row is None:
            raise PaymentNotFoundError(payment_id)

        booking_id = payment_row["booking_id"]
        if claim.rowcount == 0:
            if payment_row["status"] == PaymentStatus.SUCCEEDED.value:
                return ConfirmationResult(confirmed=True, booking_id=booking_id, replayed=True)
            raise _ConfirmationRejected(f"payment {payment_row['status'].lower()}", booking_id)

        # 2. Reserva dueña del pago
        result = await session.execute(select(bookings).where(bookings.c.id == booking_id))
        booking_row = result.mappings().first()
        if booking_row is None:
            raise _ConfirmationRejected(REASON_BOOKING_MISSING, booking_id)

        # 3. Noches a ocupar
        listing_id = booking_row["listing_id"]
        check_in = booking_row["check_in"]
        nights = expand_nights(check_in, (booking_row["check_out"] - check_in).days)

        # 4. Conflicto con noches ya ocupadas
        result = await session.execute(
            select(calendar_items.c.date, calendar_items.c.is_booked).where(
                calendar_items.c.listing_id == listing_id,
                calendar_items.c.date.in_(nights),
            )
        )
        existing = {row["date"]: row["is_booked"] for row in result.mappings()}
        if any(existing.values()):
            raise _ConfirmationRejected(REASON_DATE_CONFLICT, booking_id)

        # 5. Ocupar: filas nuevas por PK, filas libres con update condicional
        new_dates = [night for night in nights if night not in existing]
        if new_dates:
            try:
                await session.execute(
                    insert(calendar_items),
                    [{"listing_id": listing_id, "date": night, "is_booked": True} for night in new_dates],
                )
            except IntegrityError as exc:
                raise _ConfirmationRejected(REASON_DATE_CONFLICT, booking_id) from exc

        free_dates = [night for night in nights if night in existing]
        if free_dates:
            occupied = await session.execute(
                update(calendar_items)
                .where(
                    calendar_items.c.listing_id == listing_id,
                    calendar_items.c.date.in_(free_dates),
                    calendar_items.c.is_booked == false(),
                )
                .values(is_booked=True)
            )
            if occupied.rowcount != len(free_dates):
                raise _ConfirmationRejected(REASON_DATE_CONFLICT, booking_id)

        await session.execute(
            update(bookings)
            .where(bookings.c.id == booking_id)
            .values(status=BookingStatus.CONFIRMED.value, updated_at=now)
        )
        merged = {**(payment_row["metadata"] or {}), **metadata}
        await session.execute(
            update(payments).where(payments.c.id == payment_id).values(metadata=merged)
        )

        logger.info(
            "Booking confirmed and nights reserved",
            extra={
                "payment_id": payment_id,
                "booking_id": booking_id,
                "listing_id": listing_id,
                "nights": len(nights),
            },
        )
        return ConfirmationResult(confirmed=True, booking_id=booking_id)

    async def get_booking(self, booking_id: str) -> Booking | None:
        async with self._tx.session() as session:
            result = await session.execute(select(bookings).where(bookings.c.id == booking_id))
            row = result.mappings().first()
        return self._map_booking(row) if row else None

    async def get_payment_for_booking(self, booking_id: str) -> Payment | None:
        async with self._tx.session() as session:
            result = await session.execute(
                select(payments).where(payments.c.booking_id == booking_id)
            )
            row = result.mappings().first()
        return self._map_payment(row) if row else None

    async def flag_for_review(
        self,
        payment_id: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        async with self._tx.session() as session:
            result = await session.execute(
                select(payments.c.metadata).where(payments.c.id == payment_id)
            )
            row = result.first()
            if row is None:
                raise PaymentNotFoundError(payment_id)

            metadata = dict(row[0] or {})
            reviews = list(metadata.get("review", []))
            reviews.append({"reason": reason, "flagged_at": _utcnow().isoformat(), **(details or {})})
            metadata["review"] = reviews
            await session.execute(
                update(payments)
                .where(payments.c.id == payment_id)
                .values(review_reason=reason, metadata=metadata, updated_at=_utcnow())
            )

    async def list_booked_dates(
        self,
        listing_id: str,
        start: date,
        end: date,
    ) -> list[date]:
        stmt = (
            select(calendar_items.c.date)
            .where(
                calendar_items.c.listing_id == listing_id,
                calendar_items.c.is_booked == true(),
                calendar_items.c.date >= start,
                calendar_items.c.date < end,
            )
            .order_by(calendar_items.c.date)
        )
        async with self._tx.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    def _map_booking(self, row: Mapping[str, Any]) -> Booking:
        return Booking(
            id=row["id"],
            listing_id=row["listing_id"],
            user_id=row["user_id"],
            check_in=row["check_in"],
            check_out=row["check_out"],
            total_price=Decimal(row["total_price"]),
            status=BookingStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _map_payment(self, row: Mapping[str, Any]) -> Payment:
        return Payment(
            id=row["id"],
            booking_id=row["booking_id"],
            method=PaymentMethod(row["method"]),
            external_transaction_id=row["external_transaction_id"],
            amount=Decimal(row["amount"]),
            currency=row["currency"],
            status=PaymentStatus(row["status"]),
            review_reason=row["review_reason"],
            metadata=dict(row["metadata"] or {}),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
