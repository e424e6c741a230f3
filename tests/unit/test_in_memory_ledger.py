import asyncio
from datetime import date
from decimal import Decimal

import pytest

from app.application.interfaces.reservation_ledger import REASON_DATE_CONFLICT
from app.domain.entities.booking import BookingStatus
from app.domain.entities.payment import PaymentMethod, PaymentStatus
from app.domain.errors import PaymentNotFoundError
from app.infrastructure.in_memory.reservation_ledger import InMemoryReservationLedger


async def _pending(ledger, check_in, check_out, external_id, listing_id="listing-1"):
    booking = await ledger.create_pending_booking(
        user_id="user-1",
        listing_id=listing_id,
        check_in=check_in,
        check_out=check_out,
        total_price=Decimal("200.00"),
    )
    payment = await ledger.attach_payment(
        booking_id=booking.id,
        amount=Decimal("200.00"),
        currency="usd",
        method=PaymentMethod.STRIPE,
        external_transaction_id=external_id,
    )
    return booking, payment


async def test_confirm_marks_every_night_but_checkout_day():
    ledger = InMemoryReservationLedger()
    booking, payment = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")

    result = await ledger.confirm_if_unbooked(payment.id, metadata={"event_id": "evt_1"})

    assert result.confirmed
    assert not result.replayed
    assert result.booking_id == booking.id
    assert ledger.calendar_item("listing-1", date(2026, 1, 10)).is_booked
    assert ledger.calendar_item("listing-1", date(2026, 1, 11)).is_booked
    assert ledger.calendar_item("listing-1", date(2026, 1, 12)) is None

    stored_booking = await ledger.get_booking(booking.id)
    stored_payment = await ledger.get_payment_for_booking(booking.id)
    assert stored_booking.status == BookingStatus.CONFIRMED
    assert stored_payment.status == PaymentStatus.SUCCEEDED
    assert stored_payment.metadata["event_id"] == "evt_1"
    assert stored_payment.currency == "USD"


async def test_confirm_is_idempotent():
    ledger = InMemoryReservationLedger()
    _, payment = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")

    await ledger.confirm_if_unbooked(payment.id)
    writes_after_first = ledger.calendar_writes
    replay = await ledger.confirm_if_unbooked(payment.id)

    assert replay.confirmed
    assert replay.replayed
    assert ledger.calendar_writes == writes_after_first == 2


async def test_overlapping_booking_is_rejected_without_changes():
    ledger = InMemoryReservationLedger()
    _, first = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")
    second_booking, second = await _pending(ledger, date(2026, 1, 11), date(2026, 1, 13), "tx_2")

    await ledger.confirm_if_unbooked(first.id)
    result = await ledger.confirm_if_unbooked(second.id)

    assert not result.confirmed
    assert result.reason == REASON_DATE_CONFLICT
    assert result.is_date_conflict
    # La noche del 12 no se ocupó a medias
    assert ledger.calendar_item("listing-1", date(2026, 1, 12)) is None
    assert (await ledger.get_booking(second_booking.id)).status == BookingStatus.PENDING
    assert (await ledger.get_payment_for_booking(second_booking.id)).status == PaymentStatus.PENDING


async def test_adjacent_stays_do_not_conflict():
    ledger = InMemoryReservationLedger()
    _, first = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")
    _, second = await _pending(ledger, date(2026, 1, 12), date(2026, 1, 14), "tx_2")

    assert (await ledger.confirm_if_unbooked(first.id)).confirmed
    assert (await ledger.confirm_if_unbooked(second.id)).confirmed
    assert await ledger.list_booked_dates("listing-1", date(2026, 1, 1), date(2026, 2, 1)) == [
        date(2026, 1, 10),
        date(2026, 1, 11),
        date(2026, 1, 12),
        date(2026, 1, 13),
    ]


async def test_same_dates_on_other_listing_do_not_conflict():
    ledger = InMemoryReservationLedger()
    _, first = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")
    _, other = await _pending(
        ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_2", listing_id="listing-2"
    )

    assert (await ledger.confirm_if_unbooked(first.id)).confirmed
    assert (await ledger.confirm_if_unbooked(other.id)).confirmed


async def test_concurrent_overlapping_confirmations_book_once():
    ledger = InMemoryReservationLedger()
    _, first = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")
    _, second = await _pending(ledger, date(2026, 1, 11), date(2026, 1, 13), "tx_2")

    results = await asyncio.gather(
        ledger.confirm_if_unbooked(first.id),
        ledger.confirm_if_unbooked(second.id),
    )

    assert sorted(result.confirmed for result in results) == [False, True]
    booked = await ledger.list_booked_dates("listing-1", date(2026, 1, 1), date(2026, 2, 1))
    assert len(booked) == 2


async def test_concurrent_redelivery_writes_calendar_once():
    ledger = InMemoryReservationLedger()
    _, payment = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")

    results = await asyncio.gather(*(ledger.confirm_if_unbooked(payment.id) for _ in range(5)))

    assert all(result.confirmed for result in results)
    assert sum(1 for result in results if not result.replayed) == 1
    assert ledger.calendar_writes == 2


async def test_unknown_payment_raises():
    ledger = InMemoryReservationLedger()

    with pytest.raises(PaymentNotFoundError):
        await ledger.confirm_if_unbooked("missing")


async def test_find_payment_by_external_id_is_scoped_by_method():
    ledger = InMemoryReservationLedger()
    _, payment = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")

    found = await ledger.find_payment_by_external_id(PaymentMethod.STRIPE, "tx_1")

    assert found.id == payment.id
    assert await ledger.find_payment_by_external_id(PaymentMethod.PAYPAL, "tx_1") is None


async def test_flag_for_review_keeps_history():
    ledger = InMemoryReservationLedger()
    booking, payment = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")

    await ledger.flag_for_review(payment.id, "amount mismatch", {"event_id": "evt_1"})

    stored = await ledger.get_payment_for_booking(booking.id)
    assert stored.needs_review
    assert stored.review_reason == "amount mismatch"
    assert stored.metadata["review"][0]["event_id"] == "evt_1"
    assert stored.status == PaymentStatus.PENDING


async def test_returned_objects_are_copies():
    ledger = InMemoryReservationLedger()
    booking, _ = await _pending(ledger, date(2026, 1, 10), date(2026, 1, 12), "tx_1")

    copy = await ledger.get_booking(booking.id)
    copy.status = BookingStatus.CANCELLED

    assert (await ledger.get_booking(booking.id)).status == BookingStatus.PENDING
