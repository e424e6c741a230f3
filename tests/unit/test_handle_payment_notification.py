import json
from datetime import date

import pytest

from app.application.use_cases.handle_payment_notification import HandlePaymentNotificationUseCase
from app.application.use_cases.reserve_booking import ReserveBookingUseCase
from app.domain.entities.booking import BookingStatus
from app.domain.entities.payment import PaymentStatus
from app.domain.errors import (
    InvalidSignatureError,
    MalformedNotificationError,
    UnsupportedProviderError,
)
from app.infrastructure.in_memory.payment_gateway import SIGNATURE_HEADER


@pytest.fixture
def reserve(listing_repo, ledger, gateway_selector, tx_manager, clock):
    counter = iter(range(1, 100))
    return ReserveBookingUseCase(
        listing_repo=listing_repo,
        ledger=ledger,
        gateway_selector=gateway_selector,
        transaction_manager=tx_manager,
        clock=clock,
        app_base_url="https://bookings.example.com",
        id_generator=lambda: f"booking-{next(counter)}",
    )


@pytest.fixture
def handler(ledger, gateway_selector, alerts):
    return HandlePaymentNotificationUseCase(
        ledger=ledger,
        gateway_selector=gateway_selector,
        alerts=alerts,
    )


def _signed(gateway, event: dict) -> tuple[bytes, dict]:
    raw_body = json.dumps(event).encode()
    return raw_body, {SIGNATURE_HEADER: gateway.sign(raw_body)}


def _completed(transaction_id: str, amount: int = 20000, currency: str = "usd", event_id: str = "evt_1"):
    return {
        "id": event_id,
        "type": "payment.completed",
        "transaction_id": transaction_id,
        "amount_minor_units": amount,
        "currency": currency,
    }


async def _reserve(reserve, check_in="2026-01-10", check_out="2026-01-12", provider="stripe"):
    return await reserve.execute(
        user_id="user-1",
        listing_id="listing-1",
        check_in=check_in,
        check_out=check_out,
        provider=provider,
    )


async def test_completed_payment_confirms_booking(reserve, handler, ledger, stripe_stub):
    outcome = await _reserve(reserve)
    raw_body, headers = _signed(stripe_stub, _completed(outcome.external_transaction_id))

    ack = await handler.execute("stripe", raw_body, headers)

    assert ack == {"acknowledged": True}
    booking = await ledger.get_booking(outcome.booking_id)
    payment = await ledger.get_payment_for_booking(outcome.booking_id)
    assert booking.status == BookingStatus.CONFIRMED
    assert payment.status == PaymentStatus.SUCCEEDED
    assert payment.metadata["event_id"] == "evt_1"
    assert ledger.calendar_item("listing-1", date(2026, 1, 10)).is_booked
    assert ledger.calendar_item("listing-1", date(2026, 1, 11)).is_booked
    assert ledger.calendar_item("listing-1", date(2026, 1, 12)) is None


async def test_redelivered_event_is_acknowledged_without_new_writes(reserve, handler, ledger, stripe_stub):
    outcome = await _reserve(reserve)
    raw_body, headers = _signed(stripe_stub, _completed(outcome.external_transaction_id))

    await handler.execute("stripe", raw_body, headers)
    writes = ledger.calendar_writes
    ack = await handler.execute("stripe", raw_body, headers)

    assert ack == {"acknowledged": True}
    assert ledger.calendar_writes == writes
    assert (await ledger.get_booking(outcome.booking_id)).status == BookingStatus.CONFIRMED


async def test_overlapping_paid_booking_is_flagged(reserve, handler, ledger, stripe_stub, alerts):
    first = await _reserve(reserve, "2026-01-10", "2026-01-12")
    second = await _reserve(reserve, "2026-01-11", "2026-01-13")

    await handler.execute("stripe", *_signed(stripe_stub, _completed(first.external_transaction_id)))
    ack = await handler.execute(
        "stripe",
        *_signed(stripe_stub, _completed(second.external_transaction_id, event_id="evt_2")),
    )

    assert ack == {"acknowledged": True}
    booking = await ledger.get_booking(second.booking_id)
    payment = await ledger.get_payment_for_booking(second.booking_id)
    assert booking.status == BookingStatus.PENDING
    assert payment.status == PaymentStatus.PENDING
    assert payment.review_reason == "date conflict"
    assert ledger.calendar_item("listing-1", date(2026, 1, 12)) is None

    conflicts = alerts.of_kind("date_conflict")
    assert len(conflicts) == 1
    assert conflicts[0].booking_id == second.booking_id
    assert conflicts[0].details["external_transaction_id"] == second.external_transaction_id



async def test_redelivered_conflict_is_flagged_once(reserve, handler, ledger, stripe_stub, alerts):
    first = await _reserve(reserve, "2026-01-10", "2026-01-12")
    second = await _reserve(reserve, "2026-01-11", "2026-01-13")
    await handler.execute("stripe", *_signed(stripe_stub, _completed(first.external_transaction_id)))
    conflicting = _completed(second.external_transaction_id, event_id="evt_2")

    await handler.execute("stripe", *_signed(stripe_stub, conflicting))
    ack = await handler.execute("stripe", *_signed(stripe_stub, conflicting))

    assert ack == {"acknowledged": True}
    payment = await ledger.get_payment_for_booking(second.booking_id)
    assert len(payment.metadata["review"]) == 1
    assert len(alerts.of_kind("date_conflict")) == 1


async def test_redelivered_mismatch_is_flagged_once(reserve, handler, ledger, stripe_stub, alerts):
    outcome = await _reserve(reserve)
    event = _completed(outcome.external_transaction_id, amount=100)

    await handler.execute("stripe", *_signed(stripe_stub, event))
    await handler.execute("stripe", *_signed(stripe_stub, event))

    payment = await ledger.get_payment_for_booking(outcome.booking_id)
    assert len(payment.metadata["review"]) == 1
    assert len(alerts.of_kind("payment_mismatch")) == 1

@pytest.mark.parametrize(
    "amount, currency",
    [(19999, "usd"), (20000, "eur"), (None, "usd"), (20000, None)],
)
async def test_amount_mismatch_is_flagged_not_confirmed(
    reserve, handler, ledger, stripe_stub, alerts, amount, currency
):
    outcome = await _reserve(reserve)
    event = _completed(outcome.external_transaction_id, amount=amount, currency=currency)

    ack = await handler.execute("stripe", *_signed(stripe_stub, event))

    assert ack == {"acknowledged": True}
    payment = await ledger.get_payment_for_booking(outcome.booking_id)
    assert payment.status == PaymentStatus.PENDING
    assert payment.review_reason == "amount mismatch"
    assert (await ledger.get_booking(outcome.booking_id)).status == BookingStatus.PENDING
    assert ledger.calendar_writes == 0

    mismatches = alerts.of_kind("payment_mismatch")
    assert len(mismatches) == 1
    assert mismatches[0].details["expected_minor_units"] == 20000
    assert mismatches[0].details["reported_minor_units"] == amount


async def test_unknown_transaction_is_acknowledged(handler, ledger, stripe_stub, alerts):
    ack = await handler.execute("stripe", *_signed(stripe_stub, _completed("cs_test_unknown")))

    assert ack == {"acknowledged": True}
    assert ledger.calendar_writes == 0
    assert alerts.alerts == []


async def test_other_event_types_are_ignored(reserve, handler, ledger, stripe_stub):
    outcome = await _reserve(reserve)
    event = {"id": "evt_9", "type": "payment.refunded", "transaction_id": outcome.external_transaction_id}

    ack = await handler.execute("stripe", *_signed(stripe_stub, event))

    assert ack == {"acknowledged": True}
    assert (await ledger.get_booking(outcome.booking_id)).status == BookingStatus.PENDING


async def test_invalid_signature_changes_nothing(reserve, handler, ledger, stripe_stub):
    outcome = await _reserve(reserve)
    raw_body = json.dumps(_completed(outcome.external_transaction_id)).encode()

    with pytest.raises(InvalidSignatureError):
        await handler.execute("stripe", raw_body, {SIGNATURE_HEADER: "0" * 64})

    with pytest.raises(InvalidSignatureError):
        await handler.execute("stripe", raw_body, {})

    assert (await ledger.get_booking(outcome.booking_id)).status == BookingStatus.PENDING
    assert ledger.calendar_writes == 0


async def test_malformed_body(handler, stripe_stub):
    raw_body = b"not json"

    with pytest.raises(MalformedNotificationError):
        await handler.execute("stripe", raw_body, {SIGNATURE_HEADER: stripe_stub.sign(raw_body)})


async def test_event_for_other_provider_does_not_match(reserve, handler, ledger, paypal_stub):
    # Una transacción de Stripe notificada por la ruta de PayPal no existe allí
    outcome = await _reserve(reserve, provider="stripe")

    ack = await handler.execute("paypal", *_signed(paypal_stub, _completed(outcome.external_transaction_id)))

    assert ack == {"acknowledged": True}
    assert (await ledger.get_booking(outcome.booking_id)).status == BookingStatus.PENDING


async def test_unknown_provider_route(handler):
    with pytest.raises(UnsupportedProviderError):
        await handler.execute("bitcoin", b"{}", {})
