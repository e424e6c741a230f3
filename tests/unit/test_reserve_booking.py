from datetime import date
from decimal import Decimal

import pytest

from app.application.use_cases.reserve_booking import ReserveBookingUseCase
from app.domain.entities.booking import BookingStatus
from app.domain.entities.payment import PaymentMethod, PaymentStatus
from app.domain.errors import (
    GatewayError,
    InvalidPriceError,
    InvalidRangeError,
    ListingNotFoundError,
    PastDateError,
    UnsupportedProviderError,
)

BASE_URL = "https://bookings.example.com"


@pytest.fixture
def use_case(listing_repo, ledger, gateway_selector, tx_manager, clock):
    return ReserveBookingUseCase(
        listing_repo=listing_repo,
        ledger=ledger,
        gateway_selector=gateway_selector,
        transaction_manager=tx_manager,
        clock=clock,
        app_base_url=BASE_URL + "/",
        id_generator=lambda: "booking-1",
    )


async def test_reserve_two_nights_opens_checkout_and_persists_pending(use_case, ledger, stripe_stub):
    outcome = await use_case.execute(
        user_id="user-1",
        listing_id="listing-1",
        check_in="2026-01-10",
        check_out="2026-01-12",
        provider="stripe",
    )

    assert outcome.booking_id == "booking-1"
    assert outcome.total_minor_units == 20000
    assert outcome.total_amount == Decimal("200.00")
    assert str(outcome.total_amount) == "200.00"
    assert outcome.currency == "USD"
    assert outcome.provider == "STRIPE"
    assert outcome.redirect_url.endswith(outcome.external_transaction_id)

    sent = stripe_stub.transactions[0]
    assert sent["booking_id"] == "booking-1"
    assert sent["amount_minor_units"] == 20000
    assert sent["quantity"] == 2
    assert sent["unit_amount_minor_units"] == 10000
    assert sent["description"] == "Sea view loft"
    assert sent["success_url"] == (
        f"{BASE_URL}/api/v1/bookings/success?session_id={{CHECKOUT_SESSION_ID}}"
    )
    assert sent["cancel_url"] == f"{BASE_URL}/api/v1/bookings/cancel"
    assert sent["metadata"]["check_out"] == "2026-01-12"

    booking = await ledger.get_booking("booking-1")
    assert booking.status == BookingStatus.PENDING
    assert booking.check_in == date(2026, 1, 10)
    assert booking.check_out == date(2026, 1, 12)
    assert booking.total_price == Decimal("200.00")

    payment = await ledger.get_payment_for_booking("booking-1")
    assert payment.status == PaymentStatus.PENDING
    assert payment.method == PaymentMethod.STRIPE
    assert payment.external_transaction_id == outcome.external_transaction_id
    assert payment.amount == Decimal("200.00")

    # Reservar no ocupa el calendario
    assert ledger.calendar_item("listing-1", date(2026, 1, 10)) is None


async def test_paypal_uses_paypal_return_urls(use_case, paypal_stub):
    outcome = await use_case.execute(
        user_id="user-1",
        listing_id="listing-1",
        check_in="2026-01-10",
        check_out="2026-01-11",
        provider="paypal",
    )

    assert outcome.provider == "PAYPAL"
    assert outcome.external_transaction_id.startswith("ORDER_")
    assert paypal_stub.transactions[0]["success_url"] == f"{BASE_URL}/api/v1/bookings/paypal/success"
    assert paypal_stub.transactions[0]["cancel_url"] == f"{BASE_URL}/api/v1/bookings/paypal/cancel"


async def test_gateway_failure_persists_nothing(use_case, ledger, stripe_stub):
    stripe_stub.fail_with = GatewayError("stripe", "Payment provider timed out")

    with pytest.raises(GatewayError):
        await use_case.execute(
            user_id="user-1",
            listing_id="listing-1",
            check_in="2026-01-10",
            check_out="2026-01-12",
            provider="stripe",
        )

    assert await ledger.get_booking("booking-1") is None
    assert await ledger.get_payment_for_booking("booking-1") is None


async def test_unknown_listing(use_case, stripe_stub):
    with pytest.raises(ListingNotFoundError):
        await use_case.execute(
            user_id="user-1",
            listing_id="nope",
            check_in="2026-01-10",
            check_out="2026-01-12",
            provider="stripe",
        )
    assert stripe_stub.transactions == []


@pytest.mark.parametrize(
    "check_in, check_out, error",
    [
        ("2026-01-12", "2026-01-10", InvalidRangeError),
        ("2025-12-30", "2026-01-02", PastDateError),
    ],
)
async def test_invalid_dates_never_reach_the_gateway(use_case, stripe_stub, check_in, check_out, error):
    with pytest.raises(error):
        await use_case.execute(
            user_id="user-1",
            listing_id="listing-1",
            check_in=check_in,
            check_out=check_out,
            provider="stripe",
        )
    assert stripe_stub.transactions == []


async def test_unknown_provider(use_case):
    with pytest.raises(UnsupportedProviderError):
        await use_case.execute(
            user_id="user-1",
            listing_id="listing-1",
            check_in="2026-01-10",
            check_out="2026-01-12",
            provider="bitcoin",
        )


async def test_zero_price_listing_is_rejected(use_case, listing_repo, listing, stripe_stub):
    listing.price = Decimal("0.00")
    listing_repo.add(listing)

    with pytest.raises(InvalidPriceError):
        await use_case.execute(
            user_id="user-1",
            listing_id="listing-1",
            check_in="2026-01-10",
            check_out="2026-01-12",
            provider="stripe",
        )
    assert stripe_stub.transactions == []
