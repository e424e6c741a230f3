from datetime import date

import pytest

from app.application.use_cases.capture_payment_order import CapturePaymentOrderUseCase
from app.application.use_cases.get_booking import GetBookingUseCase
from app.application.use_cases.get_checkout_status import GetCheckoutStatusUseCase
from app.application.use_cases.get_listing_availability import GetListingAvailabilityUseCase
from app.application.use_cases.reserve_booking import ReserveBookingUseCase
from app.domain.errors import (
    BookingNotFoundError,
    InvalidDateError,
    InvalidRangeError,
    ListingNotFoundError,
    PaymentNotFoundError,
    UnsupportedProviderError,
)


@pytest.fixture
def reserve(listing_repo, ledger, gateway_selector, tx_manager, clock):
    return ReserveBookingUseCase(
        listing_repo=listing_repo,
        ledger=ledger,
        gateway_selector=gateway_selector,
        transaction_manager=tx_manager,
        clock=clock,
        app_base_url="https://bookings.example.com",
    )


async def _reserve(reserve, provider="stripe"):
    return await reserve.execute(
        user_id="user-1",
        listing_id="listing-1",
        check_in="2026-01-10",
        check_out="2026-01-12",
        provider=provider,
    )


class TestGetBooking:
    async def test_owner_sees_booking_and_payment(self, reserve, ledger):
        outcome = await _reserve(reserve)

        details = await GetBookingUseCase(ledger).execute(outcome.booking_id, "user-1")

        assert details.booking.id == outcome.booking_id
        assert details.payment.external_transaction_id == outcome.external_transaction_id
        assert not details.needs_review

    async def test_other_user_gets_not_found(self, reserve, ledger):
        outcome = await _reserve(reserve)

        with pytest.raises(BookingNotFoundError):
            await GetBookingUseCase(ledger).execute(outcome.booking_id, "user-2")

    async def test_missing_booking(self, ledger):
        with pytest.raises(BookingNotFoundError):
            await GetBookingUseCase(ledger).execute("missing", "user-1")


class TestCheckoutStatus:
    async def test_known_session(self, reserve, ledger):
        outcome = await _reserve(reserve)

        status = await GetCheckoutStatusUseCase(ledger).execute("stripe", outcome.external_transaction_id)

        assert status.found
        assert status.booking_id == outcome.booking_id
        assert status.booking_status == "PENDING"
        assert status.payment_status == "PENDING"

    async def test_unknown_session(self, ledger):
        status = await GetCheckoutStatusUseCase(ledger).execute("stripe", "cs_test_missing")

        assert not status.found
        assert status.booking_id is None

    async def test_unknown_provider(self, ledger):
        with pytest.raises(UnsupportedProviderError):
            await GetCheckoutStatusUseCase(ledger).execute("cash", "x")


class TestCapturePaymentOrder:
    async def test_capture_known_order(self, reserve, ledger, gateway_selector, paypal_stub):
        outcome = await _reserve(reserve, provider="paypal")

        result = await CapturePaymentOrderUseCase(ledger, gateway_selector).execute(
            outcome.external_transaction_id
        )

        assert result == {
            "order_id": outcome.external_transaction_id,
            "booking_id": outcome.booking_id,
            "status": "COMPLETED",
        }
        assert paypal_stub.captured == [outcome.external_transaction_id]
        # La captura no confirma: eso lo hace el webhook
        assert ledger.calendar_writes == 0

    async def test_unknown_order(self, ledger, gateway_selector, paypal_stub):
        with pytest.raises(PaymentNotFoundError):
            await CapturePaymentOrderUseCase(ledger, gateway_selector).execute("ORDER_missing")
        assert paypal_stub.captured == []


class TestListingAvailability:
    async def test_lists_booked_nights_in_window(self, listing_repo, ledger):
        ledger.mark_booked("listing-1", date(2026, 1, 10))
        ledger.mark_booked("listing-1", date(2026, 1, 11))
        ledger.mark_booked("listing-1", date(2026, 2, 1))

        availability = await GetListingAvailabilityUseCase(listing_repo, ledger).execute(
            "listing-1", "2026-01-01", "2026-02-01"
        )

        assert availability.booked_dates == [date(2026, 1, 10), date(2026, 1, 11)]
        assert not availability.is_available(date(2026, 1, 10))
        assert availability.is_available(date(2026, 1, 12))

    async def test_unknown_listing(self, listing_repo, ledger):
        with pytest.raises(ListingNotFoundError):
            await GetListingAvailabilityUseCase(listing_repo, ledger).execute(
                "nope", "2026-01-01", "2026-02-01"
            )

    @pytest.mark.parametrize(
        "start, end, error",
        [
            ("2026-02-01", "2026-01-01", InvalidRangeError),
            ("2026-01-01", "2027-06-01", InvalidRangeError),
            ("soon", "2026-02-01", InvalidDateError),
        ],
    )
    async def test_invalid_window(self, listing_repo, ledger, start, end, error):
        with pytest.raises(error):
            await GetListingAvailabilityUseCase(listing_repo, ledger).execute("listing-1", start, end)
