import logging
from typing import Callable
from uuid import uuid4

from app.application.dtos.booking_dto import ReservationOutcomeDTO
from app.application.interfaces.clock import Clock
from app.application.interfaces.listing_repo import ListingRepo
from app.application.interfaces.reservation_ledger import ReservationLedger
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import ListingNotFoundError
from app.domain.pricing import from_minor_units, parse_date_range, quote_stay, to_minor_units
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector

# Rutas de retorno del huésped por pasarela (relativas a app_base_url)
RETURN_PATHS: dict[PaymentMethod, tuple[str, str]] = {
    PaymentMethod.STRIPE: (
        "/api/v1/bookings/success?session_id={CHECKOUT_SESSION_ID}",
        "/api/v1/bookings/cancel",
    ),
    PaymentMethod.PAYPAL: (
        "/api/v1/bookings/paypal/success",
        "/api/v1/bookings/paypal/cancel",
    ),
}


def _generate_booking_id() -> str:
    return str(uuid4())


class ReserveBookingUseCase:
    def __init__(
        self,
        listing_repo: ListingRepo,
        ledger: ReservationLedger,
        gateway_selector: PaymentGatewaySelector,
        transaction_manager: TransactionManager,
        clock: Clock,
        app_base_url: str,
        id_generator: Callable[[], str] = _generate_booking_id,
    ) -> None:
        self._listing_repo = listing_repo
        self._ledger = ledger
        self._gateway_selector = gateway_selector
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._app_base_url = app_base_url.rstrip("/")
        self._id_generator = id_generator
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        user_id: str,
        listing_id: str,
        check_in: str,
        check_out: str,
        provider: str,
    ) -> ReservationOutcomeDTO:
        listing = await self._listing_repo.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        stay = parse_date_range(check_in, check_out, self._clock.today())

        total_minor_units = quote_stay(listing.price, stay)
        unit_minor_units = to_minor_units(listing.price)

        gateway = self._gateway_selector.for_provider(provider)
        success_path, cancel_path = RETURN_PATHS[gateway.method]
        booking_id = self._id_generator()

        # Si la pasarela falla no se escribe nada: el GatewayError sube tal cual
        transaction = await gateway.create_transaction(
            booking_id=booking_id,
            line_item_description=listing.title,
            amount_minor_units=total_minor_units,
            currency=gateway.currency,
            success_url=f"{self._app_base_url}{success_path}",
            cancel_url=f"{self._app_base_url}{cancel_path}",
            quantity=stay.nights,
            unit_amount_minor_units=unit_minor_units,
            metadata={
                "booking_id": booking_id,
                "listing_id": listing.id,
                "user_id": user_id,
                "check_in": stay.check_in.isoformat(),
                "check_out": stay.check_out.isoformat(),
            },
        )

        total_price = from_minor_units(total_minor_units)
        currency = gateway.currency.upper()
        async with self._transaction_manager.start():
            booking = await self._ledger.create_pending_booking(
                user_id=user_id,
                listing_id=listing.id,
                check_in=stay.check_in,
                check_out=stay.check_out,
                total_price=total_price,
                booking_id=booking_id,
            )
            payment = await self._ledger.attach_payment(
                booking_id=booking.id,
                amount=total_price,
                currency=currency,
                method=gateway.method,
                external_transaction_id=transaction.external_transaction_id,
                metadata={"external_transaction_id": transaction.external_transaction_id},
            )

        self._logger.info(
            "Booking created pending payment",
            extra={
                "booking_id": booking.id,
                "payment_id": payment.id,
                "listing_id": listing.id,
                "provider": gateway.method.value,
                "external_transaction_id": transaction.external_transaction_id,
                "nights": stay.nights,
                "total_minor_units": total_minor_units,
            },
        )
        return ReservationOutcomeDTO(
            booking_id=booking.id,
            redirect_url=transaction.redirect_url,
            external_transaction_id=transaction.external_transaction_id,
            total_minor_units=total_minor_units,
            currency=currency,
            provider=gateway.method.value,
        )
