import logging

from app.application.dtos.booking_dto import CheckoutStatusDTO
from app.application.interfaces.reservation_ledger import ReservationLedger
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import UnsupportedProviderError


class GetCheckoutStatusUseCase:
    """Estado de un checkout para las páginas de retorno del proveedor."""

    def __init__(self, ledger: ReservationLedger) -> None:
        self._ledger = ledger
        self._logger = logging.getLogger(__name__)

    async def execute(self, provider: str, external_transaction_id: str) -> CheckoutStatusDTO:
        try:
            method = PaymentMethod.from_provider(provider)
        except ValueError as exc:
            raise UnsupportedProviderError(provider) from exc

        payment = await self._ledger.find_payment_by_external_id(
            method=method,
            external_transaction_id=external_transaction_id,
        )
        if payment is None:
            self._logger.info(
                "Checkout return for unknown transaction",
                extra={"provider": method.value, "external_transaction_id": external_transaction_id},
            )
            return CheckoutStatusDTO(
                external_transaction_id=external_transaction_id,
                provider=method.value,
            )

        booking = await self._ledger.get_booking(payment.booking_id)
        return CheckoutStatusDTO(
            external_transaction_id=external_transaction_id,
            provider=method.value,
            booking_id=payment.booking_id,
            booking_status=booking.status.value if booking else None,
            payment_status=payment.status.value,
            found=True,
        )
