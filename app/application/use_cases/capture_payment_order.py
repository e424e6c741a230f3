import logging

from app.application.interfaces.reservation_ledger import ReservationLedger
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import PaymentNotFoundError
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector


class CapturePaymentOrderUseCase:
    """
    Captura una orden aprobada cuando el huésped vuelve de la pasarela.

    No confirma la reserva: la confirmación llega por el webhook de captura.
    """

    def __init__(
        self,
        ledger: ReservationLedger,
        gateway_selector: PaymentGatewaySelector,
        method: PaymentMethod = PaymentMethod.PAYPAL,
    ) -> None:
        self._ledger = ledger
        self._gateway_selector = gateway_selector
        self._method = method
        self._logger = logging.getLogger(__name__)

    async def execute(self, order_id: str) -> dict:
        payment = await self._ledger.find_payment_by_external_id(
            method=self._method,
            external_transaction_id=order_id,
        )
        if payment is None:
            raise PaymentNotFoundError(order_id)

        gateway = self._gateway_selector.for_method(self._method)
        capture = await gateway.capture_transaction(order_id)

        self._logger.info(
            "Payment order captured",
            extra={
                "provider": self._method.value,
                "external_transaction_id": order_id,
                "payment_id": payment.id,
                "booking_id": payment.booking_id,
                "capture_status": capture.get("status"),
            },
        )
        return {
            "order_id": order_id,
            "booking_id": payment.booking_id,
            "status": capture.get("status"),
        }
