import logging
from collections.abc import Mapping

from app.application.interfaces.payment_gateway import ParsedEvent
from app.application.interfaces.reconciliation_alerts import ReconciliationAlerts
from app.application.interfaces.reservation_ledger import (
    REASON_AMOUNT_MISMATCH,
    REASON_DATE_CONFLICT,
    ReservationLedger,
)
from app.domain.entities.payment import Payment
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector

ACKNOWLEDGED = {"acknowledged": True}


class HandlePaymentNotificationUseCase:
    """
    Concilia un webhook de pago con el ledger.

    Solo la verificación de firma/payload puede fallar hacia el proveedor; todo
    lo demás (eventos ignorados, pagos desconocidos, conflictos) se reconoce con
    2xx para que el proveedor deje de reintentar.
    """

    def __init__(
        self,
        ledger: ReservationLedger,
        gateway_selector: PaymentGatewaySelector,
        alerts: ReconciliationAlerts,
    ) -> None:
        self._ledger = ledger
        self._gateway_selector = gateway_selector
        self._alerts = alerts
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        provider: str,
        raw_body: bytes,
        headers: Mapping[str, str],
    ) -> dict:
        gateway = self._gateway_selector.for_provider(provider)
        event = await gateway.verify_notification(raw_body=raw_body, headers=headers)

        log_context = {
            "provider": gateway.method.value,
            "event_id": event.event_id,
            "event_type": event.event_type,
            "external_transaction_id": event.external_transaction_id,
        }

        if not event.is_payment_completed or not event.external_transaction_id:
            self._logger.info("Webhook event ignored", extra=log_context)
            return ACKNOWLEDGED

        payment = await self._ledger.find_payment_by_external_id(
            method=gateway.method,
            external_transaction_id=event.external_transaction_id,
        )
        if payment is None:
            self._logger.warning("Payment not found for webhook event", extra=log_context)
            return ACKNOWLEDGED

        log_context.update({"payment_id": payment.id, "booking_id": payment.booking_id})

        if not self._amount_matches(payment, event):
            if payment.review_reason == REASON_AMOUNT_MISMATCH:
                self._logger.info("Amount mismatch already flagged", extra=log_context)
                return ACKNOWLEDGED
            await self._flag_mismatch(payment, event, log_context)
            return ACKNOWLEDGED

        result = await self._ledger.confirm_if_unbooked(
            payment_id=payment.id,
            metadata=self._correlation_metadata(event),
        )

        if result.confirmed:
            if result.replayed:
                self._logger.info("Payment already succeeded, nothing to do", extra=log_context)
            else:
                self._logger.info("Booking confirmed", extra=log_context)
            return ACKNOWLEDGED

        if result.is_date_conflict:
            if payment.review_reason == REASON_DATE_CONFLICT:
                self._logger.info("Date conflict already flagged", extra=log_context)
                return ACKNOWLEDGED
            await self._ledger.flag_for_review(
                payment_id=payment.id,
                reason=result.reason,
                details={"event_id": event.event_id},
            )
            await self._alerts.date_conflict(
                payment_id=payment.id,
                booking_id=result.booking_id or payment.booking_id,
                external_transaction_id=event.external_transaction_id,
            )
            self._logger.error(
                "Payment captured but dates are already booked",
                extra=log_context,
            )
            return ACKNOWLEDGED

        self._logger.warning(
            "Payment could not be confirmed",
            extra={**log_context, "reason": result.reason},
        )
        return ACKNOWLEDGED

    def _amount_matches(self, payment: Payment, event: ParsedEvent) -> bool:
        if event.amount_minor_units is None or not event.currency:
            return False
        return payment.money.same_as(event.amount_minor_units, event.currency)

    async def _flag_mismatch(self, payment: Payment, event: ParsedEvent, log_context: dict) -> None:
        expected_minor_units = payment.money.to_minor_units()
        await self._ledger.flag_for_review(
            payment_id=payment.id,
            reason=REASON_AMOUNT_MISMATCH,
            details={
                "event_id": event.event_id,
                "reported_amount_minor_units": event.amount_minor_units,
                "reported_currency": event.currency,
            },
        )
        await self._alerts.payment_mismatch(
            payment_id=payment.id,
            booking_id=payment.booking_id,
            expected_minor_units=expected_minor_units,
            expected_currency=payment.currency,
            reported_minor_units=event.amount_minor_units,
            reported_currency=event.currency,
        )
        self._logger.error(
            "Webhook amount does not match stored payment",
            extra={
                **log_context,
                "expected_minor_units": expected_minor_units,
                "expected_currency": payment.currency,
                "reported_minor_units": event.amount_minor_units,
                "reported_currency": event.currency,
            },
        )

    def _correlation_metadata(self, event: ParsedEvent) -> dict:
        metadata = {"event_id": event.event_id, "event_type": event.event_type}
        metadata.update(event.details)
        return metadata
