"""Alertas de conciliación enviadas al log de errores."""

import logging

from app.application.interfaces.reconciliation_alerts import ReconciliationAlerts

logger = logging.getLogger(__name__)


class LoggingReconciliationAlerts(ReconciliationAlerts):
    """
    Implementación por defecto: registra la alerta con nivel ERROR.

    El log de errores es el canal que soporte revisa para reembolsos manuales.
    """

    async def payment_mismatch(
        self,
        payment_id: str,
        booking_id: str,
        expected_minor_units: int,
        expected_currency: str,
        reported_minor_units: int | None,
        reported_currency: str | None,
    ) -> None:
        logger.error(
            "RECONCILIATION: paid amount does not match booking",
            extra={
                "alert": "payment_mismatch",
                "payment_id": payment_id,
                "booking_id": booking_id,
                "expected_minor_units": expected_minor_units,
                "expected_currency": expected_currency,
                "reported_minor_units": reported_minor_units,
                "reported_currency": reported_currency,
            },
        )

    async def date_conflict(
        self,
        payment_id: str,
        booking_id: str | None,
        external_transaction_id: str,
    ) -> None:
        logger.error(
            "RECONCILIATION: payment captured for dates already booked, refund required",
            extra={
                "alert": "date_conflict",
                "payment_id": payment_id,
                "booking_id": booking_id,
                "external_transaction_id": external_transaction_id,
            },
        )
