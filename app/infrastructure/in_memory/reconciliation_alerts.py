from dataclasses import dataclass, field
from typing import Any

from app.application.interfaces.reconciliation_alerts import ReconciliationAlerts


@dataclass
class RecordedAlert:
    kind: str
    payment_id: str
    booking_id: str | None
    details: dict[str, Any] = field(default_factory=dict)


class InMemoryReconciliationAlerts(ReconciliationAlerts):
    def __init__(self) -> None:
        self.alerts: list[RecordedAlert] = []

    async def payment_mismatch(
        self,
        payment_id: str,
        booking_id: str,
        expected_minor_units: int,
        expected_currency: str,
        reported_minor_units: int | None,
        reported_currency: str | None,
    ) -> None:
        self.alerts.append(
            RecordedAlert(
                kind="payment_mismatch",
                payment_id=payment_id,
                booking_id=booking_id,
                details={
                    "expected_minor_units": expected_minor_units,
                    "expected_currency": expected_currency,
                    "reported_minor_units": reported_minor_units,
                    "reported_currency": reported_currency,
                },
            )
        )

    async def date_conflict(
        self,
        payment_id: str,
        booking_id: str | None,
        external_transaction_id: str,
    ) -> None:
        self.alerts.append(
            RecordedAlert(
                kind="date_conflict",
                payment_id=payment_id,
                booking_id=booking_id,
                details={"external_transaction_id": external_transaction_id},
            )
        )

    def of_kind(self, kind: str) -> list[RecordedAlert]:
        return [alert for alert in self.alerts if alert.kind == kind]
