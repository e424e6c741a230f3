import hashlib
import hmac
import json
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from app.application.interfaces.payment_gateway import (
    EventKind,
    GatewayTransaction,
    ParsedEvent,
    PaymentGateway,
)
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import (
    DomainError,
    InvalidSignatureError,
    MalformedNotificationError,
)

SIGNATURE_HEADER = "x-stub-signature"
PAYMENT_COMPLETED_TYPE = "payment.completed"

_ID_PREFIXES = {
    PaymentMethod.STRIPE: "cs_test",
    PaymentMethod.PAYPAL: "ORDER",
}


class StubPaymentGateway(PaymentGateway):
    """
    Pasarela simulada para modo in-memory.

    Las notificaciones son JSON propios:
    {"id", "type": "payment.completed", "transaction_id", "amount_minor_units", "currency"}
    firmados con HMAC-SHA256 en X-Stub-Signature cuando hay secreto.
    """

    def __init__(
        self,
        method: PaymentMethod,
        currency: str,
        webhook_secret: str | None = None,
        redirect_base_url: str = "https://checkout.stub.local",
    ) -> None:
        self.method = method
        self.currency = currency
        self._webhook_secret = webhook_secret
        self._redirect_base_url = redirect_base_url.rstrip("/")
        self.transactions: list[dict[str, Any]] = []
        self.captured: list[str] = []
        self.fail_with: DomainError | None = None

    def configuration_status(self) -> dict[str, bool]:
        return {"credentials": True, "webhook_secret": bool(self._webhook_secret)}

    async def create_transaction(
        self,
        booking_id: str,
        line_item_description: str,
        amount_minor_units: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        quantity: int = 1,
        unit_amount_minor_units: int | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> GatewayTransaction:
        if self.fail_with is not None:
            raise self.fail_with

        transaction_id = f"{_ID_PREFIXES[self.method]}_{uuid4().hex[:14]}"
        self.transactions.append(
            {
                "external_transaction_id": transaction_id,
                "booking_id": booking_id,
                "description": line_item_description,
                "amount_minor_units": amount_minor_units,
                "currency": currency,
                "quantity": quantity,
                "unit_amount_minor_units": unit_amount_minor_units,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": dict(metadata or {}),
            }
        )
        return GatewayTransaction(
            external_transaction_id=transaction_id,
            redirect_url=f"{self._redirect_base_url}/{transaction_id}",
        )

    def sign(self, raw_body: bytes) -> str:
        if not self._webhook_secret:
            return ""
        return hmac.new(self._webhook_secret.encode(), raw_body, hashlib.sha256).hexdigest()

    async def verify_notification(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
    ) -> ParsedEvent:
        provider = self.method.value.lower()
        if self._webhook_secret:
            lowered = {key.lower(): value for key, value in headers.items()}
            signature = lowered.get(SIGNATURE_HEADER)
            if not signature:
                raise InvalidSignatureError(provider, "Missing webhook signature")
            if not hmac.compare_digest(signature, self.sign(raw_body)):
                raise InvalidSignatureError(provider, "Invalid webhook signature")

        if not raw_body:
            raise MalformedNotificationError(provider, "Empty webhook payload")
        try:
            event = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedNotificationError(provider, "Invalid webhook payload") from exc
        if not isinstance(event, dict):
            raise MalformedNotificationError(provider, "Invalid webhook payload")

        event_type = event.get("type") or ""
        if event_type != PAYMENT_COMPLETED_TYPE:
            return ParsedEvent(kind=EventKind.IGNORED, event_type=event_type, event_id=event.get("id"))

        currency = event.get("currency")
        return ParsedEvent(
            kind=EventKind.PAYMENT_COMPLETED,
            event_type=event_type,
            event_id=event.get("id"),
            external_transaction_id=event.get("transaction_id"),
            amount_minor_units=event.get("amount_minor_units"),
            currency=currency.upper() if currency else None,
            details={"stub_event_id": event.get("id")},
        )

    async def capture_transaction(self, external_transaction_id: str) -> dict[str, Any]:
        if self.method != PaymentMethod.PAYPAL:
            return await super().capture_transaction(external_transaction_id)
        self.captured.append(external_transaction_id)
        return {"id": external_transaction_id, "status": "COMPLETED"}
