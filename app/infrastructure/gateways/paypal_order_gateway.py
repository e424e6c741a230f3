import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from app.application.interfaces.payment_gateway import (
    EventKind,
    GatewayTransaction,
    ParsedEvent,
    PaymentGateway,
)
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import (
    GatewayError,
    InvalidPriceError,
    InvalidSignatureError,
    MalformedNotificationError,
)
from app.domain.pricing import from_minor_units, to_minor_units

logger = logging.getLogger(__name__)

PAYPAL_BASE_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}

CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"

TRANSMISSION_HEADERS = {
    "transmission_id": "paypal-transmission-id",
    "transmission_time": "paypal-transmission-time",
    "cert_url": "paypal-cert-url",
    "auth_algo": "paypal-auth-algo",
    "transmission_sig": "paypal-transmission-sig",
}

# Margen para renovar el token antes de que PayPal lo expire
TOKEN_EXPIRY_MARGIN_SECONDS = 60


@dataclass(frozen=True)
class PayPalOrderConfig:
    client_id: str | None
    client_secret: str | None
    webhook_id: str | None
    currency: str = "USD"
    environment: str = "sandbox"
    timeout_seconds: float = 10.0

    @property
    def base_url(self) -> str:
        return PAYPAL_BASE_URLS.get(self.environment.lower(), PAYPAL_BASE_URLS["sandbox"])


class PayPalOrderGateway(PaymentGateway):
    """
    Redirect-order adapter over the PayPal Orders v2 REST API.

    The guest approves the order on PayPal, the order is captured on return,
    and the PAYMENT.CAPTURE.COMPLETED webhook confirms the booking.
    """

    method = PaymentMethod.PAYPAL

    def __init__(
        self,
        config: PayPalOrderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Credentials, webhook id and environment.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._config = config
        self._transport = transport
        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self.currency = config.currency.upper()

    def configuration_status(self) -> dict[str, bool]:
        # PayPal verifica webhooks remotamente con el webhook id
        return {
            "credentials": bool(self._config.client_id and self._config.client_secret),
            "webhook_secret": bool(self._config.webhook_id),
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
            transport=self._transport,
        )

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token
        if not self._config.client_id or not self._config.client_secret:
            raise GatewayError("paypal", "Payment provider is not configured")

        response = await client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self._config.client_id, self._config.client_secret),
            headers={"Accept": "application/json"},
        )
        if response.status_code >= 400:
            logger.error(
                "PayPal authentication failed",
                extra={"http_status": response.status_code},
            )
            raise GatewayError("paypal")

        try:
            data = response.json()
            self._access_token = data["access_token"]
            expires_in = int(data.get("expires_in", 0))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error(
                "PayPal authentication returned an unexpected body",
                extra={"http_status": response.status_code},
            )
            raise GatewayError("paypal") from exc
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        return self._access_token

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        error_message: str = "Payment provider error",
    ) -> dict[str, Any]:
        try:
            async with self._client() as client:
                token = await self._get_access_token(client)
                response = await client.request(
                    method,
                    path,
                    json=payload,
                    headers={"Authorization": f"Bearer {token}", **(headers or {})},
                )
        except httpx.TimeoutException as exc:
            logger.error(
                "PayPal request timeout",
                extra={"path": path, "timeout": self._config.timeout_seconds},
            )
            raise GatewayError("paypal", "Payment provider timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("PayPal request failed", extra={"path": path, "error": type(exc).__name__})
            raise GatewayError("paypal", error_message) from exc

        if response.status_code >= 400:
            logger.error(
                "PayPal API error",
                extra={
                    "path": path,
                    "http_status": response.status_code,
                    "debug_id": response.headers.get("paypal-debug-id"),
                },
            )
            raise GatewayError("paypal", error_message)
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError("paypal", error_message) from exc

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
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "custom_id": booking_id,
                    "description": line_item_description[:127],
                    "amount": {
                        "currency_code": currency.upper(),
                        "value": f"{from_minor_units(amount_minor_units):.2f}",
                    },
                }
            ],
            "application_context": {
                "return_url": success_url,
                "cancel_url": cancel_url,
                "user_action": "PAY_NOW",
            },
        }
        order = await self._request(
            "POST",
            "/v2/checkout/orders",
            body,
            headers={"Prefer": "return=representation", "PayPal-Request-Id": f"order-{booking_id}"},
        )

        approve_link = next(
            (
                link.get("href")
                for link in order.get("links", [])
                if link.get("rel") in ("approve", "payer-action")
            ),
            None,
        )
        if not order.get("id"):
            raise GatewayError("paypal")
        logger.info(
            "PayPal order created",
            extra={"booking_id": booking_id, "paypal_order_id": order.get("id")},
        )
        return GatewayTransaction(
            external_transaction_id=order["id"],
            redirect_url=approve_link,
        )

    async def capture_transaction(self, external_transaction_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/v2/checkout/orders/{external_transaction_id}/capture",
            {},
            headers={"Prefer": "return=representation"},
            error_message="PayPal capture failed",
        )

    async def verify_notification(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
    ) -> ParsedEvent:
        if not self._config.webhook_id:
            raise InvalidSignatureError("paypal", "Webhook verification is not configured")

        try:
            event = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedNotificationError("paypal", "Invalid JSON body") from exc
        if not isinstance(event, dict):
            raise MalformedNotificationError("paypal", "Invalid JSON body")

        lowered = {key.lower(): value for key, value in headers.items()}
        transmission = {field: lowered.get(header) for field, header in TRANSMISSION_HEADERS.items()}
        if not all(transmission.values()):
            raise InvalidSignatureError("paypal", "Missing PayPal verification headers")

        verification = await self._request(
            "POST",
            "/v1/notifications/verify-webhook-signature",
            {**transmission, "webhook_id": self._config.webhook_id, "webhook_event": event},
            error_message="PayPal webhook verification failed",
        )
        if verification.get("verification_status") != "SUCCESS":
            logger.warning(
                "PayPal webhook signature invalid",
                extra={"verification_status": verification.get("verification_status")},
            )
            raise InvalidSignatureError("paypal", "Invalid PayPal signature")

        return self._parse_event(event)

    def _parse_event(self, event: dict[str, Any]) -> ParsedEvent:
        event_type = event.get("event_type") or ""
        event_id = event.get("id")
        if event_type != CAPTURE_COMPLETED:
            return ParsedEvent(kind=EventKind.IGNORED, event_type=event_type, event_id=event_id)

        capture = event.get("resource") or {}
        order_id = ((capture.get("supplementary_data") or {}).get("related_ids") or {}).get("order_id")
        if not order_id:
            logger.warning(
                "PAYMENT.CAPTURE.COMPLETED missing related order id",
                extra={"event_id": event_id},
            )
            return ParsedEvent(kind=EventKind.IGNORED, event_type=event_type, event_id=event_id)

        amount = capture.get("amount") or {}
        amount_minor_units = None
        if amount.get("value") is not None:
            try:
                amount_minor_units = to_minor_units(Decimal(str(amount["value"])))
            except (InvalidOperation, InvalidPriceError) as exc:
                raise MalformedNotificationError("paypal", "Invalid capture amount") from exc

        currency = amount.get("currency_code")
        return ParsedEvent(
            kind=EventKind.PAYMENT_COMPLETED,
            event_type=event_type,
            event_id=event_id,
            external_transaction_id=order_id,
            amount_minor_units=amount_minor_units,
            currency=currency.upper() if currency else None,
            details={
                "paypal_order_id": order_id,
                "capture_id": capture.get("id"),
            },
        )
