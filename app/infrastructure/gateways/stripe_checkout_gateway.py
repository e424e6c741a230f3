import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import stripe
from pybreaker import CircuitBreaker

from app.application.interfaces.payment_gateway import (
    EventKind,
    GatewayTransaction,
    ParsedEvent,
    PaymentGateway,
)
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import GatewayError, InvalidSignatureError, MalformedNotificationError
from app.infrastructure.circuit_breaker import CircuitBreakerError, stripe_breaker

logger = logging.getLogger(__name__)

COMPLETED_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")


@dataclass(frozen=True)
class StripeCheckoutConfig:
    api_key: str | None
    webhook_secret: str | None
    currency: str = "egp"
    timeout_seconds: float = 10.0
    signature_tolerance_seconds: int = 300


class StripeCheckoutGateway(PaymentGateway):
    """
    Card-checkout adapter over Stripe Checkout Sessions.

    The API key travels with each request; nothing is written to the stripe
    module globals.
    """

    method = PaymentMethod.STRIPE

    def __init__(
        self,
        config: StripeCheckoutConfig,
        breaker: CircuitBreaker = stripe_breaker,
    ) -> None:
        self._config = config
        self._breaker = breaker
        self.currency = config.currency

    def configuration_status(self) -> dict[str, bool]:
        return {
            "credentials": bool(self._config.api_key),
            "webhook_secret": bool(self._config.webhook_secret),
        }

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
        """
        Create a Checkout Session with one line item (nightly price x nights).

        Raises:
            GatewayError: Stripe rejected the call, timed out, or the circuit is open.
        """
        if not self._config.api_key:
            raise GatewayError("stripe", "Payment provider is not configured")

        unit_amount = unit_amount_minor_units if unit_amount_minor_units is not None else amount_minor_units
        if unit_amount * quantity != amount_minor_units:
            # Sin precio unitario exacto se cobra el total como una sola línea
            unit_amount, quantity = amount_minor_units, 1

        session_metadata = {"booking_id": booking_id, **dict(metadata or {})}
        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": {"name": line_item_description},
                        "unit_amount": unit_amount,
                    },
                    "quantity": quantity,
                }
            ],
            "client_reference_id": booking_id,
            "metadata": session_metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(
                    self._breaker.call,
                    stripe.checkout.Session.create,
                    api_key=self._config.api_key,
                    idempotency_key=f"checkout-{booking_id}",
                    **params,
                ),
                timeout=self._config.timeout_seconds,
            )
        except CircuitBreakerError as exc:
            logger.error(
                "Stripe circuit breaker is open - service unavailable",
                extra={"booking_id": booking_id, "circuit_state": str(exc)},
            )
            raise GatewayError("stripe", "Payment provider temporarily unavailable") from exc
        except asyncio.TimeoutError as exc:
            logger.error(
                "Stripe checkout session timed out",
                extra={"booking_id": booking_id, "timeout": self._config.timeout_seconds},
            )
            raise GatewayError("stripe", "Payment provider timed out") from exc
        except stripe.StripeError as exc:
            logger.error(
                "Stripe API error",
                extra={
                    "booking_id": booking_id,
                    "stripe_error": type(exc).__name__,
                    "http_status": getattr(exc, "http_status", None),
                },
            )
            raise GatewayError("stripe") from exc

        logger.info(
            "Stripe checkout session created",
            extra={"booking_id": booking_id, "checkout_session_id": session.id},
        )
        return GatewayTransaction(
            external_transaction_id=session.id,
            redirect_url=session.url,
        )

    async def verify_notification(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
    ) -> ParsedEvent:
        if not self._config.webhook_secret:
            raise InvalidSignatureError("stripe", "Webhook signing secret is not configured")
        signature = headers.get("stripe-signature") or headers.get("Stripe-Signature")
        if not signature:
            raise InvalidSignatureError("stripe", "Missing Stripe-Signature header")
        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedNotificationError("stripe") from exc

        try:
            stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self._config.webhook_secret,
                tolerance=self._config.signature_tolerance_seconds,
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("Stripe signature verification failed")
            raise InvalidSignatureError("stripe", "Invalid Stripe signature") from exc
        except ValueError as exc:
            raise MalformedNotificationError("stripe", "Invalid Stripe webhook payload") from exc

        event = json.loads(payload)
        if not isinstance(event, dict):
            raise MalformedNotificationError("stripe", "Invalid Stripe webhook payload")
        return self._parse_event(event)

    def _parse_event(self, event: dict[str, Any]) -> ParsedEvent:
        event_type = event.get("type") or ""
        event_id = event.get("id")
        data_obj = (event.get("data") or {}).get("object") or {}

        if event_type not in COMPLETED_EVENTS:
            return ParsedEvent(kind=EventKind.IGNORED, event_type=event_type, event_id=event_id)

        # Métodos de pago asíncronos completan la sesión sin haber cobrado
        if event_type == "checkout.session.completed" and data_obj.get("payment_status") == "unpaid":
            return ParsedEvent(
                kind=EventKind.IGNORED,
                event_type=event_type,
                event_id=event_id,
                external_transaction_id=data_obj.get("id"),
            )

        payment_intent = data_obj.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        currency = data_obj.get("currency")
        return ParsedEvent(
            kind=EventKind.PAYMENT_COMPLETED,
            event_type=event_type,
            event_id=event_id,
            external_transaction_id=data_obj.get("id"),
            amount_minor_units=data_obj.get("amount_total"),
            currency=currency.upper() if currency else None,
            details={
                "checkout_session_id": data_obj.get("id"),
                "payment_intent_id": payment_intent,
            },
        )
