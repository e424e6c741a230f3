"""Entidad Payment - representa el pago (1:1) de una reserva."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from app.domain.value_objects.money import Money


class PaymentStatus(str, Enum):
    """Estados posibles de un pago."""

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class PaymentMethod(str, Enum):
    """Pasarela que creó la transacción externa."""

    STRIPE = "STRIPE"
    PAYPAL = "PAYPAL"

    @classmethod
    def from_provider(cls, provider: str) -> "PaymentMethod":
        """Resuelve el método desde el nombre usado en rutas y requests."""
        return cls(provider.strip().upper())


@dataclass
class Payment:
    """
    Entidad que representa un pago asociado a una reserva.

    external_transaction_id es el identificador de correlación del proveedor
    (checkout session en Stripe, order id en PayPal).
    """

    # Identificadores
    id: str
    booking_id: str

    # Proveedor
    method: PaymentMethod
    external_transaction_id: str

    # Monto
    amount: Decimal
    currency: str

    # Estado
    status: PaymentStatus = PaymentStatus.PENDING
    review_reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def money(self) -> Money:
        """Retorna el monto como Value Object Money."""
        return Money(amount=self.amount, currency_code=self.currency)

    @property
    def is_successful(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED

    @property
    def needs_review(self) -> bool:
        """Pago marcado para conciliación manual."""
        return self.review_reason is not None
