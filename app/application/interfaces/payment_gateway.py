"""Interface PaymentGateway - Puerto para pasarelas de pago externas."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.domain.entities.payment import PaymentMethod
from app.domain.errors import UnsupportedProviderError


class EventKind(str, Enum):
    """Clasificación de un webhook; solo PAYMENT_COMPLETED dispara conciliación."""

    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    IGNORED = "IGNORED"


@dataclass(frozen=True)
class GatewayTransaction:
    """Transacción abierta en el proveedor (checkout session u order)."""

    external_transaction_id: str
    redirect_url: str | None


@dataclass(frozen=True)
class ParsedEvent:
    """
    Webhook verificado y normalizado.

    amount_minor_units/currency son los reportados por el proveedor; se
    comparan contra el Payment guardado antes de confirmar.
    """

    kind: EventKind
    event_type: str
    event_id: str | None = None
    external_transaction_id: str | None = None
    amount_minor_units: int | None = None
    currency: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_payment_completed(self) -> bool:
        return self.kind == EventKind.PAYMENT_COMPLETED


class PaymentGateway(ABC):
    """
    Puerto para una pasarela de pago.

    Cada implementación envuelve un proveedor (checkout con tarjeta u orden con
    redirección). Las credenciales y el secreto del webhook se inyectan en la
    construcción, nunca se leen de estado global.
    """

    method: PaymentMethod
    currency: str

    @abstractmethod
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
        Abre una transacción remota para la reserva.

        Args:
            booking_id: Referencia interna enviada al proveedor.
            line_item_description: Texto visible para el huésped.
            amount_minor_units: Total en unidades menores.
            currency: Código de moneda del proveedor.
            success_url: Retorno tras pagar.
            cancel_url: Retorno si el huésped cancela.
            quantity: Noches (para proveedores que cobran por línea).
            unit_amount_minor_units: Precio por noche en unidades menores.
            metadata: Datos de correlación adicionales.

        Returns:
            GatewayTransaction con el id externo y la URL de redirección.

        Raises:
            GatewayError: el proveedor falló o excedió el timeout.
        """
        raise NotImplementedError

    @abstractmethod
    async def verify_notification(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
    ) -> ParsedEvent:
        """
        Verifica la firma de un webhook y lo normaliza.

        Raises:
            InvalidSignatureError: firma ausente o inválida.
            MalformedNotificationError: cuerpo ilegible.
            GatewayError: el proveedor no pudo verificar (verificación remota).
        """
        raise NotImplementedError

    @abstractmethod
    def configuration_status(self) -> dict[str, bool]:
        """
        Qué parte de la configuración del proveedor está presente.

        Returns:
            {"credentials": ..., "webhook_secret": ...}; lo usa el readiness probe.
        """
        raise NotImplementedError

    async def capture_transaction(self, external_transaction_id: str) -> dict[str, Any]:
        """Captura una orden aprobada; solo aplica a proveedores de redirección."""
        raise UnsupportedProviderError(self.method.value, operation="capture")
