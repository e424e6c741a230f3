from typing import Dict

from app.application.interfaces.payment_gateway import PaymentGateway
from app.domain.entities.payment import PaymentMethod
from app.domain.errors import UnsupportedProviderError


class PaymentGatewaySelector:
    def __init__(self, mapping: Dict[PaymentMethod, PaymentGateway] | None = None):
        self._mapping = mapping or {}

    def register(self, method: PaymentMethod, gateway: PaymentGateway) -> None:
        self._mapping[method] = gateway

    def for_method(self, method: PaymentMethod) -> PaymentGateway:
        gateway = self._mapping.get(method)
        if gateway is None:
            raise UnsupportedProviderError(method.value)
        return gateway

    def for_provider(self, provider: str) -> PaymentGateway:
        # Nombre tal como llega en la ruta o el request ("stripe", "paypal")
        try:
            method = PaymentMethod.from_provider(provider or "")
        except ValueError as exc:
            raise UnsupportedProviderError(provider) from exc
        return self.for_method(method)

    @property
    def methods(self) -> list[PaymentMethod]:
        return list(self._mapping)

    def configuration_status(self) -> Dict[str, Dict[str, bool]]:
        return {
            method.value.lower(): self._mapping[method].configuration_status()
            for method in self.methods
        }
