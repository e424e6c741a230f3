"""Interface ReconciliationAlerts - avisos de pagos que requieren intervención manual."""

from abc import ABC, abstractmethod


class ReconciliationAlerts(ABC):
    """
    Puerto de alertas de conciliación.

    Se dispara cuando se cobró dinero pero la reserva no se puede confirmar.
    """

    @abstractmethod
    async def payment_mismatch(
        self,
        payment_id: str,
        booking_id: str,
        expected_minor_units: int,
        expected_currency: str,
        reported_minor_units: int | None,
        reported_currency: str | None,
    ) -> None:
        """El proveedor reportó un monto o moneda distinta a la guardada."""
        raise NotImplementedError

    @abstractmethod
    async def date_conflict(
        self,
        payment_id: str,
        booking_id: str | None,
        external_transaction_id: str,
    ) -> None:
        """Se cobró una reserva cuyas noches ya estaban ocupadas."""
        raise NotImplementedError
