"""Value Object Money - representa un valor monetario con su moneda."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from app.domain.errors import InvalidPriceError

# Decimales de la unidad menor (centavos) usados por ambas pasarelas.
DEFAULT_EXPONENT = 2


def to_minor_units(amount: Decimal | str | int, exponent: int = DEFAULT_EXPONENT) -> int:
    """
    Convierte un monto decimal exacto a su entero en unidades menores.

    Ejemplos: Decimal("12.34") -> 1234, Decimal("12.3") -> 1230.

    Raises:
        InvalidPriceError: si el monto es float, no finito, o tiene más
            decimales de los que la moneda permite.
    """
    if isinstance(amount, (float, bool)):
        raise InvalidPriceError(f"Monetary amounts must be exact decimals, got {type(amount).__name__}")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as exc:
        raise InvalidPriceError(f"Invalid price format: {amount!r}") from exc

    if not value.is_finite():
        raise InvalidPriceError(f"Invalid price format: {amount!r}")

    scaled = value.scaleb(exponent)
    if scaled != scaled.to_integral_value():
        raise InvalidPriceError(
            f"Price {value} has more than {exponent} decimal places"
        )
    return int(scaled)


def from_minor_units(minor_units: int, exponent: int = DEFAULT_EXPONENT) -> Decimal:
    """Convierte unidades menores a Decimal con `exponent` decimales fijos."""
    quantum = Decimal(1).scaleb(-exponent)
    return Decimal(minor_units).scaleb(-exponent).quantize(quantum)


@dataclass(frozen=True)
class Money:
    """
    Value Object inmutable que representa un monto monetario.

    Attributes:
        amount: Monto decimal (hasta 2 decimales).
        currency_code: Código ISO 4217 de la moneda, normalizado a mayúsculas.
    """

    amount: Decimal
    currency_code: str

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise InvalidPriceError("Money amount cannot be a float")
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code debe ser de 3 caracteres: {self.currency_code}")
        object.__setattr__(self, "currency_code", self.currency_code.upper())

        if self.amount < 0:
            raise ValueError(f"amount no puede ser negativo: {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency_code}"

    def same_as(self, minor_units: int, currency_code: str) -> bool:
        """Compara contra un monto reportado por un proveedor (unidades menores)."""
        return (
            self.to_minor_units() == minor_units
            and self.currency_code == currency_code.upper()
        )

    @classmethod
    def from_minor_units(cls, minor_units: int, currency_code: str) -> "Money":
        """Crea un Money desde centavos (útil para Stripe)."""
        return cls(amount=from_minor_units(minor_units), currency_code=currency_code)

    def to_minor_units(self) -> int:
        """Convierte a centavos sin pasar por float."""
        return to_minor_units(self.amount)
