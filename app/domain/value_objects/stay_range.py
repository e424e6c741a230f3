"""Value Object StayRange - rango de noches entre check-in y check-out."""

from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class StayRange:
    """
    Value Object inmutable que representa una estadía.

    check_out es exclusivo: es el día de salida, no una noche ocupada.

    Attributes:
        check_in: Fecha de llegada (UTC, sin hora).
        check_out: Fecha de salida (UTC, sin hora).
    """

    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise ValueError(
                f"check_in debe ser anterior a check_out: {self.check_in} >= {self.check_out}"
            )

    @property
    def nights(self) -> int:
        """Noches completas entre check_in (inclusive) y check_out (exclusivo)."""
        return (self.check_out - self.check_in).days

    def dates(self) -> list[date]:
        """Fechas ocupadas, una por noche."""
        return [self.check_in + timedelta(days=offset) for offset in range(self.nights)]

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()} -> {self.check_out.isoformat()}"
