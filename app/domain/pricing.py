"""
Utilidades puras de precio y fechas para reservas.

Todas las fechas son fechas de calendario UTC; los montos viajan como
Decimal exacto o enteros en unidades menores, nunca como float.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from app.domain.errors import (
    InvalidDateError,
    InvalidPriceError,
    InvalidRangeError,
    PastDateError,
)
from app.domain.value_objects.money import from_minor_units, to_minor_units
from app.domain.value_objects.stay_range import StayRange

__all__ = [
    "expand_nights",
    "from_minor_units",
    "parse_date_range",
    "parse_utc_date",
    "quote_stay",
    "to_minor_units",
]


def parse_utc_date(value: str | None, field: str) -> date:
    """
    Interpreta un string ISO-8601 (fecha o fecha-hora) como fecha UTC.

    Las fecha-hora con zona se convierten a UTC antes de descartar la hora;
    las que no tienen zona se asumen UTC.
    """
    if not value or not isinstance(value, str):
        raise InvalidDateError(field, value)
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        parsed = datetime.fromisoformat(raw)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError) as exc:
        raise InvalidDateError(field, value) from exc
    return parsed.date()


def parse_date_range(check_in_iso: str, check_out_iso: str, today: date) -> StayRange:
    """
    Valida y normaliza el rango de una reserva.

    Args:
        check_in_iso: Fecha de llegada en ISO-8601.
        check_out_iso: Fecha de salida en ISO-8601 (exclusiva).
        today: Fecha UTC actual (inyectada por el Clock).

    Returns:
        StayRange con nights >= 1.

    Raises:
        InvalidDateError: alguna fecha no se puede interpretar.
        InvalidRangeError: check_out <= check_in.
        PastDateError: check_in es anterior a hoy.
    """
    check_in = parse_utc_date(check_in_iso, "check_in")
    check_out = parse_utc_date(check_out_iso, "check_out")

    if check_out <= check_in:
        raise InvalidRangeError(check_in.isoformat(), check_out.isoformat())
    if check_in < today:
        raise PastDateError(check_in.isoformat(), today.isoformat())

    return StayRange(check_in=check_in, check_out=check_out)


def expand_nights(check_in: date, nights: int) -> list[date]:
    """Las `nights` fechas consecutivas desde check_in; el día de salida no se incluye."""
    return [check_in + timedelta(days=offset) for offset in range(nights)]


def quote_stay(unit_price: Decimal, stay: StayRange) -> int:
    """Total de la estadía en unidades menores: precio por noche x noches."""
    unit_minor = to_minor_units(unit_price)
    if unit_minor <= 0:
        raise InvalidPriceError("Invalid listing price")
    return unit_minor * stay.nights
