"""Entidad CalendarItem - ocupación por fecha y alojamiento."""

from dataclasses import dataclass
from datetime import date


@dataclass
class CalendarItem:
    """Ocupación de un alojamiento en una fecha; clave (listing_id, date)."""

    listing_id: str
    date: date
    is_booked: bool = False
