"""Value Objects del dominio de reservas."""

from app.domain.value_objects.money import Money, from_minor_units, to_minor_units
from app.domain.value_objects.stay_range import StayRange

__all__ = [
    "Money",
    "StayRange",
    "from_minor_units",
    "to_minor_units",
]
