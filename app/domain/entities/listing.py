"""Entidad Listing - alojamiento publicado (solo lectura en este módulo)."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Listing:
    """
    Alojamiento publicado por un anfitrión.

    Lo administra otro módulo; aquí solo se lee para cotizar.
    """

    id: str
    host_id: str
    title: str
    price: Decimal
    description: str | None = None
