"""Interface ListingRepo - lectura de alojamientos publicados."""

from abc import ABC, abstractmethod

from app.domain.entities.listing import Listing


class ListingRepo(ABC):
    """Puerto de solo lectura; los alojamientos los administra otro módulo."""

    @abstractmethod
    async def get_by_id(self, listing_id: str) -> Listing | None:
        """
        Obtiene un alojamiento por su id.

        Args:
            listing_id: Identificador del alojamiento.

        Returns:
            Listing o None si no existe.
        """
        raise NotImplementedError
