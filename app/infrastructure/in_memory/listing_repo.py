from app.application.interfaces.listing_repo import ListingRepo
from app.domain.entities.listing import Listing


class InMemoryListingRepo(ListingRepo):
    def __init__(self, listings: list[Listing] | None = None) -> None:
        self._by_id: dict[str, Listing] = {}
        for listing in listings or []:
            self.add(listing)

    def add(self, listing: Listing) -> None:
        self._by_id[listing.id] = listing

    async def get_by_id(self, listing_id: str) -> Listing | None:
        return self._by_id.get(listing_id)
