from app.application.dtos.booking_dto import AvailabilityDTO
from app.application.interfaces.listing_repo import ListingRepo
from app.application.interfaces.reservation_ledger import ReservationLedger
from app.domain.errors import InvalidRangeError, ListingNotFoundError
from app.domain.pricing import parse_utc_date

# Ventana máxima consultable en una sola llamada
MAX_WINDOW_DAYS = 366


class GetListingAvailabilityUseCase:
    def __init__(self, listing_repo: ListingRepo, ledger: ReservationLedger) -> None:
        self._listing_repo = listing_repo
        self._ledger = ledger

    async def execute(self, listing_id: str, start: str, end: str) -> AvailabilityDTO:
        listing = await self._listing_repo.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        start_date = parse_utc_date(start, "start")
        end_date = parse_utc_date(end, "end")
        if end_date <= start_date or (end_date - start_date).days > MAX_WINDOW_DAYS:
            raise InvalidRangeError(start_date.isoformat(), end_date.isoformat())

        booked = await self._ledger.list_booked_dates(listing_id, start_date, end_date)
        return AvailabilityDTO(
            listing_id=listing_id,
            start=start_date,
            end=end_date,
            booked_dates=booked,
        )
