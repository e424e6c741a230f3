from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import AvailabilityResponse

router = APIRouter()


@router.get("/listings/{listing_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    listing_id: str,
    start: str = Query(..., min_length=1),
    end: str = Query(..., min_length=1),
    use_cases=Depends(get_use_cases),
) -> AvailabilityResponse:
    availability = await use_cases["availability"].execute(
        listing_id=listing_id,
        start=start,
        end=end,
    )
    return AvailabilityResponse.from_dto(availability)
