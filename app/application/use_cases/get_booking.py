from app.application.dtos.booking_dto import BookingDetailsDTO
from app.application.interfaces.reservation_ledger import ReservationLedger
from app.domain.errors import BookingNotFoundError


class GetBookingUseCase:
    def __init__(self, ledger: ReservationLedger) -> None:
        self._ledger = ledger

    async def execute(self, booking_id: str, user_id: str) -> BookingDetailsDTO:
        booking = await self._ledger.get_booking(booking_id)
        # Una reserva ajena se reporta igual que una inexistente
        if booking is None or booking.user_id != user_id:
            raise BookingNotFoundError(booking_id)

        payment = await self._ledger.get_payment_for_booking(booking_id)
        return BookingDetailsDTO(booking=booking, payment=payment)
