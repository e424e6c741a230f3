from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_user_id, get_use_cases
from app.api.schemas.bookings import (
    BookingResponse,
    CancelResponse,
    CaptureResponse,
    CheckoutRequest,
    CheckoutResponse,
    CheckoutStatusResponse,
)

router = APIRouter()


@router.post(
    "/bookings/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_checkout(
    payload: CheckoutRequest,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> CheckoutResponse:
    outcome = await use_cases["reserve"].execute(
        user_id=user_id,
        listing_id=payload.listing_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        provider=payload.provider.value,
    )
    return CheckoutResponse.from_outcome(outcome)


# Páginas de retorno: informan el estado, la confirmación llega por webhook


@router.get("/bookings/success", response_model=CheckoutStatusResponse)
async def stripe_success(
    session_id: str = Query(..., min_length=1),
    use_cases=Depends(get_use_cases),
) -> CheckoutStatusResponse:
    checkout = await use_cases["checkout_status"].execute(
        provider="stripe",
        external_transaction_id=session_id,
    )
    return CheckoutStatusResponse.from_status("Payment received, confirming booking", checkout)


@router.get("/bookings/cancel", response_model=CancelResponse)
async def stripe_cancel() -> CancelResponse:
    return CancelResponse(message="Payment cancelled", provider="stripe")


@router.get("/bookings/paypal/success", response_model=CaptureResponse)
async def paypal_success(
    token: str = Query(..., min_length=1),
    use_cases=Depends(get_use_cases),
) -> CaptureResponse:
    # PayPal devuelve el id de la orden aprobada en "token"
    capture = await use_cases["capture_order"].execute(order_id=token)
    return CaptureResponse(message="Payment captured, confirming booking", **capture)


@router.get("/bookings/paypal/cancel", response_model=CancelResponse)
async def paypal_cancel() -> CancelResponse:
    return CancelResponse(message="Payment cancelled", provider="paypal")


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> BookingResponse:
    details = await use_cases["get_booking"].execute(booking_id=booking_id, user_id=user_id)
    return BookingResponse.from_details(details)
