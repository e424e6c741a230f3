from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, condecimal, constr, field_serializer

from app.application.dtos.booking_dto import (
    AvailabilityDTO,
    BookingDetailsDTO,
    CheckoutStatusDTO,
    ReservationOutcomeDTO,
)

Money = condecimal(max_digits=12, decimal_places=2)


class PaymentProvider(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    listing_id: constr(strip_whitespace=True, min_length=1, max_length=36) = Field(alias="listingId")
    # Las fechas llegan como texto ISO-8601 y se validan en el dominio
    check_in: constr(strip_whitespace=True, min_length=1) = Field(alias="startDate")
    check_out: constr(strip_whitespace=True, min_length=1) = Field(alias="endDate")
    provider: PaymentProvider = PaymentProvider.STRIPE


class CheckoutResponse(BaseModel):
    booking_id: str
    redirect_url: str | None
    external_transaction_id: str
    provider: str
    total_amount: Money
    currency: str

    @field_serializer("total_amount")
    def _serialize_amount(self, value: Decimal) -> str:
        return f"{value:.2f}"

    @classmethod
    def from_outcome(cls, outcome: ReservationOutcomeDTO) -> "CheckoutResponse":
        return cls(
            booking_id=outcome.booking_id,
            redirect_url=outcome.redirect_url,
            external_transaction_id=outcome.external_transaction_id,
            provider=outcome.provider,
            total_amount=outcome.total_amount,
            currency=outcome.currency,
        )


class PaymentSummary(BaseModel):
    id: str
    method: str
    status: str
    amount: Money
    currency: str
    external_transaction_id: str
    needs_review: bool = False
    review_reason: str | None = None

    @field_serializer("amount")
    def _serialize_amount(self, value: Decimal) -> str:
        return f"{value:.2f}"


class BookingResponse(BaseModel):
    id: str
    listing_id: str
    user_id: str
    check_in: date
    check_out: date
    nights: int
    status: str
    total_price: Money
    created_at: datetime | None = None
    updated_at: datetime | None = None
    payment: PaymentSummary | None = None

    @field_serializer("total_price")
    def _serialize_total(self, value: Decimal) -> str:
        return f"{value:.2f}"

    @classmethod
    def from_details(cls, details: BookingDetailsDTO) -> "BookingResponse":
        booking = details.booking
        payment = details.payment
        return cls(
            id=booking.id,
            listing_id=booking.listing_id,
            user_id=booking.user_id,
            check_in=booking.check_in,
            check_out=booking.check_out,
            nights=booking.nights,
            status=booking.status.value,
            total_price=booking.total_price,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            payment=PaymentSummary(
                id=payment.id,
                method=payment.method.value,
                status=payment.status.value,
                amount=payment.amount,
                currency=payment.currency,
                external_transaction_id=payment.external_transaction_id,
                needs_review=payment.needs_review,
                review_reason=payment.review_reason,
            )
            if payment
            else None,
        )


class CheckoutStatusResponse(BaseModel):
    message: str
    provider: str
    external_transaction_id: str
    found: bool
    booking_id: str | None = None
    booking_status: str | None = None
    payment_status: str | None = None

    @classmethod
    def from_status(cls, message: str, status: CheckoutStatusDTO) -> "CheckoutStatusResponse":
        return cls(
            message=message,
            provider=status.provider,
            external_transaction_id=status.external_transaction_id,
            found=status.found,
            booking_id=status.booking_id,
            booking_status=status.booking_status,
            payment_status=status.payment_status,
        )


class CaptureResponse(BaseModel):
    message: str
    order_id: str
    booking_id: str | None = None
    status: str | None = None


class CancelResponse(BaseModel):
    message: str
    provider: str


class AvailabilityResponse(BaseModel):
    listing_id: str
    start: date
    end: date
    booked_dates: list[date]

    @classmethod
    def from_dto(cls, availability: AvailabilityDTO) -> "AvailabilityResponse":
        return cls(
            listing_id=availability.listing_id,
            start=availability.start,
            end=availability.end,
            booked_dates=availability.booked_dates,
        )


class WebhookAck(BaseModel):
    acknowledged: bool = True


