from decimal import Decimal
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from app.api.deps import AsyncSessionLocal
from app.application.interfaces.clock import SystemClock
from app.application.use_cases.capture_payment_order import CapturePaymentOrderUseCase
from app.application.use_cases.get_booking import GetBookingUseCase
from app.application.use_cases.get_checkout_status import GetCheckoutStatusUseCase
from app.application.use_cases.get_listing_availability import GetListingAvailabilityUseCase
from app.application.use_cases.handle_payment_notification import HandlePaymentNotificationUseCase
from app.application.use_cases.reserve_booking import ReserveBookingUseCase
from app.config import Settings, get_settings
from app.domain.entities.listing import Listing
from app.domain.entities.payment import PaymentMethod
from app.infrastructure.db.repositories.listing_repo_sql import ListingRepoSQL
from app.infrastructure.db.repositories.reservation_ledger_sql import ReservationLedgerSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector
from app.infrastructure.gateways.paypal_order_gateway import PayPalOrderConfig, PayPalOrderGateway
from app.infrastructure.gateways.stripe_checkout_gateway import (
    StripeCheckoutConfig,
    StripeCheckoutGateway,
)
from app.infrastructure.in_memory.listing_repo import InMemoryListingRepo
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from app.infrastructure.in_memory.reconciliation_alerts import InMemoryReconciliationAlerts
from app.infrastructure.in_memory.reservation_ledger import InMemoryReservationLedger
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager
from app.infrastructure.services.reconciliation_alerts_logging import LoggingReconciliationAlerts

DEMO_LISTINGS = [
    Listing(
        id="listing-demo-1",
        host_id="host-demo-1",
        title="Nile view apartment",
        price=Decimal("100.00"),
    ),
    Listing(
        id="listing-demo-2",
        host_id="host-demo-1",
        title="Garden studio",
        price=Decimal("45.50"),
    ),
]


@lru_cache(maxsize=1)
def _in_memory_bundle():
    settings = get_settings()
    selector = PaymentGatewaySelector(
        {
            PaymentMethod.STRIPE: StubPaymentGateway(
                PaymentMethod.STRIPE,
                currency=settings.stripe_currency,
                webhook_secret=settings.stub_webhook_secret,
            ),
            PaymentMethod.PAYPAL: StubPaymentGateway(
                PaymentMethod.PAYPAL,
                currency=settings.paypal_currency,
                webhook_secret=settings.stub_webhook_secret,
            ),
        }
    )
    return {
        "ledger": InMemoryReservationLedger(),
        "listing_repo": InMemoryListingRepo(DEMO_LISTINGS),
        "gateway_selector": selector,
        "alerts": InMemoryReconciliationAlerts(),
        "tx_manager": NoopTransactionManager(),
    }


@lru_cache(maxsize=1)
def _sql_bundle():
    settings = get_settings()
    tx_manager = SQLAlchemyTransactionManager(AsyncSessionLocal)
    selector = PaymentGatewaySelector(
        {
            PaymentMethod.STRIPE: StripeCheckoutGateway(
                StripeCheckoutConfig(
                    api_key=settings.stripe_api_key,
                    webhook_secret=settings.stripe_webhook_secret,
                    currency=settings.stripe_currency,
                    timeout_seconds=settings.gateway_timeout_seconds,
                )
            ),
            PaymentMethod.PAYPAL: PayPalOrderGateway(
                PayPalOrderConfig(
                    client_id=settings.paypal_client_id,
                    client_secret=settings.paypal_client_secret,
                    webhook_id=settings.paypal_webhook_id,
                    currency=settings.paypal_currency,
                    environment=settings.paypal_env,
                    timeout_seconds=settings.gateway_timeout_seconds,
                )
            ),
        }
    )
    return {
        "ledger": ReservationLedgerSQL(tx_manager),
        "listing_repo": ListingRepoSQL(tx_manager),
        "gateway_selector": selector,
        "alerts": LoggingReconciliationAlerts(),
        "tx_manager": tx_manager,
    }


def get_bundle(settings: Settings = Depends(get_settings)) -> dict:
    if settings.use_in_memory:
        return _in_memory_bundle()
    return _sql_bundle()


def get_use_cases(
    settings: Settings = Depends(get_settings),
    bundle: dict = Depends(get_bundle),
):
    ledger = bundle["ledger"]
    selector = bundle["gateway_selector"]
    return {
        "reserve": ReserveBookingUseCase(
            listing_repo=bundle["listing_repo"],
            ledger=ledger,
            gateway_selector=selector,
            transaction_manager=bundle["tx_manager"],
            clock=SystemClock(),
            app_base_url=settings.app_base_url,
        ),
        "handle_notification": HandlePaymentNotificationUseCase(
            ledger=ledger,
            gateway_selector=selector,
            alerts=bundle["alerts"],
        ),
        "get_booking": GetBookingUseCase(ledger=ledger),
        "checkout_status": GetCheckoutStatusUseCase(ledger=ledger),
        "capture_order": CapturePaymentOrderUseCase(ledger=ledger, gateway_selector=selector),
        "availability": GetListingAvailabilityUseCase(
            listing_repo=bundle["listing_repo"],
            ledger=ledger,
        ),
    }


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    # La autenticación vive en otro servicio; el gateway de entrada propaga el usuario
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
