"""
Capa de Infraestructura - Reservas de Alojamientos.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).
Incluye adaptadores para bases de datos, pasarelas de pago y servicios.

Estructura:
- db/: Tablas, engine, transacciones y repositorios SQL
- gateways/: Adaptadores de pago (Stripe Checkout, PayPal Orders) y selector
- in_memory/: Implementaciones in-memory para desarrollo y testing
- services/: Servicios de infraestructura (alertas de conciliación)
"""

# Database
from app.infrastructure.db.repositories.listing_repo_sql import ListingRepoSQL
from app.infrastructure.db.repositories.reservation_ledger_sql import ReservationLedgerSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

# Gateways
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector
from app.infrastructure.gateways.paypal_order_gateway import PayPalOrderConfig, PayPalOrderGateway
from app.infrastructure.gateways.stripe_checkout_gateway import StripeCheckoutConfig, StripeCheckoutGateway

# In-Memory (for development and testing)
from app.infrastructure.in_memory import (
    InMemoryListingRepo,
    InMemoryPaymentGateway,
    InMemoryReconciliationAlerts,
    InMemoryReservationLedger,
    InMemoryTransactionManager,
)

# Services
from app.infrastructure.services import LoggingReconciliationAlerts

__all__ = [
    # Database
    "ReservationLedgerSQL",
    "ListingRepoSQL",
    "SQLAlchemyTransactionManager",
    # Gateways
    "PaymentGatewaySelector",
    "StripeCheckoutGateway",
    "StripeCheckoutConfig",
    "PayPalOrderGateway",
    "PayPalOrderConfig",
    # In-Memory Implementations
    "InMemoryReservationLedger",
    "InMemoryListingRepo",
    "InMemoryPaymentGateway",
    "InMemoryReconciliationAlerts",
    "InMemoryTransactionManager",
    # Services
    "LoggingReconciliationAlerts",
]
