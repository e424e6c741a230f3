"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Ledger, repositorio de alojamientos y pasarelas in-memory
- Base de datos SQLite (aiosqlite) en archivo temporal para el ledger SQL
- Cliente HTTP de prueba (FastAPI TestClient) en modo in-memory
- Reloj fijo para fechas deterministas
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from app.application.interfaces.clock import FakeClock
from app.domain.entities.listing import Listing
from app.domain.entities.payment import PaymentMethod
from app.infrastructure.circuit_breaker import stripe_breaker
from app.infrastructure.db.engine import build_sessionmaker
from app.infrastructure.db.tables import metadata
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.payment_gateway_selector import PaymentGatewaySelector
from app.infrastructure.in_memory.listing_repo import InMemoryListingRepo
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from app.infrastructure.in_memory.reconciliation_alerts import InMemoryReconciliationAlerts
from app.infrastructure.in_memory.reservation_ledger import InMemoryReservationLedger
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager

# ============================================================================
# DATOS DE PRUEBA
# ============================================================================

LISTING_ID = "listing-1"
TODAY = datetime(2026, 1, 1, 9, 30, tzinfo=timezone.utc)
STUB_SECRET = "whsec_stub"


@pytest.fixture
def listing() -> Listing:
    """Alojamiento de $100.00 por noche."""
    return Listing(id=LISTING_ID, host_id="host-1", title="Sea view loft", price=Decimal("100.00"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(TODAY)


# ============================================================================
# FIXTURES IN-MEMORY
# ============================================================================


@pytest.fixture
def ledger() -> InMemoryReservationLedger:
    return InMemoryReservationLedger()


@pytest.fixture
def listing_repo(listing) -> InMemoryListingRepo:
    return InMemoryListingRepo([listing])


@pytest.fixture
def stripe_stub() -> StubPaymentGateway:
    return StubPaymentGateway(PaymentMethod.STRIPE, currency="USD", webhook_secret=STUB_SECRET)


@pytest.fixture
def paypal_stub() -> StubPaymentGateway:
    return StubPaymentGateway(PaymentMethod.PAYPAL, currency="USD", webhook_secret=STUB_SECRET)


@pytest.fixture
def gateway_selector(stripe_stub, paypal_stub) -> PaymentGatewaySelector:
    return PaymentGatewaySelector(
        {PaymentMethod.STRIPE: stripe_stub, PaymentMethod.PAYPAL: paypal_stub}
    )


@pytest.fixture
def alerts() -> InMemoryReconciliationAlerts:
    return InMemoryReconciliationAlerts()


@pytest.fixture
def tx_manager() -> NoopTransactionManager:
    return NoopTransactionManager()


# ============================================================================
# FIXTURES DE BASE DE DATOS
# ============================================================================


@pytest_asyncio.fixture
async def sql_engine(tmp_path):
    """
    Engine SQLite en archivo temporal.

    Un archivo (no :memory:) permite que sesiones concurrentes vean los
    mismos datos y compitan por el lock de escritura.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sql_tx_manager(sql_engine) -> SQLAlchemyTransactionManager:
    return SQLAlchemyTransactionManager(build_sessionmaker(sql_engine))


# ============================================================================
# FIXTURES DE CLIENTE HTTP
# ============================================================================


@pytest.fixture
def app_bundle():
    """Contenedor in-memory que usa la app; se recrea en cada test."""
    from app.api.dependencies import _in_memory_bundle

    _in_memory_bundle.cache_clear()
    yield _in_memory_bundle()
    _in_memory_bundle.cache_clear()


@pytest.fixture
def client(app_bundle) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient en modo in-memory.

    El reloj del sistema fija "hoy", así que los tests de endpoint usan
    fechas lejanas en el futuro.
    """
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# HOOKS DE PYTEST
# ============================================================================


def pytest_configure(config):
    """
    Configurar markers personalizados de pytest.
    """
    config.addinivalue_line(
        "markers",
        "integration: Tests contra un motor SQL real (sqlite+aiosqlite)"
    )
    config.addinivalue_line(
        "markers",
        "circuit_breaker: Tests del circuit breaker de Stripe"
    )


@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """
    Reset circuit breakers antes de cada test.
    Evita que tests fallen por breakers abiertos de tests anteriores.
    """
    stripe_breaker.close()

    yield

    stripe_breaker.close()
