"""
Pytest configuration and shared test fixtures.

Services run against an in-memory SQLite database created fresh for every
test, with a frozen clock and a fake payment gateway. Factory fixtures create
users, vehicles and paid payments directly through the session and hand back
IDs: a rolled back unit of work expires every instance in the session.
"""

import os

os.environ.setdefault("DEALER_ENVIRONMENT", "test")
os.environ.setdefault("DEALER_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DEALER_SECRET_KEY", "test-secret-key-for-dealer-sales-suite")
os.environ.setdefault("DEALER_LOG_LEVEL", "WARNING")

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from dealer_sales.core.clock import FixedClock
from dealer_sales.core.config import get_settings
from dealer_sales.database.connection import create_session_factory
from dealer_sales.database.models import (
    Base,
    Invoice,
    Payment,
    User,
    UserRole,
    Vehicle,
)
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.services.orders.enums import InvoiceStatus, PaymentStatus
from dealer_sales.services.payments.gateway import GatewayIntent, PaymentGatewayError

TEST_DATABASE_URL = "sqlite+aiosqlite://"
CLOCK_START = datetime(2026, 3, 14, 10, 30)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an in-memory database with the full schema.

    A single shared connection keeps the in-memory database alive across
    sessions of the same test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def uow(session: AsyncSession) -> UnitOfWork:
    return UnitOfWork(session)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(CLOCK_START)


# ============================================================================
# Data Factories
# ============================================================================


@pytest.fixture
def make_user(session: AsyncSession) -> Callable[..., Awaitable[uuid.UUID]]:
    """Factory creating a committed user, returning its ID."""

    async def _make_user(
        role: UserRole = UserRole.CUSTOMER,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        phone_number: Optional[str] = "+15550100",
    ) -> uuid.UUID:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            id=uuid.uuid4(),
            email=email or f"{role.value}-{suffix}@example.com",
            full_name=full_name or f"{role.value.replace('_', ' ').title()} {suffix}",
            phone_number=phone_number,
            role=role,
            created_at=CLOCK_START,
        )
        session.add(user)
        await session.commit()
        return user.id

    return _make_user


@pytest.fixture
async def customer(make_user) -> uuid.UUID:
    return await make_user(UserRole.CUSTOMER, full_name="Jane Driver", email="jane@example.com")


@pytest.fixture
async def other_customer(make_user) -> uuid.UUID:
    return await make_user(UserRole.CUSTOMER, full_name="Sam Buyer", email="sam@example.com")


@pytest.fixture
async def staff(make_user) -> uuid.UUID:
    return await make_user(UserRole.DEALER_STAFF, full_name="Alex Seller")


@pytest.fixture
async def manager(make_user) -> uuid.UUID:
    return await make_user(UserRole.DEALER_MANAGER, full_name="Morgan Boss")


@pytest.fixture
def make_vehicle(session: AsyncSession) -> Callable[..., Awaitable[uuid.UUID]]:
    """Factory creating a committed vehicle, returning its ID."""

    async def _make_vehicle(
        stock: int = 3,
        model_name: str = "Model 3",
        trim_name: str = "Long Range",
        base_price: Decimal = Decimal("45990.00"),
        is_active: bool = True,
        model_year: int = 2026,
        range_km: Optional[int] = None,
    ) -> uuid.UUID:
        vehicle = Vehicle(
            id=uuid.uuid4(),
            model_name=model_name,
            trim_name=trim_name,
            model_year=model_year,
            base_price=base_price,
            stock=stock,
            is_active=is_active,
            range_km=range_km,
            created_at=CLOCK_START,
        )
        session.add(vehicle)
        await session.commit()
        return vehicle.id

    return _make_vehicle


@pytest.fixture
async def vehicle(make_vehicle) -> uuid.UUID:
    return await make_vehicle()


@pytest.fixture
def stock_of(session: AsyncSession) -> Callable[[uuid.UUID], Awaitable[int]]:
    """Read a vehicle's stock straight from the database."""

    async def _stock_of(vehicle_id: uuid.UUID) -> int:
        return await session.scalar(select(Vehicle.stock).where(Vehicle.id == vehicle_id))

    return _stock_of


@pytest.fixture
def add_paid_payment(
    session: AsyncSession, clock: FixedClock
) -> Callable[[uuid.UUID], Awaitable[uuid.UUID]]:
    """Record a paid payment on an order's invoice, as the gateway would."""

    async def _add_paid_payment(order_id: uuid.UUID) -> uuid.UUID:
        invoice = (
            await session.execute(select(Invoice).where(Invoice.order_id == order_id))
        ).scalars().first()
        payment = Payment(
            id=uuid.uuid4(),
            invoice_id=invoice.id,
            amount=invoice.total_amount,
            status=PaymentStatus.PAID,
            payment_date=clock.now(),
            payment_method="card",
            payment_intent_id=f"pi_{uuid.uuid4().hex[:24]}",
            created_at=clock.now(),
        )
        session.add(payment)
        invoice.status = InvoiceStatus.PAID
        await session.commit()
        return payment.id

    return _add_paid_payment


@pytest.fixture
def soft_delete(session: AsyncSession, clock: FixedClock) -> Callable[..., Awaitable[None]]:
    """Soft-delete a row of any model by ID."""

    async def _soft_delete(model: type, row_id: uuid.UUID) -> None:
        await session.execute(
            update(model).where(model.id == row_id).values(deleted_at=clock.now())
        )
        await session.commit()

    return _soft_delete


# ============================================================================
# Payment Gateway
# ============================================================================


class FakePaymentGateway:
    """
    In-memory payment gateway keeping intents by ID.

    ``on_create`` runs after an intent is created and before it is returned,
    standing in for whatever happens while the gateway call is in flight.
    ``unavailable`` makes cancellation fail like an exhausted retry.
    """

    def __init__(self):
        self.intents: dict[str, GatewayIntent] = {}
        self.created: list[dict] = []
        self.cancelled: list[str] = []
        self.on_create: Optional[Callable[[], Awaitable[None]]] = None
        self.unavailable = False

    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        order_id: uuid.UUID,
        invoice_number: str,
        customer_email: Optional[str] = None,
    ) -> GatewayIntent:
        intent = GatewayIntent(
            id=f"pi_{uuid.uuid4().hex[:24]}",
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            client_secret="pi_secret_test",
            payment_method_type="card",
        )
        self.intents[intent.id] = intent
        self.created.append(
            {
                "amount": amount,
                "currency": currency,
                "order_id": order_id,
                "invoice_number": invoice_number,
                "customer_email": customer_email,
            }
        )
        if self.on_create is not None:
            await self.on_create()
        return intent

    async def retrieve_intent(self, payment_intent_id: str) -> GatewayIntent:
        return self.intents[payment_intent_id]

    async def cancel_intent(self, payment_intent_id: str) -> GatewayIntent:
        self.cancelled.append(payment_intent_id)
        if self.unavailable:
            raise PaymentGatewayError("Payment gateway unavailable", code="api_error")
        self.set_status(payment_intent_id, "canceled")
        return self.intents[payment_intent_id]

    def set_status(self, payment_intent_id: str, status: str, failed: bool = False) -> None:
        self.intents[payment_intent_id] = replace(
            self.intents[payment_intent_id], status=status, failed=failed
        )


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
def app(session: AsyncSession, clock: FixedClock, payment_gateway: FakePaymentGateway):
    """
    Application wired to the test session, clock and payment gateway.

    Requests share the test's session so factory fixtures and endpoints see
    the same in-memory database.
    """
    from dealer_sales.core.clock import get_clock
    from dealer_sales.database.connection import get_db
    from dealer_sales.main import app as application
    from dealer_sales.services.payments.gateway import get_payment_gateway

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_clock] = lambda: clock
    application.dependency_overrides[get_payment_gateway] = lambda: payment_gateway

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def auth_headers() -> Callable[[uuid.UUID], dict[str, str]]:
    """Build an Authorization header carrying a signed token for a user ID."""

    def _auth_headers(user_id: uuid.UUID) -> dict[str, str]:
        settings = get_settings()
        token = jwt.encode(
            {
                "sub": str(user_id),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=30),
            },
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
