"""Shared test configuration and fixtures.

Each test gets a fresh in-memory SQLite database (aiosqlite, one shared
connection) with every table created. Services commit for real, so tests
observe exactly what a request would leave behind.

Collaborators that leave the process are replaced by fakes:

- ``FakeGateway`` records checkout and verification calls;
- ``RecordingNotificationSender`` records every notice instead of queueing it;
- ``StaticSettingsProvider`` pins platform settings;
- ``FrozenClock`` pins "now" and can be advanced.
"""

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from venuebook.api.deps import (
    get_clock,
    get_db,
    get_notification_sender,
    get_payment_gateway,
    get_settings_provider,
)
from venuebook.auth.jwt import create_token_pair
from venuebook.auth.passwords import hash_password
from venuebook.config import settings
from venuebook.database import Base, utcnow
from venuebook.errors import PaymentGatewayError
from venuebook.main import app
from venuebook.models.hall import Hall, HallFacility
from venuebook.models.payment import PaymentPurpose
from venuebook.models.user import ROLE_CUSTOMER, ROLE_HALL_OWNER, ROLE_STAFF, ROLE_SUPER_ADMIN, User
from venuebook.payments.correlation import PaymentCorrelator
from venuebook.payments.gateway import (
    CheckoutSession,
    GatewayPaymentStatus,
    PaymentRequest,
    VerificationResult,
)
from venuebook.services.booking_service import BookingService
from venuebook.services.booking_sweep import BookingSweep
from venuebook.services.conflicts import TimeRange
from venuebook.services.platform_settings import StaticSettingsProvider
from venuebook.services.reservation_service import ReservationRequest, ReservationService
from venuebook.services.reservation_sweep import ReservationSweep

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FrozenClock:
    """Callable clock returning a fixed naive-UTC instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeGateway:
    """In-memory ``PaymentGateway``."""

    def __init__(self) -> None:
        self.initialized: list[PaymentRequest] = []
        self.verified: list[tuple[str, str | None]] = []
        self.fail_initialize = False
        self.result = VerificationResult(GatewayPaymentStatus.PAID, "pi_test_123")

    async def initialize(self, request: PaymentRequest) -> CheckoutSession:
        self.initialized.append(request)
        if self.fail_initialize:
            raise PaymentGatewayError("Could not initialize payment with the gateway.")
        return CheckoutSession(
            reference=request.reference,
            session_id=f"cs_test_{len(self.initialized)}",
            checkout_url=f"https://checkout.test/pay/{request.reference}",
        )

    async def verify(self, reference: str, session_id: str | None = None) -> VerificationResult:
        self.verified.append((reference, session_id))
        return self.result


@dataclass(frozen=True)
class SentNotice:
    recipient_id: uuid.UUID | None
    message: str
    link: str | None
    email: str | None
    event: str


class RecordingNotificationSender:
    def __init__(self) -> None:
        self.sent: list[SentNotice] = []

    async def send(
        self,
        recipient_id: uuid.UUID | None,
        message: str,
        link: str | None = None,
        *,
        email: str | None = None,
        event: str = "notification",
    ) -> None:
        self.sent.append(SentNotice(recipient_id, message, link, email, event))

    def of(self, event_name: str) -> list[SentNotice]:
        return [notice for notice in self.sent if notice.event == event_name]


class ExplodingNotificationSender:
    """Sender whose every delivery fails."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, recipient_id, message, link=None, *, email=None, event="notification") -> None:
        self.attempts += 1
        raise ConnectionError("queue unavailable")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


async def sqlite_engine(url: str, **kwargs) -> AsyncEngine:
    """Engine with foreign keys on and real transactions, tables created."""
    engine = create_async_engine(url, echo=False, **kwargs)

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = await sqlite_engine(settings.test_database_url, poolclass=StaticPool)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(utcnow().replace(microsecond=0))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def sender() -> RecordingNotificationSender:
    return RecordingNotificationSender()


@pytest.fixture
def settings_provider() -> StaticSettingsProvider:
    return StaticSettingsProvider()


@pytest.fixture
def reservation_service(db_session, gateway, sender, settings_provider, clock) -> ReservationService:
    return ReservationService(
        db_session, gateway=gateway, sender=sender, settings_provider=settings_provider, clock=clock
    )


@pytest.fixture
def booking_service(db_session, gateway, sender, settings_provider, clock) -> BookingService:
    return BookingService(
        db_session, gateway=gateway, sender=sender, settings_provider=settings_provider, clock=clock
    )


@pytest.fixture
def correlator(db_session, gateway, reservation_service, booking_service) -> PaymentCorrelator:
    return PaymentCorrelator(
        db_session,
        gateway,
        handlers={
            PaymentPurpose.RESERVATION_DEPOSIT: reservation_service.apply_deposit_outcome,
            PaymentPurpose.CONVERSION_BALANCE: reservation_service.apply_conversion_outcome,
            PaymentPurpose.BOOKING_PAYMENT: booking_service.apply_payment_outcome,
        },
    )


@pytest.fixture
def sweep(db_session, sender, settings_provider, clock) -> ReservationSweep:
    return ReservationSweep(
        db_session,
        sender=sender,
        settings_provider=settings_provider,
        clock=clock,
        reminder_windows_hours=[72],
    )


@pytest.fixture
def booking_sweep(db_session, sender, settings_provider, clock) -> BookingSweep:
    return BookingSweep(db_session, sender=sender, settings_provider=settings_provider, clock=clock)


# ---------------------------------------------------------------------------
# Users and halls
# ---------------------------------------------------------------------------


async def make_user(db_session: AsyncSession, role: str = ROLE_CUSTOMER, **overrides) -> User:
    """Create and commit a user with password ``testpass123``."""
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=overrides.pop("email", f"{role}-{unique}@test.com"),
        hashed_password=hash_password("testpass123"),
        full_name=overrides.pop("full_name", f"Test {role.replace('_', ' ').title()}"),
        is_active=overrides.pop("is_active", True),
        role=role,
        **overrides,
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def make_hall(db_session: AsyncSession, owner: User, staff: list[User] | None = None, **overrides) -> Hall:
    """Create and commit a hall with an hourly rate and two facilities.

    Relationships are assigned up front so nothing needs lazy loading later.
    """
    values = {
        "name": "Grand Hall",
        "location": "Ikeja, Lagos",
        "capacity": 300,
        "hourly_rate": Decimal("5000"),
        "daily_rate": None,
        "booking_buffer_hours": Decimal("2"),
        "reservation_fee_percentage": Decimal("20"),
        "reservation_cutoff_hours": 72,
        "is_active": True,
    }
    values.update(overrides)
    facilities = values.pop("facilities", None)
    if facilities is None:
        facilities = [
            HallFacility(
                name="Chairs",
                available=True,
                chargeable=True,
                charge_method="flat",
                cost=Decimal("100"),
                charge_per_unit=True,
                quantity=200,
            ),
            HallFacility(
                name="Projector",
                available=True,
                chargeable=True,
                charge_method="per_hour",
                cost=Decimal("1000"),
                charge_per_unit=False,
                quantity=1,
            ),
        ]
    hall = Hall(owner_id=owner.id, owner=owner, staff=list(staff or []), facilities=facilities, **values)
    db_session.add(hall)
    await db_session.commit()
    return hall


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await make_user(db_session, ROLE_HALL_OWNER, full_name="Hall Owner")


@pytest_asyncio.fixture
async def staff_member(db_session: AsyncSession) -> User:
    return await make_user(db_session, ROLE_STAFF, full_name="Hall Staff")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await make_user(db_session, ROLE_SUPER_ADMIN, full_name="Platform Admin")


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession) -> User:
    return await make_user(db_session, ROLE_CUSTOMER, full_name="Ada Customer", phone="+2348000000001")


@pytest_asyncio.fixture
async def hall(db_session: AsyncSession, owner: User, staff_member: User, admin: User) -> Hall:
    return await make_hall(db_session, owner, staff=[staff_member])


def slot(clock: FrozenClock, *, days: float = 5, start_hour: float = 0, hours: float = 3) -> TimeRange:
    """A range starting ``days`` + ``start_hour`` after the clock's now."""
    start = clock.now + timedelta(days=days, hours=start_hour)
    return TimeRange(start, start + timedelta(hours=hours))


def reservation_request(hall: Hall, ranges: list[TimeRange], **overrides) -> ReservationRequest:
    values = {"event_details": "Wedding reception", "selected_facilities": []}
    values.update(overrides)
    return ReservationRequest(hall_id=hall.id, booking_dates=ranges, **values)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    gateway: FakeGateway,
    sender: RecordingNotificationSender,
    settings_provider: StaticSettingsProvider,
    clock: FrozenClock,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test DB session and fakes."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_sender] = lambda: sender
    app.dependency_overrides[get_settings_provider] = lambda: settings_provider
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id), user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


# ---------------------------------------------------------------------------
# Stripe events
# ---------------------------------------------------------------------------


class _StripeObj(SimpleNamespace):
    """SimpleNamespace with bracket notation support (like Stripe API objects)."""

    def __getitem__(self, key: str):
        return getattr(self, key)


def make_event(event_type: str, **session_fields) -> _StripeObj:
    """Create a fake Checkout Session event."""
    session = {
        "id": f"cs_test_{uuid.uuid4().hex[:8]}",
        "client_reference_id": None,
        "metadata": {},
        "payment_status": "unpaid",
        "status": "open",
        "payment_intent": None,
    }
    session.update(session_fields)
    return _StripeObj(
        type=event_type,
        id=f"evt_test_{uuid.uuid4().hex[:8]}",
        data=_StripeObj(object=_StripeObj(**session)),
    )
