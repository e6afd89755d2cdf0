import os
import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests-minimum-32-chars")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from showroom.auth.service import create_access_token
from showroom.database import Base, get_db
from showroom.main import app
from showroom.models.broker import Broker
from showroom.models.car import Car
from showroom.models.commission import BrokerCommission
from showroom.models.enums import CarStatus, CommissionType, StaffRole
from showroom.models.staff import StaffProfile

# Use SQLite for tests (in-memory)
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DB_URL, echo=False)
test_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    # Reset rate limiter storage between tests to avoid 429 errors
    from showroom.utils.rate_limit import limiter
    if hasattr(limiter, "_limiter") and hasattr(limiter._limiter, "_storage"):
        limiter._limiter._storage.reset()
    elif hasattr(limiter, "reset"):
        limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _staff(db: AsyncSession, role: StaffRole, name: str) -> StaffProfile:
    staff = StaffProfile(
        id=uuid.uuid4(),
        full_name=name,
        phone_number="+254700000000",
        role=role,
        is_active=True,
    )
    db.add(staff)
    await db.flush()
    return staff


@pytest_asyncio.fixture
async def owner(db: AsyncSession) -> StaffProfile:
    return await _staff(db, StaffRole.OWNER, "Grace Owner")


@pytest_asyncio.fixture
async def manager(db: AsyncSession) -> StaffProfile:
    return await _staff(db, StaffRole.MANAGER, "Peter Manager")


@pytest_asyncio.fixture
async def sales(db: AsyncSession) -> StaffProfile:
    return await _staff(db, StaffRole.SALES, "Amina Sales")


@pytest_asyncio.fixture
async def broker(db: AsyncSession) -> Broker:
    b = Broker(id=uuid.uuid4(), name="Kamau Brokers", phone_number="+254711111111")
    db.add(b)
    await db.flush()
    return b


@pytest_asyncio.fixture
async def second_broker(db: AsyncSession) -> Broker:
    b = Broker(id=uuid.uuid4(), name="Otieno Motors", phone_number="+254722222222")
    db.add(b)
    await db.flush()
    return b


async def make_car(
    db: AsyncSession,
    *,
    registration: str = "KDA 123A",
    price: str = "1000000",
    broker: Broker | None = None,
    commission_type: CommissionType | None = None,
    commission_value: str | None = None,
) -> Car:
    """Insert a car row without reconciling its commission."""
    car = Car(
        id=uuid.uuid4(),
        car_type="Toyota",
        model_number="Fielder",
        registration_number=registration,
        purchase_price=Decimal(price),
        broker_id=broker.id if broker else None,
        broker_commission_type=commission_type,
        broker_commission_value=Decimal(commission_value) if commission_value is not None else None,
        status=CarStatus.AVAILABLE,
    )
    db.add(car)
    await db.flush()
    return car


async def commission_for(db: AsyncSession, car: Car) -> BrokerCommission | None:
    result = await db.execute(
        select(BrokerCommission)
        .where(BrokerCommission.car_id == car.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def reload(db: AsyncSession, obj):
    await db.refresh(obj)
    return obj


def staff_token(staff: StaffProfile) -> str:
    return create_access_token(str(staff.id))


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
