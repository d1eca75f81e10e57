"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  Lifecycle tests that do not care about SQL
run against ``InMemoryDeliveryRepository``.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tripdrop.domain.entities import Journey, Location
from tripdrop.domain.enums import VehicleType
from tripdrop.domain.geo import Coordinate
from tripdrop.infrastructure.database import Base
from tripdrop.infrastructure import models  # noqa: F401  (registers tables)
from tripdrop.infrastructure.locks import LocalLocks
from tripdrop.infrastructure.memory import InMemoryDeliveryRepository
from tripdrop.services.deliveries import DeliveryService


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Bengaluru corridor shared by most tests
PICKUP = Coordinate(12.90, 77.50)
DROPOFF = Coordinate(12.95, 77.60)
JOURNEY_START = Coordinate(12.90, 77.45)
JOURNEY_END = Coordinate(12.95, 77.65)
FAR_START = Coordinate(13.50, 78.00)
FAR_END = Coordinate(13.60, 78.10)

SENDER_ID = 1
TRAVELER_ID = 2
OTHER_TRAVELER_ID = 3


def on_route_journey(vehicle_type=VehicleType.GEARED_MOTORBIKE) -> Journey:
    return Journey(
        start=Location(JOURNEY_START, "Kengeri"),
        end=Location(JOURNEY_END, "Whitefield"),
        vehicle_type=vehicle_type,
    )


async def create_delivery(
    service: DeliveryService,
    pickup: Coordinate = PICKUP,
    dropoff: Coordinate = DROPOFF,
    vehicle_type: VehicleType = VehicleType.GEARED_MOTORBIKE,
    sender_id: int = SENDER_ID,
):
    return await service.create_delivery(
        sender_id=sender_id,
        pickup=Location(pickup, "pickup"),
        dropoff=Location(dropoff, "dropoff"),
        receiver_contact="+919811111111",
        vehicle_type=vehicle_type,
    )


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def memory_repo() -> InMemoryDeliveryRepository:
    return InMemoryDeliveryRepository()


@pytest.fixture
def service(memory_repo) -> DeliveryService:
    return DeliveryService(memory_repo, LocalLocks())
