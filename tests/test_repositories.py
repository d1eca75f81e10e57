"""SQL repository tests against in-memory SQLite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from tripdrop.config import settings
from tripdrop.domain.entities import DeliveryRequest, Location
from tripdrop.domain.enums import DeliveryStatus, PaymentStatus, VehicleType
from tripdrop.domain.geo import Coordinate
from tripdrop.domain.routing import corridor_cells, pickup_cell
from tripdrop.infrastructure.locks import LocalLocks
from tripdrop.infrastructure.models import DeliveryModel
from tripdrop.infrastructure.repositories import DeliveryRepository
from tripdrop.services.deliveries import DeliveryService
from tests.conftest import (
    DROPOFF,
    FAR_END,
    FAR_START,
    JOURNEY_END,
    JOURNEY_START,
    PICKUP,
    SENDER_ID,
    TRAVELER_ID,
    create_delivery,
    on_route_journey,
)

T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _new(pickup=PICKUP, dropoff=DROPOFF, minutes=0, **kw) -> DeliveryRequest:
    return DeliveryRequest(
        sender_id=SENDER_ID,
        pickup=Location(pickup, "pickup"),
        dropoff=Location(dropoff, "dropoff"),
        receiver_contact="+919811111111",
        vehicle_type=VehicleType.SCOOTER,
        pickup_cell=pickup_cell(pickup),
        created_at=T0 + timedelta(minutes=minutes),
        **kw,
    )


class TestDeliveryRepository:
    @pytest.mark.asyncio
    async def test_add_and_get(self, db_session):
        repo = DeliveryRepository(db_session)
        added = await repo.add(_new(idempotency_key="k-1"))
        assert added.id is not None

        fetched = await repo.get(added.id)
        assert fetched.pickup.coordinate == PICKUP
        assert fetched.dropoff.address == "dropoff"
        assert fetched.vehicle_type == VehicleType.SCOOTER
        assert fetched.status == DeliveryStatus.PENDING
        assert fetched.payment_status == PaymentStatus.PENDING
        assert fetched.traveler_id is None

        by_key = await repo.get_by_idempotency_key("k-1")
        assert by_key.id == added.id

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session):
        repo = DeliveryRepository(db_session)
        assert await repo.get(12345) is None
        assert await repo.get_for_update(12345) is None
        assert await repo.get_by_idempotency_key("nope") is None

    @pytest.mark.asyncio
    async def test_list_pending_ordered_and_filtered_by_cells(self, db_session):
        repo = DeliveryRepository(db_session)
        later = await repo.add(_new(minutes=5))
        earlier = await repo.add(_new(minutes=1))
        far = await repo.add(_new(pickup=FAR_START, dropoff=FAR_END, minutes=2))
        taken = await repo.add(
            _new(minutes=0, status=DeliveryStatus.ACCEPTED, traveler_id=TRAVELER_ID, otp="123456")
        )

        everything = await repo.list_pending()
        assert [d.id for d in everything] == [earlier.id, far.id, later.id]
        assert taken.id not in [d.id for d in everything]

        cells = corridor_cells(JOURNEY_START, JOURNEY_END, 2.0)
        nearby = await repo.list_pending(cells=cells)
        assert [d.id for d in nearby] == [earlier.id, later.id]

        assert await repo.list_pending(cells=[]) == []

    @pytest.mark.asyncio
    async def test_save_applies_when_status_matches(self, db_session):
        repo = DeliveryRepository(db_session)
        added = await repo.add(_new())

        delivery = await repo.get_for_update(added.id)
        delivery.accept(TRAVELER_ID, "654321")
        assert await repo.save(delivery, DeliveryStatus.PENDING) is True

        stored = await repo.get(added.id)
        assert stored.status == DeliveryStatus.ACCEPTED
        assert stored.traveler_id == TRAVELER_ID
        assert stored.otp == "654321"

    @pytest.mark.asyncio
    async def test_save_with_stale_status_changes_nothing(self, db_session):
        repo = DeliveryRepository(db_session)
        added = await repo.add(_new())

        first = await repo.get_for_update(added.id)
        second = await repo.get_for_update(added.id)
        first.accept(TRAVELER_ID, "111111")
        second.accept(TRAVELER_ID + 1, "222222")

        assert await repo.save(first, DeliveryStatus.PENDING) is True
        assert await repo.save(second, DeliveryStatus.PENDING) is False

        stored = await repo.get(added.id)
        assert stored.traveler_id == TRAVELER_ID
        assert stored.otp == "111111"

    @pytest.mark.asyncio
    async def test_count_by_status(self, db_session):
        repo = DeliveryRepository(db_session)
        await repo.add(_new())
        await repo.add(_new())
        await repo.add(_new(status=DeliveryStatus.IN_TRANSIT, traveler_id=TRAVELER_ID, otp="1"))

        counts = await repo.count_by_status()
        assert counts[DeliveryStatus.PENDING] == 2
        assert counts[DeliveryStatus.IN_TRANSIT] == 1
        assert counts[DeliveryStatus.ACCEPTED] == 0
        assert counts[DeliveryStatus.DELIVERED] == 0


class TestServiceOverSql:
    @pytest.mark.asyncio
    async def test_full_flow_persists_each_step(self, session_factory):
        async with session_factory() as session:
            service = DeliveryService(DeliveryRepository(session), LocalLocks())
            created = await create_delivery(service, vehicle_type=VehicleType.CAR)
            matches = await service.submit_match_query(on_route_journey(VehicleType.CAR))
            assert [m.id for m in matches] == [created.id]
            accepted = await service.accept_delivery(created.id, TRAVELER_ID)
            await session.commit()

        async with session_factory() as session:
            service = DeliveryService(DeliveryRepository(session), LocalLocks())
            await service.start_delivery(created.id, TRAVELER_ID)
            done = await service.complete_delivery(created.id, TRAVELER_ID, accepted.otp)
            await session.commit()
            assert done.status == DeliveryStatus.DELIVERED

        async with session_factory() as session:
            stored = await DeliveryRepository(session).get(created.id)
            assert stored.status == DeliveryStatus.DELIVERED
            assert stored.payment_status == PaymentStatus.COMPLETED
            assert stored.delivered_at is not None
            assert stored.otp == accepted.otp
            assert await DeliveryService(
                DeliveryRepository(session), LocalLocks()
            ).submit_match_query(on_route_journey(VehicleType.CAR)) == []

    @pytest.mark.asyncio
    async def test_row_without_cell_gets_one_on_insert(self, db_session):
        repo = DeliveryRepository(db_session)
        row = _new()
        row.pickup_cell = None
        added = await repo.add(row)

        assert added.pickup_cell == pickup_cell(PICKUP)
        cells = corridor_cells(JOURNEY_START, JOURNEY_END, 2.0)
        assert [d.id for d in await repo.list_pending(cells=cells)] == [added.id]

    @pytest.mark.asyncio
    async def test_pickup_cell_column_is_required(self, db_session):
        db_session.add(
            DeliveryModel(
                sender_id=SENDER_ID,
                pickup_lat=PICKUP.lat,
                pickup_lng=PICKUP.lng,
                dropoff_lat=DROPOFF.lat,
                dropoff_lng=DROPOFF.lng,
                receiver_contact="+919811111111",
                vehicle_type=VehicleType.CAR,
            )
        )
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.asyncio
    async def test_prefiltered_pending_equals_full_scan(self, session_factory):
        async with session_factory() as session:
            repo = DeliveryRepository(session)
            for i in range(-6, 7):
                for j in range(-6, 7):
                    pickup = Coordinate(12.925 + i * 0.01, 77.55 + j * 0.02)
                    await repo.add(_new(pickup=pickup, dropoff=DROPOFF))
            await session.commit()

        async with session_factory() as session:
            without_index = DeliveryService(
                DeliveryRepository(session),
                LocalLocks(),
                config=settings.model_copy(update={"spatial_prefilter": False}),
            )
            with_index = DeliveryService(DeliveryRepository(session), LocalLocks())
            journey = on_route_journey(VehicleType.SCOOTER)

            full = [d.id for d in await without_index.submit_match_query(journey)]
            prefiltered = [d.id for d in await with_index.submit_match_query(journey)]
            assert full
            assert prefiltered == full

    @pytest.mark.asyncio
    async def test_coordinates_round_trip_as_floats(self, db_session):
        repo = DeliveryRepository(db_session)
        point = Coordinate(-33.8688, 151.2093)
        added = await repo.add(_new(pickup=point, dropoff=point))
        fetched = await repo.get(added.id)
        assert fetched.pickup.coordinate == point
