"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  ORM rows never leave this module: reads
return ``DeliveryRequest`` entities, writes take them.

Compare-and-swap
----------------
``save`` issues ``UPDATE ... WHERE id = :id AND status = :expected`` and
reports whether exactly one row changed.  Two writers that both read
``PENDING`` cannot both win: the second UPDATE matches zero rows.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DeliveryModel
from tripdrop.domain.entities import DeliveryRequest, Location
from tripdrop.domain.enums import (
    DeliveryStatus,
    PaymentStatus,
    VehicleType,
)
from tripdrop.domain.geo import Coordinate
from tripdrop.domain.routing import pickup_cell


def _to_entity(row: DeliveryModel) -> DeliveryRequest:
    return DeliveryRequest(
        id=row.id,
        sender_id=row.sender_id,
        pickup=Location(Coordinate(row.pickup_lat, row.pickup_lng), row.pickup_address),
        dropoff=Location(
            Coordinate(row.dropoff_lat, row.dropoff_lng), row.dropoff_address
        ),
        receiver_contact=row.receiver_contact,
        vehicle_type=VehicleType(row.vehicle_type),
        traveler_id=row.traveler_id,
        status=DeliveryStatus(row.status),
        otp=row.otp,
        payment_status=PaymentStatus(row.payment_status),
        pickup_cell=row.pickup_cell,
        idempotency_key=row.idempotency_key,
        created_at=row.created_at,
        delivered_at=row.delivered_at,
    )


class DeliveryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, delivery: DeliveryRequest) -> DeliveryRequest:
        row = DeliveryModel(
            sender_id=delivery.sender_id,
            traveler_id=delivery.traveler_id,
            pickup_lat=delivery.pickup.coordinate.lat,
            pickup_lng=delivery.pickup.coordinate.lng,
            pickup_address=delivery.pickup.address,
            dropoff_lat=delivery.dropoff.coordinate.lat,
            dropoff_lng=delivery.dropoff.coordinate.lng,
            dropoff_address=delivery.dropoff.address,
            pickup_cell=delivery.pickup_cell or pickup_cell(delivery.pickup.coordinate),
            receiver_contact=delivery.receiver_contact,
            vehicle_type=delivery.vehicle_type,
            status=delivery.status,
            otp=delivery.otp,
            payment_status=delivery.payment_status,
            idempotency_key=delivery.idempotency_key,
            created_at=delivery.created_at or datetime.now(timezone.utc),
            delivered_at=delivery.delivered_at,
        )
        self.session.add(row)
        await self.session.flush()
        return _to_entity(row)

    async def get(self, delivery_id: int) -> Optional[DeliveryRequest]:
        result = await self.session.execute(
            select(DeliveryModel)
            .where(DeliveryModel.id == delivery_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_entity(row) if row else None

    async def get_for_update(self, delivery_id: int) -> Optional[DeliveryRequest]:
        """SELECT ... FOR UPDATE so transitions on one row are serialised."""
        result = await self.session.execute(
            select(DeliveryModel)
            .where(DeliveryModel.id == delivery_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_entity(row) if row else None

    async def get_by_idempotency_key(self, key: str) -> Optional[DeliveryRequest]:
        result = await self.session.execute(
            select(DeliveryModel).where(DeliveryModel.idempotency_key == key)
        )
        row = result.scalar_one_or_none()
        return _to_entity(row) if row else None

    async def list_pending(
        self, cells: Optional[Iterable[str]] = None
    ) -> list[DeliveryRequest]:
        query = (
            select(DeliveryModel)
            .where(DeliveryModel.status == DeliveryStatus.PENDING)
            .order_by(DeliveryModel.created_at, DeliveryModel.id)
        )
        if cells is not None:
            query = query.where(DeliveryModel.pickup_cell.in_(list(cells)))
        result = await self.session.execute(query)
        return [_to_entity(row) for row in result.scalars().all()]

    async def save(
        self, delivery: DeliveryRequest, expected_status: DeliveryStatus
    ) -> bool:
        """Persist the mutable fields iff the stored status is still *expected_status*."""
        result = await self.session.execute(
            update(DeliveryModel)
            .where(
                DeliveryModel.id == delivery.id,
                DeliveryModel.status == expected_status,
            )
            .values(
                traveler_id=delivery.traveler_id,
                status=delivery.status,
                otp=delivery.otp,
                payment_status=delivery.payment_status,
                delivered_at=delivery.delivered_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def count_by_status(self) -> dict[DeliveryStatus, int]:
        result = await self.session.execute(
            select(DeliveryModel.status, func.count()).group_by(DeliveryModel.status)
        )
        counts = {status: 0 for status in DeliveryStatus}
        for status, count in result.all():
            counts[DeliveryStatus(status)] = count
        return counts

