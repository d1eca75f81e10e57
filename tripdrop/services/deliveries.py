"""
Delivery core operations
========================

``DeliveryService`` is what the request layer calls.  It owns no state:
persistence comes from a repository (SQL or in-memory) and mutual
exclusion from a lock backend, both injected.

Transition protocol
-------------------
Every lifecycle call runs the same four steps::

    async with locks.hold("delivery:<id>"):
        delivery = await repo.get_for_update(id)      # DeliveryNotFound
        delivery.<transition>(...)                     # guard, then mutate
        await repo.save(delivery, expected_status)     # compare-and-swap

The lock serialises callers inside one deployment; the conditional
``save`` makes the status check atomic with the write even if the lock is
bypassed.  Failures raise before ``save``, so nothing partial is written.
Nothing is retried: a traveler who loses the accept race gets
``DeliveryUnavailable`` and must ask for new matches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from tripdrop.config import settings
from tripdrop.domain.entities import DeliveryRequest, Journey, Location
from tripdrop.domain.enums import DeliveryStatus, RadiusPolicy, VehicleType
from tripdrop.domain.errors import (
    DeliveryNotFound,
    DeliveryUnavailable,
    InvalidOTP,
    InvalidTransition,
)
from tripdrop.domain.matching import find_matches
from tripdrop.domain.otp import generate_otp
from tripdrop.domain.routing import corridor_cells, pickup_cell, resolve_radius

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcceptResult:
    delivery: DeliveryRequest
    otp: str  # handed out once, for relay to the receiver


class DeliveryService:
    def __init__(self, repository, locks, config=settings):
        self.repo = repository
        self.locks = locks
        self.config = config

    # ── Sender side ───────────────────────────────────────────────────

    async def create_delivery(
        self,
        *,
        sender_id: int,
        pickup: Location,
        dropoff: Location,
        receiver_contact: str,
        vehicle_type: VehicleType,
        idempotency_key: Optional[str] = None,
    ) -> DeliveryRequest:
        if not idempotency_key:
            return await self._insert(
                sender_id, pickup, dropoff, receiver_contact, vehicle_type, None
            )

        # Retries with one key must not race between the lookup and the insert
        async with self.locks.hold(f"idempotency:{idempotency_key}"):
            existing = await self.repo.get_by_idempotency_key(idempotency_key)
            if existing:
                return existing
            return await self._insert(
                sender_id,
                pickup,
                dropoff,
                receiver_contact,
                vehicle_type,
                idempotency_key,
            )

    async def _insert(
        self, sender_id, pickup, dropoff, receiver_contact, vehicle_type, idempotency_key
    ) -> DeliveryRequest:
        delivery = await self.repo.add(
            DeliveryRequest(
                sender_id=sender_id,
                pickup=pickup,
                dropoff=dropoff,
                receiver_contact=receiver_contact,
                vehicle_type=VehicleType(vehicle_type),
                pickup_cell=pickup_cell(pickup.coordinate),
                idempotency_key=idempotency_key,
                created_at=datetime.now(timezone.utc),
            )
        )
        logger.info("Delivery %s created by sender %s", delivery.id, sender_id)
        return delivery

    async def get_delivery(self, delivery_id: int) -> DeliveryRequest:
        delivery = await self.repo.get(delivery_id)
        if delivery is None:
            raise DeliveryNotFound()
        return delivery

    # ── Traveler side ─────────────────────────────────────────────────

    async def submit_match_query(
        self,
        journey: Journey,
        radius_policy: RadiusPolicy = RadiusPolicy.FLEXIBLE,
    ) -> list[DeliveryRequest]:
        radius_km = resolve_radius(
            radius_policy,
            {
                RadiusPolicy.STRICT: self.config.strict_radius_km,
                RadiusPolicy.FLEXIBLE: self.config.flexible_radius_km,
            },
        )
        start, end = journey.start.coordinate, journey.end.coordinate

        cells = None
        if self.config.spatial_prefilter:
            cells = corridor_cells(
                start,
                end,
                radius_km,
                max_cells=self.config.max_prefilter_cells,
            )
            if cells is None:
                logger.debug("Corridor too large for prefilter; scanning all pending")

        pending = await self.repo.list_pending(cells=cells)
        matches = find_matches(
            pending,
            start,
            end,
            journey.vehicle_type,
            radius_km,
            enforce_direction=self.config.enforce_direction,
        )
        logger.debug(
            "Match query: %d candidates, %d on route (radius=%.2f km)",
            len(pending),
            len(matches),
            radius_km,
        )
        return matches

    async def accept_delivery(self, delivery_id: int, traveler_id: int) -> AcceptResult:
        otp = generate_otp(self.config.otp_length)
        try:
            delivery = await self._transition(
                delivery_id,
                DeliveryStatus.PENDING,
                lambda d: d.accept(traveler_id, otp),
                lost=DeliveryUnavailable,
            )
        except DeliveryUnavailable:
            logger.warning(
                "Traveler %s could not claim delivery %s", traveler_id, delivery_id
            )
            raise
        logger.info("Delivery %s accepted by traveler %s", delivery_id, traveler_id)
        return AcceptResult(delivery=delivery, otp=otp)

    async def start_delivery(self, delivery_id: int, traveler_id: int) -> DeliveryRequest:
        delivery = await self._transition(
            delivery_id,
            DeliveryStatus.ACCEPTED,
            lambda d: d.start(traveler_id),
        )
        logger.info("Delivery %s in transit", delivery_id)
        return delivery

    async def complete_delivery(
        self, delivery_id: int, traveler_id: int, otp: str
    ) -> DeliveryRequest:
        try:
            delivery = await self._transition(
                delivery_id,
                DeliveryStatus.IN_TRANSIT,
                lambda d: d.complete(traveler_id, otp),
            )
        except InvalidOTP:
            logger.warning("Invalid OTP submitted for delivery %s", delivery_id)
            raise
        logger.info("Delivery %s delivered", delivery_id)
        return delivery

    async def status_counts(self) -> dict[DeliveryStatus, int]:
        return await self.repo.count_by_status()

    # ── Internals ─────────────────────────────────────────────────────

    async def _transition(self, delivery_id, expected_status, apply, lost=InvalidTransition):
        async with self.locks.hold(f"delivery:{delivery_id}"):
            delivery = await self.repo.get_for_update(delivery_id)
            if delivery is None:
                raise DeliveryNotFound()

            # Guards inside ``apply`` reject any status but expected_status
            apply(delivery)

            if not await self.repo.save(delivery, expected_status=expected_status):
                raise lost()
            return delivery
