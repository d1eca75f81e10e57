"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``DeliveryRequest``: enforces valid lifecycle
  transitions (PENDING -> ACCEPTED -> IN_TRANSIT -> DELIVERED).
- Each transition method checks every guard before touching any field, so
  a rejected call leaves the entity exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .enums import DELIVERY_TRANSITIONS, DeliveryStatus, PaymentStatus, VehicleType
from .errors import (
    DeliveryUnavailable,
    InvalidOTP,
    InvalidTransition,
    Unauthorized,
)
from .geo import Coordinate
from .otp import verify_otp


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    coordinate: Coordinate
    address: str = ""


@dataclass(frozen=True)
class Journey:
    start: Location
    end: Location
    vehicle_type: VehicleType


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class DeliveryRequest:
    id: Optional[int] = None
    sender_id: int = 0
    pickup: Location = field(default_factory=lambda: Location(Coordinate(0, 0)))
    dropoff: Location = field(default_factory=lambda: Location(Coordinate(0, 0)))
    receiver_contact: str = ""
    vehicle_type: VehicleType = VehicleType.GEARED_MOTORBIKE
    traveler_id: Optional[int] = None
    status: DeliveryStatus = DeliveryStatus.PENDING
    otp: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    pickup_cell: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    def transition_to(self, new_status: DeliveryStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = DELIVERY_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def accept(self, traveler_id: int, otp: str) -> None:
        if self.status != DeliveryStatus.PENDING:
            raise DeliveryUnavailable()
        if traveler_id == self.sender_id:
            raise Unauthorized("Senders cannot accept their own delivery")

        self.transition_to(DeliveryStatus.ACCEPTED)
        self.traveler_id = traveler_id
        self.otp = otp

    def start(self, traveler_id: int) -> None:
        self._check_traveler(traveler_id)
        if self.status != DeliveryStatus.ACCEPTED:
            raise InvalidTransition("Delivery cannot be started")

        self.transition_to(DeliveryStatus.IN_TRANSIT)

    def complete(
        self, traveler_id: int, otp: str, now: Optional[datetime] = None
    ) -> None:
        self._check_traveler(traveler_id)
        if self.status != DeliveryStatus.IN_TRANSIT:
            raise InvalidTransition("Delivery is not in transit")
        if not verify_otp(otp, self.otp):
            raise InvalidOTP()

        self.transition_to(DeliveryStatus.DELIVERED)
        self.delivered_at = now or datetime.now(timezone.utc)
        self.payment_status = PaymentStatus.COMPLETED

    def _check_traveler(self, traveler_id: int) -> None:
        # An unassigned delivery has no traveler to compare against
        if self.traveler_id is None:
            raise InvalidTransition("Delivery has not been accepted")
        if traveler_id != self.traveler_id:
            raise Unauthorized()
