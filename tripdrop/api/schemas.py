"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tripdrop.domain.entities import DeliveryRequest, Journey, Location
from tripdrop.domain.enums import RadiusPolicy, VehicleType
from tripdrop.domain.geo import Coordinate


# ── Shared ────────────────────────────────────────────────────────────


class LocationSchema(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field("", max_length=255)

    def to_domain(self) -> Location:
        return Location(Coordinate(self.lat, self.lng), self.address)

    @classmethod
    def from_domain(cls, location: Location) -> "LocationSchema":
        return cls(
            lat=location.coordinate.lat,
            lng=location.coordinate.lng,
            address=location.address,
        )


# ── Requests ──────────────────────────────────────────────────────────


class DeliveryCreateRequest(BaseModel):
    pickup: LocationSchema
    dropoff: LocationSchema
    receiver_contact: str = Field(..., min_length=3, max_length=64)
    vehicle_type: VehicleType
    idempotency_key: Optional[str] = Field(
        None,
        max_length=64,
        description="Client-generated UUID to prevent duplicate requests on retries.",
    )


class MatchQueryRequest(BaseModel):
    journey_start: LocationSchema
    journey_end: LocationSchema
    vehicle_type: VehicleType
    radius_policy: RadiusPolicy = RadiusPolicy.FLEXIBLE

    def to_journey(self) -> Journey:
        return Journey(
            start=self.journey_start.to_domain(),
            end=self.journey_end.to_domain(),
            vehicle_type=self.vehicle_type,
        )


class CompleteDeliveryRequest(BaseModel):
    otp: str = Field(..., pattern=r"^\d+$", max_length=10)


# ── Responses ─────────────────────────────────────────────────────────


class DeliveryResponse(BaseModel):
    """Read model of a delivery.  The OTP is deliberately absent."""

    id: int
    sender_id: int
    traveler_id: Optional[int] = None
    pickup: LocationSchema
    dropoff: LocationSchema
    receiver_contact: str
    vehicle_type: VehicleType
    status: str
    payment_status: str
    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, delivery: DeliveryRequest) -> "DeliveryResponse":
        return cls(
            id=delivery.id,
            sender_id=delivery.sender_id,
            traveler_id=delivery.traveler_id,
            pickup=LocationSchema.from_domain(delivery.pickup),
            dropoff=LocationSchema.from_domain(delivery.dropoff),
            receiver_contact=delivery.receiver_contact,
            vehicle_type=delivery.vehicle_type,
            status=delivery.status.value,
            payment_status=delivery.payment_status.value,
            created_at=delivery.created_at,
            delivered_at=delivery.delivered_at,
        )


class AcceptDeliveryResponse(BaseModel):
    message: str = "Delivery accepted successfully"
    delivery: DeliveryResponse
    otp: str = Field(..., description="Relay to the receiver out of band.")


class CompleteDeliveryResponse(BaseModel):
    message: str = "Delivery completed successfully"
    delivery: DeliveryResponse


class StatusCountsResponse(BaseModel):
    counts: dict[str, int]


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None
