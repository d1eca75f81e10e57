"""Domain enumerations and state-transition rules."""

import enum


class DeliveryStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"


# State machine: strictly forward, one step at a time, DELIVERED is terminal
DELIVERY_TRANSITIONS: dict[DeliveryStatus, set[DeliveryStatus]] = {
    DeliveryStatus.PENDING: {DeliveryStatus.ACCEPTED},
    DeliveryStatus.ACCEPTED: {DeliveryStatus.IN_TRANSIT},
    DeliveryStatus.IN_TRANSIT: {DeliveryStatus.DELIVERED},
    DeliveryStatus.DELIVERED: set(),
}


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class VehicleType(str, enum.Enum):
    GEARED_MOTORBIKE = "geared motorbike"
    SCOOTER = "scooter"
    CAR = "car"


class RadiusPolicy(str, enum.Enum):
    STRICT = "strict"
    FLEXIBLE = "flexible"


class UserRole(str, enum.Enum):
    SENDER = "sender"
    TRAVELER = "traveler"
