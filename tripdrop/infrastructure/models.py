"""
SQLAlchemy ORM models  (PostgreSQL in production, SQLite in tests).

Tables
------
* ``users``       -- senders and travelers
* ``deliveries``  -- delivery requests and their handoff state

Indexes
-------
* **B-Tree** on ``status``, ``sender_id``, ``traveler_id``,
  ``idempotency_key`` for the lifecycle and API look-ups.
* **B-Tree** on ``pickup_cell`` (H3 index at ``PICKUP_CELL_RESOLUTION``) so
  the matching query can restrict pending deliveries to a journey's corridor.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)

from .database import Base
from tripdrop.domain.enums import (
    DeliveryStatus,
    PaymentStatus,
    UserRole,
    VehicleType,
)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    mobile = Column(String(32), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.SENDER, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DeliveryModel(Base):
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    traveler_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    pickup_address = Column(String(255), nullable=False, default="")
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)
    dropoff_address = Column(String(255), nullable=False, default="")
    pickup_cell = Column(String(20), nullable=False)

    receiver_contact = Column(String(64), nullable=False)
    vehicle_type = Column(Enum(VehicleType), nullable=False)

    status = Column(
        Enum(DeliveryStatus), default=DeliveryStatus.PENDING, nullable=False
    )
    otp = Column(String(10), nullable=True)
    payment_status = Column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    idempotency_key = Column(String(64), unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_deliveries_status", "status"),
        Index("idx_deliveries_sender", "sender_id"),
        Index("idx_deliveries_traveler", "traveler_id"),
        Index("idx_deliveries_pickup_cell", "pickup_cell"),
        Index("idx_deliveries_idempotency", "idempotency_key"),
    )
