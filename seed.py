"""
Seed the database with demo senders, travelers and deliveries around
Bengaluru.  Run after migrations:  python seed.py
"""

import asyncio
from datetime import datetime, timezone

from sqlalchemy import text

from tripdrop.domain.enums import (
    DeliveryStatus,
    PaymentStatus,
    UserRole,
    VehicleType,
)
from tripdrop.domain.geo import Coordinate
from tripdrop.domain.otp import generate_otp
from tripdrop.domain.routing import pickup_cell
from tripdrop.config import settings
from tripdrop.infrastructure.database import async_session_factory, engine
from tripdrop.infrastructure.models import DeliveryModel, UserModel

USERS = [
    {"name": "Asha Rao", "email": "asha@example.com", "mobile": "+919800000001", "role": UserRole.SENDER},
    {"name": "Vikram Shetty", "email": "vikram@example.com", "mobile": "+919800000002", "role": UserRole.SENDER},
    {"name": "Meera Iyer", "email": "meera@example.com", "mobile": "+919800000003", "role": UserRole.SENDER},
    {"name": "Karthik N", "email": "karthik@example.com", "mobile": "+919800000004", "role": UserRole.TRAVELER},
    {"name": "Divya P", "email": "divya@example.com", "mobile": "+919800000005", "role": UserRole.TRAVELER},
    {"name": "Rahul M", "email": "rahul@example.com", "mobile": "+919800000006", "role": UserRole.TRAVELER},
]

# (sender index, pickup, dropoff, vehicle, status, traveler index)
DELIVERIES = [
    # PENDING, along the Kengeri -> Whitefield corridor
    (0, (12.9000, 77.5000, "Kengeri Satellite Town"), (12.9500, 77.6000, "Domlur"),
     VehicleType.GEARED_MOTORBIKE, DeliveryStatus.PENDING, None),
    (1, (12.9150, 77.5300, "Banashankari"), (12.9400, 77.5800, "Lalbagh West Gate"),
     VehicleType.GEARED_MOTORBIKE, DeliveryStatus.PENDING, None),
    (2, (12.9100, 77.5200, "Uttarahalli"), (12.9450, 77.6100, "Koramangala 4th Block"),
     VehicleType.CAR, DeliveryStatus.PENDING, None),
    # PENDING, off-corridor (Hebbal)
    (0, (13.0350, 77.5970, "Hebbal"), (13.0450, 77.6200, "Nagawara"),
     VehicleType.SCOOTER, DeliveryStatus.PENDING, None),
    # In flight
    (1, (12.9716, 77.5946, "MG Road"), (12.9850, 77.6050, "Ulsoor"),
     VehicleType.SCOOTER, DeliveryStatus.ACCEPTED, 3),
    (2, (12.9300, 77.5800, "Jayanagar"), (12.9250, 77.6200, "HSR Layout"),
     VehicleType.CAR, DeliveryStatus.IN_TRANSIT, 4),
    # Done
    (0, (12.9600, 77.6400, "Indiranagar"), (12.9700, 77.7500, "Whitefield"),
     VehicleType.GEARED_MOTORBIKE, DeliveryStatus.DELIVERED, 5),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        user_models = []
        for u in USERS:
            m = UserModel(name=u["name"], email=u["email"], mobile=u["mobile"], role=u["role"])
            session.add(m)
            user_models.append(m)
        await session.flush()
        print(f"  Created {len(user_models)} users")

        # ── Deliveries ────────────────────────────────────────────────
        now = datetime.now(timezone.utc)
        for sender, pickup, dropoff, vehicle, status, traveler in DELIVERIES:
            delivered = status == DeliveryStatus.DELIVERED
            session.add(
                DeliveryModel(
                    sender_id=user_models[sender].id,
                    traveler_id=user_models[traveler].id if traveler is not None else None,
                    pickup_lat=pickup[0],
                    pickup_lng=pickup[1],
                    pickup_address=pickup[2],
                    dropoff_lat=dropoff[0],
                    dropoff_lng=dropoff[1],
                    dropoff_address=dropoff[2],
                    pickup_cell=pickup_cell(Coordinate(pickup[0], pickup[1])),
                    receiver_contact="+919811111111",
                    vehicle_type=vehicle,
                    status=status,
                    otp=generate_otp(settings.otp_length) if traveler is not None else None,
                    payment_status=PaymentStatus.COMPLETED if delivered else PaymentStatus.PENDING,
                    created_at=now,
                    delivered_at=now if delivered else None,
                )
            )
        await session.flush()
        print(f"  Created {len(DELIVERIES)} deliveries")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
