"""
Journey-to-Delivery Matching
============================

1. **Status filter**   -- only PENDING deliveries are candidates.
2. **Vehicle filter**  -- the delivery's required vehicle type must equal
   the traveler's declared one (no size up/downgrades).
3. **Route filter**    -- ``is_on_route`` on pickup and drop-off.

The pass is read-only.  A delivery listed here may be claimed by another
traveler a moment later; the accept transition's guard resolves that race.

Complexity
----------
O(N) distance evaluations for N candidates.  Callers shrink N beforehand
with the H3 corridor prefilter (see ``routing.corridor_cells``).
"""

from __future__ import annotations

from typing import Iterable

from .entities import DeliveryRequest
from .enums import DeliveryStatus, VehicleType
from .geo import Coordinate
from .routing import is_on_route, validate_route_query


def find_matches(
    pending: Iterable[DeliveryRequest],
    journey_start: Coordinate,
    journey_end: Coordinate,
    vehicle_type: VehicleType,
    radius_km: float,
    *,
    enforce_direction: bool = False,
) -> list[DeliveryRequest]:
    """Return the deliveries a traveler on this journey can carry, in input order."""
    validate_route_query(journey_start, journey_end, radius_km)
    return [
        delivery
        for delivery in pending
        if delivery.status == DeliveryStatus.PENDING
        and delivery.vehicle_type == vehicle_type
        and is_on_route(
            delivery.pickup.coordinate,
            delivery.dropoff.coordinate,
            journey_start,
            journey_end,
            radius_km,
            enforce_direction=enforce_direction,
        )
    ]
