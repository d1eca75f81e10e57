"""
Geofenced Route Matching
========================

A delivery is *on route* when both its pickup and its drop-off lie within
``radius_km`` of the traveler's journey, modelled as the straight segment
from journey start to journey end.

Direction
---------
By default the predicate is direction-agnostic: a delivery whose drop-off
projects *before* its pickup along the journey still matches.  Passing
``enforce_direction=True`` additionally requires
``fraction(pickup) <= fraction(dropoff)``.

Spatial prefilter
-----------------
``corridor_cells`` returns a superset of the H3 cells that can contain a
point within ``radius_km`` of the segment.  Repositories use it to skip
deliveries whose pickup cell is outside the corridor; the exact predicate
is still applied to every survivor, so results are unchanged.

Complexity
----------
* ``is_on_route``:     O(1)
* ``corridor_cells``:  O(L / e x k^2) where L = journey length,
  e = hexagon edge length, k = ring count (~radius / e)
"""

from __future__ import annotations

import math
from typing import Mapping, Optional

import h3

from .enums import RadiusPolicy
from .errors import ValidationError
from .geo import Coordinate, distance_km, point_to_segment_km, segment_fraction

# Resolution of the stored pickup_cell column; corridors must use the same one
PICKUP_CELL_RESOLUTION = 7  # ~1.4 km hexagon edge

RADIUS_PRESETS_KM: dict[RadiusPolicy, float] = {
    RadiusPolicy.STRICT: 1.5,
    RadiusPolicy.FLEXIBLE: 2.0,
}


def resolve_radius(
    policy: RadiusPolicy,
    presets: Optional[Mapping[RadiusPolicy, float]] = None,
) -> float:
    """Map a tolerance policy to its radius in km."""
    presets = presets or RADIUS_PRESETS_KM
    try:
        return presets[RadiusPolicy(policy)]
    except (KeyError, ValueError):
        raise ValidationError(f"Unknown radius policy: {policy!r}") from None


def _check_radius(radius_km: float) -> None:
    if (
        isinstance(radius_km, bool)
        or not isinstance(radius_km, (int, float))
        or not math.isfinite(radius_km)
        or radius_km <= 0
    ):
        raise ValidationError(f"radius must be a positive number, got {radius_km!r}")


def _check_coordinates(**points: object) -> None:
    for name, point in points.items():
        if not isinstance(point, Coordinate):
            raise ValidationError(f"{name} must be a Coordinate, got {point!r}")


def validate_route_query(
    journey_start: Coordinate, journey_end: Coordinate, radius_km: float
) -> None:
    """Raise ``ValidationError`` for a malformed journey or radius."""
    _check_coordinates(journey_start=journey_start, journey_end=journey_end)
    _check_radius(radius_km)


def is_on_route(
    pickup: Coordinate,
    dropoff: Coordinate,
    journey_start: Coordinate,
    journey_end: Coordinate,
    radius_km: float,
    *,
    enforce_direction: bool = False,
) -> bool:
    """
    True when both *pickup* and *dropoff* are within *radius_km* of the
    journey segment.  A degenerate journey (start == end) falls back to
    plain point distance.
    """
    _check_coordinates(
        pickup=pickup,
        dropoff=dropoff,
        journey_start=journey_start,
        journey_end=journey_end,
    )
    _check_radius(radius_km)

    if point_to_segment_km(pickup, journey_start, journey_end) > radius_km:
        return False
    if point_to_segment_km(dropoff, journey_start, journey_end) > radius_km:
        return False

    if enforce_direction:
        return segment_fraction(
            pickup, journey_start, journey_end
        ) <= segment_fraction(dropoff, journey_start, journey_end)
    return True


# ── H3 spatial prefilter ─────────────────────────────────────────────


def pickup_cell(coordinate: Coordinate) -> str:
    """Map a geo-point to its H3 cell at ``PICKUP_CELL_RESOLUTION``.  O(1)."""
    return h3.latlng_to_cell(coordinate.lat, coordinate.lng, PICKUP_CELL_RESOLUTION)


def corridor_cells(
    journey_start: Coordinate,
    journey_end: Coordinate,
    radius_km: float,
    max_cells: Optional[int] = None,
) -> Optional[set[str]]:
    """
    H3 cells covering every point within *radius_km* of the journey.

    The segment is sampled once per hexagon edge length and each sample's
    cell is expanded by enough rings to cover the radius plus one cell of
    slack on either side.  Returns ``None`` once the set would exceed
    *max_cells*.
    """
    validate_route_query(journey_start, journey_end, radius_km)

    edge_km = h3.average_hexagon_edge_length(PICKUP_CELL_RESOLUTION, unit="km")
    rings = math.ceil(radius_km / edge_km) + 2
    steps = max(1, math.ceil(distance_km(journey_start, journey_end) / edge_km))

    cells: set[str] = set()
    for i in range(steps + 1):
        t = i / steps
        lat = journey_start.lat + t * (journey_end.lat - journey_start.lat)
        lng = journey_start.lng + t * (journey_end.lng - journey_start.lng)
        cells.update(h3.grid_disk(pickup_cell(Coordinate(lat, lng)), rings))
        if max_cells is not None and len(cells) > max_cells:
            return None
    return cells
