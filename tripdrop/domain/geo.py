"""
Distance calculation using the Haversine formula.

Assumption
----------
Journeys are approximated by the straight line between their two
endpoints.  Point-to-segment distance projects onto that line in a local
equirectangular plane centred on the query point, which is accurate at
city / metro scale but not geodesically exact for very long segments.
Segments crossing the antimeridian are not handled.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import ValidationError

EARTH_RADIUS_KM = 6_371.0


def validate_coordinate(lat: float, lng: float) -> None:
    """Raise ``ValidationError`` unless (lat, lng) is a finite, in-range pair."""
    for name, value in (("latitude", lat), ("longitude", lng)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise ValidationError(f"{name} must be finite, got {value!r}")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"latitude out of range: {lat}")
    if not -180.0 <= lng <= 180.0:
        raise ValidationError(f"longitude out of range: {lng}")


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        validate_coordinate(self.lat, self.lng)


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def segment_fraction(
    p: Coordinate, seg_start: Coordinate, seg_end: Coordinate
) -> float:
    """
    Position in ``[0, 1]`` of *p*'s projection onto the segment.

    Longitudes are scaled by ``cos(lat)`` at *p* so that both axes are in
    comparable units before projecting.  A degenerate segment returns 0.
    """
    kx = math.cos(math.radians(p.lat))
    dx = (seg_end.lng - seg_start.lng) * kx
    dy = seg_end.lat - seg_start.lat
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return 0.0

    px = (p.lng - seg_start.lng) * kx
    py = p.lat - seg_start.lat
    t = (px * dx + py * dy) / length_sq
    return min(1.0, max(0.0, t))


def point_to_segment_km(
    p: Coordinate, seg_start: Coordinate, seg_end: Coordinate
) -> float:
    """Minimum distance in **km** from *p* to the segment start-end."""
    if seg_start == seg_end:
        return distance_km(p, seg_start)

    t = segment_fraction(p, seg_start, seg_end)
    closest = Coordinate(
        lat=seg_start.lat + t * (seg_end.lat - seg_start.lat),
        lng=seg_start.lng + t * (seg_end.lng - seg_start.lng),
    )
    return distance_km(p, closest)
