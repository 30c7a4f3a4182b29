"""Geometry kernel: pure functions over WGS-84 coordinates.

No state and no I/O. Polygons are GeoJSON mappings (``Polygon``,
``MultiPolygon`` or a ``Feature`` wrapping either) with ``[lng, lat]``
positions; containment and bounds are delegated to shapely.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from parcelmatch.geo.models import Coordinate, DegreeOffset

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_DEGREE = 111_000.0
DEFAULT_KEY_PRECISION = 6

PointLike = Coordinate | tuple[float, float]


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def validate_coordinate(
    latitude: Any,
    longitude: Any,
    altitude: Any = None,
) -> Coordinate | None:
    """Parse raw latitude/longitude (numbers or numeric strings).

    Returns None for missing, non-numeric, NaN or out-of-range input. An
    unparseable altitude is dropped rather than invalidating the position.
    """
    lat = _to_float(latitude)
    lng = _to_float(longitude)
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinate(latitude=lat, longitude=lng, altitude=_to_float(altitude))


def _lat_lng(point: PointLike) -> tuple[float, float]:
    if isinstance(point, Coordinate):
        return point.latitude, point.longitude
    return float(point[0]), float(point[1])


def distance_meters(a: PointLike, b: PointLike) -> float:
    """Great-circle distance in meters (Haversine)."""
    lat1, lng1 = _lat_lng(a)
    lat2, lng2 = _lat_lng(b)
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_degrees(origin: PointLike, target: PointLike) -> float:
    """Initial bearing from origin to target, in [0, 360)."""
    lat1, lng1 = _lat_lng(origin)
    lat2, lng2 = _lat_lng(target)
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lng2 - lng1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    bearing = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # (x + 360) % 360 can round up to exactly 360.0 for tiny negative angles.
    return 0.0 if bearing >= 360.0 else bearing


def angular_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two headings, in [0, 180]."""
    diff = abs(a - b) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


def coordinate_delta(a: PointLike, b: PointLike) -> float:
    """Euclidean distance in raw degree space."""
    lat1, lng1 = _lat_lng(a)
    lat2, lng2 = _lat_lng(b)
    return math.hypot(lat1 - lat2, lng1 - lng2)


def meters_to_degree_offset(meters: float, latitude: float) -> DegreeOffset:
    """Convert a linear error budget into lat/lng degree offsets.

    Longitude is stretched by 1/cos(latitude); the cosine is floored so the
    offset stays finite at the poles.
    """
    cos_lat = max(abs(math.cos(math.radians(latitude))), 1e-12)
    return DegreeOffset(
        lat_offset=meters / METERS_PER_DEGREE,
        lng_offset=meters / (METERS_PER_DEGREE * cos_lat),
    )


def to_shape(polygon: Mapping[str, Any] | BaseGeometry) -> BaseGeometry:
    """Build a (valid) shapely geometry from a GeoJSON mapping."""
    if isinstance(polygon, BaseGeometry):
        geom = polygon
    else:
        geometry = polygon.get("geometry") if polygon.get("type") == "Feature" else polygon
        if not geometry:
            raise ValueError("boundary has no geometry")
        geom = shape(geometry)
    if not geom.is_valid:
        geom = make_valid(geom)
    return geom


def point_in_polygon(point: PointLike, polygon: Mapping[str, Any] | BaseGeometry) -> bool:
    """True if the point lies inside the polygon or on its edge.

    Interior rings are holes: a point inside a hole is outside the parcel.
    """
    lat, lng = _lat_lng(point)
    return to_shape(polygon).covers(Point(lng, lat))


def boundary_center(polygon: Mapping[str, Any] | BaseGeometry) -> Coordinate:
    """Center of the polygon's bounding box."""
    min_lng, min_lat, max_lng, max_lat = to_shape(polygon).bounds
    return Coordinate(latitude=(min_lat + max_lat) / 2, longitude=(min_lng + max_lng) / 2)


def centeredness(point: PointLike, polygon: Mapping[str, Any] | BaseGeometry) -> float:
    """1 - distanceToCenter / halfDiagonal of the bounding box, clamped to [0, 1]."""
    min_lng, min_lat, max_lng, max_lat = to_shape(polygon).bounds
    center = ((min_lat + max_lat) / 2, (min_lng + max_lng) / 2)
    half_diagonal = distance_meters((max_lat, max_lng), (min_lat, min_lng)) / 2
    to_center = distance_meters(point, center)
    if half_diagonal <= 0:
        return 1.0 if to_center == 0 else 0.0
    return min(1.0, max(0.0, 1.0 - to_center / half_diagonal))


def quantize(value: float, precision: int = DEFAULT_KEY_PRECISION) -> float:
    # + 0.0 folds -0.0 into 0.0 so keys stay stable around the equator/meridian.
    return round(float(value), precision) + 0.0


def coordinate_key(
    latitude: float,
    longitude: float,
    precision: int = DEFAULT_KEY_PRECISION,
) -> str:
    """Quantized ``"lat,lng"`` key used by the parcel cache and property dedupe."""
    lat = quantize(latitude, precision)
    lng = quantize(longitude, precision)
    return f"{lat:.{precision}f},{lng:.{precision}f}"


def square_polygon(latitude: float, longitude: float, half_size: float) -> dict[str, Any]:
    """GeoJSON Polygon: an axis-aligned square of ``2 * half_size`` degrees centred on the point."""
    south, north = latitude - half_size, latitude + half_size
    west, east = longitude - half_size, longitude + half_size
    return {
        "type": "Polygon",
        "coordinates": [[
            [west, south],
            [east, south],
            [east, north],
            [west, north],
            [west, south],
        ]],
    }
