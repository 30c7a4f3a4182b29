"""Geometry kernel for WGS-84 coordinates."""

from parcelmatch.geo.geometry import (
    bearing_degrees,
    boundary_center,
    centeredness,
    coordinate_delta,
    coordinate_key,
    distance_meters,
    meters_to_degree_offset,
    point_in_polygon,
    square_polygon,
    validate_coordinate,
)
from parcelmatch.geo.models import Coordinate, DegreeOffset

__all__ = [
    "Coordinate",
    "DegreeOffset",
    "bearing_degrees",
    "boundary_center",
    "centeredness",
    "coordinate_delta",
    "coordinate_key",
    "distance_meters",
    "meters_to_degree_offset",
    "point_in_polygon",
    "square_polygon",
    "validate_coordinate",
]
