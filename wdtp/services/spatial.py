# wdtp/services/spatial.py
"""
Great-circle filtering, annotation and ordering.

Distances are WGS 84 geodesics (geopy). The three operations are
independent and compose in any order; they accept anything with
``latitude``/``longitude`` attributes.
"""
import math
from typing import Iterable, Protocol, TypeVar

from geopy.distance import geodesic
from sqlalchemy import and_

from ..core.config import settings
from ..core.errors import InvalidCoordinates
from ..utils.geo import point_bbox


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


T = TypeVar("T", bound=HasCoordinates)


def validate_coordinates(lat, lon) -> tuple[float, float]:
    """Returns (lat, lon) as floats or raises InvalidCoordinates."""
    try:
        lat_f, lon_f = float(lat), float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinates(lat, lon) from None
    if math.isnan(lat_f) or math.isnan(lon_f):
        raise InvalidCoordinates(lat, lon)
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lon_f <= 180.0):
        raise InvalidCoordinates(lat, lon)
    return lat_f, lon_f


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    validate_coordinates(lat1, lon1)
    validate_coordinates(lat2, lon2)
    return geodesic((lat1, lon1), (lat2, lon2)).meters


def _distance_to(row: HasCoordinates, lat: float, lon: float) -> float:
    return geodesic((lat, lon), (float(row.latitude), float(row.longitude))).meters


def near(rows: Iterable[T], lat: float, lon: float, radius_km: float | None = None) -> list[T]:
    """Rows whose distance from (lat, lon) is at most radius_km."""
    lat, lon = validate_coordinates(lat, lon)
    radius_km = settings.search_default_radius_km if radius_km is None else radius_km
    if radius_km <= 0:
        raise ValueError("radius_km must be positive")
    limit = radius_km * 1000.0
    return [row for row in rows if _distance_to(row, lat, lon) <= limit]


def with_distance(rows: Iterable[T], lat: float, lon: float) -> list[tuple[T, float]]:
    """Pairs each row with its distance in meters; nothing is dropped."""
    lat, lon = validate_coordinates(lat, lon)
    return [(row, _distance_to(row, lat, lon)) for row in rows]


def order_by_distance(rows: Iterable[T], lat: float, lon: float) -> list[T]:
    """Stable ascending sort by distance from (lat, lon)."""
    return [row for row, _ in sorted(with_distance(rows, lat, lon), key=lambda pair: pair[1])]


def bbox_clause(latitude_col, longitude_col, lat: float, lon: float, radius_km: float):
    """SQL prefilter on the cached coordinate columns; exact check happens in near()."""
    box = point_bbox(lat, lon, radius_km)
    return and_(
        latitude_col.between(box.south, box.north),
        longitude_col.between(box.west, box.east),
    )
