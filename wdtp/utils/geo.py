import math
from dataclasses import dataclass

KM_PER_DEG_LAT = 111.32

@dataclass
class BBox:
    west: float
    south: float
    east: float
    north: float

def point_bbox(lat: float, lon: float, radius_km: float) -> BBox:
    """
    Degree box that contains every point within radius_km of (lat, lon).
    Used as a cheap SQL prefilter before the exact distance check, so it may
    be larger than needed but never smaller. Near the poles or across the
    antimeridian the longitude span falls back to the full range.
    """
    # 1% slack covers the gap between the sphere and the ellipsoid
    half_lat = radius_km * 1.01 / KM_PER_DEG_LAT
    south = max(-90.0, lat - half_lat)
    north = min(90.0, lat + half_lat)

    widest = max(abs(south), abs(north))
    if widest >= 89.0:
        return BBox(west=-180.0, south=south, east=180.0, north=north)

    half_lon = half_lat / math.cos(math.radians(widest))
    west, east = lon - half_lon, lon + half_lon
    if west < -180.0 or east > 180.0:
        west, east = -180.0, 180.0
    return BBox(west=west, south=south, east=east, north=north)
