# rfcache/utils/geo.py

"""
Geospatial utility functions.
"""

import math
from typing import Tuple

from rfcache.utils.validate import BoundingBox

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE_LAT = 111225.0
# keeps the longitude span finite at the poles
MIN_COS_LAT = 1e-6


def haversine(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """
    Compute the great-circle distance between two points on the Earth.

    Parameters
    ----------
    a
        (latitude, longitude) of point A, in decimal degrees.
    b
        (latitude, longitude) of point B, in decimal degrees.

    Returns
    -------
    float
        Distance between A and B in metres.
    """
    lat1, lon1 = a
    lat2, lon2 = b
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lam = math.radians(lon2 - lon1)
    h = math.sin(d_phi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(d_lam/2)**2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def bounding_box(lat: float, lon: float, radius_m: float) -> BoundingBox:
    """
    Build the rectangle reaching `radius_m` metres north, south, east and
    west of (lat, lon).

    Latitudes are clipped to the poles. Longitudes are not wrapped, so a box
    crossing the antimeridian reaches past +/-180.
    """
    d_lat = radius_m / METERS_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(lat)), MIN_COS_LAT)
    d_lon = radius_m / (METERS_PER_DEGREE_LAT * cos_lat)
    return BoundingBox(
        south=max(lat - d_lat, -90.0),
        north=min(lat + d_lat, 90.0),
        west=lon - d_lon,
        east=lon + d_lon,
    )
