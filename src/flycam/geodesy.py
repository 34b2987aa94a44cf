"""Spherical geometry: unit-sphere vectors, great circles, bearings."""

import math

import numpy as np

from .models import GeoPoint

EARTH_MEAN_RADIUS = 6_371_000  # meters

# |A x B|^2 below this means the great circle through A and B is undefined
_DEGENERATE_EPS = 1e-12


class DegenerateGreatCircleError(ValueError):
    """Raised when two anchor points do not define a unique great circle."""


def deg_to_rad(degrees: float) -> float:
    return degrees * math.pi / 180


def rad_to_deg(radians: float) -> float:
    return radians * 180 / math.pi


def lat_lon_to_unit_vector(lat: float, lon: float) -> np.ndarray:
    """Convert latitude/longitude to a Cartesian vector on the unit sphere."""
    lat_rad, lon_rad = deg_to_rad(lat), deg_to_rad(lon)
    return np.array([
        math.cos(lat_rad) * math.cos(lon_rad),
        math.cos(lat_rad) * math.sin(lon_rad),
        math.sin(lat_rad),
    ])


def unit_vector_to_lat_lon(x: float, y: float, z: float) -> tuple[float, float]:
    """Convert a Cartesian vector back to (lat, lon) degrees.

    Both components go through atan2 so every quadrant comes out right, and
    the vector does not need to be exactly unit length.
    """
    lat_rad = math.atan2(z, math.sqrt(x * x + y * y))
    lon_rad = math.atan2(y, x)
    return rad_to_deg(lat_rad), rad_to_deg(lon_rad)


def _plane_normal(a: GeoPoint, b: GeoPoint) -> np.ndarray:
    return np.cross(
        lat_lon_to_unit_vector(a.lat, a.lng),
        lat_lon_to_unit_vector(b.lat, b.lng),
    )


def spans_great_circle(a: GeoPoint, b: GeoPoint) -> bool:
    """True if A and B are far enough from coincident or antipodal to fix a great circle.

    The cutoff is an angle of about 1e-6 rad, roughly 6.4 m on the ground.
    """
    n = _plane_normal(a, b)
    return float(np.dot(n, n)) >= _DEGENERATE_EPS


def _great_circle_normal(a: GeoPoint, b: GeoPoint) -> np.ndarray:
    n = _plane_normal(a, b)
    if float(np.dot(n, n)) < _DEGENERATE_EPS:
        raise DegenerateGreatCircleError(
            f"Degenerate great circle: ({a.lng}, {a.lat}) and ({b.lng}, {b.lat}) "
            "are coincident or antipodal"
        )
    return n


def project_onto_great_circle(a: GeoPoint, b: GeoPoint, c: GeoPoint) -> GeoPoint:
    """Project C orthogonally onto the great circle through A and B.

    C' = C - ((C . n) / |n|^2) n with n = A x B, renormalised to the sphere.
    """
    n = _great_circle_normal(a, b)
    v = lat_lon_to_unit_vector(c.lat, c.lng)
    projected = v - (np.dot(v, n) / np.dot(n, n)) * n
    projected /= np.linalg.norm(projected)
    lat, lon = unit_vector_to_lat_lon(*projected)
    return GeoPoint(lng=lon, lat=lat)


def cross_track_angle(a: GeoPoint, b: GeoPoint, c: GeoPoint) -> float:
    """Angular distance (radians) of C from the great circle through A and B."""
    n = _great_circle_normal(a, b)
    v = lat_lon_to_unit_vector(c.lat, c.lng)
    sin_angle = float(np.dot(v, n) / np.linalg.norm(n))
    return abs(math.asin(max(-1.0, min(1.0, sin_angle))))


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two lat/lon points."""
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    dphi = np.radians(lat2 - lat1)
    dlam = np.radians(lon2 - lon1)
    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlam / 2) ** 2
    return float(2 * EARTH_MEAN_RADIUS * np.arctan2(np.sqrt(a), np.sqrt(1 - a)))


def compute_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Bearing in degrees (0=north, 90=east) from point 1 to point 2."""
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    dlam = np.radians(lon2 - lon1)
    x = np.sin(dlam) * np.cos(phi2)
    y = np.cos(phi1) * np.sin(phi2) - np.sin(phi1) * np.cos(phi2) * np.cos(dlam)
    bearing = np.degrees(np.arctan2(x, y))
    return wrap_bearing(float(bearing))


def wrap_bearing(bearing: float) -> float:
    """Wrap any angle into [0, 360)."""
    wrapped = bearing % 360.0
    # tiny negative inputs round up to exactly 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def normalize_bearing(current: float, target: float) -> float:
    """Signed rotation from current to target that never goes the long way round.

    >>> normalize_bearing(10, 350)
    -20.0
    """
    diff = (wrap_bearing(target) - wrap_bearing(current)) % 360.0
    alt = diff - 360.0
    return diff if abs(diff) <= abs(alt) else alt
