"""Zoom level <-> camera height conversions on the Web Mercator map."""

import math
from dataclasses import dataclass

from .models import GeoPoint

EARTH_RADIUS = 6_378_137.0  # Web Mercator sphere radius in meters
EARTH_CIRCUMFERENCE = 40_075_016.686  # equatorial, meters
TILE_SIZE = 512

# Cosines closer to zero than this are clamped
_COS_EPS = 1e-5


@dataclass
class ViewState:
    """What the viewer perceives: ground speed, where, how tilted, how zoomed."""
    speed: float
    lat: float  # degrees
    pitch: float  # degrees
    zoom: float = 0.0


def zoom_to_height(zoom: float, pitch: float = 0.0) -> float:
    """Camera height (meters) for a zoom level; oblique views sit further away."""
    height = EARTH_RADIUS / 2 ** zoom
    return height if pitch == 0 else height / math.cos(math.radians(pitch))


def height_to_zoom(height: float, pitch: float = 0.0) -> float:
    """Inverse of zoom_to_height."""
    adjusted = height if pitch == 0 else height * math.cos(math.radians(pitch))
    return math.log2(EARTH_RADIUS / adjusted)


def get_camera_height(
    viewport_height_px: float,
    zoom: float,
    latitude: float,
    pitch: float,
    tile_size: int = TILE_SIZE,
) -> float:
    """Camera distance from the ground for a live view.

    Half the viewport's ground span (from the Mercator ground resolution at
    `latitude`), projected back along the pitched viewing ray.
    """
    meters_per_pixel = (
        EARTH_CIRCUMFERENCE * math.cos(math.radians(latitude)) / 2 ** zoom / tile_size
    )
    half_view_m = meters_per_pixel * (viewport_height_px / 2)
    return half_view_m / math.cos(math.radians(pitch))


def _safe_cos(degrees: float) -> float:
    value = math.cos(math.radians(degrees))
    return math.copysign(_COS_EPS, value) if abs(value) < _COS_EPS else value


def zoom_for_constant_perceived_speed(
    initial: ViewState,
    current: ViewState,
    min_zoom: float = 0.0,
    max_zoom: float = 22.0,
) -> float:
    """Zoom that keeps apparent ground speed equal to the initial view's.

    z = z0 + log2(v0 / v) + log2(cos(lat) / cos(lat0)) + log2(cos(p) / cos(p0))
    """
    if current.speed <= 0 or initial.speed <= 0:
        raise ValueError("Speeds must be positive to hold perceived speed constant")

    speed_ratio = initial.speed / current.speed
    lat_factor = _safe_cos(current.lat) / _safe_cos(initial.lat)
    pitch_factor = _safe_cos(current.pitch) / _safe_cos(initial.pitch)

    zoom = (
        initial.zoom
        + math.log2(speed_ratio)
        + math.log2(lat_factor)
        + math.log2(pitch_factor)
    )
    return min(max_zoom, max(min_zoom, zoom))


def _lat_to_merc_y(lat: float) -> float:
    """Latitude to normalised Mercator y (0 at the north edge, 1 at the south)."""
    return (180 - math.degrees(math.log(math.tan(math.pi / 4 + math.radians(lat) / 2)))) / 360


def _merc_y_to_lat(y: float) -> float:
    return math.degrees(2 * math.atan(math.exp(math.radians(180 - y * 360))) - math.pi / 2)


def mercator_coordinate(point: GeoPoint, altitude: float = 0.0) -> tuple[float, float, float]:
    """Normalised Mercator (x, y, z) of a point at `altitude` meters.

    z is in the same units as x/y, i.e. meters divided by the circumference
    of the parallel at the point's latitude.
    """
    x = (180 + point.lng) / 360
    y = _lat_to_merc_y(point.lat)
    z = altitude / (EARTH_CIRCUMFERENCE * math.cos(math.radians(point.lat)))
    return (x, y, z)


def bounds_center(bounds: dict) -> GeoPoint:
    """Visual center of a {sw, ne} box (Mercator midpoint, not degree midpoint)."""
    (west, south), (east, north) = bounds["sw"], bounds["ne"]
    y = (_lat_to_merc_y(south) + _lat_to_merc_y(north)) / 2
    return GeoPoint(lng=(west + east) / 2, lat=_merc_y_to_lat(y))


def fit_bounds_zoom(
    bounds: dict,
    width: int,
    height: int,
    padding: int = 0,
    tile_size: int = TILE_SIZE,
    max_zoom: float = 22.0,
) -> float:
    """Largest zoom at which the box fits inside the padded viewport."""
    (west, south), (east, north) = bounds["sw"], bounds["ne"]
    dx = (east - west) / 360
    dy = _lat_to_merc_y(south) - _lat_to_merc_y(north)
    avail_w = max(1, width - 2 * padding)
    avail_h = max(1, height - 2 * padding)

    scales = []
    if dx > 0:
        scales.append(avail_w / (dx * tile_size))
    if dy > 0:
        scales.append(avail_h / (dy * tile_size))
    if not scales:
        return max_zoom
    return min(max_zoom, math.log2(min(scales)))
