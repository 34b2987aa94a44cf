"""Camera projector: place the camera so it looks at a ground target."""

import math
from dataclasses import dataclass
from typing import Optional

from .models import GeoPoint

# Meters per degree of latitude
M_PER_DEG_LAT = 111_320.0

# Weight of the previous position when smoothing (0.95 = 95% previous)
SMOOTH_FACTOR = 0.95

# Keeps tan() away from zero for a horizontal (pitch 90) camera
_MIN_ELEVATION_RAD = 1e-6


def lerp(start: float, end: float, amt: float) -> float:
    """Linear interpolation that returns `end` exactly when amt == 1."""
    return (1 - amt) * start + amt * end


@dataclass
class SmoothingState:
    """Previous smoothed camera position, scoped to one animation session."""
    factor: float = SMOOTH_FACTOR
    previous: Optional[GeoPoint] = None

    def smooth(self, position: GeoPoint) -> GeoPoint:
        """Low-pass `position` against the previous output and remember the result."""
        if self.previous is not None:
            position = GeoPoint(
                lng=lerp(position.lng, self.previous.lng, self.factor),
                lat=lerp(position.lat, self.previous.lat, self.factor),
            )
        self.previous = position
        return position

    def reset(self) -> None:
        self.previous = None


def _ground_offset(pitch: float, bearing: float, altitude: float) -> tuple[float, float]:
    """Camera-to-target ground offset as (east, north) meters along the bearing."""
    pitch_rad = max(math.radians(90.0 - pitch), _MIN_ELEVATION_RAD)
    bearing_rad = math.radians(bearing)
    horizontal = altitude / math.tan(pitch_rad)
    return (
        horizontal * math.sin(-bearing_rad),
        horizontal * math.cos(-bearing_rad),
    )


def compute_camera_position(
    pitch: float,
    bearing: float,
    target: GeoPoint,
    altitude: float,
    smoothing: Optional[SmoothingState] = None,
) -> GeoPoint:
    """Ground position of a camera looking at `target` from `altitude` meters.

    A pitched camera is not directly above what it looks at: it sits behind
    the target along the bearing. Pitch 0 is straight down (no offset); a
    pitch of 90 or more is clamped just short of horizontal.

    When a SmoothingState is given the result is blended with the previous
    position of that session.
    """
    east, north = _ground_offset(pitch, bearing, altitude)
    position = GeoPoint(
        lng=target.lng + east / (M_PER_DEG_LAT * math.cos(math.radians(target.lat))),
        lat=target.lat - north / M_PER_DEG_LAT,
    )
    if smoothing is not None:
        position = smoothing.smooth(position)
    return position


def compute_target_position(
    pitch: float,
    bearing: float,
    camera: GeoPoint,
    altitude: float,
) -> GeoPoint:
    """Inverse of compute_camera_position (without smoothing): the looked-at point."""
    east, north = _ground_offset(pitch, bearing, altitude)
    lat = camera.lat + north / M_PER_DEG_LAT
    return GeoPoint(
        lng=camera.lng - east / (M_PER_DEG_LAT * math.cos(math.radians(lat))),
        lat=lat,
    )
