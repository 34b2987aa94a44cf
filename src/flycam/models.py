"""Value types shared by the camera, schedule and animation modules."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lng: float  # degrees
    lat: float  # degrees

    def as_tuple(self) -> tuple[float, float]:
        """(lng, lat), the GeoJSON coordinate order."""
        return (self.lng, self.lat)


@dataclass(frozen=True)
class CameraPose:
    """Camera state handed to the rendering surface for one frame."""
    position: GeoPoint  # ground point beneath the camera
    altitude: float  # meters
    pitch: float  # degrees, 0 = straight down
    bearing: float  # degrees clockwise from north, [0, 360)
