"""Track geometry: validation, length, along-track sampling, slicing, simplification."""

from typing import Iterable, Sequence

import numpy as np
from shapely.geometry import LineString, Point
from shapely.ops import substring

from .geodesy import haversine
from .models import GeoPoint


def as_track(coordinates: Iterable[Sequence[float]]) -> list[GeoPoint]:
    """Build a track from GeoJSON-ordered (lng, lat[, elevation]) coordinates."""
    points = []
    for i, coord in enumerate(coordinates):
        lng, lat = float(coord[0]), float(coord[1])
        if not (-180.0 <= lng <= 180.0 and -90.0 <= lat <= 90.0):
            raise ValueError(
                f"Track coordinate {i} is out of range: lng={lng}, lat={lat}"
            )
        points.append(GeoPoint(lng=lng, lat=lat))

    if len(points) < 2:
        raise ValueError("Track must contain at least 2 points")

    return points


def compute_cumulative_distances(points: Sequence[GeoPoint]) -> np.ndarray:
    """Compute cumulative arc-length distance (meters) along the track."""
    dists = np.zeros(len(points))
    for i in range(1, len(points)):
        dists[i] = dists[i - 1] + haversine(
            points[i - 1].lat, points[i - 1].lng,
            points[i].lat, points[i].lng,
        )
    return dists


def line_length(points: Sequence[GeoPoint]) -> float:
    """Total track length in meters."""
    return float(compute_cumulative_distances(points)[-1]) if points else 0.0


def point_at_distance(
    points: Sequence[GeoPoint],
    distance: float,
    cum_dist: np.ndarray | None = None,
) -> GeoPoint:
    """Point `distance` meters along the track, clamped to its ends.

    Pass a precomputed `cum_dist` when sampling the same track every frame.
    """
    if cum_dist is None:
        cum_dist = compute_cumulative_distances(points)
    total = float(cum_dist[-1])
    d = min(max(distance, 0.0), total)

    i = int(np.searchsorted(cum_dist, d, side="right")) - 1
    i = min(max(i, 0), len(points) - 2)
    seg = cum_dist[i + 1] - cum_dist[i]
    t = (d - cum_dist[i]) / seg if seg > 0 else 0.0

    a, b = points[i], points[i + 1]
    return GeoPoint(
        lng=float(a.lng + (b.lng - a.lng) * t),
        lat=float(a.lat + (b.lat - a.lat) * t),
    )


def slice_line(
    points: Sequence[GeoPoint], start: GeoPoint, stop: GeoPoint,
) -> list[GeoPoint]:
    """Portion of the track between the points nearest to `start` and `stop`."""
    line = LineString([p.as_tuple() for p in points])
    a = line.project(Point(start.as_tuple()))
    b = line.project(Point(stop.as_tuple()))
    piece = substring(line, min(a, b), max(a, b))
    coords = list(piece.coords)
    if len(coords) == 1:
        coords = coords * 2
    if b < a:
        coords.reverse()
    return [GeoPoint(lng=x, lat=y) for x, y in coords]


def simplify_track(points: Sequence[GeoPoint], tolerance: float) -> list[GeoPoint]:
    """Douglas-Peucker simplification in coordinate units.

    Topology is not preserved, so every kept vertex is an exact copy of an
    input vertex.
    """
    line = LineString([p.as_tuple() for p in points])
    simplified = line.simplify(tolerance, preserve_topology=False)
    return [GeoPoint(lng=x, lat=y) for x, y in simplified.coords]


def compute_bounds(points: Sequence[GeoPoint]) -> dict:
    """Return bounding box as {sw: [lng, lat], ne: [lng, lat]}."""
    lats = [p.lat for p in points]
    lons = [p.lng for p in points]
    return {
        "sw": [min(lons), min(lats)],
        "ne": [max(lons), max(lats)],
    }
