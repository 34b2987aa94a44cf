"""Bearing schedule: precompute constant-heading intervals for path following."""

import logging
from dataclasses import dataclass
from typing import Sequence

from .geodesy import compute_bearing, spans_great_circle
from .models import GeoPoint
from .track import compute_cumulative_distances, simplify_track

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.004  # degrees


class ScheduleError(ValueError):
    """Raised when a track cannot produce a usable bearing schedule."""


@dataclass(frozen=True)
class BearingInterval:
    """Stretch of the track flown at one heading.

    Indices point into the full-resolution track; ratios are cumulative
    length from the start divided by total length.
    """
    start_index: int
    start_ratio: float
    end_index: int
    end_ratio: float
    bearing: float


def build_bearing_schedule(
    points: Sequence[GeoPoint],
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[BearingInterval]:
    """Split the track into intervals that follow its simplified shape.

    Each vertex kept by simplification closes an interval; its bearing is the
    heading from the previous kept vertex. The intervals cover [0, 1] with no
    gaps, and every interval's endpoints span a great circle, so a schedule
    that is returned can be followed to the end.
    """
    if len(points) < 2:
        raise ScheduleError("Track must contain at least 2 points")

    cum_dist = compute_cumulative_distances(points)
    total = float(cum_dist[-1])
    if total <= 0:
        raise ScheduleError("Track has zero length")

    simplified = simplify_track(points, tolerance)
    if len(simplified) < 2:
        raise ScheduleError(
            f"Simplification tolerance {tolerance} left {len(simplified)} vertices "
            "(need at least 2); use a smaller tolerance"
        )
    if len(simplified) == 2 and simplified[0] == simplified[1]:
        raise ScheduleError(
            f"Closed loop collapsed to a single point at tolerance {tolerance}; "
            "use a smaller tolerance"
        )

    intervals = []
    cursor = 1
    start = 0
    for i in range(1, len(points)):
        if points[i] != simplified[cursor]:
            continue
        prev, cur = simplified[cursor - 1], simplified[cursor]
        # Path following projects onto the great circle through these two
        if not spans_great_circle(prev, cur):
            raise ScheduleError(
                f"Interval {len(intervals)} from ({prev.lng}, {prev.lat}) to "
                f"({cur.lng}, {cur.lat}) is too short or antipodal to follow; "
                "use a smaller tolerance or disable the schedule"
            )
        intervals.append(
            BearingInterval(
                start_index=start,
                start_ratio=float(cum_dist[start]) / total,
                end_index=i,
                end_ratio=float(cum_dist[i]) / total,
                bearing=compute_bearing(prev.lat, prev.lng, cur.lat, cur.lng),
            )
        )
        start = i
        cursor += 1
        if cursor == len(simplified):
            break

    if cursor != len(simplified):
        raise ScheduleError(
            f"Simplified vertex {cursor} of {len(simplified)} not found in the track"
        )

    logger.debug(
        "Bearing schedule: %d points -> %d intervals (tolerance %g)",
        len(points), len(intervals), tolerance,
    )
    return intervals
