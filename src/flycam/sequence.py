"""Flyover sequence: approach the start, follow the track, pull back over the route."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from .animation import (
    FlyInAndRotate,
    FlyInConfig,
    PathFollow,
    PathFollowConfig,
    StageResult,
)
from .camera import compute_target_position
from .geodesy import normalize_bearing
from .models import GeoPoint
from .schedule import (
    DEFAULT_TOLERANCE,
    BearingInterval,
    ScheduleError,
    build_bearing_schedule,
)
from .surface import CameraSurface, frame_clock, play
from .track import compute_bounds
from .zoom import bounds_center, fit_bounds_zoom, get_camera_height

logger = logging.getLogger(__name__)

STAGE_FLY_IN = "fly-in"
STAGE_FOLLOW = "follow"
STAGE_PULL_BACK = "pull-back"


@dataclass
class FlyoverSettings:
    fps: float = 60.0
    # fly-in
    fly_in_duration: float = 7000.0  # ms
    start_altitude: float = 3_000_000.0
    start_bearing: float = 0.0
    start_pitch: float = 40.0
    approach_bearing: Optional[float] = None  # None: first heading of the track
    # follow
    altitude: float = 12_000.0
    pitch: float = 50.0
    speed: float = 30.0  # meters per frame
    use_schedule: bool = True
    tolerance: float = DEFAULT_TOLERANCE
    ease_ratio: float = 0.2
    bearing_rotation: float = 0.0
    smoothing: bool = True
    # pull-back
    pull_back: bool = True
    pull_back_duration: float = 3000.0
    pull_back_pitch: float = 30.0
    pull_back_bearing: float = 0.0
    viewport: tuple[int, int] = (1920, 1080)
    padding: int = 120


def run_flyover(
    points: Sequence[GeoPoint],
    surface: CameraSurface,
    settings: Optional[FlyoverSettings] = None,
    clock: Optional[Iterable[float]] = None,
    stage_callback: Optional[Callable[[str], None]] = None,
    schedule: Optional[Sequence[BearingInterval]] = None,
) -> Optional[StageResult]:
    """Play the full flyover on `surface`, one stage after another.

    A prebuilt `schedule` for `points` is used as given; otherwise one is
    built when `settings.use_schedule` is set. Either way this happens
    before any frame is drawn so a bad track or tolerance fails up front.
    Returns the camera state after the last stage.
    """
    s = settings or FlyoverSettings()
    ticks = iter(clock if clock is not None else frame_clock(s.fps))
    if schedule is None and s.use_schedule:
        schedule = build_bearing_schedule(points, s.tolerance)
    elif schedule is not None and not schedule:
        raise ScheduleError("Bearing schedule is empty")

    def enter(stage: str) -> None:
        logger.debug("Starting stage %s", stage)
        if stage_callback:
            stage_callback(stage)

    if s.approach_bearing is not None:
        approach = s.approach_bearing
    elif schedule:
        approach = s.start_bearing + normalize_bearing(s.start_bearing, schedule[0].bearing)
    else:
        approach = -20.0

    enter(STAGE_FLY_IN)
    surface.set_path_reveal(0.0)
    arrived = play(
        FlyInAndRotate(
            FlyInConfig(
                target=points[0],
                duration=s.fly_in_duration,
                start_altitude=s.start_altitude,
                end_altitude=s.altitude,
                start_bearing=s.start_bearing,
                end_bearing=approach,
                start_pitch=s.start_pitch,
                end_pitch=s.pitch,
            )
        ),
        surface,
        ticks,
    )
    if arrived is None:
        return None

    enter(STAGE_FOLLOW)
    follow = PathFollow(
        points,
        PathFollowConfig(
            altitude=arrived.altitude,
            pitch=s.pitch,
            speed=s.speed,
            schedule=schedule,
            start_bearing=arrived.bearing,
            bearing_rotation=s.bearing_rotation,
            ease_ratio=s.ease_ratio,
            smoothing=s.smoothing,
        ),
    )
    play(follow, surface, ticks)
    if not follow.done:
        return None
    surface.set_path_reveal(1.0)

    last = follow.last_pose
    result = StageResult(bearing=last.bearing, altitude=last.altitude)
    if not s.pull_back:
        return result

    enter(STAGE_PULL_BACK)
    width, height = s.viewport
    bounds = compute_bounds(points)
    center = bounds_center(bounds)
    zoom = fit_bounds_zoom(bounds, width, height, padding=s.padding)
    end_altitude = get_camera_height(height, zoom, center.lat, s.pull_back_pitch)
    return play(
        FlyInAndRotate(
            FlyInConfig(
                target=compute_target_position(
                    last.pitch, last.bearing, last.position, last.altitude,
                ),
                end_target=center,
                duration=s.pull_back_duration,
                start_altitude=last.altitude,
                end_altitude=end_altitude,
                start_bearing=last.bearing,
                end_bearing=last.bearing + normalize_bearing(last.bearing, s.pull_back_bearing),
                start_pitch=last.pitch,
                end_pitch=s.pull_back_pitch,
            )
        ),
        surface,
        ticks,
    )
