"""Frame-stepped camera animations: fly-in transition and path following."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .camera import SmoothingState, compute_camera_position, lerp
from .geodesy import normalize_bearing, project_onto_great_circle, wrap_bearing
from .models import CameraPose, GeoPoint
from .schedule import BearingInterval
from .track import compute_cumulative_distances, point_at_distance

logger = logging.getLogger(__name__)


class DriverState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass(frozen=True)
class FrameResult:
    """One frame of an animation.

    `pose` is None only on the terminal frame of a path follow, which has
    nothing left to show. `reveal` is the fraction of the path to draw.
    """
    pose: Optional[CameraPose]
    phase: float
    done: bool
    reveal: Optional[float] = None


@dataclass(frozen=True)
class StageResult:
    """Camera state a finished stage hands to the next one."""
    bearing: float
    altitude: float


def ease_cubic_out(t: float) -> float:
    """Cubic ease-out: fast start, decelerating into 1."""
    t = max(0.0, min(1.0, t))
    return 1 - (1 - t) ** 3


class _Driver:
    def __init__(self):
        self.state = DriverState.PENDING
        self.result: Optional[StageResult] = None

    @property
    def done(self) -> bool:
        return self.state is DriverState.COMPLETE

    def _begin_step(self) -> None:
        if self.state is DriverState.COMPLETE:
            raise RuntimeError(f"{type(self).__name__} has already completed")
        self.state = DriverState.RUNNING

    def _finish(self) -> None:
        self.state = DriverState.COMPLETE
        logger.debug("%s complete: %s", type(self).__name__, self.result)


# ── Fly-in ──────────────────────────────────────────────────────────────


@dataclass
class FlyInConfig:
    target: GeoPoint
    duration: float = 7000.0  # milliseconds
    start_altitude: float = 3_000_000.0
    end_altitude: float = 12_000.0
    start_bearing: float = 0.0
    end_bearing: float = -20.0
    start_pitch: float = 40.0
    end_pitch: float = 50.0
    end_target: Optional[GeoPoint] = None  # ease the look-at point too (pull-back)


class FlyInAndRotate(_Driver):
    """Fixed-duration transition between two camera states.

    Pitch, bearing and altitude ease with a cubic ease-out. Bearing is a plain
    numeric lerp: pick start/end values that rotate the way you want
    (e.g. 350 -> 370 rather than 350 -> 10).
    """

    def __init__(self, config: FlyInConfig):
        super().__init__()
        self.config = config
        self._start_time: Optional[float] = None

    def step(self, now: float) -> FrameResult:
        """Advance to wall-clock time `now` (milliseconds)."""
        self._begin_step()
        cfg = self.config
        if self._start_time is None:
            self._start_time = now

        if cfg.duration <= 0:
            phase = 1.0
        else:
            phase = min(1.0, max(0.0, (now - self._start_time) / cfg.duration))

        eased = ease_cubic_out(phase)
        altitude = lerp(cfg.start_altitude, cfg.end_altitude, eased)
        bearing = lerp(cfg.start_bearing, cfg.end_bearing, eased)
        pitch = lerp(cfg.start_pitch, cfg.end_pitch, eased)

        target = cfg.target
        if cfg.end_target is not None:
            target = GeoPoint(
                lng=lerp(cfg.target.lng, cfg.end_target.lng, eased),
                lat=lerp(cfg.target.lat, cfg.end_target.lat, eased),
            )

        position = compute_camera_position(pitch, bearing, target, altitude)
        pose = CameraPose(
            position=position,
            altitude=altitude,
            pitch=pitch,
            bearing=wrap_bearing(bearing),
        )

        done = phase == 1.0
        if done:
            self.result = StageResult(bearing=wrap_bearing(bearing), altitude=altitude)
            self._finish()
        return FrameResult(pose=pose, phase=phase, done=done)


# ── Path follow ─────────────────────────────────────────────────────────


@dataclass
class PathFollowConfig:
    altitude: float
    pitch: float = 50.0
    speed: float = 30.0  # meters of track per frame
    schedule: Optional[Sequence[BearingInterval]] = None
    start_bearing: float = 0.0  # used without a schedule
    bearing_rotation: float = 0.0  # degrees turned over the whole run, without a schedule
    ease_ratio: float = 0.2  # trailing share of an interval spent turning
    project_to_route: bool = True
    smoothing: bool = True


class PathFollow(_Driver):
    """Distance-driven traversal of a track at constant ground speed.

    With a bearing schedule the camera holds each interval's heading, turns
    toward the next one during the last `ease_ratio` of the interval, and
    stays on the great circle between the interval's endpoints. Without one
    it rotates linearly from `start_bearing` by `bearing_rotation`.
    """

    def __init__(self, points: Sequence[GeoPoint], config: PathFollowConfig):
        super().__init__()
        if config.speed <= 0:
            raise ValueError(f"Path follow speed must be positive, got {config.speed}")
        if config.schedule is not None and not config.schedule:
            raise ValueError("Bearing schedule is empty")
        if not 0.0 <= config.ease_ratio <= 1.0:
            raise ValueError(f"ease_ratio must be within [0, 1], got {config.ease_ratio}")

        self.points = points
        self.config = config
        self.cum_dist = compute_cumulative_distances(points)
        self.total_length = float(self.cum_dist[-1])
        if self.total_length <= 0:
            raise ValueError("Track has zero length")

        self.index = 0
        self.interval_index = 0
        self.smoothing = SmoothingState() if config.smoothing else None
        self.last_pose: Optional[CameraPose] = None

    @property
    def phase(self) -> float:
        return self.config.speed * self.index / self.total_length

    def _scheduled_bearing(self, phase: float) -> float:
        schedule = self.config.schedule
        while (
            self.interval_index < len(schedule) - 1
            and phase >= schedule[self.interval_index].end_ratio
        ):
            self.interval_index += 1

        current = schedule[self.interval_index]
        bearing = current.bearing
        if self.interval_index + 1 >= len(schedule):
            return bearing

        nxt = schedule[self.interval_index + 1]
        window_start = (
            current.start_ratio
            + (current.end_ratio - current.start_ratio) * (1 - self.config.ease_ratio)
        )
        if window_start <= phase < current.end_ratio:
            t = (phase - window_start) / (current.end_ratio - window_start)
            bearing += normalize_bearing(current.bearing, nxt.bearing) * t
        return bearing

    def _ground_point(self, phase: float) -> GeoPoint:
        along = point_at_distance(self.points, self.total_length * phase, self.cum_dist)
        if self.config.schedule is None or not self.config.project_to_route:
            return along
        interval = self.config.schedule[self.interval_index]
        return project_onto_great_circle(
            self.points[interval.start_index],
            self.points[interval.end_index],
            along,
        )

    def step(self, now: Optional[float] = None) -> FrameResult:
        """Advance one frame; `now` is accepted for a uniform driver interface."""
        self._begin_step()
        cfg = self.config
        phase = self.phase
        if phase > 1:
            self._finish()
            return FrameResult(pose=None, phase=1.0, done=True)

        if cfg.schedule is not None:
            bearing = self._scheduled_bearing(phase)
        else:
            bearing = cfg.start_bearing + cfg.bearing_rotation * phase

        target = self._ground_point(phase)
        position = compute_camera_position(
            cfg.pitch, bearing, target, cfg.altitude, smoothing=self.smoothing,
        )
        pose = CameraPose(
            position=position,
            altitude=cfg.altitude,
            pitch=cfg.pitch,
            bearing=wrap_bearing(bearing),
        )
        self.last_pose = pose
        self.index += 1
        return FrameResult(pose=pose, phase=phase, done=False, reveal=phase)
