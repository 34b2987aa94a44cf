"""Host rendering surface interface and the loop that drives animations on it."""

import itertools
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Protocol

from .animation import FrameResult, StageResult
from .models import CameraPose


class CameraSurface(Protocol):
    """What an animation needs from the map renderer."""

    def set_camera(self, pose: CameraPose) -> None:
        ...

    def set_path_reveal(self, progress: float) -> None:
        ...


class Driver(Protocol):
    def step(self, now: float) -> FrameResult:
        ...

    result: Optional[StageResult]


@dataclass
class RecordedFrame:
    stage: str
    pose: CameraPose
    reveal: Optional[float]


@dataclass
class RecordingSurface:
    """In-memory surface that keeps every pose it is given."""
    frames: list[RecordedFrame] = field(default_factory=list)
    stage: str = ""
    reveal: Optional[float] = None

    def set_camera(self, pose: CameraPose) -> None:
        self.frames.append(RecordedFrame(stage=self.stage, pose=pose, reveal=self.reveal))

    def set_path_reveal(self, progress: float) -> None:
        self.reveal = progress


def frame_clock(fps: float, start: float = 0.0) -> Iterator[float]:
    """Render-tick timestamps in milliseconds, `fps` ticks per second, forever."""
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    interval = 1000.0 / fps
    return (start + i * interval for i in itertools.count())


def play(
    driver: Driver,
    surface: CameraSurface,
    clock: Iterable[float],
) -> Optional[StageResult]:
    """Step `driver` once per tick until it completes; return its result.

    Each frame's reveal is applied before its pose so the surface draws a
    consistent state. Stop iterating `clock` to cancel.
    """
    for now in clock:
        frame = driver.step(now)
        if frame.reveal is not None:
            surface.set_path_reveal(frame.reveal)
        if frame.pose is not None:
            surface.set_camera(frame.pose)
        if frame.done:
            return driver.result
    return None
