"""Pose export: stream per-frame camera poses to a JSON Lines file."""

import json
from typing import Callable, Optional

from .models import CameraPose
from .zoom import mercator_coordinate


class PoseWriter:
    """Camera surface that streams each pose as one JSON line for constant memory usage."""

    def __init__(
        self,
        output_path: str,
        frame_callback: Optional[Callable[[int], None]] = None,
    ):
        self.output_path = output_path
        self.stage = ""
        self.reveal = 0.0
        self.frames_written = 0
        self._frame_callback = frame_callback
        self._file = open(output_path, "w", encoding="utf-8")

    def set_stage(self, stage: str) -> None:
        self.stage = stage

    def set_path_reveal(self, progress: float) -> None:
        self.reveal = progress

    def set_camera(self, pose: CameraPose) -> None:
        """Write a single frame."""
        x, y, z = mercator_coordinate(pose.position, pose.altitude)
        record = {
            "frame": self.frames_written,
            "stage": self.stage,
            "lng": pose.position.lng,
            "lat": pose.position.lat,
            "altitude": pose.altitude,
            "pitch": pose.pitch,
            "bearing": pose.bearing,
            "reveal": self.reveal,
            "mercator": [x, y, z],
        }
        self._file.write(json.dumps(record) + "\n")
        self.frames_written += 1
        if self._frame_callback:
            self._frame_callback(self.frames_written)

    def finalize(self) -> None:
        """Flush and close the output file."""
        if not self._file.closed:
            self._file.close()
