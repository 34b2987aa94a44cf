"""Tests for the surface player and the three-stage flyover sequence."""

from __future__ import annotations

import itertools

import pytest

from flycam import sequence as sequence_mod
from flycam.animation import FlyInAndRotate, FlyInConfig
from flycam.camera import compute_target_position
from flycam.models import GeoPoint
from flycam.schedule import ScheduleError, build_bearing_schedule
from flycam.sequence import (
    STAGE_FLY_IN,
    STAGE_FOLLOW,
    STAGE_PULL_BACK,
    FlyoverSettings,
    run_flyover,
)
from flycam.surface import RecordingSurface, frame_clock, play
from flycam.track import compute_bounds
from flycam.zoom import bounds_center, fit_bounds_zoom, get_camera_height


def quick_settings(**overrides) -> FlyoverSettings:
    cfg = dict(
        fps=30.0,
        fly_in_duration=1000.0,
        pull_back_duration=500.0,
        speed=500.0,
        viewport=(800, 600),
        padding=40,
    )
    cfg.update(overrides)
    return FlyoverSettings(**cfg)


def run_recorded(track, settings, schedule=None):
    surface = RecordingSurface()
    stages = []

    def on_stage(stage: str) -> None:
        stages.append(stage)
        surface.stage = stage

    result = run_flyover(track, surface, settings, stage_callback=on_stage, schedule=schedule)
    return surface, stages, result


class TestFrameClock:
    def test_ticks_are_evenly_spaced(self):
        ticks = list(itertools.islice(frame_clock(50, start=100.0), 4))
        assert ticks == pytest.approx([100.0, 120.0, 140.0, 160.0])

    def test_rejects_non_positive_fps(self):
        with pytest.raises(ValueError):
            frame_clock(0)


class TestPlay:
    def test_returns_stage_result(self):
        surface = RecordingSurface()
        driver = FlyInAndRotate(FlyInConfig(target=GeoPoint(0.0, 0.0), duration=100.0))
        result = play(driver, surface, frame_clock(100))
        assert result.altitude == 12_000.0
        assert len(surface.frames) == 11

    def test_stopping_the_clock_cancels(self):
        surface = RecordingSurface()
        driver = FlyInAndRotate(FlyInConfig(target=GeoPoint(0.0, 0.0), duration=10_000.0))
        assert play(driver, surface, itertools.islice(frame_clock(60), 5)) is None
        assert len(surface.frames) == 5
        assert not driver.done


class TestRunFlyover:
    def test_stages_run_in_order(self, l_track):
        surface, stages, result = run_recorded(l_track, quick_settings())
        assert stages == [STAGE_FLY_IN, STAGE_FOLLOW, STAGE_PULL_BACK]
        order = [f.stage for f in surface.frames]
        assert order == sorted(order, key=stages.index)
        assert result is not None

    def test_altitude_is_threaded_between_stages(self, l_track):
        settings = quick_settings(altitude=8000.0)
        surface, _, _ = run_recorded(l_track, settings)
        fly_in = [f for f in surface.frames if f.stage == STAGE_FLY_IN]
        follow = [f for f in surface.frames if f.stage == STAGE_FOLLOW]
        assert fly_in[0].pose.altitude == settings.start_altitude
        assert fly_in[-1].pose.altitude == 8000.0
        assert {f.pose.altitude for f in follow} == {8000.0}

    def test_fly_in_arrives_on_first_heading(self, l_track):
        surface, _, _ = run_recorded(l_track, quick_settings())
        fly_in = [f for f in surface.frames if f.stage == STAGE_FLY_IN]
        follow = [f for f in surface.frames if f.stage == STAGE_FOLLOW]
        assert fly_in[-1].pose.bearing == pytest.approx(follow[0].pose.bearing, abs=1e-6)

    def test_path_is_revealed_progressively(self, l_track):
        surface, _, _ = run_recorded(l_track, quick_settings())
        reveals = {
            stage: [f.reveal for f in surface.frames if f.stage == stage]
            for stage in (STAGE_FLY_IN, STAGE_FOLLOW, STAGE_PULL_BACK)
        }
        assert set(reveals[STAGE_FLY_IN]) == {0.0}
        assert reveals[STAGE_FOLLOW] == sorted(reveals[STAGE_FOLLOW])
        assert set(reveals[STAGE_PULL_BACK]) == {1.0}

    def test_pull_back_ends_north_up_over_the_route(self, l_track):
        surface, _, result = run_recorded(l_track, quick_settings())
        last = surface.frames[-1].pose
        assert last.pitch == 30.0
        assert min(result.bearing, 360.0 - result.bearing) == pytest.approx(0.0, abs=1e-9)

        bounds = compute_bounds(l_track)
        center = bounds_center(bounds)
        zoom = fit_bounds_zoom(bounds, 800, 600, padding=40)
        assert last.altitude == pytest.approx(get_camera_height(600, zoom, center.lat, 30.0))
        seen = compute_target_position(last.pitch, last.bearing, last.position, last.altitude)
        assert seen.lng == pytest.approx(center.lng, abs=1e-9)
        assert seen.lat == pytest.approx(center.lat, abs=1e-9)

    def test_without_schedule_or_pull_back(self, l_track):
        settings = quick_settings(use_schedule=False, pull_back=False, bearing_rotation=45.0)
        surface, stages, result = run_recorded(l_track, settings)
        assert stages == [STAGE_FLY_IN, STAGE_FOLLOW]
        assert result.altitude == settings.altitude
        assert result.bearing == pytest.approx(340.0 + 45.0 - 360.0, abs=1.0)

    def test_bad_track_fails_before_any_frame(self):
        surface = RecordingSurface()
        with pytest.raises(ScheduleError):
            run_flyover([GeoPoint(1.0, 1.0), GeoPoint(1.0, 1.0)], surface, quick_settings())
        assert surface.frames == []

    @pytest.mark.parametrize("track_name", ["loop_track", "short_track"])
    def test_unfollowable_schedule_fails_before_any_frame(self, track_name, request):
        track = request.getfixturevalue(track_name)
        surface = RecordingSurface()
        with pytest.raises(ScheduleError):
            run_flyover(track, surface, quick_settings(speed=1.0))
        assert len(surface.frames) == 0

    def test_loop_plays_without_schedule(self, loop_track):
        settings = quick_settings(use_schedule=False, speed=20.0)
        surface, stages, result = run_recorded(loop_track, settings)
        assert stages == [STAGE_FLY_IN, STAGE_FOLLOW, STAGE_PULL_BACK]
        assert result is not None

    def test_prebuilt_schedule_is_used(self, l_track, monkeypatch):
        schedule = build_bearing_schedule(l_track)

        def rebuild(points, tolerance):
            raise AssertionError("schedule rebuilt")

        monkeypatch.setattr(sequence_mod, "build_bearing_schedule", rebuild)
        surface, stages, result = run_recorded(l_track, quick_settings(), schedule=schedule)
        assert stages == [STAGE_FLY_IN, STAGE_FOLLOW, STAGE_PULL_BACK]
        follow = [f for f in surface.frames if f.stage == STAGE_FOLLOW]
        assert follow[0].pose.bearing == pytest.approx(schedule[0].bearing, abs=1e-6)

    def test_empty_prebuilt_schedule_fails_before_any_frame(self, l_track):
        surface = RecordingSurface()
        with pytest.raises(ScheduleError, match="empty"):
            run_flyover(l_track, surface, quick_settings(), schedule=[])
        assert surface.frames == []

    def test_cancelling_mid_run_returns_none(self, l_track):
        surface = RecordingSurface()
        clock = itertools.islice(frame_clock(30), 40)
        assert run_flyover(l_track, surface, quick_settings(), clock=clock) is None
        assert len(surface.frames) == 40
