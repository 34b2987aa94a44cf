"""CLI entry point for flycam."""

import json
import logging
import math

import click
from tqdm import tqdm

from .export import PoseWriter
from .schedule import DEFAULT_TOLERANCE, build_bearing_schedule
from .sequence import FlyoverSettings, run_flyover
from .track import as_track, line_length
from .zoom import height_to_zoom

PACE_PRESETS = {
    "leisurely": {"speed": 15.0, "altitude": 6000.0},
    "cruise": {"speed": 30.0, "altitude": 12000.0},
    "rapid": {"speed": 80.0, "altitude": 20000.0},
}

FORMAT_PRESETS = {
    "instagram": {"width": 1080, "height": 1920},
    "youtube": {"width": 1920, "height": 1080},
    "tiktok": {"width": 1080, "height": 1920},
    "square": {"width": 1080, "height": 1080},
}


def _load_track(path: str):
    """Read the first LineString of a GeoJSON file as a track."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"'{path}' is not valid JSON: {e}") from None
    if not isinstance(data, dict):
        raise click.ClickException(f"'{path}' is not a GeoJSON object")

    if data.get("type") == "FeatureCollection":
        geometries = [feat.get("geometry") or {} for feat in data.get("features", [])]
    elif data.get("type") == "Feature":
        geometries = [data.get("geometry") or {}]
    else:
        geometries = [data]

    for geom in geometries:
        if geom.get("type") == "LineString":
            coords = geom.get("coordinates", [])
        elif geom.get("type") == "MultiLineString":
            coords = [c for part in geom.get("coordinates", []) for c in part]
        else:
            continue
        try:
            return as_track(coords)
        except ValueError as e:
            raise click.ClickException(f"Invalid track in '{path}': {e}") from None

    raise click.ClickException(f"No LineString found in '{path}'")


@click.command()
@click.argument("track_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False), default="poses.jsonl")
@click.option("--fps", default=60, help="Frames per second.")
@click.option("--pace", type=click.Choice(list(PACE_PRESETS)), default="cruise",
              help="Pace preset: leisurely=15m/frame, cruise=30m/frame, rapid=80m/frame.")
@click.option("--speed", default=None, type=float,
              help="Track meters covered per frame (overrides pace preset).")
@click.option("--altitude", default=None, type=float,
              help="Camera altitude while following the track in meters (overrides pace preset).")
@click.option("--pitch", default=50.0, help="Camera pitch while following (0=straight down).")
@click.option("--tolerance", default=DEFAULT_TOLERANCE,
              help="Simplification tolerance (degrees) for deciding where the camera turns.")
@click.option("--fly-in-duration", default=7.0, help="Fly-in duration in seconds.")
@click.option("--start-altitude", default=3_000_000.0, help="Fly-in starting altitude (meters).")
@click.option("--schedule/--no-schedule", default=True,
              help="Turn at the track's corners (or rotate slowly without a schedule).")
@click.option("--rotation", default=0.0,
              help="Degrees to rotate over the whole run when --no-schedule is used.")
@click.option("--smoothing/--no-smoothing", default=True,
              help="Low-pass filter the camera position while following.")
@click.option("--pull-back/--no-pull-back", default=True,
              help="Enable/disable the final pull-back over the whole route.")
@click.option("--width", default=1920, help="Viewport width in pixels.")
@click.option("--height", default=1080, help="Viewport height in pixels.")
@click.option("--format", "view_format", type=click.Choice(list(FORMAT_PRESETS)),
              default=None, help="Viewport preset (overrides --width/--height).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(
    track_file: str,
    output: str,
    fps: int,
    pace: str,
    speed: float | None,
    altitude: float | None,
    pitch: float,
    tolerance: float,
    fly_in_duration: float,
    start_altitude: float,
    schedule: bool,
    rotation: float,
    smoothing: bool,
    pull_back: bool,
    width: int,
    height: int,
    view_format: str | None,
    verbose: bool,
) -> None:
    """Compute the camera poses of a flyover along a GeoJSON track."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if fps <= 0:
        raise click.UsageError("--fps must be positive")
    if not 0 <= pitch < 90:
        raise click.UsageError("--pitch must be within [0, 90)")

    if view_format:
        fmt = FORMAT_PRESETS[view_format]
        width = fmt["width"]
        height = fmt["height"]

    preset = PACE_PRESETS[pace]
    settings = FlyoverSettings(
        fps=fps,
        fly_in_duration=fly_in_duration * 1000.0,
        start_altitude=start_altitude,
        altitude=altitude if altitude is not None else preset["altitude"],
        pitch=pitch,
        speed=speed if speed is not None else preset["speed"],
        use_schedule=schedule,
        tolerance=tolerance,
        bearing_rotation=rotation,
        smoothing=smoothing,
        pull_back=pull_back,
        viewport=(width, height),
    )
    if settings.speed <= 0:
        raise click.UsageError("--speed must be positive")

    click.echo(f"Loading track: {track_file}")
    points = _load_track(track_file)
    length_m = line_length(points)
    click.echo(f"  Found {len(points)} points, {length_m / 1000:.1f} km")

    intervals = None
    if schedule:
        try:
            intervals = build_bearing_schedule(points, tolerance)
        except ValueError as e:
            raise click.UsageError(str(e)) from None
        click.echo(f"  {len(intervals)} headings at tolerance {tolerance}")

    zoom = height_to_zoom(settings.altitude, settings.pitch)
    click.echo(
        f"Following at {settings.altitude:.0f} m (zoom {zoom:.1f}), "
        f"{settings.speed:g} m/frame at {fps}fps"
    )

    estimated = (
        math.ceil(settings.fly_in_duration * fps / 1000) + 1
        + int(length_m / settings.speed) + 1
        + (math.ceil(settings.pull_back_duration * fps / 1000) + 1 if pull_back else 0)
    )
    bar = tqdm(total=estimated, unit="frame", desc="Computing poses")

    def on_frame(count: int) -> None:
        bar.update(count - bar.n)

    writer = PoseWriter(output, frame_callback=on_frame)
    try:
        run_flyover(
            points, writer, settings,
            stage_callback=writer.set_stage, schedule=intervals,
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from None
    finally:
        writer.finalize()
        bar.close()

    click.echo(f"{writer.frames_written} poses saved to: {output}")


if __name__ == "__main__":
    main()
