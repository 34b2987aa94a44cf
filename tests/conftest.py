"""Shared test tracks."""

from __future__ import annotations

import math

import pytest

from flycam.models import GeoPoint


def make_straight_track(n: int = 11, length_deg: float = 0.1) -> list[GeoPoint]:
    """Due north along the prime meridian from the equator."""
    return [GeoPoint(lng=0.0, lat=length_deg * i / (n - 1)) for i in range(n)]


def make_l_track(n: int = 11, leg_deg: float = 0.1) -> list[GeoPoint]:
    """North along lng 0, then east along lat `leg_deg`: one right-angle turn."""
    north = [GeoPoint(lng=0.0, lat=leg_deg * i / (n - 1)) for i in range(n)]
    east = [GeoPoint(lng=leg_deg * i / (n - 1), lat=leg_deg) for i in range(1, n)]
    return north + east


def make_u_track(n: int = 11, leg_deg: float = 0.1) -> list[GeoPoint]:
    """North, east, then south: two right-angle turns."""
    south = [
        GeoPoint(lng=leg_deg, lat=leg_deg - leg_deg * i / (n - 1)) for i in range(1, n)
    ]
    return make_l_track(n, leg_deg) + south


def make_loop_track(n: int = 41, radius_deg: float = 0.001) -> list[GeoPoint]:
    """Counter-clockwise circle around the origin that ends on its start point."""
    loop = [
        GeoPoint(
            lng=radius_deg * math.cos(2 * math.pi * i / (n - 1)),
            lat=radius_deg * math.sin(2 * math.pi * i / (n - 1)),
        )
        for i in range(n - 1)
    ]
    return loop + [loop[0]]


@pytest.fixture
def straight_track() -> list[GeoPoint]:
    return make_straight_track()


@pytest.fixture
def l_track() -> list[GeoPoint]:
    return make_l_track()


@pytest.fixture
def u_track() -> list[GeoPoint]:
    return make_u_track()


@pytest.fixture
def wiggly_track() -> list[GeoPoint]:
    """Northbound track whose interior points zig-zag 0.0005 deg off the meridian."""
    n = 21
    return [
        GeoPoint(lng=0.0 if i in (0, n - 1) else 0.0005 * (-1) ** i, lat=0.1 * i / (n - 1))
        for i in range(n)
    ]


@pytest.fixture
def loop_track() -> list[GeoPoint]:
    return make_loop_track()


@pytest.fixture
def short_track() -> list[GeoPoint]:
    """Two points about 1.1 m apart: too close to anchor a great circle."""
    return [GeoPoint(0.0, 0.0), GeoPoint(0.0, 0.00001)]
