from __future__ import annotations

import math

import pytest
from pygame.math import Vector2
from pytest import approx

from hextraffic.sim.systems.hexagon import HEX_RADIUS, contains, contains_point, hexagon_vertices

R = HEX_RADIUS


def test_vertices_follow_pointy_layout():
    vertices = hexagon_vertices((1.0, 2.0), R)
    assert len(vertices) == 6
    assert vertices[0].x == approx(1.0 + R * math.cos(math.radians(-30)))
    assert vertices[0].y == approx(2.0 - R / 2)
    assert vertices[2].x == approx(1.0, abs=1e-12)
    assert vertices[2].y == approx(2.0 + R)
    assert vertices[5].y == approx(2.0 - R)


@pytest.mark.parametrize("center", [(0.0, 0.0), (1.0, 1.0), (48.85, 2.35), (-3.5, 120.25)])
def test_center_is_inside(center):
    assert contains(center, center)


@pytest.mark.parametrize("offset", [(10 * R, 0.0), (-10 * R, 0.0), (0.0, 10 * R), (0.0, -10 * R)])
def test_far_points_are_outside(offset):
    center = (1.0, 1.0)
    point = (center[0] + offset[0], center[1] + offset[1])
    assert not contains(point, center)


def test_flat_sides_are_on_first_axis():
    # Flat edges sit at r*cos(30) along the first axis, vertices at r along the second.
    assert contains((0.85 * R, 0.0), (0.0, 0.0))
    assert not contains((0.9 * R, 0.0), (0.0, 0.0))
    assert contains((0.0, 0.9 * R), (0.0, 0.0))
    assert not contains((0.0, 1.01 * R), (0.0, 0.0))


def test_radius_is_respected():
    assert contains((0.0, 0.009), (0.0, 0.0), radius=0.01)
    assert not contains((0.0, 0.009), (0.0, 0.0))


def test_horizontal_edges_do_not_fault():
    square = [Vector2(0, 0), Vector2(1, 0), Vector2(1, 1), Vector2(0, 1)]
    assert contains_point((0.5, 0.5), square)
    assert not contains_point((1.5, 0.5), square)
    assert contains_point((0.5, 0.0), square)
    assert not contains_point((0.5, 1.0), square)
