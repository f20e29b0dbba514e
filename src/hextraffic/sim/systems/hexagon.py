from __future__ import annotations

from typing import List, Tuple

from pygame.math import Vector2

HEX_RADIUS = 0.0025
_VERTEX_ANGLES_DEG = tuple(60.0 * i - 30.0 for i in range(6))


def hexagon_vertices(center: Tuple[float, float], radius: float = HEX_RADIUS) -> List[Vector2]:
    """
    Six vertices of the regular hexagon around ``center``.

    The first coordinate takes the cosine term and the second the sine term,
    whatever the coordinates mean. This is a flat approximation, not a
    geodesic hexagon.
    """

    origin = Vector2(center[0], center[1])
    vertices: List[Vector2] = []
    for angle in _VERTEX_ANGLES_DEG:
        offset = Vector2()
        offset.from_polar((radius, angle))
        vertices.append(origin + offset)
    return vertices


def contains_point(point: Tuple[float, float], vertices: List[Vector2]) -> bool:
    # Even-odd ray casting along the first axis.
    px, py = point
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        vi = vertices[i]
        vj = vertices[j]
        if (vi.y > py) != (vj.y > py):
            dy = vj.y - vi.y
            # Horizontal edge: never a crossing.
            if dy != 0.0 and px < (vj.x - vi.x) * (py - vi.y) / dy + vi.x:
                inside = not inside
        j = i
    return inside


def contains(point: Tuple[float, float], center: Tuple[float, float], radius: float = HEX_RADIUS) -> bool:
    return contains_point(point, hexagon_vertices(center, radius))
