from __future__ import annotations

from typing import Sequence, Tuple

from ..core.agent import TRANSPARENT, Agent
from ..core.cells import Cell
from ..types.snapshot import CellOccupancy, OccupancySnapshot
from .hexagon import HEX_RADIUS, contains_point, hexagon_vertices


def occupant_color(agents: Sequence[Agent], cell: Cell, radius: float = HEX_RADIUS) -> str:
    vertices = hexagon_vertices(cell.center, radius)
    for agent in agents:
        # First match wins; later agents in the same cell are not shown.
        if contains_point(agent.position, vertices):
            return agent.color.name()
    return TRANSPARENT


def reconcile(
    agents: Sequence[Agent],
    cells: Sequence[Cell],
    previous: OccupancySnapshot,
    radius: float = HEX_RADIUS,
) -> Tuple[OccupancySnapshot, bool]:
    """
    Recompute the occupant of every cell and compare with ``previous``.

    This is a full cells x agents scan with no spatial index, which is fine for
    the grid sizes and traffic volumes this is used with but grows linearly in
    both.
    """

    snapshot = tuple(CellOccupancy(cell_id=cell.id, color=occupant_color(agents, cell, radius)) for cell in cells)
    return snapshot, snapshot != tuple(previous)


def occupied_count(snapshot: OccupancySnapshot) -> int:
    return sum(1 for entry in snapshot if entry.color != TRANSPARENT)
