from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    vehicles: int
    occupied_cells: int
    registry_size: int
    agents_changed: bool
    occupancy_changed: bool
    tick_duration_ms: float = 0.0
