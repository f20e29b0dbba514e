from __future__ import annotations

import logging
from pathlib import Path
from time import perf_counter
from typing import Callable, Dict, List, Optional

from .agent import Agent, Color
from .cells import Cell, CellCatalog
from .config import TrackerConfig
from .registry import IdentityRegistry
from .rng import ColorRng
from ..adapters.geo import CoordinateConverter, build_converter
from ..adapters.simulator import ReplaySimulator, SimulatorAdapter
from ..systems.hexagon import HEX_RADIUS
from ..systems.occupancy import occupied_count, reconcile
from ..types.metrics import TickMetrics
from ..types.snapshot import AgentSnapshot, OccupancySnapshot
from ...assets import SvgColorizer

logger = logging.getLogger(__name__)

AgentsListener = Callable[[AgentSnapshot], None]
OccupancyListener = Callable[[OccupancySnapshot], None]


def build_simulator(config: TrackerConfig) -> SimulatorAdapter:
    sim = config.simulator
    if sim.backend == "replay":
        return ReplaySimulator.from_file(Path(sim.trace_path))
    if sim.backend == "traci":
        from ..adapters.traci_simulator import TraciSimulator

        return TraciSimulator(host=sim.host, port=sim.port)
    raise ValueError(f"unknown simulator backend {sim.backend!r}")


class OccupancyTracker:
    """
    Drives one simulator step per ``tick()`` and keeps the last committed
    vehicle and hexagon snapshots.

    Snapshots are replaced wholesale. Listeners run synchronously at the end of
    the tick, after the new snapshot is stored, and only when it differs from
    the previous one. If the simulator fails part way through a tick the error
    propagates and neither snapshot is touched.

    Vehicle SVGs are written after the tick is committed. A failed write is
    logged and retried on the next tick; it never fails the tick.
    """

    def __init__(
        self,
        simulator: SimulatorAdapter,
        converter: CoordinateConverter,
        registry: Optional[IdentityRegistry] = None,
        catalog: Optional[CellCatalog] = None,
        hex_radius: float = HEX_RADIUS,
        colorizer: Optional[SvgColorizer] = None,
    ):
        self._simulator = simulator
        self._converter = converter
        self._registry = registry if registry is not None else IdentityRegistry()
        self._catalog = catalog if catalog is not None else CellCatalog()
        self._hex_radius = hex_radius
        self._colorizer = colorizer
        self._agents: AgentSnapshot = ()
        self._occupancy: OccupancySnapshot = ()
        self._agent_listeners: List[AgentsListener] = []
        self._occupancy_listeners: List[OccupancyListener] = []
        self._assets_written: Dict[str, Color] = {}
        self._tick = 0

    @staticmethod
    def from_config(config: TrackerConfig, simulator: Optional[SimulatorAdapter] = None) -> "OccupancyTracker":
        registry = IdentityRegistry(ColorRng(config.color_seed), max_entries=config.max_registry_entries)
        colorizer = None
        if config.assets.enabled:
            colorizer = SvgColorizer(Path(config.assets.template_path), Path(config.assets.output_dir))
        tracker = OccupancyTracker(
            simulator=simulator if simulator is not None else build_simulator(config),
            converter=build_converter(config.geo),
            registry=registry,
            hex_radius=config.hex_radius,
            colorizer=colorizer,
        )
        for cell in config.cells:
            tracker.add_cell(cell.id, cell.x, cell.y)
        return tracker

    @property
    def registry(self) -> IdentityRegistry:
        return self._registry

    @property
    def catalog(self) -> CellCatalog:
        return self._catalog

    @property
    def simulator(self) -> SimulatorAdapter:
        return self._simulator

    @property
    def tick_count(self) -> int:
        return self._tick

    def start(self) -> None:
        self._simulator.connect()

    def stop(self) -> None:
        self._simulator.disconnect()

    def add_cell(self, cell_id: str, x: float, y: float) -> Cell:
        return self._catalog.add_cell(cell_id, x, y)

    def on_agents_changed(self, listener: AgentsListener) -> None:
        self._agent_listeners.append(listener)

    def on_occupancy_changed(self, listener: OccupancyListener) -> None:
        self._occupancy_listeners.append(listener)

    def current_agent_snapshot(self) -> AgentSnapshot:
        return self._agents

    def current_occupancy_snapshot(self) -> OccupancySnapshot:
        return self._occupancy

    def vehicle_speed(self, vehicle_id: str) -> float:
        return self._simulator.speed(vehicle_id)

    def set_vehicle_speed(self, vehicle_id: str, speed: float) -> None:
        self._simulator.set_speed(vehicle_id, speed)

    def tick(self) -> TickMetrics:
        start = perf_counter()
        agents = self._fetch_agents()

        agents_changed = agents != self._agents
        self._agents = agents

        occupancy, occupancy_changed = reconcile(
            agents, self._catalog.all_cells(), self._occupancy, self._hex_radius
        )
        if occupancy_changed:
            self._occupancy = occupancy

        tick = self._tick
        self._tick += 1
        if agents_changed:
            for listener in self._agent_listeners:
                listener(agents)
        if occupancy_changed:
            for listener in self._occupancy_listeners:
                listener(occupancy)
        if self._colorizer is not None:
            self._write_new_assets(agents)

        elapsed_ms = (perf_counter() - start) * 1000.0
        logger.debug(
            "tick %d: %d vehicles, agents_changed=%s occupancy_changed=%s (%.2f ms)",
            tick,
            len(agents),
            agents_changed,
            occupancy_changed,
            elapsed_ms,
        )
        return TickMetrics(
            tick=tick,
            vehicles=len(agents),
            occupied_cells=occupied_count(self._occupancy),
            registry_size=len(self._registry),
            agents_changed=agents_changed,
            occupancy_changed=occupancy_changed,
            tick_duration_ms=elapsed_ms,
        )

    def _fetch_agents(self) -> AgentSnapshot:
        simulator = self._simulator
        simulator.step()
        agents = []
        for vehicle_id in simulator.vehicle_ids():
            x, y = simulator.position(vehicle_id)
            heading = simulator.heading(vehicle_id)
            agents.append(
                Agent(
                    id=vehicle_id,
                    position=self._converter.to_geo(x, y),
                    heading=float(heading),
                    color=self._registry.color_of(vehicle_id),
                )
            )
        return tuple(agents)

    def _write_new_assets(self, agents: AgentSnapshot) -> None:
        written = self._assets_written
        for agent in agents:
            # An evicted or reset id comes back with a new color.
            if written.get(agent.id) == agent.color:
                continue
            try:
                self._colorizer.write_vehicle_svg(agent.id, agent.color)
            except OSError:
                logger.exception("could not write SVG for vehicle %s", agent.id)
                continue
            written[agent.id] = agent.color
