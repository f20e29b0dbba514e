from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence, Tuple

import yaml

from ..core.agent import RawVehicle

logger = logging.getLogger(__name__)


class SimulatorError(RuntimeError):
    """The simulator could not be reached, or refused a step or query."""


class SimulatorAdapter(Protocol):
    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def step(self) -> None: ...

    def vehicle_ids(self) -> Sequence[str]: ...

    def position(self, vehicle_id: str) -> Tuple[float, float]: ...

    def heading(self, vehicle_id: str) -> float: ...

    def speed(self, vehicle_id: str) -> float: ...

    def set_speed(self, vehicle_id: str, speed: float) -> None: ...


class ReplaySimulator:
    """
    Plays back recorded frames as if they came from a live simulator.

    Each frame is the list of vehicles alive after one step. ``step()`` moves to
    the next frame and fails once the recording is used up.
    """

    def __init__(self, frames: Sequence[Sequence[RawVehicle]]):
        self._frames: List[Dict[str, RawVehicle]] = [{vehicle.id: vehicle for vehicle in frame} for frame in frames]
        self._index = -1
        self._connected = False
        self._speed_overrides: Dict[str, float] = {}

    @staticmethod
    def from_records(frames: Sequence[Sequence[Dict[str, Any]]]) -> "ReplaySimulator":
        return ReplaySimulator([[RawVehicle.from_mapping(item) for item in frame] for frame in frames])

    @staticmethod
    def from_file(path: Path) -> "ReplaySimulator":
        # YAML is a superset of JSON, so recorded JSON traces load as well.
        data = yaml.safe_load(Path(path).read_text()) or []
        if isinstance(data, dict):
            data = data.get("frames", [])
        return ReplaySimulator.from_records(data)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def remaining(self) -> int:
        return len(self._frames) - self._index - 1

    def connect(self) -> None:
        self._connected = True
        self._index = -1
        logger.info("replay connected with %d frames", len(self._frames))

    def disconnect(self) -> None:
        self._connected = False

    def step(self) -> None:
        self._require_connection()
        if self.remaining <= 0:
            raise SimulatorError(f"replay exhausted after {len(self._frames)} frames")
        self._index += 1

    def vehicle_ids(self) -> List[str]:
        return list(self._current())

    def position(self, vehicle_id: str) -> Tuple[float, float]:
        vehicle = self._vehicle(vehicle_id)
        return (vehicle.x, vehicle.y)

    def heading(self, vehicle_id: str) -> float:
        return self._vehicle(vehicle_id).heading

    def speed(self, vehicle_id: str) -> float:
        self._vehicle(vehicle_id)
        return self._speed_overrides.get(vehicle_id, 0.0)

    def set_speed(self, vehicle_id: str, speed: float) -> None:
        self._vehicle(vehicle_id)
        self._speed_overrides[vehicle_id] = float(speed)

    def _require_connection(self) -> None:
        if not self._connected:
            raise SimulatorError("replay simulator is not connected")

    def _current(self) -> Dict[str, RawVehicle]:
        self._require_connection()
        if self._index < 0:
            return {}
        return self._frames[self._index]

    def _vehicle(self, vehicle_id: str) -> RawVehicle:
        vehicle = self._current().get(vehicle_id)
        if vehicle is None:
            raise SimulatorError(f"unknown vehicle {vehicle_id!r}")
        return vehicle
