from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import traci
from traci.exceptions import FatalTraCIError, TraCIException

from .simulator import SimulatorError

logger = logging.getLogger(__name__)

_TRACI_ERRORS = (FatalTraCIError, TraCIException, OSError)


class TraciSimulator:
    """SUMO over TraCI. The SUMO server must already be listening on ``host:port``."""

    def __init__(self, host: str = "localhost", port: int = 6066):
        self._host = host
        self._port = port
        self._connection: Optional[traci.connection.Connection] = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        if self._connection is not None:
            return
        try:
            self._connection = traci.connect(port=self._port, host=self._host, numRetries=0)
        except _TRACI_ERRORS as exc:
            raise SimulatorError(f"could not connect to SUMO at {self._host}:{self._port}: {exc}") from exc
        logger.info("connected to SUMO at %s:%d", self._host, self._port)

    def disconnect(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            connection.close()
        except _TRACI_ERRORS as exc:
            raise SimulatorError(f"error while closing SUMO connection: {exc}") from exc
        logger.info("disconnected from SUMO")

    def step(self) -> None:
        self._call(lambda conn: conn.simulationStep())

    def vehicle_ids(self) -> List[str]:
        return list(self._call(lambda conn: conn.vehicle.getIDList()))

    def position(self, vehicle_id: str) -> Tuple[float, float]:
        x, y = self._call(lambda conn: conn.vehicle.getPosition(vehicle_id))
        return (float(x), float(y))

    def heading(self, vehicle_id: str) -> float:
        return float(self._call(lambda conn: conn.vehicle.getAngle(vehicle_id)))

    def speed(self, vehicle_id: str) -> float:
        return float(self._call(lambda conn: conn.vehicle.getSpeed(vehicle_id)))

    def set_speed(self, vehicle_id: str, speed: float) -> None:
        logger.debug("vehicle %s speed -> %s", vehicle_id, speed)
        self._call(lambda conn: conn.vehicle.setSpeed(vehicle_id, speed))

    def _call(self, func):
        if self._connection is None:
            raise SimulatorError("SUMO is not connected")
        try:
            return func(self._connection)
        except _TRACI_ERRORS as exc:
            raise SimulatorError(str(exc)) from exc
