from __future__ import annotations

import asyncio
import json
import logging
import math
import os
from pathlib import Path
from typing import Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.adapters.simulator import SimulatorError
from ..sim.core.cells import Cell
from ..sim.core.config import AppConfig, TrackerConfig
from ..sim.core.tracker import OccupancyTracker
from ..sim.types.snapshot import AgentSnapshot, OccupancySnapshot, agents_payload, occupancy_payload

logger = logging.getLogger(__name__)


class TrackerController:
    def __init__(self, config: TrackerConfig, tracker: OccupancyTracker | None = None, broadcast_interval: int = 1):
        self.config = config
        self.tracker = tracker if tracker is not None else OccupancyTracker.from_config(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.clients: Set[WebSocket] = set()
        self._pending: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self.tracker.on_agents_changed(self._queue_vehicles)
        self.tracker.on_occupancy_changed(self._queue_hexagons)

    async def start(self) -> None:
        async with self._lock:
            if not self.running:
                await asyncio.to_thread(self.tracker.start)
                self.running = True
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        async with self._lock:
            if self.running:
                self.running = False
                await asyncio.to_thread(self.tracker.stop)

    async def step_once(self) -> None:
        # Simulator calls block on a socket, so they run off the event loop.
        async with self._lock:
            metrics = await asyncio.to_thread(self.tracker.tick)
        if metrics.tick % self.broadcast_interval == 0:
            await self._broadcast_pending()

    async def add_cell(self, cell_id: str, x: float, y: float) -> Cell:
        async with self._lock:
            return self.tracker.add_cell(cell_id, x, y)

    async def vehicle_speed(self, vehicle_id: str) -> float:
        async with self._lock:
            return await asyncio.to_thread(self.tracker.vehicle_speed, vehicle_id)

    async def set_vehicle_speed(self, vehicle_id: str, speed: float) -> None:
        async with self._lock:
            await asyncio.to_thread(self.tracker.set_vehicle_speed, vehicle_id, speed)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.step_interval)
            if not self.running:
                continue
            try:
                await self.step_once()
            except Exception:
                logger.exception("tracking step failed; stopping")
                self.running = False

    def _queue_vehicles(self, snapshot: AgentSnapshot) -> None:
        self._pending["vehicles"] = json.dumps({"type": "vehicles", "payload": agents_payload(snapshot)})

    def _queue_hexagons(self, snapshot: OccupancySnapshot) -> None:
        self._pending["hexagons"] = json.dumps({"type": "hexagons", "payload": occupancy_payload(snapshot)})

    def full_state_messages(self) -> list[str]:
        return [
            json.dumps({"type": "vehicles", "payload": agents_payload(self.tracker.current_agent_snapshot())}),
            json.dumps({"type": "hexagons", "payload": occupancy_payload(self.tracker.current_occupancy_snapshot())}),
        ]

    async def _broadcast_pending(self) -> None:
        messages = list(self._pending.values())
        self._pending.clear()
        if not messages or not self.clients:
            return
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                for message in messages:
                    await client.send_text(message)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.warning("dropping disconnected websocket client")
            self.clients.discard(client)


def _load_app_config() -> AppConfig:
    path = os.environ.get("HEXTRAFFIC_CONFIG")
    if path:
        return AppConfig.from_yaml(Path(path))
    return AppConfig()


app_config = _load_app_config()
app = FastAPI(title="Hexagon Traffic Occupancy")
controller = TrackerController(app_config.tracker, broadcast_interval=app_config.broadcast_interval)


@app.on_event("startup")
async def _startup() -> None:
    logging.basicConfig(level=logging.INFO)


@app.on_event("shutdown")
async def _shutdown() -> None:
    await controller.stop()


@app.get("/api/status")
async def status() -> JSONResponse:
    tracker = controller.tracker
    return JSONResponse(
        {
            "running": controller.running,
            "tick": tracker.tick_count,
            "vehicles": len(tracker.current_agent_snapshot()),
            "hexagons": len(tracker.catalog),
            "registry_size": len(tracker.registry),
        }
    )


@app.get("/api/vehicles")
async def vehicles() -> JSONResponse:
    return JSONResponse(agents_payload(controller.tracker.current_agent_snapshot()))


@app.get("/api/hexagons")
async def hexagons() -> JSONResponse:
    return JSONResponse(occupancy_payload(controller.tracker.current_occupancy_snapshot()))


@app.post("/api/hexagons")
async def add_hexagon(payload: dict) -> JSONResponse:
    try:
        cell = await controller.add_cell(str(payload["id"]), float(payload["x"]), float(payload["y"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"invalid hexagon: {exc}") from exc
    return JSONResponse({"id": cell.id, "x": cell.center[0], "y": cell.center[1]})


@app.post("/api/control/start")
async def start_tracking() -> JSONResponse:
    try:
        await controller.start()
    except SimulatorError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return JSONResponse({"running": controller.running})


@app.post("/api/control/stop")
async def stop_tracking() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": controller.running})


@app.get("/api/vehicles/{vehicle_id}/speed")
async def get_speed(vehicle_id: str) -> JSONResponse:
    try:
        speed = await controller.vehicle_speed(vehicle_id)
    except SimulatorError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return JSONResponse({"id": vehicle_id, "speed": speed})


def _parse_speed(payload: dict) -> float:
    try:
        speed = float(payload["speed"])
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"invalid speed: {exc}") from exc
    if not math.isfinite(speed) or speed < 0.0:
        raise HTTPException(status_code=400, detail="speed must be a non-negative number")
    return speed


@app.post("/api/vehicles/{vehicle_id}/speed")
async def set_speed(vehicle_id: str, payload: dict) -> JSONResponse:
    speed = _parse_speed(payload)
    try:
        await controller.set_vehicle_speed(vehicle_id, speed)
    except SimulatorError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return JSONResponse({"id": vehicle_id, "speed": speed})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    try:
        for message in controller.full_state_messages():
            await websocket.send_text(message)
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("websocket client disconnected")
    finally:
        controller.clients.discard(websocket)


__all__ = ["app", "controller"]
