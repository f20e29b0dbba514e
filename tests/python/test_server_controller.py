from __future__ import annotations

import asyncio
import json

import pytest
from fastapi import HTTPException, WebSocketDisconnect

from conftest import frame
from hextraffic.app import server
from hextraffic.app.server import TrackerController, set_speed, websocket_endpoint
from hextraffic.sim.adapters.geo import PassThroughConverter
from hextraffic.sim.core.config import TrackerConfig
from hextraffic.sim.core.tracker import OccupancyTracker


class _RecordingSocket:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_text(self, text: str) -> None:
        self.sent.append(json.loads(text))


def _controller(make_replay, config: TrackerConfig | None = None) -> TrackerController:
    simulator = make_replay(
        frame(("veh0", 0.0, 0.0)),
        frame(("veh0", 0.0, 0.0)),
        frame(("veh0", 1.0, 1.0)),
    )
    tracker = OccupancyTracker(simulator, PassThroughConverter())
    tracker.add_cell("H1", 0.0, 0.0)
    tracker.add_cell("H2", 1.0, 1.0)
    tracker.start()
    return TrackerController(config or TrackerConfig(), tracker=tracker)


def test_broadcasts_only_changes(make_replay) -> None:
    controller = _controller(make_replay)
    client = _RecordingSocket()
    controller.clients.add(client)

    async def exercise() -> None:
        await controller.step_once()
        assert [message["type"] for message in client.sent] == ["vehicles", "hexagons"]
        client.sent.clear()

        await controller.step_once()
        assert client.sent == []

        await controller.step_once()
        assert [message["type"] for message in client.sent] == ["vehicles", "hexagons"]
        hexagons = client.sent[1]["payload"]
        assert hexagons[0] == {"id": "H1", "color": "transparent"}
        assert hexagons[1]["id"] == "H2"
        assert hexagons[1]["color"].startswith("#")

    asyncio.run(exercise())


def test_full_state_messages_reflect_current_snapshots(make_replay) -> None:
    controller = _controller(make_replay)
    asyncio.run(controller.step_once())
    vehicles, hexagons = (json.loads(message) for message in controller.full_state_messages())
    assert vehicles["payload"][0]["id"] == "veh0"
    assert set(vehicles["payload"][0]) == {"id", "latitude", "longitude", "rotation", "color"}
    assert [entry["id"] for entry in hexagons["payload"]] == ["H1", "H2"]


def test_failed_step_stops_the_loop(make_replay) -> None:
    controller = _controller(make_replay, TrackerConfig(step_interval=0.01))

    def explode(snapshot) -> None:
        raise RuntimeError("listener failed")

    controller.tracker.on_agents_changed(explode)

    async def exercise() -> None:
        await controller.start()
        for _ in range(100):
            if not controller.running:
                break
            await asyncio.sleep(0.01)
        assert not controller.running
        assert controller.tracker.tick_count == 1
        assert not controller._loop_task.done()
        controller._loop_task.cancel()

    asyncio.run(exercise())


def test_cells_and_speed_go_through_controller(make_replay) -> None:
    controller = _controller(make_replay)

    async def exercise() -> None:
        await controller.step_once()
        cell = await controller.add_cell("H3", 2.0, 2.0)
        assert cell.id == "H3"
        await controller.set_vehicle_speed("veh0", 3.0)
        assert await controller.vehicle_speed("veh0") == 3.0

    asyncio.run(exercise())
    assert [cell.id for cell in controller.tracker.catalog] == ["H1", "H2", "H3"]


@pytest.mark.parametrize("payload", [{"speed": "fast"}, {"speed": -1.0}, {"speed": float("nan")}, {}])
def test_bad_speed_is_rejected(payload) -> None:
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(set_speed("veh0", payload))
    assert excinfo.value.status_code == 400


class _DroppingSocket:
    async def accept(self) -> None:
        return None

    async def send_text(self, text: str) -> None:
        raise WebSocketDisconnect(code=1001)

    async def receive_text(self) -> str:
        raise AssertionError("socket already closed")


def test_client_dropped_during_initial_state_is_removed() -> None:
    socket = _DroppingSocket()
    asyncio.run(websocket_endpoint(socket))
    assert socket not in server.controller.clients
