from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

SIMULATOR_BACKENDS = ("traci", "replay")
GEO_MODES = ("passthrough", "equirectangular")


@dataclass
class SimulatorConfig:
    backend: str = "traci"
    host: str = "localhost"
    port: int = 6066
    trace_path: Optional[str] = None


@dataclass
class GeoConfig:
    mode: str = "passthrough"
    origin_lat: float = 0.0
    origin_lon: float = 0.0


@dataclass
class AssetConfig:
    enabled: bool = False
    template_path: str = "images/car-cropped.svg"
    output_dir: str = "images/generated"


@dataclass
class CellConfig:
    id: str
    x: float
    y: float


@dataclass
class TrackerConfig:
    hex_radius: float = 0.0025
    # None draws colors from a system-seeded generator
    color_seed: Optional[int] = None
    max_registry_entries: Optional[int] = None
    step_interval: float = 0.1
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    geo: GeoConfig = field(default_factory=GeoConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    cells: List[CellConfig] = field(default_factory=list)

    @staticmethod
    def from_yaml(path: Path) -> "TrackerConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


@dataclass
class AppConfig:
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    broadcast_interval: int = 1

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_app_config(data)


def load_config(raw: dict) -> TrackerConfig:
    simulator = SimulatorConfig(**raw.get("simulator", {}))
    if simulator.backend not in SIMULATOR_BACKENDS:
        raise ValueError(f"unknown simulator backend {simulator.backend!r}; expected one of {SIMULATOR_BACKENDS}")
    if simulator.backend == "replay" and not simulator.trace_path:
        raise ValueError("simulator.trace_path is required for the replay backend")

    geo = GeoConfig(**raw.get("geo", {}))
    if geo.mode not in GEO_MODES:
        raise ValueError(f"unknown geo mode {geo.mode!r}; expected one of {GEO_MODES}")

    assets = AssetConfig(**raw.get("assets", {}))
    cells = [
        CellConfig(id=str(cell["id"]), x=float(cell["x"]), y=float(cell["y"]))
        for cell in raw.get("cells", raw.get("hexagons", []))
    ]
    top_values = {k: v for k, v in raw.items() if k not in {"simulator", "geo", "assets", "cells", "hexagons"}}
    config = TrackerConfig(simulator=simulator, geo=geo, assets=assets, cells=cells, **top_values)
    if config.hex_radius <= 0:
        raise ValueError("hex_radius must be positive")
    if config.max_registry_entries is not None and config.max_registry_entries <= 0:
        raise ValueError("max_registry_entries must be positive when set")
    return config


def load_app_config(raw: dict) -> AppConfig:
    tracker_values = {k: v for k, v in raw.items() if k != "broadcast_interval"}
    broadcast_interval = int(raw.get("broadcast_interval", 1))
    if broadcast_interval < 1:
        raise ValueError("broadcast_interval must be at least 1")
    return AppConfig(tracker=load_config(tracker_values), broadcast_interval=broadcast_interval)
