from __future__ import annotations

import math
from typing import Protocol, Tuple

from ..core.config import GeoConfig

# Metres per degree of latitude on a spherical earth.
_METRES_PER_DEGREE = 111_320.0


class CoordinateConverter(Protocol):
    def to_geo(self, x: float, y: float) -> Tuple[float, float]: ...


class PassThroughConverter:
    """Keeps simulator coordinates as they are; cells must use the same space."""

    def to_geo(self, x: float, y: float) -> Tuple[float, float]:
        return (x, y)


class EquirectangularConverter:
    """Metres east/north of a geographic origin to (latitude, longitude)."""

    def __init__(self, origin_lat: float, origin_lon: float):
        self._origin_lat = origin_lat
        self._origin_lon = origin_lon
        self._lon_scale = _METRES_PER_DEGREE * math.cos(math.radians(origin_lat))

    def to_geo(self, x: float, y: float) -> Tuple[float, float]:
        lat = self._origin_lat + y / _METRES_PER_DEGREE
        lon = self._origin_lon + x / self._lon_scale
        return (lat, lon)


def build_converter(config: GeoConfig) -> CoordinateConverter:
    if config.mode == "equirectangular":
        return EquirectangularConverter(config.origin_lat, config.origin_lon)
    if config.mode == "passthrough":
        return PassThroughConverter()
    raise ValueError(f"unknown geo mode {config.mode!r}")
