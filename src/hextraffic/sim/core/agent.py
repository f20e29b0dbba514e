from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

TRANSPARENT = "transparent"


@dataclass(frozen=True, slots=True)
class Color:
    r: int
    g: int
    b: int

    def name(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @staticmethod
    def from_name(value: str) -> "Color":
        text = value.lstrip("#")
        if len(text) != 6:
            raise ValueError(f"expected a #rrggbb color, got {value!r}")
        return Color(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))


@dataclass(frozen=True, slots=True)
class RawVehicle:
    """One vehicle as reported by the simulator, before conversion."""

    id: str
    x: float
    y: float
    heading: float

    @staticmethod
    def from_mapping(data: Mapping[str, Any]) -> "RawVehicle":
        missing = [key for key in ("id", "x", "y", "heading") if key not in data]
        if missing:
            raise ValueError(f"vehicle record {dict(data)!r} is missing {', '.join(missing)}")
        return RawVehicle(
            id=str(data["id"]),
            x=float(data["x"]),
            y=float(data["y"]),
            heading=float(data["heading"]),
        )


@dataclass(frozen=True, slots=True)
class Agent:
    id: str
    position: Tuple[float, float]
    heading: float
    color: Color

    @property
    def latitude(self) -> float:
        return self.position[0]

    @property
    def longitude(self) -> float:
        return self.position[1]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "rotation": self.heading,
            "color": self.color.name(),
        }
