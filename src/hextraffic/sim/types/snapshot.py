from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..core.agent import Agent


@dataclass(frozen=True, slots=True)
class CellOccupancy:
    cell_id: str
    color: str

    def to_payload(self) -> Dict[str, str]:
        return {"id": self.cell_id, "color": self.color}


AgentSnapshot = Tuple[Agent, ...]
OccupancySnapshot = Tuple[CellOccupancy, ...]


def agents_payload(snapshot: AgentSnapshot) -> List[Dict[str, Any]]:
    return [agent.to_payload() for agent in snapshot]


def occupancy_payload(snapshot: OccupancySnapshot) -> List[Dict[str, str]]:
    return [entry.to_payload() for entry in snapshot]
