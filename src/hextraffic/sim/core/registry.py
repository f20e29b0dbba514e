from __future__ import annotations

from collections import OrderedDict
from typing import Optional

from .agent import Color
from .rng import ColorRng


class IdentityRegistry:
    """
    Maps vehicle ids to the color they were given the first time they were seen.

    Colors are random per channel, so two vehicles can share a color; a single id
    never changes color while it stays in the registry. An id that leaves the
    simulation and comes back later keeps its old color.

    With ``max_entries`` unset the registry grows by one entry per distinct id for
    the life of the process. Long-running deployments with many short-lived
    vehicles can bound it; the least recently looked-up id is evicted first and
    gets a fresh color if it is ever seen again.
    """

    def __init__(self, rng: Optional[ColorRng] = None, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._rng = rng if rng is not None else ColorRng()
        self._max_entries = max_entries
        self._colors: "OrderedDict[str, Color]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._colors)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._colors

    @property
    def max_entries(self) -> Optional[int]:
        return self._max_entries

    def color_of(self, agent_id: str) -> Color:
        color = self._colors.get(agent_id)
        if color is not None:
            if self._max_entries is not None:
                self._colors.move_to_end(agent_id)
            return color
        color = self._rng.next_color()
        self._colors[agent_id] = color
        if self._max_entries is not None and len(self._colors) > self._max_entries:
            self._colors.popitem(last=False)
        return color

    def reset(self) -> None:
        self._colors.clear()
        self._rng.reset()
