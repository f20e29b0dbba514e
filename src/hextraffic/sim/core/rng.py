from __future__ import annotations

import random
from typing import Optional

from .agent import Color


class ColorRng:
    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_channel(self) -> int:
        return self._random.randrange(256)

    def next_color(self) -> Color:
        return Color(self.next_channel(), self.next_channel(), self.next_channel())
