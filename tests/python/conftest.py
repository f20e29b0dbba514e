import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from hextraffic.sim.adapters.simulator import ReplaySimulator  # noqa: E402


def frame(*vehicles: tuple[str, float, float]) -> list[dict]:
    return [{"id": vid, "x": x, "y": y, "heading": 0.0} for vid, x, y in vehicles]


@pytest.fixture
def make_replay():
    def _make(*frames: list[dict]) -> ReplaySimulator:
        return ReplaySimulator.from_records(list(frames))

    return _make
