from __future__ import annotations

import logging
from pathlib import Path

from .sim.core.agent import Color

logger = logging.getLogger(__name__)

TEMPLATE_FILL = 'fill="#000000"'


class SvgColorizer:
    """Writes one recolored copy of the vehicle SVG template per vehicle id."""

    def __init__(self, template_path: Path, output_dir: Path):
        self._template_path = Path(template_path)
        self._output_dir = Path(output_dir)
        self._template: str | None = None

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def path_for(self, vehicle_id: str) -> Path:
        return self._output_dir / f"car_modified_{vehicle_id}.svg"

    def render(self, color: Color) -> str:
        if self._template is None:
            self._template = self._template_path.read_text()
        return self._template.replace(TEMPLATE_FILL, f'fill="{color.name()}"')

    def write_vehicle_svg(self, vehicle_id: str, color: Color) -> Path:
        content = self.render(color)
        path = self.path_for(vehicle_id)
        if path.exists() and path.read_text() == content:
            return path
        self._output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        logger.info("wrote %s for vehicle %s", path, vehicle_id)
        return path
