from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple


@dataclass(frozen=True, slots=True)
class Cell:
    id: str
    center: Tuple[float, float]


class CellCatalog:
    """Append-only list of display cells; insertion order is the snapshot order."""

    def __init__(self) -> None:
        self._cells: List[Cell] = []

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(tuple(self._cells))

    def add_cell(self, cell_id: str, x: float, y: float) -> Cell:
        # Duplicate ids are kept as separate entries.
        cell = Cell(id=str(cell_id), center=(float(x), float(y)))
        self._cells.append(cell)
        return cell

    def all_cells(self) -> Tuple[Cell, ...]:
        return tuple(self._cells)
