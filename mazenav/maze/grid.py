"""
Grid views of the discovered map, for display and debugging.

The map only knows cells it has seen, so the grid spans the bounding box of
discovered coordinates and leaves unknown slots empty.
"""

from __future__ import annotations

import base64
from io import BytesIO
from typing import Dict, Iterable, List, Optional

import numpy as np
from PIL import Image, ImageDraw

from .schemas import Cell, CellKind, Coordinate

GLYPH_UNKNOWN = " "
GLYPH_AGENT = "@"
KIND_GLYPHS = {
    CellKind.PATH: ".",
    CellKind.WALL: "#",
    CellKind.TRAP: "T",
    CellKind.STOP: "E",
}

KIND_COLORS = {
    CellKind.PATH: (235, 235, 235),
    CellKind.WALL: (60, 60, 60),
    CellKind.TRAP: (200, 60, 50),
    CellKind.STOP: (60, 170, 80),
}
UNKNOWN_COLOR = (25, 25, 35)
AGENT_COLOR = (240, 200, 40)


def build_grid(cells: Iterable[Cell]) -> List[List[Optional[Cell]]]:
    """Rows are y, columns are x, both offset so the smallest coordinate lands at index 0."""
    cells = list(cells)
    if not cells:
        return []

    min_x = min(c.x for c in cells)
    max_x = max(c.x for c in cells)
    min_y = min(c.y for c in cells)
    max_y = max(c.y for c in cells)

    grid: List[List[Optional[Cell]]] = [[None] * (max_x - min_x + 1) for _ in range(max_y - min_y + 1)]
    for cell in cells:
        grid[cell.y - min_y][cell.x - min_x] = cell
    return grid


def grid_to_array(cell_map: Dict[str, Cell], position: Optional[Coordinate] = None) -> np.ndarray:
    cells = list(cell_map.values())
    if position is not None and position.key not in cell_map:
        # The agent always stands somewhere walkable, even before the first discovery.
        cells.append(Cell(position.x, position.y, reachable=True))
    grid = build_grid(cells)
    if not grid:
        return np.full((0, 0), GLYPH_UNKNOWN, dtype="<U1")

    out = np.full((len(grid), len(grid[0])), GLYPH_UNKNOWN, dtype="<U1")
    for r, row in enumerate(grid):
        for c, cell in enumerate(row):
            if cell is None:
                continue
            out[r, c] = GLYPH_AGENT if position is not None and cell.coord == position else KIND_GLYPHS[cell.kind]
    return out


def render_ascii(cell_map: Dict[str, Cell], position: Optional[Coordinate] = None) -> str:
    arr = grid_to_array(cell_map, position)
    return "\n".join("".join(row) for row in arr)


def render_png_base64(cell_map: Dict[str, Cell], position: Optional[Coordinate] = None, cell_px: int = 16) -> str:
    arr = grid_to_array(cell_map, position)
    height, width = arr.shape if arr.size else (1, 1)
    img = Image.new("RGB", (width * cell_px, height * cell_px), color=UNKNOWN_COLOR)
    draw = ImageDraw.Draw(img)

    glyph_kinds = {glyph: kind for kind, glyph in KIND_GLYPHS.items()}
    for (r, c), glyph in np.ndenumerate(arr):
        if glyph == GLYPH_UNKNOWN:
            continue
        color = AGENT_COLOR if glyph == GLYPH_AGENT else KIND_COLORS[glyph_kinds[glyph]]
        box = (c * cell_px, r * cell_px, (c + 1) * cell_px - 1, (r + 1) * cell_px - 1)
        draw.rectangle(box, fill=color)

    buf = BytesIO()
    img.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("utf-8")
