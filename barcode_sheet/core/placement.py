# barcode_sheet/core/placement.py
"""
Where each rendered symbol goes inside its cell.

Both the preview and the PDF export call these helpers with millimetre
inputs and scale the results themselves, so a symbol lands in the same
spot on screen and on paper.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .layout import LayoutSpec, Rect, rect_for
from .models import LabelEntry

MM_PER_INCH = 25.4
DEFAULT_PADDING_MM = 2.0


@dataclass(frozen=True)
class PlacedGlyph:
    entry_id: str
    cell_index: int
    rect: Rect          # fitted symbol rect (mm)
    cell_rect: Rect     # full cell rect (mm)


def scale_rect(rect: Rect, factor: float) -> Rect:
    """mm -> screen px or device dots; the only unit conversion either path does."""
    return rect.scaled(factor)


def symbol_size_mm(pixel_width: int, pixel_height: int, dpi: float) -> Tuple[float, float]:
    """Physical size of a raster rendered at *dpi*."""
    if dpi <= 0:
        raise ValueError("dpi must be positive")
    return (pixel_width / dpi * MM_PER_INCH, pixel_height / dpi * MM_PER_INCH)


def fit_rect(
    cell_rect: Rect,
    width_mm: float,
    height_mm: float,
    padding_mm: float = DEFAULT_PADDING_MM,
) -> Rect:
    """
    Centre a symbol of natural size ``width_mm × height_mm`` in *cell_rect*.

    The symbol keeps its aspect ratio and is only ever scaled down, so it
    fits inside the cell minus *padding_mm* on every side.
    """
    if width_mm <= 0 or height_mm <= 0:
        raise ValueError("symbol size must be positive")

    box_w = max(0.0, cell_rect.width - 2 * padding_mm)
    box_h = max(0.0, cell_rect.height - 2 * padding_mm)

    scale = min(1.0, box_w / width_mm, box_h / height_mm)
    w = width_mm * scale
    h = height_mm * scale

    x = cell_rect.x + (cell_rect.width - w) / 2.0
    y = cell_rect.y + (cell_rect.height - h) / 2.0
    return Rect(x, y, w, h)


def plan_placements(
    entries: Iterable[LabelEntry],
    spec: LayoutSpec,
    symbol_sizes: Dict[str, Tuple[float, float]],
    padding_mm: float = DEFAULT_PADDING_MM,
) -> List[PlacedGlyph]:
    """
    One PlacedGlyph per (entry, cell) pair, in entry order then by cell.

    *symbol_sizes* maps entry id -> natural symbol size in mm; entries
    without a size (e.g. ones that failed to rasterize) are left out.
    """
    placed: List[PlacedGlyph] = []
    for entry in entries:
        size = symbol_sizes.get(entry.id)
        if size is None:
            continue
        for cell in sorted(entry.cells):
            cell_rect = rect_for(cell, spec)
            placed.append(
                PlacedGlyph(
                    entry_id=entry.id,
                    cell_index=cell,
                    rect=fit_rect(cell_rect, size[0], size[1], padding_mm),
                    cell_rect=cell_rect,
                )
            )
    return placed
